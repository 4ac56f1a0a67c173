"""Base reader abstract class for per-container cgroup metrics.

Every resource reader (memory, CPU, block I/O) walks the same kind of
directory: the resource's base directory from the cgroup layout, holding one
subdirectory per container. Readers only differ in which files they parse
inside each container directory.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from dockerprom.core.errors import CgroupDirectoryError, MetricParseError
from dockerprom.monitoring.layout import CgroupLayout

logger = logging.getLogger(__name__)


@dataclass
class MetricSample:
    """One metric value for one container."""

    container_id: str
    value: float | int
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


# Samples keyed by the reader field they belong to (e.g. "user", "system").
ReaderResult = dict[str, list[MetricSample]]


class BaseReader(ABC):
    """Abstract base class for resource readers.

    Implementations:
    - MemoryReader: memory usage in bytes
    - CpuReader: user and system CPU seconds
    - BlkioReader: bytes read from and written to block devices
    """

    #: v1 controller name, also used in log messages
    resource: str = ""
    #: names of the values produced per container, in output order
    fields: tuple[str, ...] = ()

    def __init__(self, layout: CgroupLayout) -> None:
        self.layout = layout
        self.base_dir = layout.resource_dir(self.resource)

    def container_dirs(self) -> Iterator[tuple[str, Path]]:
        """Yield ``(container_id, path)`` for every container directory.

        Entries that are not directories or whose names have the wrong length
        for the active driver are skipped silently. Names that aren't valid
        UTF-8 are logged and skipped.

        Raises:
            CgroupDirectoryError: If the base directory cannot be listed
        """
        try:
            with os.scandir(self.base_dir) as it:
                entries = list(it)
        except OSError as e:
            raise CgroupDirectoryError(self.resource, self.base_dir, e) from e

        for entry in entries:
            container_id = self.layout.container_id_from_dir_name(entry.name)
            if container_id is None:
                continue
            try:
                os.fsencode(entry.name).decode("utf-8")
            except UnicodeDecodeError as e:
                logger.error(f"Failed to read dirname in {self.base_dir}: {e}")
                continue
            try:
                if not entry.is_dir():
                    continue
            except OSError:
                continue
            yield container_id, Path(entry.path)

    def read(self) -> ReaderResult:
        """Read every container's values for this resource.

        A container whose files are missing or malformed is logged and left
        out; it never aborts the whole read.

        Raises:
            CgroupDirectoryError: If the base directory cannot be listed
        """
        result: ReaderResult = {name: [] for name in self.fields}
        for container_id, path in self.container_dirs():
            try:
                values = self.read_container(path)
            except (OSError, ValueError) as e:
                logger.error(f"Metrics parsing error ({self.resource}, {container_id[:12]}): {e}")
                continue

            now = datetime.now(UTC)
            for name in self.fields:
                result[name].append(MetricSample(container_id, values[name], now))
        return result

    @abstractmethod
    def read_container(self, path: Path) -> dict[str, float | int]:
        """Parse one container directory into ``{field: value}``.

        Raises:
            OSError: If a metric file cannot be read
            ValueError: If a metric file is malformed
        """


def read_single_value(path: Path) -> int:
    """Read a cgroup file holding a single integer."""
    return int(path.read_text().strip())


def parse_flat_keyed(content: str, path: Path, keys: tuple[str, ...]) -> dict[str, int]:
    """Parse ``key value`` lines (cpu.stat style) and return the requested keys.

    Raises:
        MetricParseError: If one of ``keys`` is absent
        ValueError: If a requested value is not an integer
    """
    result: dict[str, int] = {}
    for line in content.splitlines():
        parts = line.split()
        if len(parts) == 2 and parts[0] in keys:
            result[parts[0]] = int(parts[1])

    missing = [k for k in keys if k not in result]
    if missing:
        raise MetricParseError(f"Couldn't find {', '.join(missing)} in {path}")
    return result
