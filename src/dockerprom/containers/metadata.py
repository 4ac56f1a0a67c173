"""Container metadata cache.

Maps container IDs to the name, image and labels Docker records in
``<containers_dir>/<container>/config.v2.json``. The cache is refreshed by a
full rescan of the containers directory, at most once per configured interval,
whenever a scrape meets a container ID it doesn't know yet.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Callable
from datetime import timedelta
from pathlib import Path

from pydantic import ValidationError

from dockerprom.core.constants import CONTAINER_CONFIG_FILENAME, DEFAULT_METADATA_CACHE_CEILING
from dockerprom.core.schemas import ContainerDescriptor, ContainerMetadata

logger = logging.getLogger(__name__)


def load_container_metadata(config_path: Path) -> ContainerMetadata:
    """Parse one Docker container descriptor file.

    Raises:
        OSError: If the file cannot be read
        pydantic.ValidationError: If the JSON is invalid or lacks required fields
    """
    with open(config_path, "rb") as f:
        data = f.read()
    return ContainerDescriptor.model_validate_json(data).to_metadata()


class ContainerMetadataCache:
    """Thread-safe container ID -> ContainerMetadata mapping.

    One lock covers lookups, lookup-triggered refreshes and full rescans, so
    a reader never sees a partially rebuilt mapping.
    """

    def __init__(
        self,
        containers_dir: Path,
        min_refresh_interval: timedelta | None = None,
        max_entries: int = DEFAULT_METADATA_CACHE_CEILING,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize an empty cache.

        Args:
            containers_dir: Docker "containers" directory to scan
            min_refresh_interval: Minimum time between rescans; None or zero
                rescans on every request
            max_entries: Cache size above which it is cleared before a rescan
            clock: Monotonic time source in seconds
        """
        self.containers_dir = Path(containers_dir)
        self._min_interval = (
            min_refresh_interval.total_seconds() if min_refresh_interval else 0.0
        )
        self._max_entries = max_entries
        self._clock = clock
        self._lock = threading.Lock()
        self._containers: dict[str, ContainerMetadata] = {}
        self._last_refresh: float | None = None
        self.refresh_count = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._containers)

    def __contains__(self, container_id: object) -> bool:
        with self._lock:
            return container_id in self._containers

    def refresh(self, force: bool = False) -> bool:
        """Rescan the containers directory unless throttled.

        Returns:
            True if a rescan was attempted
        """
        with self._lock:
            return self._refresh_locked(force)

    def lookup(self, container_id: str) -> ContainerMetadata | None:
        """Metadata for ``container_id``, rescanning once (throttled) on a miss.

        A miss after the rescan is normal: the container may already be gone.
        """
        with self._lock:
            details = self._containers.get(container_id)
            if details is None and self._refresh_locked(force=False):
                details = self._containers.get(container_id)
            return details

    def _should_refresh(self, force: bool) -> bool:
        if force or self._min_interval <= 0 or self._last_refresh is None:
            return True
        return self._clock() - self._last_refresh >= self._min_interval

    def _refresh_locked(self, force: bool) -> bool:
        if not self._should_refresh(force):
            return False
        self._last_refresh = self._clock()
        self.refresh_count += 1
        logger.debug("Refreshing container metadata")

        if len(self._containers) > self._max_entries:
            logger.info("Container metadata map has grown too large, clearing it out")
            self._containers = {}

        try:
            with os.scandir(self.containers_dir) as it:
                entries = [entry for entry in it if entry.is_dir()]
        except OSError as e:
            logger.error(f"Couldn't read container directory {self.containers_dir}: {e}")
            return True

        containers: dict[str, ContainerMetadata] = {}
        for entry in entries:
            config_path = Path(entry.path) / CONTAINER_CONFIG_FILENAME
            try:
                details = load_container_metadata(config_path)
            except (OSError, ValidationError) as e:
                logger.error(
                    f"Container {CONTAINER_CONFIG_FILENAME} parse error in {entry.name}: {e}"
                )
                continue
            containers[details.id] = details

        self._containers = containers
        logger.info(f"Refreshed container metadata, {len(containers)} containers present")
        return True
