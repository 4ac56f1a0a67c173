"""cgroupfs layout detection.

Works out, once at startup, which cgroup API version the kernel exposes and
which cgroup driver Docker uses, then answers two questions for the readers:

- where the per-container directories of a resource live, and
- which container a directory belongs to.

Detection is a crude look at the directory structure:

- a ``memory`` directory at the cgroupfs root means cgroup v1 (one hierarchy
  per controller), otherwise v2 (unified hierarchy);
- a ``docker`` directory under the version base (the root for v2,
  ``<root>/memory`` for v1) means the cgroupfs driver, otherwise systemd.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dockerprom.core.constants import (
    CONTAINER_ID_LENGTH,
    SYSTEMD_SCOPE_PREFIX,
    SYSTEMD_SCOPE_SUFFIX,
)
from dockerprom.core.errors import DetectionError
from dockerprom.core.schemas import CgroupDriver, CgroupVersion

logger = logging.getLogger(__name__)

V1_MARKER_DIR = "memory"
CGROUPFS_DRIVER_MARKER_DIR = "docker"
SYSTEMD_SLICE_DIR = "system.slice"


def _list_dir_names(path: Path) -> set[str]:
    try:
        with os.scandir(path) as entries:
            return {entry.name for entry in entries}
    except OSError as e:
        raise DetectionError(f"Failed to read {path} directory: {e}") from e


def detect_cgroup_version(
    cgroupfs_dir: Path, override: CgroupVersion | None = None
) -> CgroupVersion:
    """Guess the cgroup version from the cgroupfs root, honouring ``override``.

    Raises:
        DetectionError: If the cgroupfs root cannot be listed
    """
    names = _list_dir_names(cgroupfs_dir)
    guess = CgroupVersion.V1 if V1_MARKER_DIR in names else CgroupVersion.V2
    logger.debug(f"Autodetected cgroup version {guess.value}")

    if override is not None:
        if override != guess:
            logger.warning(
                f"It looks like this system is using cgroup {guess.value}, "
                f"but this has been overridden to {override.value}."
            )
        return override
    return guess


def detect_cgroup_driver(
    cgroupfs_dir: Path,
    version: CgroupVersion,
    override: CgroupDriver | None = None,
) -> CgroupDriver:
    """Guess Docker's cgroup driver, honouring ``override``.

    Raises:
        DetectionError: If the version base directory cannot be listed
    """
    base = cgroupfs_dir / V1_MARKER_DIR if version == CgroupVersion.V1 else cgroupfs_dir
    names = _list_dir_names(base)
    guess = (
        CgroupDriver.CGROUPFS if CGROUPFS_DRIVER_MARKER_DIR in names else CgroupDriver.SYSTEMD
    )
    logger.debug(f"Autodetected Docker cgroup driver {guess.value}")

    if override is not None:
        if override != guess:
            logger.warning(
                f"It looks like this system is using the Docker {guess.value} cgroup driver, "
                f"but this has been overridden to {override.value}."
            )
        return override
    return guess


@dataclass(frozen=True)
class CgroupLayout:
    """Resolved cgroup version and driver for the lifetime of the process."""

    cgroupfs_dir: Path
    version: CgroupVersion
    driver: CgroupDriver

    @classmethod
    def detect(
        cls,
        cgroupfs_dir: Path,
        version_override: CgroupVersion | None = None,
        driver_override: CgroupDriver | None = None,
    ) -> CgroupLayout:
        """Inspect ``cgroupfs_dir`` once and build the layout.

        Raises:
            DetectionError: If the cgroupfs cannot be inspected
        """
        cgroupfs_dir = Path(cgroupfs_dir)
        version = detect_cgroup_version(cgroupfs_dir, version_override)
        driver = detect_cgroup_driver(cgroupfs_dir, version, driver_override)
        return cls(cgroupfs_dir=cgroupfs_dir, version=version, driver=driver)

    @property
    def expected_dir_name_len(self) -> int:
        """Length of a per-container directory name under this driver."""
        if self.driver == CgroupDriver.SYSTEMD:
            return len(SYSTEMD_SCOPE_PREFIX) + CONTAINER_ID_LENGTH + len(SYSTEMD_SCOPE_SUFFIX)
        return CONTAINER_ID_LENGTH

    def resource_dir(self, resource: str) -> Path:
        """Directory holding the per-container cgroups for ``resource``.

        ``resource`` is a v1 controller name (memory, cpu, blkio); v2 ignores it.
        """
        if self.version == CgroupVersion.V1:
            base = self.cgroupfs_dir / resource
        else:
            base = self.cgroupfs_dir

        if self.driver == CgroupDriver.CGROUPFS:
            return base / CGROUPFS_DRIVER_MARKER_DIR
        return base / SYSTEMD_SLICE_DIR

    def container_id_from_dir_name(self, dir_name: str) -> str | None:
        """Container ID encoded in a cgroup directory name.

        Returns None for names of the wrong length (parent slices, other
        services), so the systemd slice below only ever sees validated names.
        """
        if len(dir_name) != self.expected_dir_name_len:
            return None
        if self.driver == CgroupDriver.SYSTEMD:
            return dir_name[len(SYSTEMD_SCOPE_PREFIX) : -len(SYSTEMD_SCOPE_SUFFIX)]
        return dir_name

    def describe(self) -> str:
        return f"cgroup version {self.version.value}, Docker cgroup driver {self.driver.value}"
