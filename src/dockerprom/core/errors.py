"""Exception types raised by the exporter."""

from __future__ import annotations


class ExporterError(Exception):
    """Base class for dockerprom errors."""


class DetectionError(ExporterError):
    """The cgroupfs could not be inspected to detect version or driver."""


class CgroupDirectoryError(ExporterError):
    """A resource's cgroup base directory could not be listed."""

    def __init__(self, resource: str, path: object, cause: OSError) -> None:
        super().__init__(f"Couldn't read {resource} directory {path}: {cause}")
        self.resource = resource
        self.path = path
        self.cause = cause


class MetricParseError(ExporterError, ValueError):
    """A cgroup metric file was readable but lacked the expected content."""
