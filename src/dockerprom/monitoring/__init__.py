"""Monitoring module - per-container metrics read straight from the cgroupfs.

Provides:
- CgroupLayout: cgroup version/driver detection, path and container-ID resolution
- MemoryReader, CpuReader, BlkioReader: per-resource readers
"""

from __future__ import annotations

from dockerprom.monitoring.base import BaseReader, MetricSample, ReaderResult
from dockerprom.monitoring.layout import (
    CgroupLayout,
    detect_cgroup_driver,
    detect_cgroup_version,
)
from dockerprom.monitoring.readers import BlkioReader, CpuReader, MemoryReader, default_readers

__all__ = [
    "BaseReader",
    "BlkioReader",
    "CgroupLayout",
    "CpuReader",
    "default_readers",
    "detect_cgroup_driver",
    "detect_cgroup_version",
    "MemoryReader",
    "MetricSample",
    "ReaderResult",
]
