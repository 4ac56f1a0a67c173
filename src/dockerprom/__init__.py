"""dockerprom - Prometheus exporter for Docker container cgroup metrics."""

from __future__ import annotations

from dockerprom.core.schemas import (
    CgroupDriver,
    CgroupVersion,
    ContainerMetadata,
    ExporterConfig,
    LabelPolicy,
)
from dockerprom.exporter import ContainerMetricsExporter

__version__ = "0.1.0"

__all__ = [
    "CgroupDriver",
    "CgroupVersion",
    "ContainerMetadata",
    "ContainerMetricsExporter",
    "ExporterConfig",
    "LabelPolicy",
    "__version__",
]
