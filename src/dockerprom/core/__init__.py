"""Core module - configuration, schemas and errors."""

from __future__ import annotations

from dockerprom.core.config import check_read_dir, load_config, load_config_data
from dockerprom.core.constants import (
    CONTAINER_ID_LENGTH,
    DEFAULT_METADATA_CACHE_CEILING,
    DEFAULT_MIN_METADATA_REFRESH_MS,
)
from dockerprom.core.errors import (
    CgroupDirectoryError,
    DetectionError,
    ExporterError,
    MetricParseError,
)
from dockerprom.core.schemas import (
    CgroupDriver,
    CgroupVersion,
    ContainerDescriptor,
    ContainerMetadata,
    ExporterConfig,
    LabelPolicy,
)

__all__ = [
    "CONTAINER_ID_LENGTH",
    "CgroupDirectoryError",
    "CgroupDriver",
    "CgroupVersion",
    "check_read_dir",
    "ContainerDescriptor",
    "ContainerMetadata",
    "DEFAULT_METADATA_CACHE_CEILING",
    "DEFAULT_MIN_METADATA_REFRESH_MS",
    "DetectionError",
    "ExporterConfig",
    "ExporterError",
    "LabelPolicy",
    "load_config",
    "load_config_data",
    "MetricParseError",
]
