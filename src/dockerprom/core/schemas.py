"""Pydantic schemas for dockerprom.

This module defines the data contracts shared by the exporter: the cgroup
enums, container metadata parsed from Docker's descriptor files, the label
policy, and the top-level exporter configuration.
"""

from __future__ import annotations

import base64
from datetime import timedelta
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from dockerprom.core.constants import (
    DEFAULT_CGROUPFS_DIR,
    DEFAULT_CONTAINERS_DIR,
    DEFAULT_LISTEN_ADDR,
    DEFAULT_METADATA_CACHE_CEILING,
    DEFAULT_MIN_METADATA_REFRESH_MS,
)


class CgroupVersion(str, Enum):
    """cgroup API version exposed by the kernel."""

    V1 = "v1"  # Legacy per-controller hierarchies
    V2 = "v2"  # Unified hierarchy


class CgroupDriver(str, Enum):
    """Docker cgroup driver, i.e. how container cgroup directories are named."""

    CGROUPFS = "cgroupfs"  # <base>/docker/<id>
    SYSTEMD = "systemd"  # <base>/system.slice/docker-<id>.scope


class ContainerMetadata(BaseModel):
    """Identity of a container, as known from its descriptor file."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    image: str
    labels: dict[str, str] = Field(default_factory=dict)


class _DescriptorConfig(BaseModel):
    image: str = Field(..., alias="Image")
    labels: dict[str, str] | None = Field(default=None, alias="Labels")


class ContainerDescriptor(BaseModel):
    """The subset of Docker's ``config.v2.json`` the exporter cares about.

    Unknown fields are ignored; ``Config.Labels`` may be ``null``.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., alias="ID", min_length=1)
    name: str = Field(..., alias="Name")
    config: _DescriptorConfig = Field(..., alias="Config")

    def to_metadata(self) -> ContainerMetadata:
        return ContainerMetadata(
            id=self.id,
            name=self.name,
            image=self.config.image,
            labels=dict(self.config.labels or {}),
        )


class LabelPolicy(BaseModel):
    """Which container labels are copied onto metrics.

    At most one of ``include`` and ``exclude`` may be set. With neither, every
    label is copied.
    """

    model_config = ConfigDict(frozen=True)

    include: frozenset[str] | None = None
    exclude: frozenset[str] | None = None

    @model_validator(mode="after")
    def check_exclusive(self) -> LabelPolicy:
        if self.include and self.exclude:
            raise ValueError("Cannot use both an include and an exclude label list")
        return self

    def allows(self, label_key: str) -> bool:
        """Return True if the container label ``label_key`` should be attached."""
        if self.include:
            return label_key in self.include
        if self.exclude:
            return label_key not in self.exclude
        return True


def split_label_args(values: list[str] | str | None) -> list[str]:
    """Flatten repeated and comma-separated label arguments.

    Whitespace is trimmed, empty items are dropped and duplicates removed
    while keeping first-seen order.
    """
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]

    labels: list[str] = []
    for arg in values:
        for label in arg.split(","):
            label = label.strip()
            if label and label not in labels:
                labels.append(label)
    return labels


class ExporterConfig(BaseModel):
    """Top-level exporter configuration.

    Built from CLI flags, environment variables, or a YAML/JSON file.
    """

    containers_dir: Path = Field(
        default=Path(DEFAULT_CONTAINERS_DIR), description="Docker 'containers' directory"
    )
    cgroupfs_dir: Path = Field(default=Path(DEFAULT_CGROUPFS_DIR), description="cgroupfs mount")
    listen_addr: str = Field(default=DEFAULT_LISTEN_ADDR, description="host:port to bind")
    min_metadata_refresh_ms: int = Field(
        default=DEFAULT_MIN_METADATA_REFRESH_MS,
        ge=0,
        description="Minimum ms between metadata refreshes. 0 = always refresh",
    )
    metadata_cache_ceiling: int = Field(
        default=DEFAULT_METADATA_CACHE_CEILING,
        ge=1,
        description="Cached container count above which the cache is cleared",
    )
    basicauth: str | None = Field(default=None, description="user:password for HTTP Basic auth")
    cgroup_version: CgroupVersion | None = Field(default=None, description="Version override")
    docker_cgroup_driver: CgroupDriver | None = Field(default=None, description="Driver override")
    exclude_labels: list[str] = Field(default_factory=list)
    include_labels: list[str] = Field(default_factory=list)

    @field_validator("exclude_labels", "include_labels", mode="before")
    @classmethod
    def normalize_labels(cls, v: list[str] | str | None) -> list[str]:
        return split_label_args(v)

    @field_validator("listen_addr")
    @classmethod
    def validate_listen_addr(cls, v: str) -> str:
        """Ensure the listen address is host:port with a valid port."""
        host, sep, port = v.rpartition(":")
        if not sep or not host:
            raise ValueError(f"Listen address must be host:port, got {v!r}")
        if not port.isdigit() or not 0 <= int(port) <= 65535:
            raise ValueError(f"Invalid port in listen address {v!r}")
        return v

    @field_validator("basicauth")
    @classmethod
    def validate_basicauth(cls, v: str | None) -> str | None:
        if v is not None and ":" not in v:
            raise ValueError("Basic auth credentials must be in the format username:password")
        return v

    @model_validator(mode="after")
    def check_label_lists(self) -> ExporterConfig:
        """Reject include and exclude lists being used together."""
        if self.exclude_labels and self.include_labels:
            raise ValueError("Cannot pass both exclude_labels and include_labels")
        return self

    @property
    def listen_host(self) -> str:
        host = self.listen_addr.rpartition(":")[0]
        return host.strip("[]")

    @property
    def listen_port(self) -> int:
        return int(self.listen_addr.rpartition(":")[2])

    @property
    def min_metadata_refresh(self) -> timedelta | None:
        """Refresh throttle interval, or None when every miss should rescan."""
        if self.min_metadata_refresh_ms == 0:
            return None
        return timedelta(milliseconds=self.min_metadata_refresh_ms)

    @property
    def label_policy(self) -> LabelPolicy:
        return LabelPolicy(
            include=frozenset(self.include_labels) or None,
            exclude=frozenset(self.exclude_labels) or None,
        )

    @property
    def basicauth_header(self) -> str | None:
        """Expected ``Authorization`` header value, if auth is enabled."""
        if self.basicauth is None:
            return None
        token = base64.b64encode(self.basicauth.encode()).decode()
        return f"Basic {token}"
