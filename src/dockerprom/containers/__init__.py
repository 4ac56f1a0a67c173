"""Containers module - Docker container identity and metadata cache."""

from __future__ import annotations

from dockerprom.containers.metadata import ContainerMetadataCache, load_container_metadata

__all__ = ["ContainerMetadataCache", "load_container_metadata"]
