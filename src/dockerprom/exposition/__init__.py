"""Exposition module - label filtering and Prometheus text rendering."""

from __future__ import annotations

from dockerprom.exposition.collector import (
    METRIC_FAMILIES,
    ContainerMetricsCollector,
    MetricFamilySpec,
    build_registry,
    render_registry,
)
from dockerprom.exposition.renderer import SampleRenderer, container_labels, sanitize_label_key

__all__ = [
    "build_registry",
    "container_labels",
    "ContainerMetricsCollector",
    "METRIC_FAMILIES",
    "MetricFamilySpec",
    "render_registry",
    "SampleRenderer",
    "sanitize_label_key",
]
