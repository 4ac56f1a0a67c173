"""prometheus_client collector for container cgroup metrics.

Each scrape runs the resource readers and emits these families, in order:

- container_memory_usage (gauge)
- container_cpu_user_total (counter)
- container_cpu_system_total (counter)
- container_blkio_read_total (counter)
- container_blkio_write_total (counter)
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.metrics_core import Metric

from dockerprom.core.errors import CgroupDirectoryError
from dockerprom.exposition.renderer import SampleRenderer
from dockerprom.monitoring.base import BaseReader, ReaderResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricFamilySpec:
    """How one reader field is exposed."""

    name: str
    metric_type: str
    help: str
    resource: str
    field: str

    def new_metric(self) -> Metric:
        # prometheus_client keeps counters without the _total suffix and adds it on output
        base = self.name.removesuffix("_total") if self.metric_type == "counter" else self.name
        return Metric(base, self.help, self.metric_type)


METRIC_FAMILIES: tuple[MetricFamilySpec, ...] = (
    MetricFamilySpec(
        name="container_memory_usage",
        metric_type="gauge",
        help="Memory used by the container, in bytes",
        resource="memory",
        field="usage",
    ),
    MetricFamilySpec(
        name="container_cpu_user_total",
        metric_type="counter",
        help="CPU seconds used by the container in userspace",
        resource="cpu",
        field="user",
    ),
    MetricFamilySpec(
        name="container_cpu_system_total",
        metric_type="counter",
        help="CPU seconds used by the container in kernelspace",
        resource="cpu",
        field="system",
    ),
    MetricFamilySpec(
        name="container_blkio_read_total",
        metric_type="counter",
        help="Bytes read from disk by the container",
        resource="blkio",
        field="read",
    ),
    MetricFamilySpec(
        name="container_blkio_write_total",
        metric_type="counter",
        help="Bytes written to disk by the container",
        resource="blkio",
        field="write",
    ),
)


class ContainerMetricsCollector:
    """Custom collector: reads the cgroupfs on every ``collect()`` call.

    A resource whose base directory can't be listed is logged and its
    families are emitted without samples; the other resources still render.
    """

    def __init__(
        self,
        readers: Sequence[BaseReader],
        renderer: SampleRenderer,
        families: Sequence[MetricFamilySpec] = METRIC_FAMILIES,
    ) -> None:
        self.readers = {reader.resource: reader for reader in readers}
        self.renderer = renderer
        self.families = tuple(families)

    def _read_all(self) -> dict[str, ReaderResult]:
        results: dict[str, ReaderResult] = {}
        for resource, reader in self.readers.items():
            try:
                results[resource] = reader.read()
            except CgroupDirectoryError as e:
                logger.error(f"Failed getting {resource} metrics: {e}")
                results[resource] = {}
        return results

    def collect(self) -> Iterator[Metric]:
        results = self._read_all()
        for spec in self.families:
            metric = spec.new_metric()
            for sample in results.get(spec.resource, {}).get(spec.field, []):
                self.renderer.render_into(metric, spec.name, sample)
            yield metric


def build_registry(collector: ContainerMetricsCollector) -> CollectorRegistry:
    """Private registry holding only the container collector."""
    registry = CollectorRegistry(auto_describe=False)
    registry.register(collector)
    return registry


def render_registry(registry: CollectorRegistry) -> str:
    """Text exposition of everything in ``registry``."""
    return generate_latest(registry).decode("utf-8")
