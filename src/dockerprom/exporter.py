"""Container metrics exporter.

Wires the pipeline together in an explicit startup phase:

1. detect the cgroup layout (once, never re-detected),
2. build the resource readers for that layout,
3. warm the container metadata cache,

and then serves ``collect_metrics()`` once per scrape.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from dockerprom.containers.metadata import ContainerMetadataCache
from dockerprom.core.schemas import ExporterConfig, LabelPolicy
from dockerprom.exposition.collector import (
    ContainerMetricsCollector,
    build_registry,
    render_registry,
)
from dockerprom.exposition.renderer import SampleRenderer
from dockerprom.monitoring.base import BaseReader
from dockerprom.monitoring.layout import CgroupLayout
from dockerprom.monitoring.readers import default_readers

logger = logging.getLogger(__name__)


class ContainerMetricsExporter:
    """Owns the layout, readers and metadata cache for one process."""

    def __init__(
        self,
        layout: CgroupLayout,
        cache: ContainerMetadataCache,
        label_policy: LabelPolicy | None = None,
        readers: Sequence[BaseReader] | None = None,
    ) -> None:
        self.layout = layout
        self.cache = cache
        self.readers = list(readers) if readers is not None else default_readers(layout)
        self.collector = ContainerMetricsCollector(
            self.readers, SampleRenderer(cache, label_policy)
        )
        self.registry = build_registry(self.collector)

    @classmethod
    def from_config(cls, config: ExporterConfig) -> ContainerMetricsExporter:
        """Run the startup phase for ``config``.

        Raises:
            DetectionError: If the cgroupfs cannot be inspected
        """
        layout = CgroupLayout.detect(
            config.cgroupfs_dir,
            version_override=config.cgroup_version,
            driver_override=config.docker_cgroup_driver,
        )
        logger.info(f"Assuming: {layout.describe()}")

        cache = ContainerMetadataCache(
            config.containers_dir,
            min_refresh_interval=config.min_metadata_refresh,
            max_entries=config.metadata_cache_ceiling,
        )
        cache.refresh(force=True)

        return cls(layout, cache, label_policy=config.label_policy)

    def collect_metrics(self) -> str:
        """Collect and render every metric family for one scrape."""
        return render_registry(self.registry)
