"""Label filtering and sample rendering.

Turns a raw ``MetricSample`` into a labelled Prometheus sample: the container
ID is always attached; name, image and (filtered) container labels are added
when the metadata cache knows the container.
"""

from __future__ import annotations

import logging
import re

from prometheus_client.metrics_core import Metric

from dockerprom.containers.metadata import ContainerMetadataCache
from dockerprom.core.constants import CONTAINER_LABEL_PREFIX
from dockerprom.core.schemas import ContainerMetadata, LabelPolicy
from dockerprom.monitoring.base import MetricSample
from dockerprom.utils.logging import TRACE

logger = logging.getLogger(__name__)

# '.' and '-' are the usual offenders (com.docker.compose.project, org.opencontainers...)
_INVALID_LABEL_CHARS = re.compile(r"[^a-zA-Z0-9_]")


def sanitize_label_key(label_key: str) -> str:
    """Metric label name for a container label, e.g. ``container_label_com_example_env``."""
    return _INVALID_LABEL_CHARS.sub("_", f"{CONTAINER_LABEL_PREFIX}{label_key}")


def container_labels(
    container_id: str,
    metadata: ContainerMetadata | None,
    policy: LabelPolicy,
) -> dict[str, str]:
    """Build the label set for one container.

    Sanitized keys that collide are resolved last-write-wins.
    """
    labels = {"id": container_id}
    if metadata is None:
        return labels

    labels["name"] = metadata.name
    labels["image"] = metadata.image
    for label_key, label_val in metadata.labels.items():
        if not policy.allows(label_key):
            logger.log(TRACE, f"Skipping label {label_key}")
            continue
        labels[sanitize_label_key(label_key)] = label_val
    return labels


class SampleRenderer:
    """Hydrates samples with cached container metadata and appends them to metrics."""

    def __init__(self, cache: ContainerMetadataCache, policy: LabelPolicy | None = None) -> None:
        self.cache = cache
        self.policy = policy or LabelPolicy()

    def labels_for(self, container_id: str) -> dict[str, str]:
        metadata = self.cache.lookup(container_id)
        if metadata is None:
            logger.warning(f"Couldn't find details for container ID {container_id}")
        return container_labels(container_id, metadata, self.policy)

    def render_into(self, metric: Metric, sample_name: str, sample: MetricSample) -> None:
        """Append ``sample`` to ``metric`` with identity labels and its read timestamp."""
        metric.add_sample(
            sample_name,
            self.labels_for(sample.container_id),
            sample.value,
            timestamp=sample.timestamp.timestamp(),
        )
