"""Shared constants for dockerprom.

Centralized constants to avoid duplication and ensure consistency across modules.
"""

from __future__ import annotations

# Length of a full Docker container ID (hex characters).
CONTAINER_ID_LENGTH = 64

# systemd driver scope unit naming: docker-<id>.scope
SYSTEMD_SCOPE_PREFIX = "docker-"
SYSTEMD_SCOPE_SUFFIX = ".scope"

# Descriptor file Docker keeps in each container's metadata directory.
CONTAINER_CONFIG_FILENAME = "config.v2.json"

# Prefix for metric labels copied from container labels.
CONTAINER_LABEL_PREFIX = "container_label_"

# Minimum milliseconds between metadata rescans triggered by unknown container IDs.
DEFAULT_MIN_METADATA_REFRESH_MS = 2000

# Above this many cached containers the metadata map is cleared before the next rescan.
# Coarse protection against unbounded growth, not an eviction policy.
DEFAULT_METADATA_CACHE_CEILING = 2000

DEFAULT_CONTAINERS_DIR = "/var/lib/docker/containers/"
DEFAULT_CGROUPFS_DIR = "/sys/fs/cgroup/"
DEFAULT_LISTEN_ADDR = "127.0.0.1:3000"

# Body returned to scrapers when collection fails; details only go to the logs.
GENERIC_ERROR_BODY = "Error occured. Please see logs."
