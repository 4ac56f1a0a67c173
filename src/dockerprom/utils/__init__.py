"""Utils module - Shared utilities."""

from __future__ import annotations

from dockerprom.utils.logging import TRACE, setup_logging, verbosity_to_level

__all__ = ["TRACE", "setup_logging", "verbosity_to_level"]
