"""Configuration loading utilities.

Supports YAML and JSON configuration files with schema validation.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import yaml

from dockerprom.core.schemas import ExporterConfig


def load_config_data(path: Path | str) -> dict[str, Any]:
    """Read a YAML or JSON configuration file without validating it.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If file format is unsupported or the top level is not a mapping
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    suffix = path.suffix.lower()
    with open(path, encoding="utf-8") as f:
        if suffix in (".yaml", ".yml"):
            data = yaml.safe_load(f)
        elif suffix == ".json":
            data = json.load(f)
        else:
            raise ValueError(f"Unsupported config format: {suffix}. Use .yaml, .yml, or .json")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping at the top level")
    return data


def load_config(path: Path | str) -> ExporterConfig:
    """Load and validate an exporter configuration file.

    Args:
        path: Path to YAML or JSON configuration file

    Returns:
        Validated ExporterConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If file format is unsupported
        pydantic.ValidationError: If config is invalid
    """
    return ExporterConfig.model_validate(load_config_data(path))


def check_read_dir(path: Path, dir_name: str) -> None:
    """Make sure ``path`` can be listed.

    Raises:
        OSError: With the original errno, prefixed with which directory failed
    """
    try:
        with os.scandir(path):
            pass
    except OSError as e:
        raise OSError(
            e.errno, f"Unable to read contents of {dir_name} directory {path}: {e.strerror}"
        ) from e
