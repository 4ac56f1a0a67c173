"""Logging configuration for dockerprom."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from pathlib import Path

from rich.logging import RichHandler

# Finer than DEBUG; used for per-label decisions while rendering.
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

_VERBOSITY_LEVELS = ("INFO", "DEBUG", "TRACE")


class JsonFormatter(logging.Formatter):
    """One JSON object per record, for programmatic parsing."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.now().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_obj)


def verbosity_to_level(verbose: int) -> str:
    """Map the number of ``-v`` flags to a level name.

    Raises:
        ValueError: If more flags were given than there are levels
    """
    if verbose < 0 or verbose >= len(_VERBOSITY_LEVELS):
        raise ValueError("Too many -v / --verbose flags supplied")
    return _VERBOSITY_LEVELS[verbose]


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    rich_console: bool = True,
    json_format: bool = False,
) -> None:
    """Configure logging for the exporter.

    Args:
        level: Log level (TRACE, DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file to write logs to
        rich_console: Use rich console handler for pretty output
        json_format: Use structured JSON logging format (overrides rich_console)
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    handlers: list[logging.Handler] = []

    if json_format:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(JsonFormatter())
        handlers.append(handler)
    elif rich_console:
        handlers.append(
            RichHandler(
                level=numeric_level,
                rich_tracebacks=True,
                markup=False,
                show_time=True,
                show_path=False,
            )
        )
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        handlers.append(handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=numeric_level,
        handlers=handlers,
        force=True,
    )
