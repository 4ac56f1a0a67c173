"""Tests for logging setup."""

import json
import logging

import pytest
from rich.logging import RichHandler

from dockerprom.utils.logging import TRACE, JsonFormatter, setup_logging, verbosity_to_level


@pytest.fixture
def restore_root_logger():
    """Undo basicConfig(force=True) so other tests keep pytest's handlers."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestVerbosity:
    """Tests for verbosity_to_level."""

    @pytest.mark.parametrize(("verbose", "level"), [(0, "INFO"), (1, "DEBUG"), (2, "TRACE")])
    def test_levels(self, verbose, level):
        assert verbosity_to_level(verbose) == level

    def test_too_many(self):
        with pytest.raises(ValueError, match="Too many"):
            verbosity_to_level(3)

    def test_trace_level_registered(self):
        assert TRACE < logging.DEBUG
        assert logging.getLevelName(TRACE) == "TRACE"


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_rich_console(self, restore_root_logger):
        """Test that the rich handler is installed by default."""
        setup_logging(level="DEBUG")
        assert restore_root_logger.level == logging.DEBUG
        assert any(isinstance(h, RichHandler) for h in restore_root_logger.handlers)

    def test_trace_level(self, restore_root_logger):
        """Test that the custom TRACE level is accepted."""
        setup_logging(level="TRACE", rich_console=False)
        assert restore_root_logger.level == TRACE

    def test_unknown_level(self, restore_root_logger):
        """Test that unknown level names are rejected."""
        with pytest.raises(ValueError, match="Unknown log level"):
            setup_logging(level="LOUD")

    def test_log_file(self, restore_root_logger, tmp_path):
        """Test that records also go to the log file."""
        log_file = tmp_path / "logs" / "dockerprom.log"
        setup_logging(level="INFO", log_file=log_file, rich_console=False)
        logging.getLogger("dockerprom.test").info("Refreshed container metadata")
        for handler in restore_root_logger.handlers:
            handler.flush()
        assert "Refreshed container metadata" in log_file.read_text()


class TestJsonFormatter:
    """Tests for JSON log output."""

    def test_format(self):
        record = logging.LogRecord(
            "dockerprom.server", logging.ERROR, __file__, 1, "Failed getting metrics: %s",
            ("boom",), None,
        )
        data = json.loads(JsonFormatter().format(record))
        assert data["level"] == "ERROR"
        assert data["logger"] == "dockerprom.server"
        assert data["message"] == "Failed getting metrics: boom"
