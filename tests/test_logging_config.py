"""Tests for logging setup."""

import io
import logging

import pytest

from artifact_sync.utils import set_log_level, setup_logging
from artifact_sync.utils.logging_config import ColoredFormatter, LocationFormatter


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Restore root logger state changed by setup_logging."""
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    package_level = logging.getLogger("artifact_sync").level
    yield
    logging.getLogger("artifact_sync").setLevel(package_level)
    for handler in root_logger.handlers:
        if handler not in handlers:
            handler.close()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


class TestSetupLogging:
    """Test setup_logging."""

    def test_console_output_has_location(self):
        """Test that console records carry file:line."""
        stream = io.StringIO()
        setup_logging("INFO", stream=stream)

        logging.getLogger("artifact_sync.test").info("hello %s", "world")

        output = stream.getvalue()
        assert "hello world" in output
        assert "test_logging_config.py:" in output
        assert "\033[" not in output

    def test_level_filters_records(self):
        """Test that records below the level are dropped."""
        stream = io.StringIO()
        setup_logging("WARNING", stream=stream)

        logging.getLogger("artifact_sync.test").info("quiet")

        assert "quiet" not in stream.getvalue()

    def test_log_file(self, tmp_path):
        """Test the rotating file handler."""
        log_file = tmp_path / "nested" / "sync.log"
        setup_logging("DEBUG", log_file=log_file, console_output=False)

        logging.getLogger("artifact_sync.test").debug("to file")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "to file" in log_file.read_text(encoding="utf-8")

    def test_third_party_loggers_quieted(self):
        """Test that library loggers stay at WARNING."""
        setup_logging("DEBUG", stream=io.StringIO())
        assert logging.getLogger("markdown_it").level == logging.WARNING


class TestSetLogLevel:
    """Test set_log_level."""

    def test_changes_handlers_and_package_logger(self):
        """Test raising the level after setup."""
        stream = io.StringIO()
        setup_logging("DEBUG", stream=stream)

        set_log_level("error")
        logging.getLogger("artifact_sync.test").warning("dropped")

        assert logging.getLogger("artifact_sync").level == logging.ERROR
        assert "dropped" not in stream.getvalue()


class TestFormatters:
    """Test the formatters."""

    def test_colored_formatter_restores_levelname(self):
        """Test that coloring does not leak into other handlers."""
        record = logging.LogRecord(
            "artifact_sync", logging.ERROR, "/x/mod.py", 7, "boom", None, None
        )
        colored = ColoredFormatter(fmt="%(levelname)s %(location)s %(message)s")

        output = colored.format(record)

        assert "\033[31m" in output
        assert "mod.py:7" in output
        assert record.levelname == "ERROR"
        plain = LocationFormatter(fmt="%(levelname)s %(message)s").format(record)
        assert plain == "ERROR boom"
