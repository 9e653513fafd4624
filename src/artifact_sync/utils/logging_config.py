"""Logging configuration for the artifact sync engine and its CLI."""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Optional, TextIO

PACKAGE_LOGGER = "artifact_sync"

_CONSOLE_FORMAT = "%(asctime)s - %(location)-28s - %(levelname)s - %(message)s"
_FILE_FORMAT = "%(asctime)s - %(name)s - %(location)s - %(levelname)-8s - %(message)s"


class LocationFormatter(logging.Formatter):
    """Formatter that adds a combined ``file:line`` field."""

    def format(self, record: Any) -> str:
        """Format log record with combined location field."""
        record.location = f"{record.filename}:{record.lineno}"
        return super().format(record)


class ColoredFormatter(LocationFormatter):
    """Colored log formatter for terminal output."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",
    }

    def format(self, record: Any) -> str:
        """Format log record with a colored, padded level name."""
        levelname = record.levelname
        color = self.COLORS.get(levelname, self.COLORS["RESET"])
        record.levelname = f"{color}{levelname:<8}{self.COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            # Other handlers share the record
            record.levelname = levelname


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    console_output: bool = True,
    stream: Optional[TextIO] = None,
    max_file_size: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> None:
    """Set up application logging.

    Console logs go to stderr by default so that command output on stdout
    stays machine-readable.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to a rotating log file
        console_output: Whether to log to the console
        stream: Console stream (defaults to stderr)
        max_file_size: Maximum size of log file before rotation
        backup_count: Number of rotated log files to keep
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    if console_output:
        console_stream = stream or sys.stderr
        console_handler = logging.StreamHandler(console_stream)
        console_handler.setLevel(numeric_level)
        formatter_class = (
            ColoredFormatter
            if getattr(console_stream, "isatty", lambda: False)()
            else LocationFormatter
        )
        console_handler.setFormatter(
            formatter_class(fmt=_CONSOLE_FORMAT, datefmt="%H:%M:%S")
        )
        root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(
            LocationFormatter(fmt=_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
        root_logger.addHandler(file_handler)

    configure_third_party_loggers()

    logger = logging.getLogger(__name__)
    logger.debug("Logging initialized - Level: %s", log_level)
    if log_file:
        logger.debug("Log file: %s", log_file)


def set_log_level(level: str) -> None:
    """Change the log level of the artifact_sync loggers only.

    Third-party loggers stay at WARNING to reduce noise.

    Args:
        level: New log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers:
        handler.setLevel(numeric_level)

    logging.getLogger(PACKAGE_LOGGER).setLevel(numeric_level)
    for name in list(logging.root.manager.loggerDict):
        if name.startswith(PACKAGE_LOGGER + "."):
            logging.getLogger(name).setLevel(logging.NOTSET)

    configure_third_party_loggers()
    logging.getLogger(__name__).debug("Log level changed to: %s", level)


def configure_third_party_loggers() -> None:
    """Quiet library loggers that are chatty at DEBUG."""
    for name in ("markdown_it", "rich", "dotenv", "urllib3", "asyncio"):
        logging.getLogger(name).setLevel(logging.WARNING)
