"""Logging for lensum runs.

Record summaries go to a console stream as plain text tables; an optional
JSON lines file keeps the same messages plus structured fields.
"""

import json
import logging
import sys
import time
from pathlib import Path
from typing import IO, Any

PACKAGE_LOGGER = "lensum"


class JSONFormatter(logging.Formatter):
    """Format log records as JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON."""
        log_data = {
            "timestamp": time.time(),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        return json.dumps(log_data, default=str)


def setup_logging(
    log_path: Path | None = None,
    level: int = logging.INFO,
    stream: IO[str] | None = None,
    fmt: str = "%(message)s",
) -> None:
    """Setup logging for the lensum package logger.

    Args:
        log_path: Optional path for JSON lines log file
        level: Logging level
        stream: Console stream (default: stderr)
        fmt: Console format; bare messages keep summary tables aligned
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(console_handler)

    if log_path:
        log_path = Path(log_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(level)
        file_handler.setFormatter(JSONFormatter())
        logger.addHandler(file_handler)


def get_logger(name: str) -> "StructuredLogger":
    """Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        StructuredLogger instance
    """
    return StructuredLogger(logging.getLogger(name))


class StructuredLogger:
    """Wrapper for adding structured data to log messages."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _log(self, level: int, msg: str, data: dict[str, Any] | None = None) -> None:
        extra = {"extra_data": data} if data else {}
        self.logger.log(level, msg, extra=extra)

    def debug(self, msg: str, data: dict[str, Any] | None = None) -> None:
        self._log(logging.DEBUG, msg, data)

    def info(self, msg: str, data: dict[str, Any] | None = None) -> None:
        self._log(logging.INFO, msg, data)

    def warning(self, msg: str, data: dict[str, Any] | None = None) -> None:
        self._log(logging.WARNING, msg, data)

    def error(self, msg: str, data: dict[str, Any] | None = None) -> None:
        self._log(logging.ERROR, msg, data)

    def lines(self, lines: list[str], level: int = logging.INFO) -> None:
        """Log a block of preformatted lines, one record per line."""
        for line in lines:
            self._log(level, line)


__all__ = [
    "PACKAGE_LOGGER",
    "JSONFormatter",
    "setup_logging",
    "get_logger",
    "StructuredLogger",
]
