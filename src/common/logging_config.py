"""
Logging configuration for PodBar.

Provides structured logging with JSON and colored console output.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
import json
from pathlib import Path
from contextvars import ContextVar
from typing import Any, Dict, Optional


class JSONFormatter(logging.Formatter):
    """JSON log formatter for machine-readable logs."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "thread": record.threadName,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_data"):
            log_data["data"] = record.extra_data

        return json.dumps(log_data)


class ColoredFormatter(logging.Formatter):
    """Colored console formatter for better readability."""

    COLORS = {
        logging.DEBUG: "\033[36m",    # Cyan
        logging.INFO: "\033[32m",     # Green
        logging.WARNING: "\033[33m",  # Yellow
        logging.ERROR: "\033[31m",    # Red
        logging.CRITICAL: "\033[35m", # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno, "")
        levelname = record.levelname

        record.levelname = f"{color}{levelname}{self.RESET}"
        result = super().format(record)

        # Restore original levelname for other handlers
        record.levelname = levelname

        return result


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    json_logs: bool = False,
    log_dir: Optional[Path] = None,
):
    """
    Configure logging for PodBar.

    Args:
        level: Logging level (default: INFO)
        log_file: Path to log file (optional)
        json_logs: Use JSON format for file logs
        log_dir: Directory for log files (creates podbar.log)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)

    if sys.stderr.isatty():
        console_format = ColoredFormatter(
            "%(levelname)s %(name)s: %(message)s"
        )
    else:
        console_format = logging.Formatter(
            "%(levelname)s %(name)s: %(message)s"
        )

    console_handler.setFormatter(console_format)
    root_logger.addHandler(console_handler)

    if log_dir:
        log_file = log_dir / "podbar.log"

    # File handler with rotation
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)

        if json_logs:
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(logging.Formatter(
                "%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(message)s"
            ))

        root_logger.addHandler(file_handler)


_log_context: ContextVar[Dict[str, Any]] = ContextVar("podbar_log_context", default={})


def _install_record_factory() -> None:
    """Wrap the active record factory once so records pick up LogContext data."""
    previous = logging.getLogRecordFactory()
    if getattr(previous, "_podbar_context", False):
        return

    def record_factory(*args, **kwargs):
        record = previous(*args, **kwargs)
        context = _log_context.get()
        if context:
            record.extra_data = dict(context)
        return record

    record_factory._podbar_context = True
    logging.setLogRecordFactory(record_factory)


_install_record_factory()


class LogContext:
    """
    Context manager for adding context to log messages.

    The context is local to the current thread (or asyncio task); records
    created elsewhere are untouched. Nested contexts merge.

    Example:
        with LogContext(command="machine start"):
            logger.info("Launching")  # JSON logs include the command
    """

    def __init__(self, **kwargs):
        self.context = kwargs
        self._token = None

    def __enter__(self):
        self._token = _log_context.set({**_log_context.get(), **self.context})
        return self

    def __exit__(self, *args):
        _log_context.reset(self._token)
        self._token = None
