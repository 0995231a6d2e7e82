"""
Logging setup for formweave processes.

- Console output for humans, on stderr so one-shot results on stdout stay clean
- Optional rotating JSONL file (``$FORMWEAVE_HOME/logs/formweave.log``) that
  tools can tail and parse line by line

Library modules log through ``logging.getLogger(__name__)``; everything lives
under the ``formweave`` logger, so ``setup_logging`` controls all of it.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

ROOT_LOGGER = "formweave"
LOG_FILE_NAME = "formweave.log"

# =============================================================================
# Terminal Colors (respects NO_COLOR)
# =============================================================================

_NO_COLOR = bool(os.environ.get("NO_COLOR")) or not sys.stderr.isatty()


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "" if _NO_COLOR else "\033[0m"
    DIM = "" if _NO_COLOR else "\033[2m"

    DEBUG = "" if _NO_COLOR else "\033[36m"  # Cyan
    INFO = "" if _NO_COLOR else "\033[32m"  # Green
    WARNING = "" if _NO_COLOR else "\033[33m"  # Yellow
    ERROR = "" if _NO_COLOR else "\033[31m"  # Red
    CRITICAL = "" if _NO_COLOR else "\033[35m"  # Magenta

    COMPONENT = "" if _NO_COLOR else "\033[34m"  # Blue


# =============================================================================
# Formatters
# =============================================================================


def _component(record: logging.LogRecord) -> str:
    component = getattr(record, "component", None)
    if component:
        return str(component)
    # formweave.runtime.engine -> ENGINE
    return record.name.rsplit(".", 1)[-1].upper()


class JSONLFormatter(logging.Formatter):
    """
    One JSON object per line: timestamp, level, component, message, and
    optional context, source and exception entries.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "component": _component(record),
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if context:
            entry["context"] = context

        if record.levelno >= logging.WARNING:
            entry["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info and record.exc_info[0]:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
            }

        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable ``[HH:MM:SS] [COMPONENT] LEVEL: message`` lines."""

    LEVEL_COLORS = {
        logging.DEBUG: Colors.DEBUG,
        logging.INFO: Colors.INFO,
        logging.WARNING: Colors.WARNING,
        logging.ERROR: Colors.ERROR,
        logging.CRITICAL: Colors.CRITICAL,
    }

    def format(self, record: logging.LogRecord) -> str:
        component = _component(record)
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        if _NO_COLOR:
            prefix = f"[{timestamp}] [{component}]"
        else:
            prefix = (
                f"{Colors.DIM}{timestamp}{Colors.RESET} "
                f"{Colors.COMPONENT}[{component}]{Colors.RESET}"
            )

        # INFO is the common case; tag everything else
        if record.levelno != logging.INFO:
            level_name = record.levelname
            if not _NO_COLOR:
                color = self.LEVEL_COLORS.get(record.levelno, "")
                level_name = f"{color}{level_name}{Colors.RESET}"
            prefix = f"{prefix} {level_name}:"

        message = f"{prefix} {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


# =============================================================================
# Logger Setup
# =============================================================================


_loggers: dict[str, logging.Logger] = {}


def setup_logging(
    level: int | str = logging.INFO,
    log_dir: Path | str | None = None,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> Path | None:
    """
    Initialize console logging and, when ``log_dir`` is given, a JSONL file.

    Args:
        level: Minimum log level (int or name such as "DEBUG")
        log_dir: Directory for the rotating log file
        max_bytes: Max size per log file before rotation
        backup_count: Number of backup files to keep

    Returns:
        Path to the log file, or None without a file handler
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(ConsoleFormatter())
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    if log_dir is None:
        return None

    directory = Path(log_dir).expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    log_file = directory / LOG_FILE_NAME
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(JSONLFormatter())
    file_handler.setLevel(level)
    root_logger.addHandler(file_handler)

    log_with_context(
        root_logger,
        logging.DEBUG,
        "Logging initialized",
        log_format="jsonl",
        log_file=str(log_file),
    )
    return log_file


def get_logger(component: str) -> logging.Logger:
    """
    Get a logger whose records are tagged with ``component``.

    Args:
        component: Component name (e.g., "SERVER", "HOST", "ONESHOT")

    Returns:
        Configured logger instance
    """
    if component in _loggers:
        return _loggers[component]

    logger = logging.getLogger(f"{ROOT_LOGGER}.{component.lower().replace(' ', '_')}")

    class ComponentFilter(logging.Filter):
        def filter(self, record: logging.LogRecord) -> bool:
            if not hasattr(record, "component"):
                record.component = component
            return True

    logger.addFilter(ComponentFilter())
    _loggers[component] = logger
    return logger


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    context: dict[str, Any] | None = None,
    **kwargs: Any,
) -> None:
    """
    Log a message with structured context data.

    The context lands in the ``context`` field of JSONL entries.

    Args:
        logger: Logger instance
        level: Logging level (logging.INFO, logging.ERROR, etc.)
        message: Human-readable message
        context: Structured context data
        **kwargs: Additional context items
    """
    extra = {"context": {**(context or {}), **kwargs}} if (context or kwargs) else {}
    logger.log(level, message, extra=extra)
