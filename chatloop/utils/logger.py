"""
Logger Utility
==============

Context-prefixed terminal logging for every ChatLoop component.

Each module creates its own ``Logger("<Component>")`` at import time. Lines
look like::

    [2024-01-31T10:30:00] [INFO] [Agent] Round trip 1 returned 2 items

The minimum level starts from the ``LOG_LEVEL`` environment variable and can
be changed at runtime with ``set_log_level()`` (the entry point applies the
configured level once configuration is loaded). Errors go to stderr,
everything else to stdout.

Usage:
    from chatloop.utils.logger import Logger

    logger = Logger("Scheduler")
    logger.info("Scheduler started")
    logger.debug("Tick", {"entries": 3})

    tick_logger = logger.child("Tick")   # [Scheduler:Tick]
"""

import json
import os
import sys
from datetime import datetime
from enum import IntEnum
from typing import Any


class LogLevel(IntEnum):
    """Log levels, ordered by severity."""
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40


class Colors:
    """ANSI escape codes for colored terminal output."""
    RESET = "\033[0m"
    DEBUG = "\033[36m"    # Cyan
    INFO = "\033[32m"     # Green
    WARNING = "\033[33m"  # Yellow
    ERROR = "\033[31m"    # Red
    DIM = "\033[2m"


_LEVEL_NAMES = {
    "DEBUG": LogLevel.DEBUG,
    "INFO": LogLevel.INFO,
    "WARNING": LogLevel.WARNING,
    "WARN": LogLevel.WARNING,
    "ERROR": LogLevel.ERROR,
}


def parse_log_level(name: str | None, default: LogLevel = LogLevel.INFO) -> LogLevel:
    """
    Map a level name (case-insensitive) to a LogLevel.

    Unknown or empty names fall back to ``default``.
    """
    if not name:
        return default
    return _LEVEL_NAMES.get(name.strip().upper(), default)


# Shared by every Logger instance so one call reconfigures the whole app
_min_level: LogLevel = parse_log_level(os.getenv("LOG_LEVEL"))


def set_log_level(level: "LogLevel | str") -> None:
    """Set the minimum level for all loggers."""
    global _min_level
    if isinstance(level, str):
        level = parse_log_level(level)
    _min_level = level


def get_log_level() -> LogLevel:
    """Return the current minimum level."""
    return _min_level


class Logger:
    """
    A context-aware logger with colored output.

    Example:
        logger = Logger("Agent")
        logger.info("Agent initialized")

        executor_logger = logger.child("Executor")
        executor_logger.warning("Tool failed", {"tool": "fetch_url"})
    """

    def __init__(self, context: str = ""):
        """
        Args:
            context: Prefix shown on every line (e.g. "Agent", "Scheduler")
        """
        self.context = context

    def child(self, child_context: str) -> "Logger":
        """Create a logger whose context is ``<parent>:<child_context>``."""
        new_context = f"{self.context}:{child_context}" if self.context else child_context
        return Logger(new_context)

    def _format_message(self, level: str, message: str, color: str) -> str:
        timestamp = datetime.now().isoformat(timespec="seconds")
        context_str = f"[{self.context}] " if self.context else ""

        return (
            f"{Colors.DIM}[{timestamp}]{Colors.RESET} "
            f"{color}[{level}]{Colors.RESET} "
            f"{context_str}{message}"
        )

    def _log(
        self,
        level: LogLevel,
        level_name: str,
        color: str,
        message: str,
        data: dict[str, Any] | None = None
    ) -> None:
        if level < _min_level:
            return

        formatted = self._format_message(level_name, message, color)
        stream = sys.stderr if level >= LogLevel.ERROR else sys.stdout
        print(formatted, file=stream)

        if data:
            data_str = json.dumps(data, indent=2, default=str)
            print(f"{Colors.DIM}{data_str}{Colors.RESET}", file=stream)

    def debug(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Log a debug message (shown only when the level is DEBUG)."""
        self._log(LogLevel.DEBUG, "DEBUG", Colors.DEBUG, message, data)

    def info(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Log an informational message."""
        self._log(LogLevel.INFO, "INFO", Colors.INFO, message, data)

    def warning(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Log a warning: something is off but processing continues."""
        self._log(LogLevel.WARNING, "WARN", Colors.WARNING, message, data)

    def error(self, message: str, error: Exception | None = None) -> None:
        """
        Log an error.

        Args:
            message: The error message
            error: Optional exception; its type and text are logged as data
        """
        data = None
        if error:
            data = {
                "error_type": type(error).__name__,
                "error_message": str(error),
            }
        self._log(LogLevel.ERROR, "ERROR", Colors.ERROR, message, data)


# Default logger for quick use where no component context fits
logger = Logger("ChatLoop")
