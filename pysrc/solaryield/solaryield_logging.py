"""
Host-aware logging for solaryield.

Uses the appropriate logging backend:
- Host application: a feedback object exposing push_info() / push_debug_info() / report_error()
- Python: Standard logging module

Usage:
    from solaryield.solaryield_logging import get_logger

    logger = get_logger(__name__)
    logger.info("Daily run started: 12 flat panels")
    logger.debug(f"Sampled day {k} of {days_per_year}")
    logger.warning("Element p3 has no parent foundation, skipped")
"""

from __future__ import annotations

import logging
import sys
from enum import IntEnum
from typing import Any


class LogLevel(IntEnum):
    """Log levels matching Python logging."""

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40


class SolaryieldLogger:
    """
    Unified logger for embedded and standalone use.

    Messages go to a host feedback object once one is registered with
    set_feedback(); otherwise they go to the standard logging module.
    """

    def __init__(self, name: str, level: LogLevel = LogLevel.INFO):
        """
        Initialize logger.

        Args:
            name: Logger name (usually module name)
            level: Minimum log level to display
        """
        self.name = name
        self.level = level
        self._feedback = None

    @property
    def backend(self) -> str:
        """Name of the active backend ("feedback" or "logging")."""
        return "feedback" if self._feedback is not None else "logging"

    def set_feedback(self, feedback: Any) -> None:
        """
        Set a host feedback object for logging.

        Args:
            feedback: Object with push_info, push_debug_info and report_error methods,
                or None to return to standard logging.
        """
        self._feedback = feedback

    def _log(self, level: LogLevel, message: str) -> None:
        """Internal logging method."""
        if level < self.level:
            return

        if self._feedback is not None:
            if level >= LogLevel.ERROR:
                self._feedback.report_error(message)
            elif level >= LogLevel.WARNING:
                self._feedback.push_info(f"WARNING: {message}")
            elif level >= LogLevel.INFO:
                self._feedback.push_info(message)
            else:
                self._feedback.push_debug_info(message)
        else:
            logging.getLogger(self.name).log(level, message)

    def debug(self, message: str) -> None:
        """Log debug message."""
        self._log(LogLevel.DEBUG, message)

    def info(self, message: str) -> None:
        """Log info message."""
        self._log(LogLevel.INFO, message)

    def warning(self, message: str) -> None:
        """Log warning message."""
        self._log(LogLevel.WARNING, message)

    def error(self, message: str) -> None:
        """Log error message."""
        self._log(LogLevel.ERROR, message)

    def set_level(self, level: LogLevel | int) -> None:
        """Set minimum log level."""
        self.level = LogLevel(level) if isinstance(level, int) else level


# Global logger registry
_loggers: dict[str, SolaryieldLogger] = {}


def get_logger(name: str, level: LogLevel | int = LogLevel.INFO) -> SolaryieldLogger:
    """
    Get or create a logger for the given name.

    Args:
        name: Logger name (usually module name or __name__)
        level: Minimum log level (default: INFO)

    Returns:
        SolaryieldLogger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Yearly run started")
        >>> logger.debug(f"Grid: {nx}×{ny} cells")
    """
    if name not in _loggers:
        _loggers[name] = SolaryieldLogger(name, LogLevel(level) if isinstance(level, int) else level)
    return _loggers[name]


def set_global_level(level: LogLevel | int) -> None:
    """
    Set log level for all existing loggers.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR)

    Example:
        >>> import solaryield.solaryield_logging as slog
        >>> slog.set_global_level(slog.LogLevel.DEBUG)
    """
    level = LogLevel(level) if isinstance(level, int) else level
    for logger in _loggers.values():
        logger.set_level(level)


def set_global_feedback(feedback: Any) -> None:
    """
    Set a host feedback object for all loggers.

    Args:
        feedback: Host feedback object, or None to restore standard logging
    """
    for logger in _loggers.values():
        logger.set_feedback(feedback)


# Configure Python logging to be less verbose by default
logging.basicConfig(
    level=logging.INFO,
    format="%(name)s: %(message)s",
    stream=sys.stdout,
)
