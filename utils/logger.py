# utils/logger.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Logging utility for the verification pipeline with configurable levels

import logging
import sys
from enum import Enum
from typing import Optional


class LogLevel(Enum):
    """Log levels for the verification pipeline."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR


class StasisLogger:
    """Centralized logger for the verifier with structured, stage-aware output."""

    def __init__(self, name: str = "stasis", level: LogLevel = LogLevel.INFO):
        """Initialize the verifier logger.

        Args:
            name: Logger name (typically module name)
            level: Default logging level
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level.value)

        # Remove existing handlers to avoid duplicates
        self.logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level.value)
        console_handler.setFormatter(StasisFormatter())

        self.logger.addHandler(console_handler)

        # Prevent propagation to root logger
        self.logger.propagate = False

    def set_level(self, level: LogLevel):
        """Change the logging level."""
        self.logger.setLevel(level.value)
        for handler in self.logger.handlers:
            handler.setLevel(level.value)

    def is_debug(self) -> bool:
        """True when debug messages would be emitted."""
        return self.logger.isEnabledFor(logging.DEBUG)

    # Core logging methods
    def debug(self, message: str, **kwargs):
        """Log debug message (detailed internal state)."""
        self.logger.debug(message, **kwargs)

    def info(self, message: str, **kwargs):
        """Log info message (general progress)."""
        self.logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message (unexpected but recoverable)."""
        self.logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs):
        """Log error message (serious problems)."""
        self.logger.error(message, **kwargs)

    # Specialized methods for pipeline events
    def stage_start(self, stage: str, detail: str = ""):
        """Log the start of a pipeline stage."""
        suffix = f": {detail}" if detail else ""
        self.debug(f"▶ {stage}{suffix}")

    def stage_done(self, stage: str, summary: str):
        """Log the completion of a pipeline stage."""
        self.debug(f"✔ {stage} done ({summary})")

    def stage_failed(self, stage: str, reason: str):
        """Log a stage rejecting its input."""
        self.debug(f"✘ {stage} rejected input: {reason}")

    def exploration_progress(self, visited: int, frontier: int, depth: int):
        """Log periodic exploration progress."""
        self.info(f"    explored {visited} states (frontier={frontier}, depth={depth})")

    def deadlock_found(self, state: str, depth: int):
        """Log detection of a deadlock state."""
        self.debug(f"    🔴 deadlock at depth {depth}: {state}")

    def budget_exhausted(self, reason: str):
        """Log truncation of the search by a resource budget."""
        self.warning(f"⚠️  exploration truncated: {reason}")

    def final_verdict(self, verdict: str):
        """Log final verification verdict."""
        self.info(f"\n>>> FINAL VERDICT: {verdict} <<<")


class StasisFormatter(logging.Formatter):
    """Custom formatter for verifier logging with clean output."""

    def format(self, record):
        # For INFO level and above, show message only (clean output)
        if record.levelno >= logging.INFO:
            return record.getMessage()

        if record.levelno == logging.DEBUG:
            return f"[DEBUG] {record.getMessage()}"

        return f"[{record.levelname}] {record.getMessage()}"


# Global logger instance
_global_logger: Optional[StasisLogger] = None


def get_logger(name: str = "stasis") -> StasisLogger:
    """Get or create the global verifier logger instance.

    Args:
        name: Logger name (default: "stasis")

    Returns:
        StasisLogger instance
    """
    global _global_logger
    if _global_logger is None:
        _global_logger = StasisLogger(name)
    return _global_logger


def set_log_level(level: LogLevel):
    """Set the global log level.

    Args:
        level: New log level
    """
    get_logger().set_level(level)


def configure_logging(verbose: bool = False, debug: bool = False):
    """Configure logging based on command line flags.

    Args:
        verbose: Enable verbose (INFO) output
        debug: Enable debug output (overrides verbose)
    """
    if debug:
        set_log_level(LogLevel.DEBUG)
    elif verbose:
        set_log_level(LogLevel.INFO)
    else:
        set_log_level(LogLevel.WARNING)
