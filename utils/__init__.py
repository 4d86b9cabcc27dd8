# utils/__init__.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Utility module exports

from .logger import (
    LogLevel,
    get_logger,
    set_log_level,
    configure_logging,
)
from .timing import time_call, time_verification

__all__ = [
    "LogLevel",
    "get_logger",
    "set_log_level",
    "configure_logging",
    "time_call",
    "time_verification",
]
