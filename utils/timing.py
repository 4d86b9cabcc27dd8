# utils/timing.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Timing hook used by external benchmark harnesses

"""Wall-clock timing hook for verification calls.

The verification core never measures itself; benchmark harnesses wrap the
entry point with :func:`time_verification` instead.
"""

import time
from datetime import timedelta
from typing import Any, Callable, Tuple

from utils.logger import get_logger


def time_call(func: Callable[..., Any], *args, **kwargs) -> Tuple[Any, timedelta]:
    """Run ``func`` once and return its result with the elapsed wall-clock time."""
    start = time.perf_counter()
    result = func(*args, **kwargs)
    elapsed = timedelta(seconds=time.perf_counter() - start)
    get_logger().debug(f"{getattr(func, '__name__', func)} took {elapsed.total_seconds():.6f}s")
    return result, elapsed


def time_verification(
    verify: Callable[..., Any], source_text: str, entry_module: str, **kwargs
) -> timedelta:
    """Time a single ``verify(source_text, entry_module)`` call.

    Args:
        verify: The verification entry point (usually ``core.verify``)
        source_text: Circuit description
        entry_module: Name of the top-level module

    Returns:
        Elapsed wall-clock duration; the verification result is discarded
    """
    _, elapsed = time_call(verify, source_text, entry_module, **kwargs)
    return elapsed
