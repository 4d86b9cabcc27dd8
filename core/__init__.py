# core/__init__.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Core module public API: composition, exploration and verification results

"""Deadlock verification of handshake models.

This package composes the per-process automata into a global transition
system, searches its reachable states for deadlocks and reports the outcome
as one of the verification result types.

Primary Components:
    verify: Source text -> VerificationResult, running the whole pipeline
    TransitionSystem: Lazily composed interleaving semantics
    explore: Breadth-first (or depth-first) deadlock search
    ExplorerConfig: Strategy, budgets and worker count
    format_result: Human-readable report of a result

Example:
    >>> from core import verify
    >>> result = verify(source_text, "top")
    >>> result.verdict
    <Verdict.DEADLOCK_FREE: 1>
"""

from .config import ExplorerConfig
from .diagnostics import format_result
from .explorer import explore
from .state import GlobalState, StateCodec
from .trace import Trace, TraceStep
from .transition_system import TransitionSystem
from .verdict import (
    DeadlockFree,
    Deadlocked,
    ExplorationStats,
    Inconclusive,
    RejectedInput,
    Verdict,
    VerificationResult,
    WaitingProcess,
)
from .verify import verify

__all__ = [
    "verify",
    "explore",
    "format_result",
    "ExplorerConfig",
    "GlobalState",
    "StateCodec",
    "Trace",
    "TraceStep",
    "TransitionSystem",
    "DeadlockFree",
    "Deadlocked",
    "ExplorationStats",
    "Inconclusive",
    "RejectedInput",
    "Verdict",
    "VerificationResult",
    "WaitingProcess",
]

__version__ = "1.0.0"
__description__ = "Deadlock verification for asynchronous handshake circuits"
