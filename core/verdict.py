# core/verdict.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Verification results: verdict enumeration and the result family

"""Results of a verification run.

Every run ends in exactly one of four results:

- :class:`DeadlockFree`: the complete reachable state space was explored and
  no deadlock state exists
- :class:`Deadlocked`: a reachable deadlock state was found; the witness
  trace leads to it from the initial state
- :class:`RejectedInput`: a stage rejected the circuit description
- :class:`Inconclusive`: a resource budget ran out before the search ended
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional, Tuple

from hdl.exceptions import SourceLocation, Stage
from .trace import Trace


class Verdict(Enum):
    """Outcome category of a verification run."""

    DEADLOCK_FREE = auto()
    DEADLOCKED = auto()
    REJECTED = auto()
    INCONCLUSIVE = auto()

    def __str__(self) -> str:
        return self.name

    def is_conclusive(self) -> bool:
        """True when the verdict is a definitive statement about the circuit."""
        return self in (Verdict.DEADLOCK_FREE, Verdict.DEADLOCKED)


@dataclass(frozen=True)
class ExplorationStats:
    """Counters collected by the explorer.

    Attributes:
        states: Distinct states visited
        transitions: Transitions fired (successor computations)
        max_depth: Deepest level reached from the initial state
        elapsed: Wall-clock seconds spent exploring
    """

    states: int = 0
    transitions: int = 0
    max_depth: int = 0
    elapsed: float = 0.0

    def __str__(self) -> str:
        return (
            f"{self.states} state(s), {self.transitions} transition(s), "
            f"depth {self.max_depth}, {self.elapsed:.3f}s"
        )


@dataclass(frozen=True)
class WaitingProcess:
    """Diagnostic view of one automaton stuck at a deadlock state.

    Attributes:
        component: Owning component
        automaton: Automaton name
        label: Statement at the blocked location
        guards: Guards of every outgoing transition (all false)
        drivers: Components writing the signals those guards read
    """

    component: str
    automaton: str
    label: str
    guards: Tuple[str, ...] = ()
    drivers: Tuple[str, ...] = ()


@dataclass(frozen=True)
class VerificationResult:
    """Base class of the result family."""

    @property
    def verdict(self) -> Verdict:
        raise NotImplementedError


@dataclass(frozen=True)
class DeadlockFree(VerificationResult):
    """Exhaustive search found no reachable deadlock.

    ``dormant_components`` lists components none of whose transitions ever
    fired; it is a diagnostic hint, not a liveness claim.
    """

    stats: ExplorationStats = field(default_factory=ExplorationStats)
    dormant_components: Tuple[str, ...] = ()

    @property
    def verdict(self) -> Verdict:
        return Verdict.DEADLOCK_FREE


@dataclass(frozen=True)
class Deadlocked(VerificationResult):
    """A reachable deadlock state, with the trace that reaches it."""

    trace: Trace
    blocked_components: Tuple[str, ...]
    waiting: Tuple[WaitingProcess, ...] = ()
    stats: ExplorationStats = field(default_factory=ExplorationStats)

    @property
    def verdict(self) -> Verdict:
        return Verdict.DEADLOCKED


@dataclass(frozen=True)
class RejectedInput(VerificationResult):
    """The circuit description was rejected by one of the front stages."""

    stage: Stage
    detail: str
    location: Optional[SourceLocation] = None

    @property
    def verdict(self) -> Verdict:
        return Verdict.REJECTED


@dataclass(frozen=True)
class Inconclusive(VerificationResult):
    """The search was truncated by a budget; nothing is claimed."""

    reason: str
    stats: ExplorationStats = field(default_factory=ExplorationStats)

    @property
    def verdict(self) -> Verdict:
        return Verdict.INCONCLUSIVE
