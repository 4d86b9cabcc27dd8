# core/trace.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Witness traces produced by the explorer

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, Tuple

from handshake.automaton import GuardedTransition
from .state import GlobalState


@dataclass(frozen=True)
class TraceStep:
    """One fired transition and the state it leads to."""

    transition: GuardedTransition
    state: GlobalState


@dataclass(frozen=True)
class Trace:
    """Path from the initial state through the composed system.

    Attributes:
        initial: State the path starts from
        steps: Fired transitions in order, each with the state reached
        automata: Automaton names, for rendering
        signals: Signal names, for rendering
    """

    initial: GlobalState
    steps: Tuple[TraceStep, ...] = ()
    automata: Tuple[str, ...] = ()
    signals: Tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self) -> Iterator[TraceStep]:
        return iter(self.steps)

    @property
    def final_state(self) -> GlobalState:
        return self.steps[-1].state if self.steps else self.initial

    def render_state(self, state: GlobalState) -> str:
        """Signal valuation of ``state`` as ``name=value`` pairs."""
        if not self.signals:
            return str(state)
        return " ".join(f"{n}={v}" for n, v in zip(self.signals, state.values))
