# core/transition_system.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Lazily composed transition system over all process automata

"""Interleaving composition of the process automata.

The product of all automata is never built. Successors of a global state
are computed on demand: a transition of automaton ``a`` is enabled when
``a`` sits at the transition's source location and its guard evaluates
non-zero; firing moves only ``a`` and changes only the written signals.

Enumeration order is fixed (automaton order, then transition order), which
makes every search over the system deterministic.
"""

from __future__ import annotations
from typing import Dict, List, Tuple

from handshake.automaton import ComponentAutomaton, GuardedTransition, HandshakeModel
from .state import GlobalState, StateCodec
from .verdict import WaitingProcess


class TransitionSystem:
    """On-demand global transition relation of a handshake model."""

    def __init__(self, model: HandshakeModel):
        self.model = model
        self.automata: Tuple[ComponentAutomaton, ...] = model.automata
        self.codec = StateCodec(model)
        self._writers: Dict[int, Tuple[str, ...]] = {
            sig.index: model.writers_of(sig.index) for sig in model.signals
        }

    def initial_state(self) -> GlobalState:
        """Every automaton at its entry location, every signal at reset."""
        return GlobalState(
            tuple(a.initial for a in self.automata),
            tuple(sig.reset for sig in self.model.signals),
        )

    def enabled(self, state: GlobalState) -> List[GuardedTransition]:
        """Transitions enabled in ``state``, in enumeration order."""
        result = []
        values = state.values
        for a, loc in zip(self.automata, state.locations):
            for t in a.outgoing(loc):
                if t.guard.holds(values):
                    result.append(t)
        return result

    def fire(self, state: GlobalState, transition: GuardedTransition) -> GlobalState:
        """Successor of ``state`` after firing an enabled ``transition``.

        Raises:
            ValueError: ``transition`` is not enabled in ``state``
        """
        a = transition.automaton
        if state.locations[a] != transition.source or not transition.guard.holds(state.values):
            raise ValueError(f"Transition '{transition}' is not enabled in {state}")

        values = list(state.values)
        transition.apply(values)
        locations = list(state.locations)
        locations[a] = transition.target
        return GlobalState(tuple(locations), tuple(values))

    def successors(self, state: GlobalState) -> List[Tuple[GuardedTransition, GlobalState]]:
        return [(t, self.fire(state, t)) for t in self.enabled(state)]

    def is_terminated(self, state: GlobalState) -> bool:
        """All automata have finished (every one at a terminal location)."""
        return all(a.is_terminal(loc) for a, loc in zip(self.automata, state.locations))

    def is_deadlock(self, state: GlobalState) -> bool:
        """No transition is enabled but some automaton has not finished."""
        return not self.enabled(state) and not self.is_terminated(state)

    def blocked_components(self, state: GlobalState) -> Tuple[str, ...]:
        """Components owning an automaton not at a terminal location."""
        seen: Dict[str, None] = {}
        for a, loc in zip(self.automata, state.locations):
            if not a.is_terminal(loc):
                seen.setdefault(a.component, None)
        return tuple(seen)

    def waiting(self, state: GlobalState) -> Tuple[WaitingProcess, ...]:
        """Describe what every unfinished automaton is waiting for."""
        result = []
        for a, loc in zip(self.automata, state.locations):
            if a.is_terminal(loc):
                continue
            outgoing = a.outgoing(loc)
            guards = tuple(dict.fromkeys(str(t.guard) for t in outgoing))
            drivers: Dict[str, None] = {}
            for t in outgoing:
                for signal in sorted(t.guard.reads()):
                    for writer in self._writers.get(signal, ()):
                        if writer != a.component:
                            drivers.setdefault(writer, None)
            result.append(
                WaitingProcess(a.component, a.name, a.labels[loc], guards, tuple(drivers))
            )
        return tuple(result)

    def describe(self, state: GlobalState) -> str:
        locs = ", ".join(
            f"{a.name}@{a.labels[loc]}" for a, loc in zip(self.automata, state.locations)
        )
        vals = " ".join(f"{s.name}={v}" for s, v in zip(self.model.signals, state.values))
        return f"[{locs}] {vals}"
