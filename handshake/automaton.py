# handshake/automaton.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Guarded transition automata for individual process blocks

"""Process automata and the handshake model.

Each ``always``/``initial`` block compiles to a :class:`ComponentAutomaton`:
a finite set of control locations connected by :class:`GuardedTransition`
edges. A transition fires atomically: its guard is checked against the
current valuation and its writes are applied in order, each right-hand side
seeing the writes before it (blocking assignment semantics).

Locations are dense integers ``0 .. location_count - 1`` numbered in
breadth-first order from the entry location, which is therefore always 0.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterator, List, Optional, Sequence, Tuple

from hdl.exceptions import SourceLocation
from netlist.expressions import Compiled
from netlist.netlist import Signal


@dataclass(frozen=True, slots=True)
class Write:
    """Single signal update ``signal = value`` masked to the signal width."""

    signal: int
    name: str
    mask: int
    value: Compiled

    def __str__(self) -> str:
        return f"{self.name} = {self.value}"


@dataclass(frozen=True)
class GuardedTransition:
    """Edge ``source --guard / writes--> target`` of one automaton.

    Attributes:
        automaton: Index of the owning automaton in the model
        index: Position in the owning automaton's transition list
        source: Source location
        guard: Enabling condition (any non-zero value enables)
        target: Target location
        writes: Ordered signal updates performed on firing
        label: Source text of the statement the edge was compiled from
        location: Source position of that statement
    """

    automaton: int
    index: int
    source: int
    guard: Compiled
    target: int
    writes: Tuple[Write, ...] = ()
    label: str = ""
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def enabled(self, values: Sequence[int]) -> bool:
        return self.guard.holds(values)

    def apply(self, values: List[int]) -> None:
        """Perform the writes in place on a mutable valuation."""
        for w in self.writes:
            values[w.signal] = w.value.evaluate(values) & w.mask

    def written(self) -> FrozenSet[int]:
        return frozenset(w.signal for w in self.writes)

    def describe(self) -> str:
        action = ", ".join(str(w) for w in self.writes) or "-"
        return f"L{self.source} --[{self.guard}] / {action}--> L{self.target}"

    def __str__(self) -> str:
        return self.label or self.describe()


@dataclass(frozen=True)
class ComponentAutomaton:
    """Control automaton of one process block of a component.

    Attributes:
        index: Position in the model's automaton list
        component: Instance path of the owning component
        process: Position of the process block within its module
        kind: ``always`` or ``initial``
        labels: Per-location description (statement starting there)
        transitions: All edges, grouped by source location in order
        location: Source position of the process block
    """

    index: int
    component: str
    process: int
    kind: str
    labels: Tuple[str, ...]
    transitions: Tuple[GuardedTransition, ...]
    location: Optional[SourceLocation] = field(default=None, compare=False)
    initial: int = 0

    def __post_init__(self):
        outgoing: List[List[GuardedTransition]] = [[] for _ in self.labels]
        for t in self.transitions:
            outgoing[t.source].append(t)
        object.__setattr__(self, "_outgoing", tuple(tuple(ts) for ts in outgoing))

    @property
    def name(self) -> str:
        return f"{self.component}/{self.kind}#{self.process}"

    @property
    def location_count(self) -> int:
        return len(self.labels)

    def outgoing(self, location: int) -> Tuple[GuardedTransition, ...]:
        return self._outgoing[location]

    def is_terminal(self, location: int) -> bool:
        """A location without outgoing edges; the process has finished."""
        return not self._outgoing[location]

    @property
    def terminal_locations(self) -> FrozenSet[int]:
        return frozenset(i for i, ts in enumerate(self._outgoing) if not ts)

    def writes(self) -> FrozenSet[int]:
        result = set()
        for t in self.transitions:
            result |= t.written()
        return frozenset(result)

    def guard_reads(self) -> FrozenSet[int]:
        result = set()
        for t in self.transitions:
            result |= t.guard.reads()
        return frozenset(result)

    def __str__(self) -> str:
        lines = [f"automaton {self.name} ({self.location_count} location(s))"]
        for t in self.transitions:
            lines.append(f"  {t.describe()}")
        return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class Synchronization:
    """Signal written by ``writer`` and read by a guard of ``reader``."""

    signal: int
    name: str
    writer: str
    reader: str

    def __str__(self) -> str:
        return f"{self.writer} --{self.name}--> {self.reader}"


@dataclass(frozen=True)
class HandshakeModel:
    """All process automata of a design plus the shared signal table.

    Iterating the model yields the automata in order: components in
    hierarchy pre-order, process blocks in declaration order.
    """

    automata: Tuple[ComponentAutomaton, ...]
    signals: Tuple[Signal, ...]
    synchronizations: Tuple[Synchronization, ...] = ()
    components: Tuple[str, ...] = ()

    def __iter__(self) -> Iterator[ComponentAutomaton]:
        return iter(self.automata)

    def __len__(self) -> int:
        return len(self.automata)

    def automata_of(self, component: str) -> Tuple[ComponentAutomaton, ...]:
        return tuple(a for a in self.automata if a.component == component)

    def writers_of(self, signal: int) -> Tuple[str, ...]:
        seen: Dict[str, None] = {}
        for a in self.automata:
            if signal in a.writes():
                seen.setdefault(a.component, None)
        return tuple(seen)

    def signal_named(self, name: str) -> Signal:
        for sig in self.signals:
            if sig.name == name:
                return sig
        raise KeyError(name)
