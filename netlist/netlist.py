# netlist/netlist.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Flat signal table and component records produced by elaboration

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Tuple, Union

from hdl import ast_nodes as ast
from hdl.exceptions import SourceLocation


@dataclass(frozen=True, slots=True)
class Signal:
    """A single entry of the flat signal table.

    Attributes:
        index: Position of the signal in every valuation tuple
        name: Hierarchical name (``p.x`` for signal ``x`` of instance ``p``)
        width: Bit width; the value domain is ``0 .. 2**width - 1``
        reset: Initial value
        constant: True for input ports tied to a constant at instantiation
    """

    index: int
    name: str
    width: int = 1
    reset: int = 0
    constant: bool = False

    @property
    def mask(self) -> int:
        return (1 << self.width) - 1

    @property
    def domain_size(self) -> int:
        return 1 << self.width

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class InterfaceBinding:
    """An interface instance visible in some component scope.

    Attributes:
        interface: Interface declaration name
        name: Hierarchical name of the instance the binding refers to
        members: Member name -> flat signal index
    """

    interface: str
    name: str
    members: Dict[str, int]

    def member(self, name: str) -> Optional[int]:
        return self.members.get(name)


ScopeEntry = Union[int, InterfaceBinding]


@dataclass(frozen=True)
class Component:
    """One elaborated module instance.

    Attributes:
        name: Instance path (the entry module's component is named after it)
        module: Module declaration name
        scope: Local name -> flat signal index or interface binding
        processes: always/initial blocks declared in the module body
        inputs: Flat indices bound to the component's input ports
        location: Source location of the instantiation
    """

    name: str
    module: str
    scope: Dict[str, ScopeEntry]
    processes: Tuple[ast.Process, ...] = ()
    inputs: FrozenSet[int] = frozenset()
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def lookup(self, ref: ast.Expr) -> Optional[int]:
        """Resolve an Identifier or MemberRef to a flat index, or None."""
        if isinstance(ref, ast.Identifier):
            entry = self.scope.get(ref.name)
            return entry if isinstance(entry, int) else None
        if isinstance(ref, ast.MemberRef):
            entry = self.scope.get(ref.instance)
            if isinstance(entry, InterfaceBinding):
                return entry.member(ref.member)
        return None

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Netlist:
    """Flattened design: the input of automaton construction.

    Attributes:
        entry: Name of the entry module
        signals: Flat signal table ordered by index
        components: Module instances in hierarchy pre-order
        drivers: Flat index -> names of components whose processes write it
    """

    entry: str
    signals: Tuple[Signal, ...]
    components: Tuple[Component, ...]
    drivers: Dict[int, Tuple[str, ...]] = field(default_factory=dict)

    def signal(self, name: str) -> Signal:
        for sig in self.signals:
            if sig.name == name:
                return sig
        raise KeyError(name)

    def component(self, name: str) -> Component:
        for comp in self.components:
            if comp.name == name:
                return comp
        raise KeyError(name)

    def reset_values(self) -> Tuple[int, ...]:
        return tuple(sig.reset for sig in self.signals)

    def drivers_of(self, index: int) -> Tuple[str, ...]:
        return self.drivers.get(index, ())

    def __str__(self) -> str:
        lines = [f"netlist {self.entry}: {len(self.signals)} signal(s)"]
        for sig in self.signals:
            lines.append(f"  [{sig.index}] {sig.name}: {sig.width} bit(s), reset {sig.reset}")
        for comp in self.components:
            lines.append(f"  component {comp.name} ({comp.module}), {len(comp.processes)} process(es)")
        return "\n".join(lines)
