# netlist/elaborator.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Flattens the module hierarchy into a signal table and component list

"""Hierarchy elaboration.

Starting from the entry module, every instantiation is resolved against the
parsed declarations and its positional arguments are bound to the target's
ANSI header ports. Signals are flattened into one table addressed by dense
indices; every module instance becomes a :class:`Component` holding its
scoped-signal table, so later stages resolve each local name exactly once.

Naming:
    - signals and ports of the entry module keep their local names
    - signal ``x`` declared in instance path ``p`` is named ``p.x``
    - member ``req`` of interface instance ``ch`` is named ``ch.req``
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from hdl import ast_nodes as ast
from hdl.exceptions import SourceLocation
from utils.logger import get_logger
from .exceptions import ElaborationError
from .expressions import compile_expression, references
from .netlist import Component, InterfaceBinding, Netlist, ScopeEntry, Signal


class _SignalTable:
    """Mutable signal table used while the hierarchy is walked."""

    def __init__(self):
        self.names: List[str] = []
        self.widths: List[int] = []
        self.resets: List[int] = []
        self.explicit: List[Optional[str]] = []  # origin of an explicit reset
        self.constant: List[bool] = []

    def add(self, name: str, width: int, constant: bool = False) -> int:
        self.names.append(name)
        self.widths.append(width)
        self.resets.append(0)
        self.explicit.append(None)
        self.constant.append(constant)
        return len(self.names) - 1

    def set_reset(self, index: int, value: int, origin: str, location) -> None:
        value &= (1 << self.widths[index]) - 1
        previous = self.explicit[index]
        if previous is not None and self.resets[index] != value:
            raise ElaborationError(
                f"Conflicting reset values for signal '{self.names[index]}': "
                f"{self.resets[index]} ({previous}) and {value} ({origin})",
                location,
            )
        self.resets[index] = value
        self.explicit[index] = origin

    def freeze(self) -> Tuple[Signal, ...]:
        return tuple(
            Signal(i, self.names[i], self.widths[i], self.resets[i], self.constant[i])
            for i in range(len(self.names))
        )


def _constant_value(expr: ast.Expr, what: str) -> int:
    """Evaluate an expression that must not reference any signal."""
    refs = references(expr)
    if refs:
        raise ElaborationError(
            f"{what} must be a constant expression, found reference to '{refs[0]}'",
            refs[0].location or expr.location,
        )
    compiled = compile_expression(expr, _no_signals)
    return compiled.evaluate(())


def _no_signals(ref: ast.Expr):
    raise ElaborationError(f"Unexpected signal reference '{ref}'", ref.location)


class Elaborator:
    """Walks the instantiation hierarchy of one design.

    A fresh Elaborator is used per call to :func:`elaborate`; it keeps the
    signal table and component list of that single run.
    """

    def __init__(self, design: ast.SourceText):
        self.logger = get_logger()
        self._declarations: Dict[str, ast.Node] = {}
        for decl in design.declarations:
            if decl.name in self._declarations:
                raise ElaborationError(
                    f"Duplicate declaration of '{decl.name}'", decl.location
                )
            self._declarations[decl.name] = decl

        self._signals = _SignalTable()
        self._components: List[Component] = []

    # ------------------------------------------------------------------
    # Entry
    # ------------------------------------------------------------------

    def elaborate(self, entry_module: str) -> Netlist:
        decl = self._declarations.get(entry_module)
        if decl is None:
            raise ElaborationError(f"Entry module '{entry_module}' is not declared")
        if isinstance(decl, ast.InterfaceDecl):
            raise ElaborationError(
                f"Entry '{entry_module}' is an interface, not a module", decl.location
            )

        scope: Dict[str, ScopeEntry] = {}
        inputs: Set[int] = set()
        for port in decl.ports:
            self._check_fresh(scope, port.name, port.location, entry_module)
            if isinstance(port, ast.InterfacePort):
                # Interface ports of the entry module are left unconnected:
                # the entry owns a fresh instance of the interface.
                target = self._declarations.get(port.interface)
                if not isinstance(target, ast.InterfaceDecl):
                    raise ElaborationError(
                        f"Port '{port.name}' has undeclared interface type '{port.interface}'",
                        port.location,
                    )
                if target.ports:
                    raise ElaborationError(
                        f"Interface port '{port.name}' of entry module '{entry_module}' "
                        f"has type '{target.name}', which declares ports; interface ports "
                        "of the entry module cannot take interface arguments",
                        port.location,
                    )
                scope[port.name] = self._instantiate_interface(
                    target, port.name, (), {}, port.location
                )
                continue

            index = self._signals.add(port.name, port.width)
            if port.reset is not None:
                value = _constant_value(port.reset, f"Reset value of port '{port.name}'")
                self._signals.set_reset(index, value, f"port {entry_module}.{port.name}", port.location)
            scope[port.name] = index
            if port.direction == "input":
                inputs.add(index)

        self._instantiate_module(
            decl, entry_module, "", scope, frozenset(inputs), (entry_module,), decl.location
        )

        signals = self._signals.freeze()
        components = tuple(self._components)
        drivers = self._check_drivers(components, signals)
        return Netlist(entry_module, signals, components, drivers)

    # ------------------------------------------------------------------
    # Hierarchy walk
    # ------------------------------------------------------------------

    def _instantiate_module(
        self,
        decl: ast.ModuleDecl,
        name: str,
        prefix: str,
        scope: Dict[str, ScopeEntry],
        inputs: frozenset,
        stack: Tuple[str, ...],
        location: Optional[SourceLocation],
    ) -> None:
        self.logger.debug(f"Elaborating {name} ({decl.name})")

        for sig in decl.signals:
            self._check_fresh(scope, sig.name, sig.location, name)
            index = self._signals.add(prefix + sig.name, sig.width)
            if sig.reset is not None:
                value = _constant_value(sig.reset, f"Reset value of '{sig.name}'")
                self._signals.set_reset(index, value, f"declaration in {name}", sig.location)
            scope[sig.name] = index

        # Interfaces first so that module instances may be bound to them
        # regardless of textual order.
        for inst in decl.instances:
            target = self._lookup(inst)
            if isinstance(target, ast.InterfaceDecl):
                self._check_fresh(scope, inst.instance_name, inst.location, name)
                scope[inst.instance_name] = self._instantiate_interface(
                    target,
                    prefix + inst.instance_name,
                    inst.arguments,
                    scope,
                    inst.location,
                )

        children = []
        for inst in decl.instances:
            target = self._lookup(inst)
            if isinstance(target, ast.InterfaceDecl):
                continue
            self._check_fresh(scope, inst.instance_name, inst.location, name)
            if target.name in stack:
                chain = " -> ".join(stack + (target.name,))
                raise ElaborationError(
                    f"Recursive instantiation of module '{target.name}' ({chain})",
                    inst.location,
                )
            child_name = prefix + inst.instance_name
            if child_name == stack[0]:
                raise ElaborationError(
                    f"Instance name '{inst.instance_name}' clashes with the component "
                    f"name of entry module '{stack[0]}'",
                    inst.location,
                )
            child_scope, child_inputs = self._bind_ports(target, inst, scope, child_name)
            # Instance names occupy the local namespace like signals do
            scope[inst.instance_name] = _ModuleInstance(target.name, child_name)
            children.append((target, inst, child_name, child_scope, child_inputs))

        self._components.append(
            Component(
                name=name,
                module=decl.name,
                scope={k: v for k, v in scope.items() if not _is_module_instance(v)},
                processes=decl.processes,
                inputs=inputs,
                location=location,
            )
        )

        for target, inst, child_name, child_scope, child_inputs in children:
            self._instantiate_module(
                target,
                child_name,
                child_name + ".",
                child_scope,
                child_inputs,
                stack + (target.name,),
                inst.location,
            )

    def _instantiate_interface(
        self,
        decl: ast.InterfaceDecl,
        name: str,
        arguments: Tuple[ast.Expr, ...],
        parent_scope: Dict[str, ScopeEntry],
        location: Optional[SourceLocation],
    ) -> InterfaceBinding:
        if len(arguments) != len(decl.ports):
            raise ElaborationError(
                f"Interface '{decl.name}' instance '{name}' expects {len(decl.ports)} "
                f"argument(s), got {len(arguments)}",
                location,
            )

        members: Dict[str, int] = {}
        for port, arg in zip(decl.ports, arguments):
            if not isinstance(port, ast.Port):
                raise ElaborationError(
                    f"Interface '{decl.name}' cannot take interface port '{port.name}'",
                    port.location,
                )
            if port.name in members:
                raise ElaborationError(
                    f"Duplicate member '{port.name}' in interface '{decl.name}'", port.location
                )
            index = self._bind_scalar(port, arg, parent_scope, name)
            members[port.name] = index

        for sig in decl.signals:
            if sig.name in members:
                raise ElaborationError(
                    f"Duplicate member '{sig.name}' in interface '{decl.name}'", sig.location
                )
            index = self._signals.add(f"{name}.{sig.name}", sig.width)
            if sig.reset is not None:
                value = _constant_value(sig.reset, f"Reset value of '{sig.name}'")
                self._signals.set_reset(index, value, f"interface {decl.name}", sig.location)
            members[sig.name] = index

        return InterfaceBinding(decl.name, name, members)

    # ------------------------------------------------------------------
    # Port binding
    # ------------------------------------------------------------------

    def _bind_ports(
        self,
        target: ast.ModuleDecl,
        inst: ast.Instance,
        scope: Dict[str, ScopeEntry],
        child_name: str,
    ) -> Tuple[Dict[str, ScopeEntry], frozenset]:
        if len(inst.arguments) != len(target.ports):
            raise ElaborationError(
                f"Instance '{inst.instance_name}' of module '{target.name}' expects "
                f"{len(target.ports)} port argument(s), got {len(inst.arguments)}",
                inst.location,
            )

        child_scope: Dict[str, ScopeEntry] = {}
        child_inputs: Set[int] = set()
        for port, arg in zip(target.ports, inst.arguments):
            if port.name in child_scope:
                raise ElaborationError(
                    f"Duplicate port '{port.name}' in module '{target.name}'", port.location
                )

            if isinstance(port, ast.InterfacePort):
                child_scope[port.name] = self._bind_interface(port, arg, scope, inst)
                continue

            index = self._bind_scalar(port, arg, scope, child_name)
            child_scope[port.name] = index
            if port.direction == "input":
                child_inputs.add(index)

        return child_scope, frozenset(child_inputs)

    def _bind_scalar(
        self,
        port: ast.Port,
        arg: ast.Expr,
        scope: Dict[str, ScopeEntry],
        owner: str,
    ) -> int:
        """Bind a scalar port to a signal reference or tie it to a constant."""
        location = arg.location or port.location

        if isinstance(arg, (ast.Identifier, ast.MemberRef)):
            index = self._resolve_reference(arg, scope)
            width = self._signals.widths[index]
            if width != port.width:
                raise ElaborationError(
                    f"Width mismatch binding '{arg}' ({width} bit(s)) to port "
                    f"'{port.name}' ({port.width} bit(s))",
                    location,
                )
        elif not references(arg):
            if port.direction != "input":
                raise ElaborationError(
                    f"{port.direction.capitalize()} port '{port.name}' cannot be bound to a constant",
                    location,
                )
            value = _constant_value(arg, f"Argument for port '{port.name}'")
            index = self._signals.add(f"{owner}.{port.name}", port.width, constant=True)
            self._signals.set_reset(index, value, f"tie-off of {owner}.{port.name}", location)
            return index
        else:
            raise ElaborationError(
                f"Argument '{arg}' for port '{port.name}' must be a signal reference or a constant",
                location,
            )

        if port.reset is not None:
            value = _constant_value(port.reset, f"Reset value of port '{port.name}'")
            self._signals.set_reset(index, value, f"port {owner}.{port.name}", port.location)
        return index

    def _bind_interface(
        self,
        port: ast.InterfacePort,
        arg: ast.Expr,
        scope: Dict[str, ScopeEntry],
        inst: ast.Instance,
    ) -> InterfaceBinding:
        location = arg.location or inst.location
        if not isinstance(arg, ast.Identifier):
            raise ElaborationError(
                f"Interface port '{port.name}' must be bound to an interface instance, got '{arg}'",
                location,
            )
        entry = scope.get(arg.name)
        if entry is None:
            raise ElaborationError(f"Unresolved reference '{arg.name}'", location)
        if not isinstance(entry, InterfaceBinding):
            raise ElaborationError(
                f"Interface port '{port.name}' cannot be bound to '{arg.name}', "
                f"which is not an interface instance",
                location,
            )
        if entry.interface != port.interface:
            raise ElaborationError(
                f"Interface type mismatch for port '{port.name}': expected "
                f"'{port.interface}', got '{entry.interface}'",
                location,
            )
        return entry

    def _resolve_reference(self, ref: ast.Expr, scope: Dict[str, ScopeEntry]) -> int:
        if isinstance(ref, ast.Identifier):
            entry = scope.get(ref.name)
            if entry is None:
                raise ElaborationError(f"Unresolved reference '{ref.name}'", ref.location)
            if not isinstance(entry, int):
                raise ElaborationError(
                    f"'{ref.name}' is an instance, not a signal", ref.location
                )
            return entry

        entry = scope.get(ref.instance)
        if entry is None:
            raise ElaborationError(f"Unresolved reference '{ref.instance}'", ref.location)
        if not isinstance(entry, InterfaceBinding):
            raise ElaborationError(f"'{ref.instance}' is not an interface instance", ref.location)
        index = entry.member(ref.member)
        if index is None:
            raise ElaborationError(
                f"Interface '{entry.interface}' has no member '{ref.member}'", ref.location
            )
        return index

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _lookup(self, inst: ast.Instance) -> ast.Node:
        target = self._declarations.get(inst.module_name)
        if target is None:
            raise ElaborationError(
                f"Instance '{inst.instance_name}' references undeclared module "
                f"or interface '{inst.module_name}'",
                inst.location,
            )
        return target

    @staticmethod
    def _check_fresh(scope, name: str, location, owner: str) -> None:
        if name in scope:
            raise ElaborationError(f"Duplicate name '{name}' in {owner}", location)

    def _check_drivers(
        self, components: Tuple[Component, ...], signals: Tuple[Signal, ...]
    ) -> Dict[int, Tuple[str, ...]]:
        """Reject input-port writes and conflicting unconditional drivers."""
        writers: Dict[int, List[str]] = {}
        unconditional: Dict[int, List[str]] = {}

        for comp in components:
            for process in comp.processes:
                for target, guarded in _assignment_targets(process.body):
                    index = comp.lookup(target)
                    if index is None:
                        # Unbound targets are reported by the automaton builder
                        continue
                    if index in comp.inputs:
                        raise ElaborationError(
                            f"Process in '{comp.name}' assigns to input port '{target}'",
                            target.location,
                        )
                    names = writers.setdefault(index, [])
                    if comp.name not in names:
                        names.append(comp.name)
                    if not guarded:
                        names = unconditional.setdefault(index, [])
                        if comp.name not in names:
                            names.append(comp.name)

        for index, names in unconditional.items():
            if len(names) > 1:
                raise ElaborationError(
                    f"Signal '{signals[index].name}' is driven unconditionally by "
                    f"several components: {', '.join(names)}"
                )

        return {index: tuple(names) for index, names in writers.items()}


@dataclass(frozen=True)
class _ModuleInstance:
    """Scope marker for a module instance name; not visible to processes."""

    module: str
    name: str


def _is_module_instance(entry) -> bool:
    return isinstance(entry, _ModuleInstance)


def _assignment_targets(stmt: ast.Statement, guarded: bool = False):
    """Yield ``(target, guarded)`` for every assignment under ``stmt``."""
    if isinstance(stmt, ast.Assign):
        yield stmt.target, guarded
    elif isinstance(stmt, ast.Wait):
        yield from _assignment_targets(stmt.body, True)
    elif isinstance(stmt, ast.If):
        yield from _assignment_targets(stmt.then_branch, True)
        if stmt.else_branch is not None:
            yield from _assignment_targets(stmt.else_branch, True)
    elif isinstance(stmt, ast.While):
        yield from _assignment_targets(stmt.body, True)
    elif isinstance(stmt, ast.Forever):
        yield from _assignment_targets(stmt.body, guarded)
    elif isinstance(stmt, ast.RandCase):
        for arm in stmt.arms:
            yield from _assignment_targets(arm.body, True)
    elif isinstance(stmt, ast.Block):
        for s in stmt.statements:
            yield from _assignment_targets(s, guarded)


def elaborate(design: ast.SourceText, entry_module: str) -> Netlist:
    """Flatten ``design`` starting from ``entry_module``.

    Args:
        design: Parsed source text
        entry_module: Name of the top-level module

    Returns:
        The flattened netlist

    Raises:
        ElaborationError: On the first hierarchy, binding or driver error
    """
    logger = get_logger()
    logger.stage_start("elaborate", entry_module)
    try:
        netlist = Elaborator(design).elaborate(entry_module)
    except ElaborationError as exc:
        logger.stage_failed("elaborate", str(exc))
        raise
    logger.stage_done(
        "elaborate",
        f"{len(netlist.signals)} signal(s), {len(netlist.components)} component(s)",
    )
    return netlist
