# handshake/builder.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Compiles process statements into guarded transition automata

"""Statement-to-automaton compilation.

Statements are compiled in continuation style: compiling a statement is
given the location control reaches once the statement completes and returns
the location at which the statement starts. A statement that performs no
step (``;``, an empty block) returns its continuation unchanged.

Loops back-patch their head: the loop head is allocated as a placeholder,
the body is compiled towards it and the placeholder is then merged with the
body's entry location. Placeholders are removed when the automaton is
finalized and the remaining locations are renumbered breadth-first from the
entry, so the entry location is always 0 and unreachable locations vanish.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from hdl import ast_nodes as ast
from hdl.exceptions import SourceLocation
from netlist.expressions import TRUE, Compiled, SignalRead, Unary, compile_expression
from netlist.netlist import Component, InterfaceBinding, Netlist
from utils.logger import get_logger
from .automaton import (
    ComponentAutomaton,
    GuardedTransition,
    HandshakeModel,
    Synchronization,
    Write,
)
from .exceptions import ModelError


DEFAULT_MAX_SIGNAL_WIDTH = 8


@dataclass
class _Edge:
    source: int
    guard: Compiled
    target: int
    writes: Tuple[Write, ...]
    label: str
    location: Optional[SourceLocation]


class ProcessCompiler:
    """Compiles one process block of one component.

    Implements the statement visitor protocol; every ``visit_*`` method takes
    the continuation location and returns the statement's entry location.
    """

    def __init__(self, component: Component, netlist: Netlist):
        self.component = component
        self.netlist = netlist
        self.labels: List[str] = []
        self.edges: List[_Edge] = []
        self.aliases: Dict[int, int] = {}

    # ------------------------------------------------------------------
    # Locations and names
    # ------------------------------------------------------------------

    def _new_location(self, label: str) -> int:
        self.labels.append(label)
        return len(self.labels) - 1

    def _edge(self, source, guard, target, writes=(), stmt=None, label=None):
        self.edges.append(
            _Edge(
                source,
                guard,
                target,
                tuple(writes),
                label if label is not None else str(stmt),
                stmt.location if stmt is not None else None,
            )
        )

    def _resolve(self, ref: ast.Expr) -> SignalRead:
        index = self.component.lookup(ref)
        if index is None:
            raise ModelError(self._unbound_message(ref), ref.location)
        sig = self.netlist.signals[index]
        return SignalRead(sig.width, sig.index, sig.name)

    def _unbound_message(self, ref: ast.Expr) -> str:
        comp = self.component.name
        if isinstance(ref, ast.Identifier):
            if isinstance(self.component.scope.get(ref.name), InterfaceBinding):
                return f"'{ref.name}' in component '{comp}' is an interface instance, not a signal"
            return f"Unbound name '{ref.name}' in component '{comp}'"
        entry = self.component.scope.get(ref.instance)
        if isinstance(entry, InterfaceBinding):
            return f"Interface '{entry.interface}' has no member '{ref.member}' (component '{comp}')"
        return f"Unbound name '{ref}' in component '{comp}'"

    def _expression(self, expr: ast.Expr) -> Compiled:
        return compile_expression(expr, self._resolve)

    def _write(self, stmt: ast.Assign) -> Write:
        target = self._resolve(stmt.target)
        sig = self.netlist.signals[target.index]
        if sig.constant:
            raise ModelError(
                f"Assignment to constant '{sig.name}' in component '{self.component.name}'",
                stmt.location,
            )
        return Write(sig.index, sig.name, sig.mask, self._expression(stmt.value))

    # ------------------------------------------------------------------
    # Processes
    # ------------------------------------------------------------------

    def compile_process(self, process: ast.Process) -> int:
        """Compile a process body and return its entry location."""
        if process.kind == "initial":
            done = self._new_location("end")
            return process.body.accept(self, done)
        return self._loop(process.body, process)

    def _loop(self, body: ast.Statement, stmt) -> int:
        head = self._new_location(str(stmt))
        entry = body.accept(self, head)
        if entry == head:
            # Body never performs a step: keep spinning in place
            self._edge(head, TRUE, head, stmt=stmt)
        else:
            self.aliases[head] = entry
        return entry

    def _canonical(self, location: int) -> int:
        while location in self.aliases:
            location = self.aliases[location]
        return location

    def finalize(self, entry: int):
        """Drop placeholders, renumber breadth-first and return labels and edges."""
        outgoing: Dict[int, List[_Edge]] = {}
        for e in self.edges:
            outgoing.setdefault(self._canonical(e.source), []).append(e)

        start = self._canonical(entry)
        numbering = {start: 0}
        order = [start]
        queue = deque([start])
        while queue:
            loc = queue.popleft()
            for e in outgoing.get(loc, ()):
                target = self._canonical(e.target)
                if target not in numbering:
                    numbering[target] = len(order)
                    order.append(target)
                    queue.append(target)

        labels = tuple(self.labels[loc] for loc in order)
        edges = []
        for loc in order:
            for e in outgoing.get(loc, ()):
                edges.append(
                    (numbering[loc], e.guard, numbering[self._canonical(e.target)],
                     e.writes, e.label, e.location)
                )
        return labels, edges

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def visit_assign(self, n: ast.Assign, cont: int) -> int:
        loc = self._new_location(str(n))
        self._edge(loc, TRUE, cont, [self._write(n)], stmt=n)
        return loc

    def visit_wait(self, n: ast.Wait, cont: int) -> int:
        loc = self._new_location(str(n))
        guard = self._expression(n.condition)
        body = n.body

        if isinstance(body, ast.Assign):
            self._edge(loc, guard, cont, [self._write(body)], stmt=n)
        elif isinstance(body, ast.Block) and body.is_assignment_group():
            writes = [self._write(s) for s in body.statements]
            self._edge(loc, guard, cont, writes, stmt=n)
        else:
            target = body.accept(self, cont)
            self._edge(loc, guard, target, stmt=n, label=f"wait ({n.condition})")
        return loc

    def visit_if(self, n: ast.If, cont: int) -> int:
        loc = self._new_location(str(n))
        cond = self._expression(n.condition)
        then_entry = n.then_branch.accept(self, cont)
        else_entry = n.else_branch.accept(self, cont) if n.else_branch is not None else cont
        self._edge(loc, cond, then_entry, stmt=n, label=f"if ({n.condition})")
        self._edge(loc, Unary(1, "!", cond), else_entry, stmt=n, label=f"if (!{n.condition})")
        return loc

    def visit_while(self, n: ast.While, cont: int) -> int:
        head = self._new_location(str(n))
        cond = self._expression(n.condition)
        body_entry = n.body.accept(self, head)
        self._edge(head, cond, body_entry, stmt=n, label=f"while ({n.condition})")
        self._edge(head, Unary(1, "!", cond), cont, stmt=n, label=f"while (!{n.condition})")
        return head

    def visit_forever(self, n: ast.Forever, cont: int) -> int:
        # Control never leaves a forever loop; ``cont`` is unreachable
        return self._loop(n.body, n)

    def visit_randcase(self, n: ast.RandCase, cont: int) -> int:
        loc = self._new_location(str(n))
        arms = [arm for arm in n.arms if arm.weight > 0]
        if not arms:
            raise ModelError(
                f"randcase in component '{self.component.name}' has no arm with non-zero weight",
                n.location,
            )
        for arm in arms:
            entry = arm.body.accept(self, cont)
            self._edge(loc, TRUE, entry, stmt=arm, label=f"randcase arm {arm}")
        return loc

    def visit_block(self, n: ast.Block, cont: int) -> int:
        entry = cont
        for stmt in reversed(n.statements):
            entry = stmt.accept(self, entry)
        return entry

    def visit_null(self, n: ast.NullStatement, cont: int) -> int:
        return cont


class AutomataBuilder:
    """Builds the handshake model of a whole netlist."""

    def __init__(self, netlist: Netlist, max_signal_width: int = DEFAULT_MAX_SIGNAL_WIDTH):
        self.netlist = netlist
        self.max_signal_width = max_signal_width
        self.logger = get_logger()

    def build(self) -> HandshakeModel:
        for sig in self.netlist.signals:
            if sig.width > self.max_signal_width:
                raise ModelError(
                    f"Signal '{sig.name}' is {sig.width} bits wide; the verifier "
                    f"supports at most {self.max_signal_width} bits per signal"
                )

        automata: List[ComponentAutomaton] = []
        for comp in self.netlist.components:
            for number, process in enumerate(comp.processes):
                automata.append(self._build_automaton(len(automata), comp, number, process))

        model = HandshakeModel(
            automata=tuple(automata),
            signals=self.netlist.signals,
            synchronizations=self._synchronizations(automata),
            components=tuple(comp.name for comp in self.netlist.components),
        )
        if self.logger.is_debug():
            for a in model:
                self.logger.debug(str(a))
        return model

    def _build_automaton(self, index, comp, number, process) -> ComponentAutomaton:
        compiler = ProcessCompiler(comp, self.netlist)
        entry = compiler.compile_process(process)
        labels, edges = compiler.finalize(entry)
        transitions = tuple(
            GuardedTransition(index, i, source, guard, target, writes, label, location)
            for i, (source, guard, target, writes, label, location) in enumerate(edges)
        )
        return ComponentAutomaton(
            index=index,
            component=comp.name,
            process=number,
            kind=process.kind,
            labels=labels,
            transitions=transitions,
            location=process.location,
        )

    @staticmethod
    def _synchronizations(automata) -> Tuple[Synchronization, ...]:
        writes: Dict[str, set] = {}
        reads: Dict[str, set] = {}
        for a in automata:
            writes.setdefault(a.component, set()).update(a.writes())
            reads.setdefault(a.component, set()).update(a.guard_reads())

        names = {}
        for a in automata:
            for t in a.transitions:
                for w in t.writes:
                    names[w.signal] = w.name

        result = []
        for writer, written in writes.items():
            for reader, read in reads.items():
                if writer == reader:
                    continue
                for signal in sorted(written & read):
                    result.append(Synchronization(signal, names[signal], writer, reader))
        return tuple(result)


def build_automata(
    netlist: Netlist, max_signal_width: int = DEFAULT_MAX_SIGNAL_WIDTH
) -> HandshakeModel:
    """Compile every process block of ``netlist`` into an automaton.

    Args:
        netlist: Elaborated design
        max_signal_width: Widest signal accepted (finite-domain bound)

    Returns:
        The handshake model, iterable over its automata

    Raises:
        ModelError: On unbound names, invalid assignment targets, empty
            randcase statements or over-wide signals
    """
    logger = get_logger()
    logger.stage_start("build_automata", f"{len(netlist.components)} component(s)")
    try:
        model = AutomataBuilder(netlist, max_signal_width).build()
    except ModelError as exc:
        logger.stage_failed("build_automata", str(exc))
        raise
    transitions = sum(len(a.transitions) for a in model)
    logger.stage_done(
        "build_automata", f"{len(model)} automata, {transitions} transition(s)"
    )
    return model
