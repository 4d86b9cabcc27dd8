# hdl/ast_nodes.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Abstract Syntax Tree node classes for the supported hardware description subset

"""AST node classes for parsed circuit descriptions.

This module defines immutable and hashable node classes for the restricted
SystemVerilog subset accepted by the parser: ANSI-style module and interface
headers, signal declarations, positional instantiations and process blocks
built from blocking assignments, ``wait``, ``if``, loops and ``randcase``.

Every node records the :class:`SourceLocation` it was parsed from. Locations
do not take part in equality, so two trees parsed from differently formatted
but equivalent text compare equal.

Expression and statement nodes support the visitor design pattern; ``accept``
forwards any extra arguments to the visitor method.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol, Tuple

from .exceptions import SourceLocation


class ExprVisitor(Protocol):
    """Interface for expression visitors."""

    def visit_number(self, n: Number, *args): ...

    def visit_identifier(self, n: Identifier, *args): ...

    def visit_member(self, n: MemberRef, *args): ...

    def visit_unary(self, n: UnaryOp, *args): ...

    def visit_binary(self, n: BinaryOp, *args): ...


class StatementVisitor(Protocol):
    """Interface for statement visitors."""

    def visit_assign(self, n: Assign, *args): ...

    def visit_wait(self, n: Wait, *args): ...

    def visit_if(self, n: If, *args): ...

    def visit_while(self, n: While, *args): ...

    def visit_forever(self, n: Forever, *args): ...

    def visit_randcase(self, n: RandCase, *args): ...

    def visit_block(self, n: Block, *args): ...

    def visit_null(self, n: NullStatement, *args): ...


@dataclass(frozen=True, slots=True)
class Node:
    """Base class for all AST nodes.

    Attributes:
        location: Where the node starts in the source text (ignored by equality)
    """

    location: Optional[SourceLocation] = field(
        default=None, compare=False, repr=False, kw_only=True
    )


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Expr(Node):
    """Base class for expressions."""

    def accept(self, v: ExprVisitor, *args):
        raise NotImplementedError

    def __str__(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class Number(Expr):
    """Integer literal, optionally sized (``4``, ``1'b0``, ``8'hFF``).

    Attributes:
        value: Literal value
        width: Declared bit width, or None for unsized literals
    """

    value: int
    width: Optional[int] = None

    def accept(self, v: ExprVisitor, *args):
        return v.visit_number(self, *args)

    def __str__(self) -> str:
        if self.width is None:
            return str(self.value)
        return f"{self.width}'d{self.value}"


@dataclass(frozen=True, slots=True)
class Identifier(Expr):
    """Reference to a signal, port or interface instance by local name."""

    name: str

    def accept(self, v: ExprVisitor, *args):
        return v.visit_identifier(self, *args)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class MemberRef(Expr):
    """Reference to a member signal of an interface (``ch.req``)."""

    instance: str
    member: str

    def accept(self, v: ExprVisitor, *args):
        return v.visit_member(self, *args)

    def __str__(self) -> str:
        return f"{self.instance}.{self.member}"


@dataclass(frozen=True, slots=True)
class UnaryOp(Expr):
    """Unary operator application (``!``, ``~``, ``-``)."""

    op: str
    operand: Expr

    def accept(self, v: ExprVisitor, *args):
        return v.visit_unary(self, *args)

    def __str__(self) -> str:
        return f"{self.op}{self.operand}"


@dataclass(frozen=True, slots=True)
class BinaryOp(Expr):
    """Binary operator application. Rendered fully parenthesized."""

    op: str
    left: Expr
    right: Expr

    def accept(self, v: ExprVisitor, *args):
        return v.visit_binary(self, *args)

    def __str__(self) -> str:
        return f"({self.left} {self.op} {self.right})"


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Statement(Node):
    """Base class for procedural statements."""

    def accept(self, v: StatementVisitor, *args):
        raise NotImplementedError

    def __str__(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class Assign(Statement):
    """Blocking assignment ``target = value;``."""

    target: Expr
    value: Expr

    def accept(self, v: StatementVisitor, *args):
        return v.visit_assign(self, *args)

    def __str__(self) -> str:
        return f"{self.target} = {self.value};"


@dataclass(frozen=True, slots=True)
class Wait(Statement):
    """Guarded statement ``wait (condition) body``.

    When ``body`` consists only of blocking assignments the guard and the
    assignments form a single atomic step.
    """

    condition: Expr
    body: Statement

    def accept(self, v: StatementVisitor, *args):
        return v.visit_wait(self, *args)

    def __str__(self) -> str:
        return f"wait ({self.condition}) {self.body}"


@dataclass(frozen=True, slots=True)
class If(Statement):
    """Two-way branch ``if (condition) then_branch [else else_branch]``."""

    condition: Expr
    then_branch: Statement
    else_branch: Optional[Statement] = None

    def accept(self, v: StatementVisitor, *args):
        return v.visit_if(self, *args)

    def __str__(self) -> str:
        text = f"if ({self.condition}) {self.then_branch}"
        if self.else_branch is not None:
            text += f" else {self.else_branch}"
        return text


@dataclass(frozen=True, slots=True)
class While(Statement):
    """Loop ``while (condition) body``."""

    condition: Expr
    body: Statement

    def accept(self, v: StatementVisitor, *args):
        return v.visit_while(self, *args)

    def __str__(self) -> str:
        return f"while ({self.condition}) {self.body}"


@dataclass(frozen=True, slots=True)
class Forever(Statement):
    """Unconditional loop ``forever body``."""

    body: Statement

    def accept(self, v: StatementVisitor, *args):
        return v.visit_forever(self, *args)

    def __str__(self) -> str:
        return f"forever {self.body}"


@dataclass(frozen=True, slots=True)
class RandArm(Node):
    """One weighted arm of a ``randcase``."""

    weight: int
    body: Statement

    def __str__(self) -> str:
        return f"{self.weight}: {self.body}"


@dataclass(frozen=True, slots=True)
class RandCase(Statement):
    """Nondeterministic choice between weighted arms.

    Weights only decide whether an arm exists at all (zero weight means the
    arm can never be taken); every other arm is an equally possible branch.
    """

    arms: Tuple[RandArm, ...]

    def accept(self, v: StatementVisitor, *args):
        return v.visit_randcase(self, *args)

    def __str__(self) -> str:
        arms = " ".join(str(arm) for arm in self.arms)
        return f"randcase {arms} endcase"


@dataclass(frozen=True, slots=True)
class Block(Statement):
    """Sequential block ``begin ... end``."""

    statements: Tuple[Statement, ...]

    def accept(self, v: StatementVisitor, *args):
        return v.visit_block(self, *args)

    def is_assignment_group(self) -> bool:
        """True when the block holds only blocking assignments."""
        return bool(self.statements) and all(
            isinstance(s, Assign) for s in self.statements
        )

    def __str__(self) -> str:
        body = " ".join(str(s) for s in self.statements)
        return f"begin {body} end" if body else "begin end"


@dataclass(frozen=True, slots=True)
class NullStatement(Statement):
    """Empty statement ``;``."""

    def accept(self, v: StatementVisitor, *args):
        return v.visit_null(self, *args)

    def __str__(self) -> str:
        return ";"


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Port(Node):
    """ANSI scalar port ``direction [kind] [range] name [= reset]``.

    Attributes:
        name: Port name
        direction: ``input``, ``output`` or ``inout``
        kind: Net kind keyword (``logic``, ``wire``, ...) or None
        width: Bit width derived from the packed range (1 when absent)
        reset: Optional reset value expression
    """

    name: str
    direction: str
    kind: Optional[str] = None
    width: int = 1
    reset: Optional[Expr] = None

    def __str__(self) -> str:
        parts = [self.direction]
        if self.kind:
            parts.append(self.kind)
        if self.width > 1:
            parts.append(f"[{self.width - 1}:0]")
        parts.append(self.name)
        text = " ".join(parts)
        if self.reset is not None:
            text += f" = {self.reset}"
        return text


@dataclass(frozen=True, slots=True)
class InterfacePort(Node):
    """Port typed by an interface (``channel ch``)."""

    name: str
    interface: str

    def __str__(self) -> str:
        return f"{self.interface} {self.name}"


@dataclass(frozen=True, slots=True)
class SignalDecl(Node):
    """Internal signal declaration ``kind [range] name [= reset];``."""

    name: str
    kind: str = "logic"
    width: int = 1
    reset: Optional[Expr] = None

    def __str__(self) -> str:
        rng = f" [{self.width - 1}:0]" if self.width > 1 else ""
        text = f"{self.kind}{rng} {self.name}"
        if self.reset is not None:
            text += f" = {self.reset}"
        return text + ";"


@dataclass(frozen=True, slots=True)
class Instance(Node):
    """Positional instantiation ``module_name instance_name (args);``."""

    module_name: str
    instance_name: str
    arguments: Tuple[Expr, ...] = ()

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.arguments)
        return f"{self.module_name} {self.instance_name}({args});"


@dataclass(frozen=True, slots=True)
class Process(Node):
    """Process block: ``always`` repeats its body, ``initial`` runs it once."""

    kind: str
    body: Statement

    def __str__(self) -> str:
        return f"{self.kind} {self.body}"


@dataclass(frozen=True, slots=True)
class ModuleDecl(Node):
    """Module declaration with ANSI header.

    Attributes:
        name: Module name
        ports: Header ports in declaration order
        items: Body items (signal declarations, instances, processes)
    """

    name: str
    ports: Tuple[Node, ...] = ()
    items: Tuple[Node, ...] = ()

    @property
    def signals(self) -> Tuple[SignalDecl, ...]:
        return tuple(i for i in self.items if isinstance(i, SignalDecl))

    @property
    def instances(self) -> Tuple[Instance, ...]:
        return tuple(i for i in self.items if isinstance(i, Instance))

    @property
    def processes(self) -> Tuple[Process, ...]:
        return tuple(i for i in self.items if isinstance(i, Process))

    def __str__(self) -> str:
        ports = ", ".join(str(p) for p in self.ports)
        body = "\n".join(f"  {item}" for item in self.items)
        return f"module {self.name}({ports});\n{body}\nendmodule"


@dataclass(frozen=True, slots=True)
class InterfaceDecl(Node):
    """Interface declaration: a named bundle of signals."""

    name: str
    ports: Tuple[Node, ...] = ()
    signals: Tuple[SignalDecl, ...] = ()

    def __str__(self) -> str:
        ports = ", ".join(str(p) for p in self.ports)
        body = "\n".join(f"  {s}" for s in self.signals)
        return f"interface {self.name}({ports});\n{body}\nendinterface"


@dataclass(frozen=True, slots=True)
class SourceText(Node):
    """Root of a parsed circuit description."""

    declarations: Tuple[Node, ...] = ()

    def find(self, name: str) -> Optional[Node]:
        """Return the module or interface declared under ``name``."""
        for decl in self.declarations:
            if decl.name == name:
                return decl
        return None

    def by_name(self) -> Dict[str, Node]:
        return {decl.name: decl for decl in self.declarations}

    def __str__(self) -> str:
        return "\n\n".join(str(d) for d in self.declarations)
