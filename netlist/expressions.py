# netlist/expressions.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Width-aware expressions resolved to flat signal indices

"""Compiled expressions over the flat signal valuation.

Source expressions refer to signals by local, scoped names. Before
exploration every name is resolved exactly once to a flat signal index, and
the expression is turned into a small immutable tree that evaluates directly
against a valuation tuple. Values are unsigned integers masked to the width
of the sub-expression, following SystemVerilog sizing for the supported
operators:

- logical and relational operators produce 1-bit results
- bitwise and arithmetic operators take the wider operand width
- unsized literals are 32 bits wide
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, FrozenSet, Sequence

from hdl import ast_nodes as ast


UNSIZED_WIDTH = 32

_LOGICAL_OPS = {"||", "&&"}
_RELATIONAL_OPS = {"==", "!=", "<", "<=", ">", ">="}
_BITWISE_OPS = {"&", "|", "^", "+", "-"}


def mask(width: int) -> int:
    """All-ones mask for ``width`` bits."""
    return (1 << width) - 1


@dataclass(frozen=True, slots=True)
class Compiled:
    """Base class for compiled expressions."""

    width: int

    def evaluate(self, values: Sequence[int]) -> int:
        raise NotImplementedError

    def reads(self) -> FrozenSet[int]:
        """Flat indices of every signal the expression reads."""
        raise NotImplementedError

    def holds(self, values: Sequence[int]) -> bool:
        """Truth value used for guards: any non-zero result holds."""
        return self.evaluate(values) != 0


@dataclass(frozen=True, slots=True)
class Const(Compiled):
    value: int

    def evaluate(self, values: Sequence[int]) -> int:
        return self.value

    def reads(self) -> FrozenSet[int]:
        return frozenset()

    def __str__(self) -> str:
        return str(self.value)


TRUE = Const(1, 1)


@dataclass(frozen=True, slots=True)
class SignalRead(Compiled):
    index: int
    name: str

    def evaluate(self, values: Sequence[int]) -> int:
        return values[self.index]

    def reads(self) -> FrozenSet[int]:
        return frozenset((self.index,))

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class Unary(Compiled):
    op: str
    operand: Compiled

    def evaluate(self, values: Sequence[int]) -> int:
        v = self.operand.evaluate(values)
        if self.op == "!":
            return 0 if v else 1
        if self.op == "~":
            return ~v & mask(self.width)
        return -v & mask(self.width)

    def reads(self) -> FrozenSet[int]:
        return self.operand.reads()

    def __str__(self) -> str:
        return f"{self.op}{self.operand}"


@dataclass(frozen=True, slots=True)
class Binary(Compiled):
    op: str
    left: Compiled
    right: Compiled

    def evaluate(self, values: Sequence[int]) -> int:
        op = self.op
        if op == "&&":
            return 1 if self.left.evaluate(values) and self.right.evaluate(values) else 0
        if op == "||":
            return 1 if self.left.evaluate(values) or self.right.evaluate(values) else 0

        a = self.left.evaluate(values)
        b = self.right.evaluate(values)
        if op == "==":
            return int(a == b)
        if op == "!=":
            return int(a != b)
        if op == "<":
            return int(a < b)
        if op == "<=":
            return int(a <= b)
        if op == ">":
            return int(a > b)
        if op == ">=":
            return int(a >= b)

        m = mask(self.width)
        if op == "&":
            return a & b
        if op == "|":
            return a | b
        if op == "^":
            return a ^ b
        if op == "+":
            return (a + b) & m
        if op == "-":
            return (a - b) & m
        raise ValueError(f"Unknown binary operator: {op}")

    def reads(self) -> FrozenSet[int]:
        return self.left.reads() | self.right.reads()

    def __str__(self) -> str:
        return f"({self.left} {self.op} {self.right})"


Resolver = Callable[[ast.Expr], SignalRead]


class ExpressionCompiler:
    """Compiles AST expressions into :class:`Compiled` trees.

    Name resolution is delegated to ``resolve``, which maps an
    :class:`~hdl.ast_nodes.Identifier` or :class:`~hdl.ast_nodes.MemberRef`
    to a :class:`SignalRead` or raises the stage-specific error.
    """

    def __init__(self, resolve: Resolver):
        self._resolve = resolve

    def compile(self, expr: ast.Expr) -> Compiled:
        return expr.accept(self)

    def visit_number(self, n: ast.Number) -> Compiled:
        width = n.width if n.width is not None else UNSIZED_WIDTH
        return Const(width, n.value & mask(width))

    def visit_identifier(self, n: ast.Identifier) -> Compiled:
        return self._resolve(n)

    def visit_member(self, n: ast.MemberRef) -> Compiled:
        return self._resolve(n)

    def visit_unary(self, n: ast.UnaryOp) -> Compiled:
        operand = n.operand.accept(self)
        width = 1 if n.op == "!" else operand.width
        return Unary(width, n.op, operand)

    def visit_binary(self, n: ast.BinaryOp) -> Compiled:
        left = n.left.accept(self)
        right = n.right.accept(self)
        if n.op in _LOGICAL_OPS or n.op in _RELATIONAL_OPS:
            width = 1
        elif n.op in _BITWISE_OPS:
            width = max(left.width, right.width)
        else:
            raise ValueError(f"Unknown binary operator: {n.op}")
        return Binary(width, n.op, left, right)


def compile_expression(expr: ast.Expr, resolve: Resolver) -> Compiled:
    """Compile ``expr`` resolving names through ``resolve``."""
    return ExpressionCompiler(resolve).compile(expr)


def references(expr: ast.Expr) -> list:
    """List the Identifier/MemberRef nodes an AST expression mentions."""
    if isinstance(expr, (ast.Identifier, ast.MemberRef)):
        return [expr]
    if isinstance(expr, ast.UnaryOp):
        return references(expr.operand)
    if isinstance(expr, ast.BinaryOp):
        return references(expr.left) + references(expr.right)
    return []
