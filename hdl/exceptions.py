# hdl/exceptions.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Input rejection exceptions shared by every front-end stage

"""Domain-specific exceptions for rejecting circuit descriptions.

Each pipeline stage that can refuse its input raises a subclass of
:class:`CircuitInputError`. The exception carries the stage that rejected the
input and, whenever one is known, the source location of the offending
construct so callers can point the designer at the exact line.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Stage(Enum):
    """Pipeline stage at which a circuit description was rejected."""

    PARSE = "ParseError"
    ELABORATION = "ElaborationError"
    MODEL = "ModelError"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """One-based line and column of a construct in the source text."""

    line: int
    column: int

    def __str__(self) -> str:
        return f"line {self.line}, column {self.column}"


class CircuitInputError(RuntimeError):
    """Base class for all input rejections.

    Attributes:
        stage: Stage that rejected the input
        message: Human-readable description without location
        location: Source location of the offending construct, if known
    """

    stage: Stage = Stage.PARSE

    def __init__(self, message: str, location: Optional[SourceLocation] = None):
        self.message = message
        self.location = location
        if location is not None:
            super().__init__(f"{message} ({location})")
        else:
            super().__init__(message)


class ParseError(CircuitInputError):
    """Exception raised when the source text is malformed or uses syntax
    outside the supported subset.

    Parsing halts on the first error; no partial syntax tree is returned.
    """

    stage = Stage.PARSE
