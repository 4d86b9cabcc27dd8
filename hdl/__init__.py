# hdl/__init__.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Front end: lexing and parsing of restricted SystemVerilog circuit descriptions

"""Parsing of circuit descriptions written in a restricted SystemVerilog subset.

The front end converts source text into an immutable abstract syntax tree of
module and interface declarations. It accepts only the documented subset and
rejects everything else with a :class:`ParseError` that names the offending
construct and its source location.

Core Functions:
    parse: Converts source text into a SourceText AST

Supported Subset:
    - ANSI-style module and interface headers
    - one instantiation per statement, positional port binding
    - no nested module or interface declarations
    - ``always``/``initial`` processes with blocking assignments, ``wait``,
      ``if``/``else``, ``while``, ``forever``, ``randcase`` and ``begin``/``end``

Example:
    >>> from hdl import parse
    >>> design = parse("module top(); logic a; always a = !a; endmodule")
    >>> design.find("top").processes[0].kind
    'always'
"""

from .exceptions import CircuitInputError, ParseError, SourceLocation, Stage
from .grammar import _HDLParser
from . import ast_nodes
from utils.logger import get_logger


def parse(source: str) -> ast_nodes.SourceText:
    """Parse circuit source text into an Abstract Syntax Tree.

    Uses a fresh parser instance for each invocation so parsing is stateless
    and safe to call from several threads.

    Args:
        source: Circuit description in the supported subset

    Returns:
        Root AST node holding every module and interface declaration

    Raises:
        ParseError: Source is malformed or uses an unsupported construct
    """
    logger = get_logger()
    logger.stage_start("parse", f"{len(source)} characters")

    parser = _HDLParser()

    try:
        result = parser.parse(source)
    except ParseError as exc:
        logger.stage_failed("parse", str(exc))
        raise

    logger.stage_done("parse", f"{len(result.declarations)} declaration(s)")
    return result


__all__ = [
    "parse",
    "ast_nodes",
    "CircuitInputError",
    "ParseError",
    "SourceLocation",
    "Stage",
]
