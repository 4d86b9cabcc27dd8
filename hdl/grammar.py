# hdl/grammar.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# LALR(1) grammar and parser for the supported hardware description subset using SLY

"""Grammar implementation for circuit descriptions using the SLY parser generator.

The parser builds :mod:`hdl.ast_nodes` trees from the token stream produced by
:class:`hdl.lexer.HDLLexer`. The accepted language is deliberately narrow:

- ANSI-style module and interface headers (ports declared inline)
- one instantiation per statement, arguments bound by position
- no module or interface declared inside another
- procedural statements built from blocking assignments only

Constructs outside the subset that designers commonly write are matched by
dedicated rules whose actions raise :class:`ParseError` with the location of
the offending construct, so the rejection names what was wrong rather than
reporting a bare syntax error.

Operator Precedence (lowest to highest):
- ``||``, ``&&``, ``|``, ``^``, ``&``
- ``==`` ``!=``, then ``<`` ``<=`` ``>`` ``>=``
- ``+`` ``-``
- unary ``!`` ``~`` ``-``
"""

from dataclasses import dataclass
from typing import Optional

from sly import Parser

from . import ast_nodes as ast
from .exceptions import ParseError, SourceLocation
from .lexer import HDLLexer, column_of
from utils.logger import get_logger


# Messages for tokens that only appear in unsupported constructs
_UNSUPPORTED_TOKENS = {
    "ASSIGN": "continuous assignments are not supported",
    "AT": "event controls are not supported",
    "HASH": "parameters and delays are not supported",
    "MODULE": "nested module declarations are not supported",
    "INTERFACE": "nested interface declarations are not supported",
    "LE": "non-blocking assignments are not supported",
}


@dataclass(frozen=True)
class _BarePort:
    """Header port written without direction or type."""

    name: str
    location: Optional[SourceLocation]


class _HDLParser(Parser):
    """SLY-based LALR(1) parser for the supported SystemVerilog subset.

    Attributes:
        tokens: Token types from HDLLexer
        precedence: Operator precedence and associativity rules
    """

    tokens = HDLLexer.tokens

    precedence = (
        ("nonassoc", "IFX"),
        ("nonassoc", "ELSE"),
        ("left", "OROR"),
        ("left", "ANDAND"),
        ("left", "OR"),
        ("left", "XOR"),
        ("left", "AND"),
        ("left", "EQ", "NE"),
        ("left", "LT", "LE", "GT", "GE"),
        ("left", "PLUS", "MINUS"),
        ("right", "NOT", "TILDE", "UMINUS"),
    )

    def __init__(self):
        self._text = ""

    # ------------------------------------------------------------------
    # Design structure
    # ------------------------------------------------------------------

    @_("design_items")
    def design(self, p):
        return ast.SourceText(tuple(p.design_items), location=self._loc(p))

    @_("design_item")
    def design_items(self, p):
        return [p.design_item]

    @_("design_items design_item")
    def design_items(self, p):
        return p.design_items + [p.design_item]

    @_("module_decl", "interface_decl")
    def design_item(self, p):
        return p[0]

    @_("MODULE ID header SEMI module_items ENDMODULE")
    def module_decl(self, p):
        return ast.ModuleDecl(
            p.ID, tuple(p.header), tuple(p.module_items), location=self._loc(p)
        )

    @_("INTERFACE ID header SEMI interface_items ENDINTERFACE")
    def interface_decl(self, p):
        return ast.InterfaceDecl(
            p.ID, tuple(p.header), tuple(p.interface_items), location=self._loc(p)
        )

    # ------------------------------------------------------------------
    # ANSI headers
    # ------------------------------------------------------------------

    @_("LPAREN port_list RPAREN")
    def header(self, p):
        return p.port_list

    @_("LPAREN RPAREN", "empty")
    def header(self, p):
        return []

    @_("port")
    def port_list(self, p):
        port = p.port
        if isinstance(port, _BarePort):
            raise ParseError(
                f"Non-ANSI port list: port '{port.name}' is declared without "
                "a direction or type in the header",
                port.location,
            )
        return [port]

    @_("port_list COMMA port")
    def port_list(self, p):
        port = p.port
        if isinstance(port, _BarePort):
            # ANSI continuation: inherit direction and type of the previous port
            previous = p.port_list[-1]
            if isinstance(previous, ast.InterfacePort):
                port = ast.InterfacePort(
                    port.name, previous.interface, location=port.location
                )
            else:
                port = ast.Port(
                    port.name,
                    previous.direction,
                    previous.kind,
                    previous.width,
                    location=port.location,
                )
        return p.port_list + [port]

    @_("direction data_type ID initializer")
    def port(self, p):
        kind, width = p.data_type
        return ast.Port(
            p.ID, p.direction, kind, width, p.initializer, location=self._loc(p)
        )

    @_("ID ID")
    def port(self, p):
        return ast.InterfacePort(p.ID1, p.ID0, location=self._loc(p))

    @_("ID")
    def port(self, p):
        return _BarePort(p.ID, self._loc(p))

    @_("INPUT", "OUTPUT", "INOUT")
    def direction(self, p):
        return p[0]

    @_("net_kind packed_range")
    def data_type(self, p):
        return p.net_kind, p.packed_range

    @_("packed_range")
    def data_type(self, p):
        return None, p.packed_range

    @_("LOGIC", "WIRE", "REG", "BIT")
    def net_kind(self, p):
        return p[0]

    @_("LBRACKET NUMBER COLON NUMBER RBRACKET")
    def packed_range(self, p):
        msb, _ = p.NUMBER0
        lsb, _ = p.NUMBER1
        return abs(msb - lsb) + 1

    @_("empty")
    def packed_range(self, p):
        return 1

    @_("EQUALS expr")
    def initializer(self, p):
        return p.expr

    @_("empty")
    def initializer(self, p):
        return None

    # ------------------------------------------------------------------
    # Module and interface bodies
    # ------------------------------------------------------------------

    @_("module_items module_item")
    def module_items(self, p):
        item = p.module_item
        return p.module_items + (list(item) if isinstance(item, list) else [item])

    @_("empty")
    def module_items(self, p):
        return []

    @_("signal_decl", "instantiation", "process", "port_decl", "nested_decl")
    def module_item(self, p):
        return p[0]

    @_("ASSIGN")
    def module_item(self, p):
        raise ParseError(
            "Unsupported construct: continuous assignments are not supported "
            "(use a process with blocking assignments)",
            self._loc(p),
        )

    @_("interface_items signal_decl")
    def interface_items(self, p):
        return p.interface_items + p.signal_decl

    @_("interface_items nested_decl")
    def interface_items(self, p):
        return p.interface_items

    @_("empty")
    def interface_items(self, p):
        return []

    @_("net_kind packed_range declarator_list SEMI")
    def signal_decl(self, p):
        return [
            ast.SignalDecl(name, p.net_kind, p.packed_range, reset, location=loc)
            for name, reset, loc in p.declarator_list
        ]

    @_("declarator")
    def declarator_list(self, p):
        return [p.declarator]

    @_("declarator_list COMMA declarator")
    def declarator_list(self, p):
        return p.declarator_list + [p.declarator]

    @_("ID initializer")
    def declarator(self, p):
        return p.ID, p.initializer, self._loc(p)

    @_("direction data_type declarator_list SEMI")
    def port_decl(self, p):
        name = p.declarator_list[0][0]
        raise ParseError(
            f"Non-ANSI port declaration of '{name}': ports must be declared "
            "in the module header",
            self._loc(p),
        )

    # The whole header is consumed so the rule reduces on the nested body's
    # first token rather than failing on '(' or ';'
    @_("MODULE ID header SEMI", "INTERFACE ID header SEMI")
    def nested_decl(self, p):
        kind = "module" if p[0] == "module" else "interface"
        raise ParseError(
            f"Nested {kind} declaration '{p.ID}' is not supported; "
            "declare it at the top level",
            self._loc(p),
        )

    # ------------------------------------------------------------------
    # Instantiation
    # ------------------------------------------------------------------

    @_("ID ID LPAREN arguments RPAREN SEMI")
    def instantiation(self, p):
        return ast.Instance(p.ID0, p.ID1, tuple(p.arguments), location=self._loc(p))

    @_("ID ID LPAREN arguments RPAREN COMMA")
    def instantiation(self, p):
        raise ParseError(
            f"Multiple instantiations per statement are not supported "
            f"(after instance '{p.ID1}' of '{p.ID0}')",
            self._loc(p),
        )

    @_("argument_list")
    def arguments(self, p):
        return p.argument_list

    @_("empty")
    def arguments(self, p):
        return []

    @_("argument")
    def argument_list(self, p):
        return [p.argument]

    @_("argument_list COMMA argument")
    def argument_list(self, p):
        return p.argument_list + [p.argument]

    @_("expr")
    def argument(self, p):
        return p.expr

    @_("DOT ID LPAREN expr RPAREN", "DOT ID LPAREN RPAREN")
    def argument(self, p):
        raise ParseError(
            f"Named port binding '.{p.ID}(...)' is not supported; "
            "bind ports by position",
            self._loc(p),
        )

    @_("DOT STAR")
    def argument(self, p):
        raise ParseError(
            "Wildcard port binding '.*' is not supported; bind ports by position",
            self._loc(p),
        )

    # ------------------------------------------------------------------
    # Processes and statements
    # ------------------------------------------------------------------

    @_("ALWAYS statement", "INITIAL statement")
    def process(self, p):
        return ast.Process(p[0], p.statement, location=self._loc(p))

    @_("ALWAYS event_control statement")
    def process(self, p):
        # event_control raises before the body is parsed
        return ast.Process("always", p.statement, location=self._loc(p))

    @_(
        "AT LPAREN event_terms RPAREN",
        "AT LPAREN STAR RPAREN",
        "AT STAR",
        "AT ID",
    )
    def event_control(self, p):
        raise ParseError(
            "Event-controlled always blocks are not supported; "
            "use 'wait (condition)' inside the process",
            self._loc(p),
        )

    @_("event_term", "event_terms event_term")
    def event_terms(self, p):
        pass

    # 'posedge clk or negedge rst' and 'a, b' lists
    @_("ID", "COMMA")
    def event_term(self, p):
        pass

    @_("HASH NUMBER", "HASH ID")
    def delay_control(self, p):
        raise ParseError(
            "Unsupported construct: delay control '#' found; "
            "parameters and delays are not supported",
            self._loc(p),
        )

    @_("lvalue EQUALS expr SEMI")
    def statement(self, p):
        return ast.Assign(p.lvalue, p.expr, location=self._loc(p))

    @_("lvalue LE expr SEMI")
    def statement(self, p):
        raise ParseError(
            f"Non-blocking assignment to '{p.lvalue}' is not supported; "
            "use a blocking assignment '='",
            self._loc(p),
        )

    @_("WAIT LPAREN expr RPAREN statement")
    def statement(self, p):
        return ast.Wait(p.expr, p.statement, location=self._loc(p))

    @_("IF LPAREN expr RPAREN statement %prec IFX")
    def statement(self, p):
        return ast.If(p.expr, p.statement, None, location=self._loc(p))

    @_("IF LPAREN expr RPAREN statement ELSE statement")
    def statement(self, p):
        return ast.If(p.expr, p.statement0, p.statement1, location=self._loc(p))

    @_("WHILE LPAREN expr RPAREN statement")
    def statement(self, p):
        return ast.While(p.expr, p.statement, location=self._loc(p))

    @_("FOREVER statement")
    def statement(self, p):
        return ast.Forever(p.statement, location=self._loc(p))

    @_("RANDCASE rand_arms ENDCASE")
    def statement(self, p):
        return ast.RandCase(tuple(p.rand_arms), location=self._loc(p))

    @_("BEGIN statements END")
    def statement(self, p):
        return ast.Block(tuple(p.statements), location=self._loc(p))

    @_("SEMI")
    def statement(self, p):
        return ast.NullStatement(location=self._loc(p))

    @_("delay_control statement")
    def statement(self, p):
        # delay_control raises before the delayed statement is parsed
        return p.statement

    @_("statements statement")
    def statements(self, p):
        return p.statements + [p.statement]

    @_("empty")
    def statements(self, p):
        return []

    @_("rand_arm")
    def rand_arms(self, p):
        return [p.rand_arm]

    @_("rand_arms rand_arm")
    def rand_arms(self, p):
        return p.rand_arms + [p.rand_arm]

    @_("NUMBER COLON statement")
    def rand_arm(self, p):
        weight, _ = p.NUMBER
        return ast.RandArm(weight, p.statement, location=self._loc(p))

    @_("ID")
    def lvalue(self, p):
        return ast.Identifier(p.ID, location=self._loc(p))

    @_("ID DOT ID")
    def lvalue(self, p):
        return ast.MemberRef(p.ID0, p.ID1, location=self._loc(p))

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    @_(
        "expr OROR expr",
        "expr ANDAND expr",
        "expr OR expr",
        "expr XOR expr",
        "expr AND expr",
        "expr EQ expr",
        "expr NE expr",
        "expr LT expr",
        "expr LE expr",
        "expr GT expr",
        "expr GE expr",
        "expr PLUS expr",
        "expr MINUS expr",
    )
    def expr(self, p):
        return ast.BinaryOp(p[1], p.expr0, p.expr1, location=self._loc(p))

    @_("NOT expr", "TILDE expr")
    def expr(self, p):
        return ast.UnaryOp(p[0], p.expr, location=self._loc(p))

    @_("MINUS expr %prec UMINUS")
    def expr(self, p):
        return ast.UnaryOp("-", p.expr, location=self._loc(p))

    @_("LPAREN expr RPAREN")
    def expr(self, p):
        return p.expr

    @_("NUMBER")
    def expr(self, p):
        value, width = p.NUMBER
        return ast.Number(value, width, location=self._loc(p))

    @_("ID")
    def expr(self, p):
        return ast.Identifier(p.ID, location=self._loc(p))

    @_("ID DOT ID")
    def expr(self, p):
        return ast.MemberRef(p.ID0, p.ID1, location=self._loc(p))

    @_("")
    def empty(self, p):
        pass

    # ------------------------------------------------------------------
    # Driver and error handling
    # ------------------------------------------------------------------

    def _loc(self, p) -> Optional[SourceLocation]:
        """Location of the first symbol of a production, if it has one."""
        try:
            return SourceLocation(p.lineno, column_of(self._text, p.index))
        except AttributeError:
            return None

    def parse(self, text: str) -> ast.SourceText:
        """Parse source text into a SourceText AST.

        Args:
            text: Circuit description to parse

        Returns:
            Root AST node holding every module and interface declaration

        Raises:
            ParseError: If the source is empty, malformed, or uses an
                unsupported construct
        """
        logger = get_logger()
        self._text = text

        if text.strip() == "":
            raise ParseError("Input source is empty.")

        try:
            result = super().parse(HDLLexer().tokenize(text))

            if result is None:
                raise ParseError("Failed to parse source (syntax error).")

            logger.debug(
                f"Successfully parsed {len(result.declarations)} declaration(s)"
            )
            return result

        except ParseError:
            logger.debug("Parse error encountered")
            raise
        except Exception as e:
            logger.debug(f"Unexpected parsing error: {e}")
            raise ParseError(f"Parse failed: {e}") from e

    def error(self, token):
        """Handle syntax errors during parsing.

        Called automatically by SLY when a token matches no grammar rule.

        Args:
            token: Problematic token or None at end of input

        Raises:
            ParseError: Always raised with the token and its location
        """
        if token is None:
            lines = self._text.split("\n")
            raise ParseError(
                "Syntax error: unexpected end of input",
                SourceLocation(len(lines), len(lines[-1]) + 1),
            )

        location = SourceLocation(token.lineno, column_of(self._text, token.index))
        text = self._text[token.index:token.end]
        reason = _UNSUPPORTED_TOKENS.get(token.type)
        if reason is not None:
            raise ParseError(f"Unsupported construct near '{text}': {reason}", location)
        raise ParseError(f"Syntax error near '{text}' (type: {token.type})", location)
