# hdl/lexer.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Lexical analyzer for the supported hardware description subset using SLY

"""Lexical analyzer for circuit descriptions.

Breaks source text into tokens for the LALR parser. Keywords outside the
supported subset that designers commonly write (``assign``, ``@``, ``#``)
are still tokenized so the parser can reject them with a precise location
instead of failing on an unknown character.

Supported Tokens:
- Keywords: module, interface, input, output, always, wait, if, randcase, ...
- Identifiers and integer literals (plain and based: ``4``, ``1'b0``, ``8'hFF``)
- Operators: || && | ^ & == != <= >= < > ! ~ + - =
- Punctuation: ( ) [ ] , ; : .
- Comments: ``// line`` and ``/* block */``, ignored
"""

from sly import Lexer

from .exceptions import ParseError, SourceLocation
from utils.logger import get_logger


def column_of(text: str, index: int) -> int:
    """Return the one-based column of ``index`` within ``text``."""
    line_start = text.rfind("\n", 0, index) + 1
    return index - line_start + 1


class HDLLexer(Lexer):
    """SLY-based lexer for the supported SystemVerilog subset.

    Attributes:
        tokens: Set of valid token types
        ignore: Characters to skip during tokenization
        ID: Identifier pattern with keyword mapping
    """

    tokens = {
        # Declarations
        "MODULE",
        "ENDMODULE",
        "INTERFACE",
        "ENDINTERFACE",
        "INPUT",
        "OUTPUT",
        "INOUT",
        "LOGIC",
        "WIRE",
        "REG",
        "BIT",
        # Processes and statements
        "ALWAYS",
        "INITIAL",
        "BEGIN",
        "END",
        "WAIT",
        "IF",
        "ELSE",
        "WHILE",
        "FOREVER",
        "RANDCASE",
        "ENDCASE",
        # Recognized only to be rejected
        "ASSIGN",
        "AT",
        "HASH",
        # Literals
        "ID",
        "NUMBER",
        # Operators
        "OROR",
        "ANDAND",
        "EQ",
        "NE",
        "LE",
        "GE",
        "LT",
        "GT",
        "NOT",
        "TILDE",
        "AND",
        "OR",
        "XOR",
        "PLUS",
        "MINUS",
        "EQUALS",
        "STAR",
        # Punctuation
        "LPAREN",
        "RPAREN",
        "LBRACKET",
        "RBRACKET",
        "COMMA",
        "SEMI",
        "COLON",
        "DOT",
    }

    # Whitespace characters to ignore (newlines are counted separately)
    ignore = " \t\r"

    ignore_comment = r"//[^\n]*"

    @_(r"/\*(.|\n)*?\*/")
    def ignore_block_comment(self, t):
        self.lineno += t.value.count("\n")

    @_(r"\n+")
    def ignore_newline(self, t):
        self.lineno += t.value.count("\n")

    # Based literals must be tried before plain decimals
    @_(r"[0-9]*'[sS]?[bBoOdDhH][0-9a-fA-FxXzZ_?]+", r"[0-9][0-9_]*")
    def NUMBER(self, t):
        """Convert literal text into a ``(value, width)`` pair."""
        t.value = self._convert_number(t)
        return t

    # Identifier pattern: starts with letter/underscore
    ID = r"[a-zA-Z_][a-zA-Z0-9_]*"

    # Keyword mapping: reassign token types for reserved words
    ID["module"] = "MODULE"
    ID["endmodule"] = "ENDMODULE"
    ID["interface"] = "INTERFACE"
    ID["endinterface"] = "ENDINTERFACE"
    ID["input"] = "INPUT"
    ID["output"] = "OUTPUT"
    ID["inout"] = "INOUT"
    ID["logic"] = "LOGIC"
    ID["wire"] = "WIRE"
    ID["reg"] = "REG"
    ID["bit"] = "BIT"
    ID["always"] = "ALWAYS"
    ID["initial"] = "INITIAL"
    ID["begin"] = "BEGIN"
    ID["end"] = "END"
    ID["wait"] = "WAIT"
    ID["if"] = "IF"
    ID["else"] = "ELSE"
    ID["while"] = "WHILE"
    ID["forever"] = "FOREVER"
    ID["randcase"] = "RANDCASE"
    ID["endcase"] = "ENDCASE"
    ID["assign"] = "ASSIGN"

    # Multi-character operators before their single-character prefixes
    OROR = r"\|\|"
    ANDAND = r"&&"
    EQ = r"=="
    NE = r"!="
    LE = r"<="
    GE = r">="
    LT = r"<"
    GT = r">"
    NOT = r"!"
    TILDE = r"~"
    AND = r"&"
    OR = r"\|"
    XOR = r"\^"
    PLUS = r"\+"
    MINUS = r"-"
    EQUALS = r"="
    STAR = r"\*"

    LPAREN = r"\("
    RPAREN = r"\)"
    LBRACKET = r"\["
    RBRACKET = r"\]"
    COMMA = r","
    SEMI = r";"
    COLON = r":"
    DOT = r"\."
    AT = r"@"
    HASH = r"\#"

    def _location(self, index: int) -> SourceLocation:
        return SourceLocation(self.lineno, column_of(self.text, index))

    def _convert_number(self, t):
        text = t.value.replace("_", "")
        if "'" not in text:
            return int(text), None

        size_text, _, based = text.partition("'")
        if based[:1] in "sS":
            based = based[1:]
        radix = {"b": 2, "o": 8, "d": 10, "h": 16}[based[0].lower()]
        digits = based[1:]

        if any(ch in "xXzZ?" for ch in digits):
            raise ParseError(
                f"Unknown or high-impedance bits are not supported in '{t.value}'",
                self._location(t.index),
            )
        try:
            value = int(digits, radix)
        except ValueError:
            raise ParseError(
                f"Invalid digits for base-{radix} literal '{t.value}'",
                self._location(t.index),
            )

        if not size_text:
            return value, None
        width = int(size_text)
        if width == 0:
            raise ParseError(f"Zero-width literal '{t.value}'", self._location(t.index))
        return value & ((1 << width) - 1), width

    def error(self, t):
        """Handle illegal characters during tokenization.

        Args:
            t: SLY token object containing error context

        Raises:
            ParseError: Always raised with character and location information
        """
        logger = get_logger()

        illegal_char = t.value[0]
        location = self._location(self.index)
        logger.debug(f"Illegal character '{illegal_char}' at {location}")

        # Skip the illegal character
        self.index += 1

        raise ParseError(f"Illegal character '{illegal_char}'", location)
