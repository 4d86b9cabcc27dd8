# tests/hdl_tests/test_lexer_tokens.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Test suite for lexer tokenization and error handling

"""Test suite for the circuit description lexer.

Verifies keyword recognition, literal conversion into ``(value, width)``
pairs, comment handling and rejection of illegal input.
"""

import pytest
from hdl.lexer import HDLLexer
from hdl.exceptions import ParseError
from utils.logger import get_logger


class TestHDLLexer:
    """Test cases for lexer tokenization and error handling."""

    def setup_method(self):
        """Initialize lexer for each test method."""
        self.lexer = HDLLexer()
        self.logger = get_logger()

    def _tokenize_to_types(self, text: str) -> list[str]:
        self.logger.debug(f"Tokenizing: '{text}'")
        return [token.type for token in self.lexer.tokenize(text)]

    VALID_TOKENIZATION_CASES = [
        ("module endmodule", ["MODULE", "ENDMODULE"]),
        ("interface endinterface", ["INTERFACE", "ENDINTERFACE"]),
        ("input output inout", ["INPUT", "OUTPUT", "INOUT"]),
        ("logic wire reg bit", ["LOGIC", "WIRE", "REG", "BIT"]),
        ("always initial begin end", ["ALWAYS", "INITIAL", "BEGIN", "END"]),
        ("wait if else while forever", ["WAIT", "IF", "ELSE", "WHILE", "FOREVER"]),
        ("randcase endcase", ["RANDCASE", "ENDCASE"]),
        # Keyword-identifier boundaries
        ("modules", ["ID"]),
        ("wait_ack", ["ID"]),
        ("Module", ["ID"]),
        # Operators, longest match first
        ("a || b && c", ["ID", "OROR", "ID", "ANDAND", "ID"]),
        ("a == b != c", ["ID", "EQ", "ID", "NE", "ID"]),
        ("a <= b >= c < d > e", ["ID", "LE", "ID", "GE", "ID", "LT", "ID", "GT", "ID"]),
        ("!a ~b -c", ["NOT", "ID", "TILDE", "ID", "MINUS", "ID"]),
        ("a = b + c ^ d | e & f", ["ID", "EQUALS", "ID", "PLUS", "ID", "XOR", "ID", "OR", "ID", "AND", "ID"]),
        # Punctuation
        ("ch.req[3:0];", ["ID", "DOT", "ID", "LBRACKET", "NUMBER", "COLON", "NUMBER", "RBRACKET", "SEMI"]),
        ("(a, b)", ["LPAREN", "ID", "COMMA", "ID", "RPAREN"]),
        (".*", ["DOT", "STAR"]),
        # Tokens only recognized to be rejected by the parser
        ("assign @ #", ["ASSIGN", "AT", "HASH"]),
        # Comments and whitespace
        ("a // comment\n b", ["ID", "ID"]),
        ("a /* block\n comment */ b", ["ID", "ID"]),
        (" \t\r\n ", []),
    ]

    @pytest.mark.parametrize("input_text, expected_types", VALID_TOKENIZATION_CASES)
    def test_valid_tokenization(self, input_text, expected_types):
        actual_types = self._tokenize_to_types(input_text)

        assert actual_types == expected_types, (
            f"Tokenization mismatch for '{input_text}':\n"
            f"  Expected: {expected_types}\n"
            f"  Got:      {actual_types}"
        )

    NUMBER_CASES = [
        ("42", (42, None)),
        ("1_000", (1000, None)),
        ("1'b0", (0, 1)),
        ("1'b1", (1, 1)),
        ("4'b1010", (10, 4)),
        ("8'hFF", (255, 8)),
        ("8'hff", (255, 8)),
        ("3'o7", (7, 3)),
        ("4'd9", (9, 4)),
        ("'h10", (16, None)),
        # Sized literals are truncated to their width
        ("2'd7", (3, 2)),
        ("4'sd3", (3, 4)),
    ]

    @pytest.mark.parametrize("text, expected", NUMBER_CASES)
    def test_number_conversion(self, text, expected):
        tokens = list(self.lexer.tokenize(text))

        assert len(tokens) == 1
        assert tokens[0].type == "NUMBER"
        assert tokens[0].value == expected

    def test_line_numbers_are_tracked(self):
        tokens = list(self.lexer.tokenize("a\n/* x\n y */\nb // c\n\nd"))

        assert [(t.value, t.lineno) for t in tokens] == [("a", 1), ("b", 4), ("d", 6)]

    INVALID_CASES = [
        ("a $ b", "Illegal character '$'"),
        ("4'bx01", "Unknown or high-impedance"),
        ("1'bz", "Unknown or high-impedance"),
        ("4'b102", "Invalid digits"),
        ("0'b0", "Zero-width literal"),
    ]

    @pytest.mark.parametrize("text, fragment", INVALID_CASES)
    def test_invalid_input_raises_parse_error(self, text, fragment):
        with pytest.raises(ParseError) as exc_info:
            list(self.lexer.tokenize(text))

        assert fragment in str(exc_info.value)
        assert exc_info.value.location is not None

    def test_illegal_character_location(self):
        with pytest.raises(ParseError) as exc_info:
            list(self.lexer.tokenize("module m();\n  logic $x;"))

        assert exc_info.value.location.line == 2
        assert exc_info.value.location.column == 9
