# tests/hdl_tests/test_parser_basic.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Basic parser test suite for module, interface and statement structure

"""Test suite for parsing well-formed circuit descriptions.

Covers ANSI headers (including inherited port declarations), signal
declarations, positional instantiations, every statement form, operator
precedence, and printing a tree back to parseable source.
"""

import pytest
from hdl import parse
from hdl import ast_nodes as ast
from utils.logger import get_logger


def _process_body(statement_text: str) -> ast.Statement:
    """Parse a single statement wrapped in an always block."""
    design = parse(
        f"module m(); logic [3:0] a, b; logic c; always {statement_text} endmodule"
    )
    return design.find("m").processes[0].body


def _expression(text: str) -> ast.Expr:
    return _process_body(f"a = {text};").value


class TestParserStructure:
    """Test cases for declarations and hierarchy."""

    def setup_method(self):
        self.logger = get_logger()

    def test_ansi_header_ports(self):
        design = parse(
            "module m(input logic [3:0] d, output logic req = 1, input a, b);\n"
            "endmodule"
        )
        ports = design.find("m").ports

        assert [p.name for p in ports] == ["d", "req", "a", "b"]
        assert ports[0] == ast.Port("d", "input", "logic", 4)
        assert ports[1].reset == ast.Number(1)
        assert ports[2] == ast.Port("a", "input", None, 1)
        # Bare names after a typed port inherit its declaration
        assert ports[3] == ast.Port("b", "input", None, 1)

    def test_inherited_interface_port(self):
        design = parse("module m(channel left, right); endmodule")
        ports = design.find("m").ports

        assert ports == (
            ast.InterfacePort("left", "channel"),
            ast.InterfacePort("right", "channel"),
        )

    def test_header_forms(self):
        design = parse("module a; endmodule\nmodule b(); endmodule")

        assert design.find("a").ports == ()
        assert design.find("b").ports == ()

    def test_signal_declarations(self):
        design = parse("module m(); logic x, y = 1'b1; wire [7:0] bus; endmodule")
        signals = design.find("m").signals

        assert signals == (
            ast.SignalDecl("x", "logic", 1),
            ast.SignalDecl("y", "logic", 1, ast.Number(1, 1)),
            ast.SignalDecl("bus", "wire", 8),
        )

    def test_descending_and_ascending_ranges(self):
        design = parse("module m(); logic [0:3] up; logic [3:0] down; endmodule")

        assert [s.width for s in design.find("m").signals] == [4, 4]

    def test_instantiation_arguments(self):
        design = parse(
            "module top(); logic r; channel ch(); worker w(r, ch.ack, 1'b0); endmodule"
        )
        instances = design.find("top").instances

        assert instances[0] == ast.Instance("channel", "ch", ())
        assert instances[1] == ast.Instance(
            "worker",
            "w",
            (ast.Identifier("r"), ast.MemberRef("ch", "ack"), ast.Number(0, 1)),
        )

    def test_interface_declaration(self):
        design = parse("interface channel(); logic req, ack; logic [1:0] data; endinterface")
        decl = design.find("channel")

        assert isinstance(decl, ast.InterfaceDecl)
        assert [s.name for s in decl.signals] == ["req", "ack", "data"]
        assert decl.signals[2].width == 2

    def test_processes_keep_declaration_order(self):
        design = parse("module m(); logic a; initial a = 1; always a = 0; endmodule")

        assert [p.kind for p in design.find("m").processes] == ["initial", "always"]

    def test_locations_are_recorded(self):
        design = parse("\n\nmodule m();\n  logic a;\n  always a = 1;\nendmodule")
        module = design.find("m")

        assert module.location.line == 3
        assert module.signals[0].location.line == 4
        assert module.processes[0].location.line == 5


class TestParserStatements:
    """Test cases for statement forms and expressions."""

    def test_blocking_assignment(self):
        assert _process_body("a = b;") == ast.Assign(ast.Identifier("a"), ast.Identifier("b"))

    def test_member_assignment(self):
        body = _process_body("ch.req = 1;")

        assert body == ast.Assign(ast.MemberRef("ch", "req"), ast.Number(1))

    def test_wait_with_assignment_group(self):
        body = _process_body("wait (c) begin a = 1; b = a; end")

        assert isinstance(body, ast.Wait)
        assert isinstance(body.body, ast.Block)
        assert body.body.is_assignment_group()

    def test_wait_without_body(self):
        body = _process_body("wait (c);")

        assert body == ast.Wait(ast.Identifier("c"), ast.NullStatement())

    def test_dangling_else_binds_to_inner_if(self):
        body = _process_body("if (a) if (b) c = 1; else c = 0;")

        assert body.else_branch is None
        assert isinstance(body.then_branch, ast.If)
        assert body.then_branch.else_branch == ast.Assign(ast.Identifier("c"), ast.Number(0))

    def test_loops(self):
        body = _process_body("begin while (c) a = a + 1; forever wait (c) b = 0; end")

        assert isinstance(body.statements[0], ast.While)
        assert isinstance(body.statements[1], ast.Forever)

    def test_randcase_arms(self):
        body = _process_body("randcase 1: a = 1; 0: a = 2; 3: begin end endcase")

        assert [arm.weight for arm in body.arms] == [1, 0, 3]
        assert body.arms[2].body == ast.Block(())

    PRECEDENCE_CASES = [
        ("a || b && c", "(a || (b && c))"),
        ("a | b ^ c & d", "(a | (b ^ (c & d)))"),
        ("a == b < c", "(a == (b < c))"),
        ("a + b == c - 1", "((a + b) == (c - 1))"),
        ("a - b - c", "((a - b) - c)"),
        ("!a && ~b", "(!a && ~b)"),
        ("-a + b", "(-a + b)"),
        ("(a || b) && c", "((a || b) && c)"),
        ("a >= 4'd3", "(a >= 4'd3)"),
    ]

    @pytest.mark.parametrize("text, expected", PRECEDENCE_CASES)
    def test_operator_precedence(self, text, expected):
        assert str(_expression(text)) == expected


class TestParserRoundTrip:
    """Printing a tree yields source that parses back to an equal tree."""

    SOURCES = [
        "module m(input logic [3:0] d, output logic q = 1'b0); endmodule",
        "interface channel(); logic req, ack; endinterface",
        "module top(); channel ch(); worker w(ch, 1'b1); endmodule",
        "module m(); logic a, b; always begin wait ((a == 1)) b = 1; wait (!a); end endmodule",
        "module m(); logic a; initial if (a) a = 0; else begin end endmodule",
        "module m(); logic a; always randcase 1: a = 1; 2: ; endcase endmodule",
        "module m(); logic [1:0] a; initial while (a != 3) a = a + 1; endmodule",
    ]

    @pytest.mark.parametrize("source", SOURCES)
    def test_round_trip(self, source):
        design = parse(source)
        reparsed = parse(str(design))

        assert reparsed == design
