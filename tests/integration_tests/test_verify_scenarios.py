# tests/integration_tests/test_verify_scenarios.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# End-to-end verification of complete circuit descriptions

"""Integration tests running the whole pipeline from source text.

These tests exercise parse, elaborate, build_automata and explore together
through :func:`core.verify` and check:

- Verdicts of the canonical handshake scenarios
- Witness traces replaying to a deadlock on the transition system
- Rejections naming the stage and location that refused the input
- Agreement with an independent enumeration of the reachable states
- Report rendering and the timing hook
"""

from datetime import timedelta

import pytest
from hdl import parse, Stage
from netlist import elaborate
from handshake import build_automata
from core import (
    DeadlockFree,
    Deadlocked,
    ExplorerConfig,
    Inconclusive,
    RejectedInput,
    TransitionSystem,
    Verdict,
    format_result,
    verify,
)
from utils.timing import time_verification


CHOICE = """
module chooser(output logic go, output logic stop);
  initial randcase
    1: go = 1;
    1: stop = 1;
  endcase
endmodule

module waiter(input logic go, output logic done);
  initial wait (go) done = 1;
endmodule

module top();
  logic go, stop, done;
  chooser c(go, stop);
  waiter w(go, done);
endmodule
"""

COUNTER = """
module counter(output logic [2:0] n, output logic req, input logic ack);
  always begin
    wait (!ack) begin n = n + 1; req = 1; end
    wait (ack) req = 0;
  end
endmodule

module echo(input logic [2:0] n, input logic req, output logic ack);
  logic [2:0] seen;
  always begin
    wait (req) begin seen = n; ack = 1; end
    wait (!req) ack = 0;
  end
endmodule

module top();
  logic [2:0] n;
  logic req, ack;
  counter c(n, req, ack);
  echo e(n, req, ack);
endmodule
"""

PIPELINE = """
interface channel();
  logic req, ack;
endinterface

module source(channel out);
  always begin
    wait (!out.ack) out.req = 1;
    wait (out.ack) out.req = 0;
  end
endmodule

module buffer(channel in, channel out);
  always begin
    wait (in.req && !out.ack) out.req = 1;
    wait (out.ack) begin in.ack = 1; out.req = 0; end
    wait (!in.req && !out.ack) in.ack = 0;
  end
endmodule

module sink(channel in);
  always begin
    wait (in.req) in.ack = 1;
    wait (!in.req) in.ack = 0;
  end
endmodule

module top();
  channel a();
  channel b();
  source s(a);
  buffer u(a, b);
  sink k(b);
endmodule
"""

SCENARIOS = [
    ("mutual_wait_source", "top", Verdict.DEADLOCKED),
    ("four_phase_source", "top", Verdict.DEADLOCK_FREE),
    ("cyclic_wait_source", "ring", Verdict.DEADLOCKED),
    ("channel_source", "top", Verdict.DEADLOCK_FREE),
]


def _reachable_deadlocks(source: str, entry: str):
    """Enumerate every reachable state directly and collect the deadlocks."""
    system = TransitionSystem(build_automata(elaborate(parse(source), entry)))
    seen = {system.initial_state()}
    pending = [system.initial_state()]
    deadlocks = set()
    while pending:
        state = pending.pop()
        successors = [system.fire(state, t) for t in system.enabled(state)]
        if not successors and not system.is_terminated(state):
            deadlocks.add(state)
        for nxt in successors:
            if nxt not in seen:
                seen.add(nxt)
                pending.append(nxt)
    return seen, deadlocks


class TestCanonicalScenarios:
    """Verdicts and witnesses of the reference designs."""

    def test_mutual_wait_deadlocks(self, mutual_wait_source):
        result = verify(mutual_wait_source, "top")

        assert isinstance(result, Deadlocked)
        assert len(result.trace) == 2
        assert result.blocked_components == ("l", "r")

    def test_four_phase_is_deadlock_free(self, four_phase_source):
        result = verify(four_phase_source, "top")

        assert isinstance(result, DeadlockFree)
        assert result.verdict.is_conclusive()

    def test_cyclic_wait_deadlocks_immediately(self, cyclic_wait_source):
        result = verify(cyclic_wait_source, "ring")

        assert isinstance(result, Deadlocked)
        assert len(result.trace) == 0
        assert result.blocked_components == ("a", "b", "c")

    def test_interface_channel_is_deadlock_free(self, channel_source):
        assert verify(channel_source, "top").verdict == Verdict.DEADLOCK_FREE

    def test_two_stage_pipeline_is_deadlock_free(self):
        result = verify(PIPELINE, "top")

        assert isinstance(result, DeadlockFree)
        assert result.dormant_components == ()

    def test_data_handshake_is_deadlock_free(self):
        result = verify(COUNTER, "top")

        assert isinstance(result, DeadlockFree)
        assert result.stats.states > 8

    def test_deadlock_on_one_randcase_branch(self):
        result = verify(CHOICE, "top")

        assert isinstance(result, Deadlocked)
        assert result.blocked_components == ("w",)
        assert [str(step.transition) for step in result.trace] == [
            "randcase arm 1: stop = 1;",
            "stop = 1;",
        ]

    @pytest.mark.parametrize("fixture, entry, expected", SCENARIOS)
    def test_repeated_verification_is_identical(self, fixture, entry, expected, request):
        source = request.getfixturevalue(fixture)
        first = verify(source, entry)
        second = verify(source, entry)

        assert first.verdict == second.verdict == expected
        if isinstance(first, Deadlocked):
            assert first.trace == second.trace
            assert first.blocked_components == second.blocked_components


class TestWitnessReplay:
    """Every reported witness is a real path to a deadlock state."""

    @pytest.mark.parametrize(
        "source, entry",
        [("mutual_wait_source", "top"), ("cyclic_wait_source", "ring"), (CHOICE, "top")],
    )
    def test_witness_replays_to_deadlock(self, source, entry, request):
        if source.endswith("_source"):
            source = request.getfixturevalue(source)
        result = verify(source, entry)
        system = TransitionSystem(build_automata(elaborate(parse(source), entry)))

        state = system.initial_state()
        assert state == result.trace.initial
        for step in result.trace:
            state = system.fire(state, step.transition)
            assert state == step.state

        assert system.is_deadlock(state)
        assert system.blocked_components(state) == result.blocked_components


class TestAgreementWithEnumeration:
    """Verdicts match a direct enumeration of the reachable states."""

    @pytest.mark.parametrize(
        "source, entry",
        [
            ("mutual_wait_source", "top"),
            ("four_phase_source", "top"),
            ("cyclic_wait_source", "ring"),
            ("channel_source", "top"),
            (CHOICE, "top"),
            (COUNTER, "top"),
            (PIPELINE, "top"),
        ],
    )
    @pytest.mark.parametrize("strategy", ["bfs", "dfs"])
    def test_verdict_matches_enumeration(self, source, entry, strategy, request):
        if source.endswith("_source"):
            source = request.getfixturevalue(source)
        seen, deadlocks = _reachable_deadlocks(source, entry)
        result = verify(source, entry, ExplorerConfig(strategy=strategy))

        if deadlocks:
            assert isinstance(result, Deadlocked)
            assert result.trace.final_state in deadlocks
        else:
            assert isinstance(result, DeadlockFree)
            assert result.stats.states == len(seen)


class TestRejections:
    """Front-stage rejections surface as RejectedInput."""

    def test_named_binding_rejected_by_parser(self):
        source = "module top();\n  logic a;\n  worker w(.req(a));\nendmodule"
        result = verify(source, "top")

        assert isinstance(result, RejectedInput)
        assert result.verdict == Verdict.REJECTED
        assert result.stage == Stage.PARSE
        assert result.location.line == 3
        assert "Named port binding" in result.detail

    def test_missing_arguments_rejected_by_elaborator(self):
        source = """
        module w(input logic a, input logic b, output logic c);
        endmodule
        module top();
          logic x;
          w inst(x);
        endmodule
        """
        result = verify(source, "top")

        assert isinstance(result, RejectedInput)
        assert result.stage == Stage.ELABORATION
        assert "expects 3 port argument(s), got 1" in result.detail

    def test_unknown_entry_module(self, four_phase_source):
        result = verify(four_phase_source, "missing")

        assert isinstance(result, RejectedInput)
        assert result.stage == Stage.ELABORATION

    def test_wide_signal_rejected_by_model_builder(self):
        source = "module top(); logic [11:0] data; initial data = 12'hFFF; endmodule"
        result = verify(source, "top")

        assert isinstance(result, RejectedInput)
        assert result.stage == Stage.MODEL

    def test_wider_signals_accepted_when_configured(self):
        source = "module top(); logic [11:0] data; initial data = 12'hFFF; endmodule"
        result = verify(source, "top", ExplorerConfig(max_signal_width=12))

        assert isinstance(result, DeadlockFree)

    def test_state_budget_gives_inconclusive(self):
        result = verify(COUNTER, "top", ExplorerConfig(max_states=2))

        assert isinstance(result, Inconclusive)


class TestReporting:
    """Rendered reports and the timing hook."""

    def test_deadlock_report(self, mutual_wait_source):
        report = format_result(verify(mutual_wait_source, "top"))

        assert report.startswith("Verdict: DEADLOCKED")
        assert "Blocked components: l, r" in report
        assert "Witness (2 step(s)):" in report
        assert "  1. l/initial#0: req = 0; (line 4)" in report
        assert "l/initial#0 is stuck at: wait (ack) req = 1;" in report
        assert "waiting on: ack" in report
        assert "driven by: r" in report

    def test_deadlock_free_report(self, four_phase_source):
        report = format_result(verify(four_phase_source, "top"))

        assert report.startswith("Verdict: DEADLOCK_FREE")
        assert "Explored 4 state(s)" in report

    def test_rejection_report(self):
        report = format_result(verify("module top(); logic a; assign a = 1; endmodule", "top"))

        assert report.startswith("Verdict: REJECTED")
        assert "ParseError at line 1" in report
        assert "continuous assignments" in report

    def test_inconclusive_report(self):
        report = format_result(verify(COUNTER, "top", ExplorerConfig(max_states=2)))

        assert "Reason: state budget of 2 state(s) exhausted" in report

    def test_time_verification(self, four_phase_source):
        elapsed = time_verification(verify, four_phase_source, "top")

        assert isinstance(elapsed, timedelta)
        assert elapsed.total_seconds() >= 0
