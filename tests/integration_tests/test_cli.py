# tests/integration_tests/test_cli.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Command line entry point: exit codes and printed reports

import sys

import pytest
import run_verifier


def _run(monkeypatch, *argv) -> int:
    monkeypatch.setattr(sys, "argv", ["run_verifier.py", *argv])
    return run_verifier.main()


@pytest.fixture
def write_source(tmp_path):
    def _write(text: str):
        path = tmp_path / "design.sv"
        path.write_text(text, encoding="utf-8")
        return path

    return _write


class TestExitCodes:
    """Exit code per verdict and per failure kind."""

    def test_deadlock_free(self, monkeypatch, capsys, write_source, four_phase_source):
        code = _run(monkeypatch, "-f", str(write_source(four_phase_source)), "-e", "top")

        assert code == 0
        assert "Verdict: DEADLOCK_FREE" in capsys.readouterr().out

    def test_deadlocked(self, monkeypatch, capsys, write_source, mutual_wait_source):
        code = _run(monkeypatch, "-f", str(write_source(mutual_wait_source)), "-e", "top")

        assert code == 1
        assert "Blocked components: l, r" in capsys.readouterr().out

    def test_rejected(self, monkeypatch, write_source):
        path = write_source("module top(); logic a; always a <= 1; endmodule")

        assert _run(monkeypatch, "-f", str(path), "-e", "top") == 2

    def test_inconclusive(self, monkeypatch, write_source, four_phase_source):
        path = write_source(four_phase_source)

        assert _run(monkeypatch, "-f", str(path), "-e", "top", "--max-states", "2") == 3

    def test_time_limit_is_inconclusive(self, monkeypatch, write_source):
        path = write_source(
            "module counter(); logic [7:0] n; always n = n + 1; endmodule\n"
            "module top(); counter c0(); counter c1(); counter c2(); endmodule"
        )

        assert _run(monkeypatch, "-f", str(path), "-e", "top", "--time-limit", "0.05") == 3

    def test_missing_file(self, monkeypatch, tmp_path):
        assert _run(monkeypatch, "-f", str(tmp_path / "absent.sv"), "-e", "top") == 4

    def test_undecodable_file(self, monkeypatch, tmp_path):
        path = tmp_path / "binary.sv"
        path.write_bytes(b"\xff\xfe\x00module")

        assert _run(monkeypatch, "-f", str(path), "-e", "top") == 4

    @pytest.mark.parametrize("flags", [["--workers", "0"], ["--time-limit", "0"]])
    def test_invalid_budget_is_a_usage_error(
        self, monkeypatch, write_source, four_phase_source, flags
    ):
        path = write_source(four_phase_source)

        with pytest.raises(SystemExit) as exc_info:
            _run(monkeypatch, "-f", str(path), "-e", "top", *flags)

        assert exc_info.value.code == 2


class TestOptions:
    """Strategy, worker and timing flags."""

    @pytest.mark.parametrize("flags", [["--dfs"], ["--workers", "2"], ["-v"], ["--debug"]])
    def test_flags_keep_verdict(self, monkeypatch, write_source, mutual_wait_source, flags):
        path = write_source(mutual_wait_source)

        assert _run(monkeypatch, "-f", str(path), "-e", "top", *flags) == 1

    def test_time_flag_prints_duration(self, monkeypatch, capsys, write_source, four_phase_source):
        path = write_source(four_phase_source)
        _run(monkeypatch, "-f", str(path), "-e", "top", "--time")

        assert "Verification time:" in capsys.readouterr().out

    def test_max_signal_width_flag(self, monkeypatch, write_source):
        path = write_source("module top(); logic [11:0] d; initial d = 1; endmodule")

        assert _run(monkeypatch, "-f", str(path), "-e", "top") == 2
        assert _run(monkeypatch, "-f", str(path), "-e", "top", "--max-signal-width", "12") == 0
