# core/diagnostics.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Human-readable rendering of verification results

from typing import List

from .verdict import (
    DeadlockFree,
    Deadlocked,
    Inconclusive,
    RejectedInput,
    VerificationResult,
)


def format_trace(result: Deadlocked) -> List[str]:
    """One line per step: component, statement, source line and new valuation."""
    trace = result.trace
    lines = [f"  0. initial: {trace.render_state(trace.initial)}"]
    for number, step in enumerate(trace, start=1):
        t = step.transition
        automaton = trace.automata[t.automaton] if trace.automata else str(t.automaton)
        where = f" (line {t.location.line})" if t.location is not None else ""
        lines.append(f"  {number}. {automaton}: {t}{where}")
        lines.append(f"      -> {trace.render_state(step.state)}")
    return lines


def format_result(result: VerificationResult) -> str:
    """Render any verification result as a multi-line report."""
    lines = [f"Verdict: {result.verdict}"]

    if isinstance(result, DeadlockFree):
        lines.append(f"Explored {result.stats}")
        if result.dormant_components:
            lines.append(
                "Dormant components (no transition ever fired): "
                + ", ".join(result.dormant_components)
            )

    elif isinstance(result, Deadlocked):
        lines.append(f"Blocked components: {', '.join(result.blocked_components)}")
        lines.append(f"Witness ({len(result.trace)} step(s)):")
        lines.extend(format_trace(result))
        for w in result.waiting:
            lines.append(f"{w.automaton} is stuck at: {w.label}")
            if w.guards:
                lines.append(f"    waiting on: {' | '.join(w.guards)}")
            if w.drivers:
                lines.append(f"    driven by: {', '.join(w.drivers)}")
        lines.append(f"Explored {result.stats}")

    elif isinstance(result, RejectedInput):
        where = f" at {result.location}" if result.location is not None else ""
        lines.append(f"{result.stage}{where}: {result.detail}")

    elif isinstance(result, Inconclusive):
        lines.append(f"Reason: {result.reason}")
        lines.append(f"Explored {result.stats}")

    return "\n".join(lines)
