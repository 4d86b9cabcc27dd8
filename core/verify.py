# core/verify.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Verification entry point: source text in, verification result out

from typing import Optional

from hdl import parse
from hdl.exceptions import CircuitInputError
from netlist import elaborate
from handshake import build_automata
from utils.logger import get_logger
from .config import ExplorerConfig
from .explorer import explore
from .transition_system import TransitionSystem
from .verdict import RejectedInput, VerificationResult


def verify(
    source_text: str, entry_module: str, config: Optional[ExplorerConfig] = None
) -> VerificationResult:
    """Check a circuit description for reachable deadlocks.

    Runs parse, elaborate, build_automata and explore in sequence. The first
    stage that rejects the input ends the run with a :class:`RejectedInput`
    naming that stage; other exceptions propagate unchanged.

    Args:
        source_text: Circuit description in the supported subset
        entry_module: Name of the top-level module
        config: Strategy and budgets (defaults to unbounded BFS)

    Returns:
        DeadlockFree, Deadlocked, RejectedInput or Inconclusive
    """
    logger = get_logger()
    config = config or ExplorerConfig()

    try:
        design = parse(source_text)
        netlist = elaborate(design, entry_module)
        model = build_automata(netlist, config.max_signal_width)
    except CircuitInputError as exc:
        result = RejectedInput(exc.stage, exc.message, exc.location)
        logger.final_verdict(f"{result.verdict} ({exc.stage}: {exc})")
        return result

    result = explore(TransitionSystem(model), config=config)
    logger.final_verdict(str(result.verdict))
    return result
