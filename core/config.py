# core/config.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Exploration settings shared by the verifier entry point and the CLI

from dataclasses import dataclass
from typing import Optional

from handshake.builder import DEFAULT_MAX_SIGNAL_WIDTH


STRATEGIES = ("bfs", "dfs")


@dataclass(frozen=True)
class ExplorerConfig:
    """Settings for one verification run.

    Attributes:
        strategy: ``bfs`` (shortest witness) or ``dfs``
        max_states: Visited-state budget; None for unbounded
        time_limit: Wall-clock budget in seconds; None for unbounded
        workers: Threads used to expand a BFS level (1 = sequential)
        progress_interval: Expanded states between progress log lines
        max_signal_width: Widest signal the model builder accepts
    """

    strategy: str = "bfs"
    max_states: Optional[int] = None
    time_limit: Optional[float] = None
    workers: int = 1
    progress_interval: int = 10000
    max_signal_width: int = DEFAULT_MAX_SIGNAL_WIDTH

    def __post_init__(self):
        if self.strategy not in STRATEGIES:
            raise ValueError(
                f"Unknown strategy '{self.strategy}', expected one of {', '.join(STRATEGIES)}"
            )
        if self.max_states is not None and self.max_states < 1:
            raise ValueError("max_states must be at least 1")
        if self.time_limit is not None and self.time_limit <= 0:
            raise ValueError("time_limit must be positive")
        if self.workers < 1:
            raise ValueError("workers must be at least 1")
        if self.progress_interval < 1:
            raise ValueError("progress_interval must be at least 1")
        if self.max_signal_width < 1:
            raise ValueError("max_signal_width must be at least 1")
