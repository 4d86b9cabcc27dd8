# core/explorer.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Explicit-state search for reachable deadlock states

"""Deadlock exploration over the composed transition system.

Visited states live in an arena: parallel lists hold each state's packed
code, the arena index of its parent and the transition that reached it,
while a dict maps codes to arena indices. The frontier is an explicit deque
of arena indices (FIFO for breadth-first, LIFO for depth-first), so deep
state spaces never hit the recursion limit.

With ``workers > 1`` a breadth-first search expands each level in chunks on
a thread pool and then merges the successor lists into the arena in
frontier order. Insertion order, and therefore the verdict and witness, is
the same as in the sequential search.
"""

from __future__ import annotations
import time
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from typing import Deque, Dict, List, Optional, Set, Tuple

from handshake.automaton import GuardedTransition
from utils.logger import get_logger
from .config import ExplorerConfig
from .state import GlobalState
from .trace import Trace, TraceStep
from .transition_system import TransitionSystem
from .verdict import (
    DeadlockFree,
    Deadlocked,
    ExplorationStats,
    Inconclusive,
    VerificationResult,
)

# States per task handed to a worker thread
CHUNK_SIZE = 256


class _BudgetExhausted(Exception):
    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class Explorer:
    """One search over a transition system; not reusable across runs."""

    def __init__(self, system: TransitionSystem, config: Optional[ExplorerConfig] = None):
        self.system = system
        self.config = config or ExplorerConfig()
        self.codec = system.codec
        self.logger = get_logger()

        self._codes: List[int] = []
        self._parents: List[int] = []
        self._via: List[Optional[GuardedTransition]] = []
        self._depths: List[int] = []
        self._index: Dict[int, int] = {}

        self._fired: Set[int] = set()
        self._transitions = 0
        self._expanded = 0
        self._start = 0.0

    # ------------------------------------------------------------------
    # Arena
    # ------------------------------------------------------------------

    def _add(self, code: int, parent: int, via: Optional[GuardedTransition]) -> Optional[int]:
        """Insert a state if absent and return its new arena index."""
        if code in self._index:
            return None
        limit = self.config.max_states
        if limit is not None and len(self._codes) >= limit:
            raise _BudgetExhausted(f"state budget of {limit} state(s) exhausted")
        sid = len(self._codes)
        self._index[code] = sid
        self._codes.append(code)
        self._parents.append(parent)
        self._via.append(via)
        self._depths.append(self._depths[parent] + 1 if parent >= 0 else 0)
        return sid

    def _check_time(self) -> None:
        limit = self.config.time_limit
        if limit is not None and time.monotonic() - self._start > limit:
            raise _BudgetExhausted(f"time limit of {limit}s exceeded")

    def _stats(self) -> ExplorationStats:
        return ExplorationStats(
            states=len(self._codes),
            transitions=self._transitions,
            max_depth=max(self._depths, default=0),
            elapsed=time.monotonic() - self._start,
        )

    def _progress(self, frontier: int) -> None:
        self._expanded += 1
        if self._expanded % self.config.progress_interval == 0:
            depth = max(self._depths, default=0)
            self.logger.exploration_progress(len(self._codes), frontier, depth)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def run(self, initial_state: Optional[GlobalState] = None) -> VerificationResult:
        self._start = time.monotonic()
        initial = initial_state if initial_state is not None else self.system.initial_state()
        self.logger.debug(f"Initial state: {self.system.describe(initial)}")

        try:
            self._add(self.codec.encode(initial), -1, None)
            if self.config.workers > 1 and self.config.strategy == "bfs":
                deadlock = self._search_levels()
            else:
                if self.config.workers > 1:
                    self.logger.debug("Parallel expansion only applies to bfs; searching sequentially")
                deadlock = self._search()
        except _BudgetExhausted as exc:
            stats = self._stats()
            self.logger.budget_exhausted(exc.reason)
            return Inconclusive(exc.reason, stats)

        stats = self._stats()
        if deadlock is not None:
            return self._deadlocked(deadlock, stats)

        self.logger.debug(f"Explored {stats}")
        return DeadlockFree(stats, self._dormant_components())

    def _search(self) -> Optional[int]:
        frontier: Deque[int] = deque([0])
        pop = frontier.popleft if self.config.strategy == "bfs" else frontier.pop

        while frontier:
            self._check_time()
            sid = pop()
            self._progress(len(frontier))
            state = self.codec.decode(self._codes[sid])

            successors = self.system.successors(state)
            if not successors:
                if not self.system.is_terminated(state):
                    return sid
                continue

            for t, nxt in successors:
                self._transitions += 1
                self._fired.add(t.automaton)
                new = self._add(self.codec.encode(nxt), sid, t)
                if new is not None:
                    frontier.append(new)
        return None

    def _expand(self, chunk: List[Tuple[int, int]]) -> List[Tuple[int, bool, List[Tuple[GuardedTransition, int]]]]:
        """Successor codes of each state in ``chunk``; reads only immutable data."""
        result = []
        for sid, code in chunk:
            state = self.codec.decode(code)
            successors = self.system.successors(state)
            terminated = not successors and self.system.is_terminated(state)
            result.append(
                (sid, terminated, [(t, self.codec.encode(nxt)) for t, nxt in successors])
            )
        return result

    def _search_levels(self) -> Optional[int]:
        level = [0]
        with ThreadPoolExecutor(max_workers=self.config.workers) as pool:
            while level:
                self._check_time()
                chunks = [
                    [(sid, self._codes[sid]) for sid in level[i : i + CHUNK_SIZE]]
                    for i in range(0, len(level), CHUNK_SIZE)
                ]
                next_level: List[int] = []
                for expanded in pool.map(self._expand, chunks):
                    for sid, terminated, successors in expanded:
                        self._progress(len(level) + len(next_level))
                        if not successors:
                            if not terminated:
                                return sid
                            continue
                        for t, code in successors:
                            self._transitions += 1
                            self._fired.add(t.automaton)
                            new = self._add(code, sid, t)
                            if new is not None:
                                next_level.append(new)
                level = next_level
        return None

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def _trace(self, sid: int) -> Trace:
        path = []
        while self._parents[sid] >= 0:
            path.append(TraceStep(self._via[sid], self.codec.decode(self._codes[sid])))
            sid = self._parents[sid]
        path.reverse()
        return Trace(
            initial=self.codec.decode(self._codes[sid]),
            steps=tuple(path),
            automata=tuple(a.name for a in self.system.automata),
            signals=tuple(s.name for s in self.system.model.signals),
        )

    def _deadlocked(self, sid: int, stats: ExplorationStats) -> Deadlocked:
        state = self.codec.decode(self._codes[sid])
        self.logger.deadlock_found(self.system.describe(state), self._depths[sid])
        return Deadlocked(
            trace=self._trace(sid),
            blocked_components=self.system.blocked_components(state),
            waiting=self.system.waiting(state),
            stats=stats,
        )

    def _dormant_components(self) -> Tuple[str, ...]:
        active = {self.system.automata[i].component for i in self._fired}
        seen: Dict[str, None] = {}
        for a in self.system.automata:
            if a.component not in active:
                seen.setdefault(a.component, None)
        return tuple(seen)


def explore(
    system: TransitionSystem,
    initial_state: Optional[GlobalState] = None,
    config: Optional[ExplorerConfig] = None,
) -> VerificationResult:
    """Search the reachable states of ``system`` for a deadlock.

    Args:
        system: Composed transition system
        initial_state: Start state (defaults to the system's initial state)
        config: Strategy and budgets

    Returns:
        DeadlockFree, Deadlocked or Inconclusive
    """
    logger = get_logger()
    config = config or ExplorerConfig()
    logger.stage_start("explore", f"{config.strategy}, {len(system.automata)} automata")
    result = Explorer(system, config).run(initial_state)
    logger.stage_done("explore", str(result.verdict))
    return result
