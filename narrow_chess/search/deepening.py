"""
Bounded Iterative Deepening (Tier 2)

Runs the exact solver with a recursion ceiling of 1, 2, ... plies. Each
iteration gets a fresh node budget but shares the transposition table, so
everything proved in shallow iterations is reused by deeper ones.

The loop stops when:
    - a WIN is found (returned at once)
    - an iteration finishes without hitting any limit (the result is exact)
    - the wall clock, the node budget or the table-size budget runs out
    - the deepest iteration has been searched

Exhaustion is reported as an explicit TierAttempt, not an exception, so the
selector's fall-through to tier 3 stays visible and testable.
"""

import logging
import time
from dataclasses import replace
from typing import Optional

from narrow_chess.board.position import Position
from narrow_chess.rules.ruleset import DEFAULT_RULES, RuleSet
from narrow_chess.search.config import DEFAULT_CONFIG, SolverConfig
from narrow_chess.search.solver import ExactSolver, SearchBudget
from narrow_chess.search.results import Outcome, SolveResult, TierAttempt, TierStatus
from narrow_chess.search.transposition import SESSION_TABLE, TranspositionTable

logger = logging.getLogger(__name__)


def iterative_deepening(
    position: Position,
    rules: RuleSet = DEFAULT_RULES,
    time_budget_ms: Optional[int] = None,
    config: SolverConfig = DEFAULT_CONFIG,
    table: Optional[TranspositionTable] = None,
) -> TierAttempt:
    """
    Solve a position by deepening the exact solver's depth ceiling.

    Args:
        position: Position to solve
        rules: Active rule flags
        time_budget_ms: Wall-clock budget (config.tier2_max_time_ms if None)
        config: Solver thresholds and budgets
        table: Transposition table shared by all iterations (session table if None)

    Returns:
        TierAttempt: SOLVED with the result, or EXHAUSTED with the best
        partial result found before the budget ran out
    """
    table = SESSION_TABLE if table is None else table
    if time_budget_ms is None:
        time_budget_ms = config.tier2_max_time_ms
    deadline = time.monotonic() + time_budget_ms / 1000.0

    best: Optional[SolveResult] = None
    total_nodes = 0
    reason = f"no exact result up to depth {config.tier2_max_depth}"

    for target in range(1, config.tier2_max_depth + 1):
        if time.monotonic() >= deadline:
            reason = f"time budget of {time_budget_ms} ms exceeded"
            break

        budget = SearchBudget(
            max_nodes=config.tier2_max_nodes,
            max_tt_size=config.tier2_max_tt_size,
            deadline=deadline,
        )
        solver = ExactSolver(rules=rules, table=table, budget=budget, max_depth=target)
        result = replace(solver.solve(position), tier=2)
        total_nodes += budget.nodes

        logger.debug(
            f"Tier 2 depth {target}: {result.outcome.value} in {result.depth} "
            f"({budget.nodes} nodes, complete={result.complete})"
        )

        if result.outcome is Outcome.WIN or result.complete:
            return TierAttempt(2, TierStatus.SOLVED, result, total_nodes, f"solved at depth {target}")

        if budget.bailouts:
            best = best or result
            if budget.time_up():
                reason = f"time budget of {time_budget_ms} ms exceeded"
            else:
                reason = f"node budget exceeded at depth {target}"
            break

        best = result

    logger.info(f"Tier 2 exhausted: {reason}")
    return TierAttempt(2, TierStatus.EXHAUSTED, best, total_nodes, reason)
