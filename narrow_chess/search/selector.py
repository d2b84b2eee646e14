"""
Tier Selection

recommend_move() is the single entry point a caller needs. It estimates how
large the game tree is, tries the tiers suited to that size in order and
hands the first answer to the strategy layer:

    complexity <= 6                     → tier 1, tier 2, tier 3
    complexity <= 12 and <= 30 moves    → tier 2, tier 3
    otherwise                           → tier 3

    complexity = floor(pieces × sqrt(squares / 12) × 2)

A tier that exhausts its budget or raises is logged and skipped. If even
tier 3 fails, the first legal move is returned (tier 0): an interactive
caller always gets a usable answer.
"""

import logging
import math
import random
from typing import List, Optional

from narrow_chess.board.movegen import legal_moves
from narrow_chess.board.position import Position
from narrow_chess.board.terminal import terminal
from narrow_chess.evaluation.base import Evaluator
from narrow_chess.evaluation.classical import ClassicalEvaluator
from narrow_chess.rules.ruleset import DEFAULT_RULES, RuleSet
from narrow_chess.search.config import DEFAULT_CONFIG, SolverConfig
from narrow_chess.search.deepening import iterative_deepening
from narrow_chess.search.minimax import find_best_move
from narrow_chess.search.results import (
    EvalResult,
    Outcome,
    SearchResult,
    SolveResult,
    TierAttempt,
    TierStatus,
)
from narrow_chess.search.solver import ExactSolver, SearchBudget
from narrow_chess.search.strategy import apply_strategy
from narrow_chess.search.transposition import SESSION_TABLE, TranspositionTable

logger = logging.getLogger(__name__)


def estimate_complexity(position: Position, config: SolverConfig = DEFAULT_CONFIG) -> int:
    """
    Rough size of the game tree: piece count scaled by board size.

    Args:
        position: Position to estimate
        config: Provides the baseline board size and multiplier

    Returns:
        int: Complexity estimate (a 1x12 board with 3 pieces scores 6)
    """
    board_factor = math.sqrt(position.geometry.size / config.complexity_baseline_squares)
    return math.floor(position.piece_count() * board_factor * config.complexity_multiplier)


def select_tiers(
    position: Position,
    rules: RuleSet = DEFAULT_RULES,
    config: SolverConfig = DEFAULT_CONFIG,
    move_count: Optional[int] = None,
) -> List[int]:
    """
    Tiers to try for a position, in order.

    Args:
        position: Position to search
        rules: Active rule flags
        config: Tier thresholds
        move_count: Number of legal moves, if already known

    Returns:
        List of tier numbers, always ending with 3
    """
    complexity = estimate_complexity(position, config)
    if complexity <= config.tier1_max_complexity:
        return [1, 2, 3]
    if complexity <= config.tier2_max_complexity:
        if move_count is None:
            move_count = len(legal_moves(position, rules))
        if move_count <= config.tier2_max_moves:
            return [2, 3]
    return [3]


def run_tier1(
    position: Position,
    rules: RuleSet,
    config: SolverConfig,
    table: TranspositionTable,
) -> TierAttempt:
    budget = SearchBudget(max_nodes=config.tier1_max_nodes, max_tt_size=config.tier1_max_tt_size)
    solver = ExactSolver(rules=rules, table=table, budget=budget, max_depth=config.max_depth)
    result = solver.solve(position)
    if result.complete:
        return TierAttempt(1, TierStatus.SOLVED, result, budget.nodes, "solved")
    return TierAttempt(1, TierStatus.EXHAUSTED, result, budget.nodes, "budget exceeded")


def run_tier3(
    position: Position,
    rules: RuleSet,
    config: SolverConfig,
    evaluator: Evaluator,
    time_budget_ms: Optional[int],
) -> TierAttempt:
    depth = config.tier3_depth(position.piece_count())
    if time_budget_ms is None:
        time_budget_ms = config.tier3_max_time_ms
    result = find_best_move(
        position, depth, evaluator, rules, time_budget_ms=time_budget_ms, mate_score=config.mate_score
    )
    return TierAttempt(3, TierStatus.SOLVED, result, result.nodes, f"searched to depth {depth}")


def recommend_move(
    position: Position,
    rules: RuleSet = DEFAULT_RULES,
    time_budget_ms: Optional[int] = None,
    config: SolverConfig = DEFAULT_CONFIG,
    table: Optional[TranspositionTable] = None,
    evaluator: Optional[Evaluator] = None,
    rng: Optional[random.Random] = None,
) -> SearchResult:
    """
    Recommend a move for the side to move.

    Args:
        position: Position to search
        rules: Active rule flags (ai_strategy selects the playing style)
        time_budget_ms: Wall-clock budget of tiers 2 and 3 (config defaults if None)
        config: Solver thresholds and budgets
        table: Transposition table (session table if None)
        evaluator: Static evaluator of tier 3 (ClassicalEvaluator if None)
        rng: Random source of the cooperative style

    Returns:
        SolveResult (tiers 1 and 2) or EvalResult (tier 3, or tier 0 when
        every tier failed). A position that is already over gets a tier-0
        SolveResult without a move.
    """
    table = SESSION_TABLE if table is None else table
    evaluator = ClassicalEvaluator() if evaluator is None else evaluator

    moves = legal_moves(position, rules)
    kind = terminal(position, rules, moves)
    if kind is not None:
        outcome = Outcome.LOSS if kind.is_mate else Outcome.DRAW
        return SolveResult(outcome, 0, None, tier=0)

    tiers = select_tiers(position, rules, config, move_count=len(moves))
    logger.debug(
        f"Complexity {estimate_complexity(position, config)}, "
        f"{len(moves)} moves: trying tiers {tiers}"
    )

    result: Optional[SearchResult] = None
    for tier in tiers:
        try:
            if tier == 1:
                attempt = run_tier1(position, rules, config, table)
            elif tier == 2:
                attempt = iterative_deepening(position, rules, time_budget_ms, config, table)
            else:
                attempt = run_tier3(position, rules, config, evaluator, time_budget_ms)
        except Exception as e:
            logger.warning(f"Tier {tier} failed: {e}", exc_info=True)
            attempt = TierAttempt(tier, TierStatus.FAILED, reason=str(e))

        if attempt.solved and attempt.result is not None and attempt.result.best_move is not None:
            logger.info(f"Tier {tier} answered: {attempt.result}")
            result = attempt.result
            break
        logger.info(f"Tier {tier} {attempt.status.value}: {attempt.reason}")

    if result is None:
        logger.warning("Every tier failed, playing the first legal move")
        result = EvalResult(score=0.0, best_move=moves[0], tier=0)

    return apply_strategy(result, position, rules, config, table, rng)
