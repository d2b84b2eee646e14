"""
Search Module

This module implements the three-tier search. Small positions are solved
exactly; larger ones by iterative deepening of the exact solver under time
and node budgets; everything else by heuristic alpha-beta search. A
strategy layer then adjusts the chosen move to the engine's playing style.

Key Components:
    - solve / ExactSolver: Tier 1, tri-valued negamax with cycle detection
    - iterative_deepening: Tier 2, bounded deepening of tier 1
    - find_best_move / negamax: Tier 3, alpha-beta over the static evaluator
    - TranspositionTable: LRU cache of exact results (plus the session table)
    - apply_strategy: Optimal, aggressive and cooperative playing styles
    - recommend_move: Tier selection and fall-through

Data Flow:
    Position + RuleSet → select_tiers() → tier 1 / 2 / 3 → apply_strategy()
                       → SolveResult | EvalResult
"""

from narrow_chess.search.config import SolverConfig, DEFAULT_CONFIG
from narrow_chess.search.results import (
    Outcome,
    SolveResult,
    EvalResult,
    TierStatus,
    TierAttempt,
)
from narrow_chess.search.transposition import (
    TranspositionTable,
    SESSION_TABLE,
    clear_session_table,
)
from narrow_chess.search.solver import ExactSolver, SearchBudget, solve
from narrow_chess.search.deepening import iterative_deepening
from narrow_chess.search.minimax import negamax, find_best_move, order_moves
from narrow_chess.search.strategy import apply_strategy
from narrow_chess.search.selector import estimate_complexity, select_tiers, recommend_move

__all__ = [
    'SolverConfig',
    'DEFAULT_CONFIG',
    'Outcome',
    'SolveResult',
    'EvalResult',
    'TierStatus',
    'TierAttempt',
    'TranspositionTable',
    'SESSION_TABLE',
    'clear_session_table',
    'ExactSolver',
    'SearchBudget',
    'solve',
    'iterative_deepening',
    'negamax',
    'find_best_move',
    'order_moves',
    'apply_strategy',
    'estimate_complexity',
    'select_tiers',
    'recommend_move',
]
