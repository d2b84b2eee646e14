"""
Negamax Search with Alpha-Beta Pruning (Tier 3)

When a position is too large to solve exactly, the engine falls back to a
fixed-depth alpha-beta search over the static evaluator. This tier always
returns a legal move when one exists.

Key Concepts:
    - Negamax: One recursive function; each ply negates the child's score
    - Alpha-Beta: Prunes branches that cannot affect the result
    - Move Ordering: Promotions and captures (MVV-LVA) first to maximize pruning
    - Mate scores: -(mate_score - ply), so nearer mates score higher
    - Time guard: once the deadline passes, remaining nodes return their
      static evaluation instead of searching deeper

Depth by piece count (see SolverConfig):
    <= 8 pieces → 6 plies, <= 12 pieces → 5 plies, otherwise 4 plies

References:
    - Negamax: https://www.chessprogramming.org/Negamax
    - Alpha-Beta: https://www.chessprogramming.org/Alpha-Beta
    - MVV-LVA: https://www.chessprogramming.org/MVV-LVA
"""

import logging
import time
from typing import List, Optional

import chess

from narrow_chess.board.attacks import is_check
from narrow_chess.board.movegen import apply_move, is_capture, legal_moves
from narrow_chess.board.position import Move, Position
from narrow_chess.evaluation.base import MATE_SCORE, Evaluator
from narrow_chess.rules.ruleset import DEFAULT_RULES, RuleSet
from narrow_chess.search.results import EvalResult

logger = logging.getLogger(__name__)


def get_piece_value(piece_type: int) -> int:
    """
    Get approximate piece value for move ordering.

    Args:
        piece_type: chess.PAWN, chess.KNIGHT, etc.

    Returns:
        Piece value in centipawns
    """
    values = {
        chess.PAWN: 100,
        chess.KNIGHT: 300,
        chess.BISHOP: 320,
        chess.ROOK: 500,
        chess.QUEEN: 900,
        chess.KING: 20000,
    }
    return values.get(piece_type, 0)


def order_moves(position: Position, moves: List[Move], rules: RuleSet = DEFAULT_RULES) -> List[Move]:
    """
    Order moves to improve alpha-beta pruning efficiency.

    Ordering Priority:
        1. Promotions
        2. Captures (MVV-LVA: Most Valuable Victim - Least Valuable Aggressor)
        3. Checks

    Args:
        position: Current position
        moves: Legal moves to order
        rules: Active rule flags

    Returns:
        Sorted list of moves (best moves first). The sort is stable, so
        equally scored moves keep generation order.
    """

    def move_score(move: Move) -> int:
        score = 0

        if is_capture(position, move):
            victim = position.board[move.to_square]
            victim_value = get_piece_value(victim.piece_type) if victim else 100
            attacker = position.board[move.from_square]
            attacker_value = get_piece_value(attacker.piece_type) if attacker else 100
            score = 10000 + (victim_value - attacker_value // 10)

        if move.promotion:
            score += 8000 + get_piece_value(move.promotion)

        if is_check(apply_move(position, move, rules)):
            score += 5000

        return score

    return sorted(moves, key=move_score, reverse=True)


def negamax(
    position: Position,
    depth: int,
    alpha: float,
    beta: float,
    evaluator: Evaluator,
    rules: RuleSet = DEFAULT_RULES,
    ply_from_root: int = 0,
    nodes_searched: Optional[List[int]] = None,
    deadline: Optional[float] = None,
    mate_score: int = MATE_SCORE,
) -> float:
    """
    Negamax search with alpha-beta pruning.

    Args:
        position: Current position
        depth: Remaining search depth
        alpha: Lower bound of the window (best score the mover is assured of)
        beta: Upper bound of the window (best score the opponent allows)
        evaluator: Static evaluator used at the leaves
        rules: Active rule flags
        ply_from_root: Distance from root (for mate distance)
        nodes_searched: Optional mutable list [count] to track positions visited
        deadline: time.monotonic() value after which nodes stop searching deeper
        mate_score: Score of delivering mate at the root

    Returns:
        float: Score of the position from the side to move's perspective
    """
    if nodes_searched is not None:
        nodes_searched[0] += 1

    moves = legal_moves(position, rules)
    score = evaluator.evaluate_terminal(position, rules, ply_from_root, moves, mate_score)
    if score is not None:
        return score

    if depth <= 0 or (deadline is not None and time.monotonic() >= deadline):
        return evaluator.evaluate(position)

    best = -(mate_score + 1)
    for move in order_moves(position, moves, rules):
        child = apply_move(position, move, rules)
        score = -negamax(
            child,
            depth - 1,
            -beta,
            -alpha,
            evaluator,
            rules,
            ply_from_root + 1,
            nodes_searched,
            deadline,
            mate_score,
        )
        best = max(best, score)
        alpha = max(alpha, score)

        # Cutoff: the opponent won't allow this line
        if alpha >= beta:
            break

    return best


def find_best_move(
    position: Position,
    depth: int,
    evaluator: Evaluator,
    rules: RuleSet = DEFAULT_RULES,
    time_budget_ms: Optional[int] = None,
    mate_score: int = MATE_SCORE,
) -> EvalResult:
    """
    Find the best move in the current position.

    Every root move is searched with a full window so that each gets an
    exact score; the strategy layer picks among them.

    Args:
        position: Current position
        depth: Search depth (higher = stronger but slower)
        evaluator: Position evaluation function
        rules: Active rule flags
        time_budget_ms: Wall-clock budget; None searches to full depth
        mate_score: Score of delivering mate at the root

    Returns:
        EvalResult with the best move, its score and every root move's score

    Raises:
        ValueError: If no legal moves available (game over)
    """
    moves = legal_moves(position, rules)
    if not moves:
        raise ValueError("No legal moves available")

    deadline = None
    if time_budget_ms is not None:
        deadline = time.monotonic() + time_budget_ms / 1000.0

    infinity = mate_score + 1
    nodes = [0]
    best_move = None
    best_score = -infinity
    scored_moves = []

    for move in order_moves(position, moves, rules):
        child = apply_move(position, move, rules)
        score = -negamax(
            child,
            depth - 1,
            -infinity,
            infinity,
            evaluator,
            rules,
            ply_from_root=1,
            nodes_searched=nodes,
            deadline=deadline,
            mate_score=mate_score,
        )
        scored_moves.append((move, score))

        if score > best_score:
            best_score = score
            best_move = move

    logger.debug(f"Tier 3 depth {depth}: {best_move} scores {best_score:.0f} ({nodes[0]} nodes)")

    return EvalResult(
        score=best_score,
        best_move=best_move,
        depth=depth,
        nodes=nodes[0],
        tier=3,
        scored_moves=tuple(scored_moves),
    )
