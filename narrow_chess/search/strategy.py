"""
Strategy Layer

Reinterprets the winning tier's result according to the engine's playing
style (RuleSet.ai_strategy):

    - OPTIMAL: the result is returned unchanged
    - AGGRESSIVE: risk-seeking. A move heading for a draw is swapped for
      the longest-lasting alternative that keeps the game going and is not
      known to lose
    - COOPERATIVE: deliberately weak. Forced wins are kept; otherwise a
      random move is played, drawn from the moves that keep at least
      cooperative_advantage_cp when scores are known, or from all legal
      moves when they are not
"""

import logging
import random
from dataclasses import replace
from typing import Optional

from narrow_chess.board.movegen import apply_move, legal_moves
from narrow_chess.board.position import Position
from narrow_chess.board.terminal import terminal
from narrow_chess.evaluation.base import is_mate_score
from narrow_chess.rules.ruleset import AIStrategy, RuleSet
from narrow_chess.search.config import DEFAULT_CONFIG, SolverConfig
from narrow_chess.search.results import EvalResult, Outcome, SearchResult, SolveResult
from narrow_chess.search.transposition import SESSION_TABLE, TranspositionTable

logger = logging.getLogger(__name__)


def aggressive(
    result: SearchResult,
    position: Position,
    rules: RuleSet,
    table: Optional[TranspositionTable] = None,
    config: SolverConfig = DEFAULT_CONFIG,
) -> SearchResult:
    """
    Prefer continued play over an early draw.

    Args:
        result: Result of the winning tier
        position: Position the result belongs to
        rules: Active rule flags
        table: Transposition table holding the solver's proofs (session table if None)
        config: Provides mate_score

    Returns:
        The result with its move replaced, or unchanged when no alternative exists
    """
    table = SESSION_TABLE if table is None else table

    if isinstance(result, SolveResult):
        if result.outcome is not Outcome.DRAW or result.best_move is None:
            return result

        best_move = None
        best_rank = None
        for move in legal_moves(position, rules):
            child = apply_move(position, move, rules)
            if terminal(child, rules) is not None:
                continue
            known = table.peek(child.key())
            if known is not None and known.outcome is Outcome.WIN:
                # A win for the opponent
                continue
            # Known draws rank by how long they last, ahead of unsolved moves
            rank = (1, known.depth) if known is not None else (0, 0)
            if best_rank is None or rank > best_rank:
                best_rank = rank
                best_move = move

        if best_move is None or best_move == result.best_move:
            return result
        logger.debug(f"Aggressive: {result.best_move} replaced by {best_move}")
        return replace(result, best_move=best_move)

    if result.best_move is None:
        return result
    child = apply_move(position, result.best_move, rules)
    kind = terminal(child, rules)
    if kind is None or kind.is_mate:
        return result

    for move, score in result.ranked_moves():
        if is_mate_score(score, config.mate_score) and score < 0:
            break
        kind = terminal(apply_move(position, move, rules), rules)
        if kind is None or kind.is_mate:
            logger.debug(f"Aggressive: drawing {result.best_move} replaced by {move}")
            return replace(result, best_move=move, score=score)
    return result


def cooperative(
    result: SearchResult,
    position: Position,
    rules: RuleSet,
    config: SolverConfig = DEFAULT_CONFIG,
    rng: Optional[random.Random] = None,
) -> SearchResult:
    """
    Play deliberately weak moves while keeping forced wins.

    Args:
        result: Result of the winning tier
        position: Position the result belongs to
        rules: Active rule flags
        config: Provides cooperative_advantage_cp and mate_score
        rng: Random source (seeded from config.random_seed if None)

    Returns:
        The result with a sampled move
    """
    if isinstance(result, SolveResult) and result.outcome is Outcome.WIN:
        return result
    if isinstance(result, EvalResult) and result.score > 0 and is_mate_score(result.score, config.mate_score):
        return result

    rng = random.Random(config.random_seed) if rng is None else rng

    if isinstance(result, EvalResult):
        candidates = [
            (move, score) for move, score in result.scored_moves
            if score >= config.cooperative_advantage_cp
        ]
        if candidates:
            move, score = rng.choice(candidates)
            return replace(result, best_move=move, score=score)

    moves = legal_moves(position, rules)
    if not moves:
        return result
    move = rng.choice(moves)
    if isinstance(result, EvalResult):
        scores = dict(result.scored_moves)
        return replace(result, best_move=move, score=scores.get(move, result.score))
    return replace(result, best_move=move)


def apply_strategy(
    result: SearchResult,
    position: Position,
    rules: RuleSet,
    config: SolverConfig = DEFAULT_CONFIG,
    table: Optional[TranspositionTable] = None,
    rng: Optional[random.Random] = None,
) -> SearchResult:
    """
    Apply the playing style of `rules.ai_strategy` to a search result.

    Args:
        result: Result of the winning tier
        position: Position the result belongs to
        rules: Active rule flags (ai_strategy selects the style)
        config: Solver configuration
        table: Transposition table consulted by the aggressive style
        rng: Random source of the cooperative style

    Returns:
        SolveResult or EvalResult with the move to play
    """
    if rules.ai_strategy is AIStrategy.AGGRESSIVE:
        return aggressive(result, position, rules, table, config)
    if rules.ai_strategy is AIStrategy.COOPERATIVE:
        return cooperative(result, position, rules, config, rng)
    return result
