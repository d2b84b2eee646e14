"""
Terminal Classification

A position is terminal when the side to move has no legal move (mate or
stalemate) or when an enabled draw rule applies. Rule draws are checked
independently of move availability: a position can be a fifty-move or
threefold draw with legal moves left.
"""

from enum import Enum
from typing import List, Optional

import chess

from narrow_chess.board.attacks import is_check
from narrow_chess.board.movegen import legal_moves
from narrow_chess.board.position import Move, Position
from narrow_chess.rules.ruleset import DEFAULT_RULES, RuleSet

FIFTY_MOVE_PLIES = 100
THREEFOLD_COUNT = 3


class Terminal(Enum):
    """Kinds of game end. WHITE_MATE means White is checkmated."""
    STALEMATE = "stalemate"
    WHITE_MATE = "whiteMate"
    BLACK_MATE = "blackMate"
    DRAW_FIFTY = "drawFifty"
    DRAW_THREEFOLD = "drawThreefold"

    @property
    def is_mate(self) -> bool:
        return self in (Terminal.WHITE_MATE, Terminal.BLACK_MATE)


def terminal(
    position: Position,
    rules: RuleSet = DEFAULT_RULES,
    moves: Optional[List[Move]] = None,
) -> Optional[Terminal]:
    """
    Classify a position.

    Args:
        position: Position to classify
        rules: Active rule flags
        moves: Legal moves of the position, if the caller already has them

    Returns:
        Terminal kind, or None if play continues
    """
    if moves is None:
        moves = legal_moves(position, rules)

    if not moves:
        if is_check(position):
            return Terminal.WHITE_MATE if position.turn == chess.WHITE else Terminal.BLACK_MATE
        return Terminal.STALEMATE

    if rules.fifty_move_rule and position.halfmove_clock >= FIFTY_MOVE_PLIES:
        return Terminal.DRAW_FIFTY

    if rules.threefold and position.repetition_count() >= THREEFOLD_COUNT:
        return Terminal.DRAW_THREEFOLD

    return None
