"""
Attack Query

Determines whether a square is attacked by walking each attacker type's
movement pattern in reverse from the target square. Used for king safety
during move generation and for check / mate / stalemate classification.
"""

from typing import Optional, Sequence

import chess

from narrow_chess.board.geometry import (
    BISHOP_DIRECTIONS,
    KING_DELTAS,
    ROOK_DIRECTIONS,
    BoardGeometry,
)
from narrow_chess.board.position import Position

Cells = Sequence[Optional[chess.Piece]]


def attacked(board: Cells, side: chess.Color, square: int, geometry: BoardGeometry) -> bool:
    """
    Check whether `square` is attacked by the opponent of `side`.

    Args:
        board: Cells of the board (chess.Piece or None per square)
        side: The defending side
        square: Square to test
        geometry: Board dimensions

    Returns:
        bool: True if any enemy piece attacks the square
    """
    enemy = not side

    def is_enemy(target: Optional[int], *piece_types: chess.PieceType) -> bool:
        if target is None:
            return False
        piece = board[target]
        return piece is not None and piece.color == enemy and piece.piece_type in piece_types

    for delta in KING_DELTAS:
        if is_enemy(geometry.offset(square, delta), chess.KING):
            return True

    for delta in geometry.knight_deltas:
        if is_enemy(geometry.offset(square, delta), chess.KNIGHT):
            return True

    for directions, sliders in (
        (ROOK_DIRECTIONS, (chess.ROOK, chess.QUEEN)),
        (BISHOP_DIRECTIONS, (chess.BISHOP, chess.QUEEN)),
    ):
        for direction in directions:
            for target in geometry.ray(square, direction):
                piece = board[target]
                if piece is None:
                    continue
                if piece.color == enemy and piece.piece_type in sliders:
                    return True
                break

    # An enemy pawn attacks from one row behind its own forward direction
    back = -geometry.pawn_direction(enemy)
    for side_step in (-1, 1):
        if is_enemy(geometry.offset(square, (back, side_step)), chess.PAWN):
            return True

    return False


def find_king(board: Cells, color: chess.Color) -> Optional[int]:
    """Square of `color`'s king, or None if it is missing."""
    for square, piece in enumerate(board):
        if piece is not None and piece.piece_type == chess.KING and piece.color == color:
            return square
    return None


def king_attacked(board: Cells, color: chess.Color, geometry: BoardGeometry) -> bool:
    king = find_king(board, color)
    return king is not None and attacked(board, color, king, geometry)


def is_check(position: Position) -> bool:
    """True if the side to move is in check."""
    return king_attacked(position.board, position.turn, position.geometry)
