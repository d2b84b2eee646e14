"""
Classical Piece-Square Table Evaluation

This module implements the static evaluation used by the heuristic tier:
    1. Material counting (piece values)
    2. Piece-square tables for pawns, knights and the king

The tables are 6x6. Boards of any other size are mapped onto that grid by
scaling the center of each square, so a 1x12 board reads two board rows
per table row and a 2x10 board spreads its two files over the table's
outer and inner columns.

Evaluation Components:
    - Material: P=100, N=300, B=320, R=500, Q=900, K=0
    - Position: PST bonuses for pawns, knights and the king (bishops, rooks
      and queens have no table)
    - Phase: endgame when no queen is on the board or total material is
      below 2600
"""

from typing import Tuple

import chess
import numpy as np

from narrow_chess.board.position import Position
from narrow_chess.evaluation.base import Evaluator

#fmt: off
# ============================================================================
# Material Values (centipawns)
# ============================================================================

PIECE_VALUES = {
    chess.PAWN: 100,
    chess.KNIGHT: 300,
    chess.BISHOP: 320,
    chess.ROOK: 500,
    chess.QUEEN: 900,
    chess.KING: 0,
}

ENDGAME_MATERIAL = 2600


# ============================================================================
# Piece-Square Tables (PSTs)
# ============================================================================
# Values are from White's perspective: row 0 is the far (promotion) rank,
# row 5 White's own back rank. Black pieces read the table mirrored.
# ============================================================================

PST_SIZE = 6

# Pawn PST: Reward advancement
PAWN_TABLE = np.array([
    [  0,   0,   0,   0,   0,   0],
    [ 50,  50,  50,  50,  50,  50],
    [ 10,  10,  20,  30,  30,  10],
    [  5,   5,  10,  25,  25,   5],
    [  0,   0,   0,  20,  20,   0],
    [  5,  -5, -10,   0,   0,  -5],
], dtype=np.float32)

# Knight PST: Central knights are powerful, edge knights are weak
KNIGHT_TABLE = np.array([
    [-50, -40, -30, -30, -40, -50],
    [-40, -20,   0,   0, -20, -40],
    [-30,   0,  10,  15,  10, -30],
    [-30,   5,  15,  20,  15, -30],
    [-40, -20,   0,   5,   0, -20],
    [-50, -40, -30, -30, -40, -50],
], dtype=np.float32)

# King PST (Middlegame): Stay home
KING_MIDDLEGAME_TABLE = np.array([
    [-30, -40, -40, -50, -40, -30],
    [-30, -40, -40, -50, -40, -30],
    [-30, -40, -40, -50, -40, -30],
    [-30, -40, -40, -50, -40, -30],
    [-20, -30, -30, -40, -30, -20],
    [ 20,  20,   0,   0,  10,  20],
], dtype=np.float32)

# King PST (Endgame): Centralize
KING_ENDGAME_TABLE = np.array([
    [-50, -40, -30, -20, -30, -40],
    [-30, -20, -10,   0, -10, -20],
    [-30, -10,  20,  30,  20, -10],
    [-30, -10,  30,  40,  30, -10],
    [-30, -10,  20,  30,  20, -10],
    [-30, -30,   0,   0,   0, -30],
], dtype=np.float32)
#fmt: on


def scale_index(index: int, length: int, grid: int = PST_SIZE) -> int:
    """Map a row or file of a board dimension onto the PST grid."""
    return min(grid - 1, int((index + 0.5) * grid / length))


class ClassicalEvaluator(Evaluator):
    """
    Classical evaluation using material and piece-square tables.

    Attributes:
        piece_tables: Dictionary mapping piece types to PST arrays
        endgame_threshold: Total material below which the endgame king table is used
    """

    def __init__(self):
        self.piece_tables = {
            chess.PAWN: PAWN_TABLE,
            chess.KNIGHT: KNIGHT_TABLE,
        }
        self.endgame_threshold = ENDGAME_MATERIAL

    def is_endgame(self, position: Position) -> bool:
        """
        Detect the endgame phase.

        Endgame if no queen is on the board or the material of both sides
        together is below the threshold.
        """
        material = 0
        has_queen = False
        for _, piece in position.pieces():
            if piece.piece_type == chess.QUEEN:
                has_queen = True
            material += PIECE_VALUES[piece.piece_type]
        return not has_queen or material < self.endgame_threshold

    def table_coordinates(self, position: Position, square: int, color: chess.Color) -> Tuple[int, int]:
        """PST (row, column) for a piece of `color` standing on `square`."""
        geometry = position.geometry
        row, file = geometry.coordinates(square)
        if color == chess.BLACK:
            row = geometry.height - 1 - row
        return scale_index(row, geometry.height), scale_index(file, geometry.width)

    def evaluate(self, position: Position) -> float:
        """
        Evaluate position using material + PST.

        Args:
            position: Position to evaluate

        Returns:
            float: Evaluation in centipawns (side to move's perspective)
        """
        endgame = self.is_endgame(position)
        king_table = KING_ENDGAME_TABLE if endgame else KING_MIDDLEGAME_TABLE

        score = 0.0
        for square, piece in position.pieces():
            value = float(PIECE_VALUES[piece.piece_type])

            if piece.piece_type == chess.KING:
                table = king_table
            else:
                table = self.piece_tables.get(piece.piece_type)
            if table is not None:
                row, col = self.table_coordinates(position, square, piece.color)
                value += float(table[row, col])

            if piece.color == position.turn:
                score += value
            else:
                score -= value

        return score
