"""
Board Module

This module holds the rules of narrow-board chess: geometry, the immutable
position model with its text encoding, the attack query, move generation
and terminal classification. Pieces and colors are python-chess values
(chess.Piece, chess.WHITE, chess.KNIGHT, ...); the board itself is a
tuple of cells of any width and height.

Key Components:
    - BoardGeometry: Board dimensions and coordinate helpers
    - Position / Move: Immutable position and move values
    - decode / encode: Text encoding, also used as transposition key
    - attacked: Attack query used for king safety and check detection
    - legal_moves / apply_move: Move generation and application
    - terminal: Mate, stalemate and rule-draw classification

Data Flow:
    text -> decode() -> Position -> legal_moves() -> Move
         -> apply_move() -> Position -> terminal()
"""

from narrow_chess.board.geometry import BoardGeometry, geometry_for, VARIANT_PRESETS
from narrow_chess.board.position import (
    Move,
    Position,
    PositionError,
    SKINNY_START,
    THIN_START,
    decode,
    encode,
    move_to_algebraic,
    parse_move,
    square_name,
    starting_position,
)
from narrow_chess.board.attacks import attacked, find_king, is_check
from narrow_chess.board.movegen import apply_move, is_capture, legal_moves
from narrow_chess.board.terminal import Terminal, terminal

__all__ = [
    'BoardGeometry',
    'geometry_for',
    'VARIANT_PRESETS',
    'Move',
    'Position',
    'PositionError',
    'THIN_START',
    'SKINNY_START',
    'decode',
    'encode',
    'move_to_algebraic',
    'parse_move',
    'square_name',
    'starting_position',
    'attacked',
    'find_king',
    'is_check',
    'apply_move',
    'is_capture',
    'legal_moves',
    'Terminal',
    'terminal',
]
