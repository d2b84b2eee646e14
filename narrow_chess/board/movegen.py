"""
Move Generation and Move Application

legal_moves() enumerates the pseudo-legal destinations of every piece of
the side to move, plays each one on a scratch board and keeps it only if
the mover's king is not attacked afterwards. This check also covers en
passant, where removing the captured pawn can open a line to the king.

apply_move() builds the successor Position. Both go through the same
scratch-board helper, so the board tested for king safety is exactly the
board the move produces.

Rule flags (see narrow_chess.rules):
    - promotion: pawns reaching the last rank become a promotion piece.
      With the flag off they may still step onto the last rank and stay pawns.
    - en_passant: a double step sets the en-passant target; capturing on it
      removes the pawn from its own square
    - fifty_move_rule: maintain the halfmove clock
    - castling: maintain the castling-rights bitmask (castling moves are
      never generated)
    - threefold: count repetitions of each position

The halfmove clock and castling rights are carried over unchanged while
their rule is off. The en-passant target only lives for one ply.
"""

from typing import Iterator, List, Optional, Tuple

import chess

from narrow_chess.board.attacks import king_attacked
from narrow_chess.board.geometry import (
    BISHOP_DIRECTIONS,
    KING_DELTAS,
    QUEEN_DIRECTIONS,
    ROOK_DIRECTIONS,
    BoardGeometry,
)
from narrow_chess.board.position import (
    CASTLE_BLACK_A,
    CASTLE_BLACK_FAR,
    CASTLE_WHITE_A,
    CASTLE_WHITE_FAR,
    Move,
    Position,
    PositionError,
)
from narrow_chess.rules.ruleset import DEFAULT_RULES, RuleSet

SLIDING_DIRECTIONS = {
    chess.ROOK: ROOK_DIRECTIONS,
    chess.BISHOP: BISHOP_DIRECTIONS,
    chess.QUEEN: QUEEN_DIRECTIONS,
}


def _capturable(piece: Optional[chess.Piece], mover: chess.Color) -> bool:
    """An enemy piece that may be captured (kings never are)."""
    return piece is not None and piece.color != mover and piece.piece_type != chess.KING


def _pawn_moves(
    position: Position, square: int, rules: RuleSet
) -> Iterator[Move]:
    geometry = position.geometry
    board = position.board
    color = position.turn
    forward = geometry.pawn_direction(color)
    row, file = geometry.coordinates(square)

    def with_promotions(target: int) -> Iterator[Move]:
        if rules.promotion and geometry.coordinates(target)[0] == geometry.promotion_row(color):
            for piece_type in geometry.promotion_types:
                yield Move(square, target, piece_type)
        else:
            yield Move(square, target)

    one_step = geometry.offset(square, (forward, 0))
    if one_step is not None and board[one_step] is None:
        yield from with_promotions(one_step)
        if row == geometry.pawn_start_row(color):
            two_step = geometry.offset(square, (2 * forward, 0))
            if two_step is not None and board[two_step] is None:
                yield Move(square, two_step)

    for side_step in (-1, 1):
        target = geometry.offset(square, (forward, side_step))
        if target is None:
            continue
        if _capturable(board[target], color):
            yield from with_promotions(target)
        elif (
            rules.en_passant
            and target == position.ep_square
            and board[target] is None
        ):
            yield Move(square, target)


def _piece_moves(position: Position, square: int, piece: chess.Piece, rules: RuleSet) -> Iterator[Move]:
    geometry = position.geometry
    board = position.board
    color = piece.color

    if piece.piece_type == chess.PAWN:
        yield from _pawn_moves(position, square, rules)
        return

    if piece.piece_type in (chess.KING, chess.KNIGHT):
        deltas = KING_DELTAS if piece.piece_type == chess.KING else geometry.knight_deltas
        for delta in deltas:
            target = geometry.offset(square, delta)
            if target is None:
                continue
            occupant = board[target]
            if occupant is None or _capturable(occupant, color):
                yield Move(square, target)
        return

    for direction in SLIDING_DIRECTIONS[piece.piece_type]:
        for target in geometry.ray(square, direction):
            occupant = board[target]
            if occupant is None:
                yield Move(square, target)
                continue
            if _capturable(occupant, color):
                yield Move(square, target)
            break


def pseudo_legal_moves(position: Position, rules: RuleSet = DEFAULT_RULES) -> List[Move]:
    """All moves of the side to move, before the king-safety filter."""
    moves = []
    for square, piece in position.pieces(position.turn):
        moves.extend(_piece_moves(position, square, piece, rules))
    return moves


def _play(
    board: Tuple[Optional[chess.Piece], ...],
    move: Move,
    geometry: BoardGeometry,
) -> Tuple[List[Optional[chess.Piece]], Optional[chess.Piece]]:
    """
    Play a move on a scratch copy of the cells.

    Returns:
        (new cells, captured piece or None)
    """
    cells = list(board)
    piece = cells[move.from_square]
    captured = cells[move.to_square]

    if (
        piece.piece_type == chess.PAWN
        and captured is None
        and geometry.coordinates(move.from_square)[1] != geometry.coordinates(move.to_square)[1]
    ):
        # En passant: the victim stands beside the mover, not on the target
        from_row = geometry.coordinates(move.from_square)[0]
        victim_square = geometry.square(from_row, geometry.coordinates(move.to_square)[1])
        captured = cells[victim_square]
        cells[victim_square] = None

    cells[move.from_square] = None
    if move.promotion:
        cells[move.to_square] = chess.Piece(move.promotion, piece.color)
    else:
        cells[move.to_square] = piece
    return cells, captured


def legal_moves(position: Position, rules: RuleSet = DEFAULT_RULES) -> List[Move]:
    """
    Generate all legal moves for the side to move.

    Args:
        position: Current position
        rules: Active rule flags

    Returns:
        List of moves, ordered by origin square then by movement pattern
    """
    geometry = position.geometry
    mover = position.turn
    legal = []
    for move in pseudo_legal_moves(position, rules):
        cells, _ = _play(position.board, move, geometry)
        if not king_attacked(cells, mover, geometry):
            legal.append(move)
    return legal


def is_capture(position: Position, move: Move) -> bool:
    """True for captures, including en passant."""
    target = position.board[move.to_square]
    if target is not None:
        return True
    piece = position.board[move.from_square]
    geometry = position.geometry
    return (
        piece is not None
        and piece.piece_type == chess.PAWN
        and geometry.coordinates(move.from_square)[1] != geometry.coordinates(move.to_square)[1]
    )


def _corner_rights(square: int, geometry: BoardGeometry) -> int:
    """Castling bits tied to a rook corner square (0 for other squares)."""
    row, file = geometry.coordinates(square)
    rights = 0
    for color, far_bit, a_bit in (
        (chess.WHITE, CASTLE_WHITE_FAR, CASTLE_WHITE_A),
        (chess.BLACK, CASTLE_BLACK_FAR, CASTLE_BLACK_A),
    ):
        if row != geometry.back_rank(color):
            continue
        if file == geometry.width - 1:
            rights |= far_bit
        if file == 0:
            rights |= a_bit
    return rights


def _update_castling(rights: int, piece: chess.Piece, move: Move, geometry: BoardGeometry) -> int:
    if piece.piece_type == chess.KING:
        if piece.color == chess.WHITE:
            rights &= ~(CASTLE_WHITE_FAR | CASTLE_WHITE_A)
        else:
            rights &= ~(CASTLE_BLACK_FAR | CASTLE_BLACK_A)
    rights &= ~_corner_rights(move.from_square, geometry)
    rights &= ~_corner_rights(move.to_square, geometry)
    return rights


def apply_move(position: Position, move: Move, rules: RuleSet = DEFAULT_RULES) -> Position:
    """
    Return the position after `move` (the move is assumed legal).

    Args:
        position: Current position
        move: Move to play
        rules: Active rule flags

    Returns:
        New Position with the other side to move

    Raises:
        PositionError: If the origin square holds no piece of the side to move
    """
    geometry = position.geometry
    piece = position.board[move.from_square]
    if piece is None or piece.color != position.turn:
        raise PositionError(
            f"No {chess.COLOR_NAMES[position.turn]} piece on "
            f"{geometry.square_name(move.from_square)}"
        )

    cells, captured = _play(position.board, move, geometry)
    is_pawn = piece.piece_type == chess.PAWN

    ep_square = None
    if rules.en_passant and is_pawn:
        from_row, file = geometry.coordinates(move.from_square)
        to_row = geometry.coordinates(move.to_square)[0]
        if abs(to_row - from_row) == 2:
            ep_square = geometry.square((from_row + to_row) // 2, file)

    halfmove_clock = position.halfmove_clock
    if rules.fifty_move_rule:
        halfmove_clock = 0 if (captured is not None or is_pawn) else halfmove_clock + 1

    castling_rights = position.castling_rights
    if rules.castling:
        castling_rights = _update_castling(castling_rights, piece, move, geometry)

    repetitions = dict(position.repetitions) if rules.threefold else {}
    child = Position(
        geometry=geometry,
        board=tuple(cells),
        turn=not position.turn,
        ep_square=ep_square,
        halfmove_clock=halfmove_clock,
        castling_rights=castling_rights,
        repetitions=repetitions,
    )
    if rules.threefold:
        key = child.repetition_key()
        repetitions[key] = repetitions.get(key, 0) + 1
    return child
