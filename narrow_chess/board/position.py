"""
Position Model and Text Encoding

A Position is an immutable value: the cells of the board, the side to move
and the auxiliary state the optional rules need. Every mutator returns a
new Position, so recursive search can backtrack without undo logic.

Encoding Format:
    cells:side[:ep:halfmove:castling]

    - cells: comma-separated tokens, "x" for an empty square or side+type
      ("wk", "br", "bn", "wp", ...). Multi-file boards group ranks from the
      top of the board down with "/".
    - side: "w" or "b"
    - ep: en-passant target square index, or "-"
    - halfmove: halfmove clock (plies since the last capture or pawn move)
    - castling: castling-rights bitmask (see CASTLE_* below)

Examples:
    Thin (1x12):    bk,br,bn,br,bn,x,x,wn,wr,wn,wr,wk:w
    Skinny (2x10):  x,bk/x,bb/x,bn/x,br/x,x/x,x/wr,x/wn,x/wb,x/wk,x:w

The extended encoding is the transposition-table key: two positions with the
same extended key are strategically identical.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Iterator, List, Optional, Tuple

import chess

from narrow_chess.board.geometry import (
    FILE_LETTERS,
    MULTI_FILE,
    SINGLE_FILE,
    VARIANT_PRESETS,
    BoardGeometry,
    geometry_for,
)

EMPTY_TOKEN = "x"
CELL_SEPARATOR = ","
RANK_SEPARATOR = "/"
FIELD_SEPARATOR = ":"
NO_SQUARE = "-"

# Castling-rights bits
CASTLE_WHITE_FAR = 1  # White, rook on the last file
CASTLE_WHITE_A = 2  # White, rook on the a-file
CASTLE_BLACK_FAR = 4
CASTLE_BLACK_A = 8
ALL_CASTLING = CASTLE_WHITE_FAR | CASTLE_WHITE_A | CASTLE_BLACK_FAR | CASTLE_BLACK_A

THIN_START = "bk,br,bn,br,bn,x,x,wn,wr,wn,wr,wk:w"
SKINNY_START = "x,bk/x,bb/x,bn/x,br/x,x/x,x/wr,x/wn,x/wb,x/wk,x:w"

STARTING_POSITIONS = {
    "thin": THIN_START,
    "skinny": SKINNY_START,
}


class PositionError(ValueError):
    """Raised for malformed position encodings, tokens and moves."""


@dataclass(frozen=True)
class Move:
    """
    A move between two squares of a narrow board.

    Attributes:
        from_square: Index of the moving piece
        to_square: Destination index
        promotion: python-chess piece type the pawn becomes, or None
    """

    from_square: int
    to_square: int
    promotion: Optional[chess.PieceType] = None

    def __repr__(self) -> str:
        suffix = f", {chess.piece_symbol(self.promotion)}" if self.promotion else ""
        return f"Move({self.from_square}, {self.to_square}{suffix})"


@dataclass(frozen=True)
class Position:
    """
    Immutable narrow-board position.

    Attributes:
        geometry: Board dimensions
        board: One entry per square, chess.Piece or None
        turn: Side to move (chess.WHITE / chess.BLACK)
        ep_square: En-passant target square, or None
        halfmove_clock: Plies since the last capture or pawn move
        castling_rights: Bitmask of CASTLE_* flags
        repetitions: Repetition key -> occurrence count along the game.
            Not part of equality or of the encoding.
    """

    geometry: BoardGeometry
    board: Tuple[Optional[chess.Piece], ...]
    turn: chess.Color = chess.WHITE
    ep_square: Optional[int] = None
    halfmove_clock: int = 0
    castling_rights: int = 0
    repetitions: Dict[str, int] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self):
        if len(self.board) != self.geometry.size:
            raise PositionError(
                f"{self.geometry!r} needs {self.geometry.size} cells, got {len(self.board)}"
            )

    def piece_at(self, square: int) -> Optional[chess.Piece]:
        return self.board[square]

    def pieces(self, color: Optional[chess.Color] = None) -> Iterator[Tuple[int, chess.Piece]]:
        """Yield (square, piece) for every occupied square, optionally of one color."""
        for square, piece in enumerate(self.board):
            if piece is not None and (color is None or piece.color == color):
                yield square, piece

    def piece_count(self) -> int:
        return sum(1 for piece in self.board if piece is not None)

    def key(self) -> str:
        """Transposition key: the full extended encoding."""
        return encode(self, extended=True)

    def repetition_key(self) -> str:
        """Key used for repetition counting (the halfmove clock is not part of it)."""
        ep = NO_SQUARE if self.ep_square is None else str(self.ep_square)
        return FIELD_SEPARATOR.join(
            (_encode_cells(self), _side_token(self.turn), ep, str(self.castling_rights))
        )

    def repetition_count(self) -> int:
        return self.repetitions.get(self.repetition_key(), 0)

    def with_turn(self, turn: chess.Color) -> "Position":
        """Same board with another side to move (repetition history restarts)."""
        position = replace(self, turn=turn, repetitions={})
        position.repetitions[position.repetition_key()] = 1
        return position

    def diagram(self) -> str:
        """
        Text diagram of the board, rank numbers on the left, files below.

        Uppercase = White, lowercase = Black, "." = empty.
        """
        geometry = self.geometry
        label_width = len(str(geometry.height))
        lines = []
        for row in range(geometry.height):
            rank = geometry.height - row
            cells = []
            for file in range(geometry.width):
                piece = self.board[geometry.square(row, file)]
                cells.append(piece.symbol() if piece else ".")
            lines.append(f"{rank:>{label_width}} {' '.join(cells)}")
        lines.append(f"{'':>{label_width}} {' '.join(geometry.files)}")
        lines.append(f"{'White' if self.turn == chess.WHITE else 'Black'} to move")
        return "\n".join(lines)

    def __str__(self) -> str:
        return encode(self)


# ============================================================================
# Encoding
# ============================================================================


def _side_token(turn: chess.Color) -> str:
    return "w" if turn == chess.WHITE else "b"


def piece_token(piece: Optional[chess.Piece]) -> str:
    """Encode a single cell ("x", "wk", "bp", ...)."""
    if piece is None:
        return EMPTY_TOKEN
    return ("w" if piece.color == chess.WHITE else "b") + piece.symbol().lower()


def parse_token(token: str, geometry: BoardGeometry) -> Optional[chess.Piece]:
    """
    Decode a single cell token.

    Raises:
        PositionError: Unknown token, or a bishop/queen on a single-file board
    """
    token = token.strip()
    if token == EMPTY_TOKEN:
        return None
    if len(token) != 2 or token[0] not in "wb" or token[1] not in "kqrbnp":
        raise PositionError(f"Invalid cell token: {token!r}")
    if geometry.is_single_file and token[1] in "bq":
        raise PositionError(f"{token!r} cannot stand on a single-file board")
    letter = token[1]
    return chess.Piece.from_symbol(letter.upper() if token[0] == "w" else letter)


def _encode_cells(position: Position) -> str:
    geometry = position.geometry
    tokens = [piece_token(piece) for piece in position.board]
    if geometry.is_single_file:
        return CELL_SEPARATOR.join(tokens)
    ranks = [
        CELL_SEPARATOR.join(tokens[row * geometry.width:(row + 1) * geometry.width])
        for row in range(geometry.height)
    ]
    return RANK_SEPARATOR.join(ranks)


def encode(position: Position, extended: bool = False) -> str:
    """
    Encode a position as text.

    Args:
        position: Position to encode
        extended: Also write the en-passant, halfmove and castling fields

    Returns:
        Encoded position string
    """
    fields = [_encode_cells(position), _side_token(position.turn)]
    if extended:
        fields.append(NO_SQUARE if position.ep_square is None else str(position.ep_square))
        fields.append(str(position.halfmove_clock))
        fields.append(str(position.castling_rights))
    return FIELD_SEPARATOR.join(fields)


def _split_cells(cells: str) -> Tuple[List[str], Optional[int], int]:
    """Split the cell field into tokens; returns (tokens, width or None, height)."""
    if RANK_SEPARATOR not in cells:
        tokens = cells.split(CELL_SEPARATOR)
        return tokens, None, len(tokens)

    ranks = [rank.split(CELL_SEPARATOR) for rank in cells.split(RANK_SEPARATOR)]
    width = len(ranks[0])
    for number, rank in enumerate(ranks):
        if len(rank) != width:
            raise PositionError(
                f"Ragged ranks: rank {number} has {len(rank)} cells, expected {width}"
            )
    return [token for rank in ranks for token in rank], width, len(ranks)


def _resolve_geometry(
    variant: Optional[str],
    width: Optional[int],
    height: Optional[int],
    inferred_width: Optional[int],
    cell_count: int,
) -> BoardGeometry:
    if variant is None:
        variant = MULTI_FILE if inferred_width is not None else SINGLE_FILE

    try:
        if variant in VARIANT_PRESETS:
            geometry = geometry_for(variant)
        elif variant == SINGLE_FILE:
            if inferred_width not in (None, 1):
                raise PositionError(f"Variant {variant!r} takes a single file, got ranks of {inferred_width}")
            geometry = geometry_for(variant, height=height or cell_count)
        elif variant == MULTI_FILE:
            if width is None:
                width = inferred_width if inferred_width is not None else 1
            if height is None:
                height = cell_count // width if width else 0
            geometry = geometry_for(variant, height=height, width=width)
        else:
            geometry = geometry_for(variant)
    except PositionError:
        raise
    except ValueError as e:
        raise PositionError(str(e)) from e

    if inferred_width is not None and inferred_width != geometry.width:
        raise PositionError(
            f"{geometry!r} has {geometry.width} files, ranks in the code have {inferred_width}"
        )
    if cell_count != geometry.size:
        raise PositionError(f"{geometry!r} needs {geometry.size} cells, got {cell_count}")
    return geometry


def _parse_int(text: str, name: str) -> int:
    if not text.isdigit():
        raise PositionError(f"Invalid {name} field: {text!r}")
    return int(text)


def decode(
    code: str,
    variant: Optional[str] = None,
    height: Optional[int] = None,
    width: Optional[int] = None,
) -> Position:
    """
    Decode a position string.

    Args:
        code: Encoded position (see module docstring)
        variant: "thin", "skinny", "1xN" or "NxM". Inferred when omitted:
            codes with "/" are multi-file, others single-file.
        height: Explicit number of ranks (1xN / NxM)
        width: Explicit number of files (NxM)

    Returns:
        Position, with its own repetition key counted once

    Raises:
        PositionError: Wrong cell count, invalid token, ragged ranks, missing
            or duplicate king, malformed side or extended field
    """
    fields = code.strip().split(FIELD_SEPARATOR)
    if not 1 <= len(fields) <= 5 or not fields[0]:
        raise PositionError(f"Malformed position code: {code!r}")

    tokens, inferred_width, _ = _split_cells(fields[0])
    geometry = _resolve_geometry(variant, width, height, inferred_width, len(tokens))
    board = tuple(parse_token(token, geometry) for token in tokens)

    for color in chess.COLORS:
        kings = sum(
            1 for piece in board
            if piece is not None and piece.piece_type == chess.KING and piece.color == color
        )
        if kings != 1:
            raise PositionError(
                f"{chess.COLOR_NAMES[color].capitalize()} must have exactly one king, found {kings}"
            )

    side = fields[1] if len(fields) > 1 else "w"
    if side not in ("w", "b"):
        raise PositionError(f"Invalid side to move: {side!r}")
    turn = chess.WHITE if side == "w" else chess.BLACK

    ep_square = None
    if len(fields) > 2 and fields[2] != NO_SQUARE:
        ep_square = _parse_int(fields[2], "en-passant")
        if ep_square >= geometry.size:
            raise PositionError(f"En-passant square {ep_square} is off the board")
    halfmove_clock = _parse_int(fields[3], "halfmove clock") if len(fields) > 3 else 0
    castling_rights = _parse_int(fields[4], "castling") if len(fields) > 4 else 0
    if castling_rights > ALL_CASTLING:
        raise PositionError(f"Invalid castling bitmask: {castling_rights}")

    position = Position(
        geometry=geometry,
        board=board,
        turn=turn,
        ep_square=ep_square,
        halfmove_clock=halfmove_clock,
        castling_rights=castling_rights,
    )
    position.repetitions[position.repetition_key()] = 1
    return position


def starting_position(variant: str = "thin") -> Position:
    """Standard starting position of a named variant."""
    if variant not in STARTING_POSITIONS:
        raise PositionError(
            f"No starting position for {variant!r}. Expected one of {', '.join(STARTING_POSITIONS)}"
        )
    return decode(STARTING_POSITIONS[variant], variant)


# ============================================================================
# Algebraic notation
# ============================================================================


def square_name(square: int, geometry: BoardGeometry) -> str:
    return geometry.square_name(square)


def move_to_algebraic(move: Move, geometry: BoardGeometry) -> str:
    """Coordinate notation, e.g. "a7a5" or "b9b10n"."""
    text = geometry.square_name(move.from_square) + geometry.square_name(move.to_square)
    if move.promotion:
        text += chess.piece_symbol(move.promotion)
    return text


def parse_move(text: str, geometry: BoardGeometry) -> Move:
    """
    Parse coordinate notation into a Move (legality is not checked).

    Raises:
        PositionError: Malformed text or squares off the board
    """
    text = text.strip().lower()
    promotion = None
    if text and text[-1] in "qrbn":
        promotion = chess.PIECE_SYMBOLS.index(text[-1])
        text = text[:-1]

    # Split where the second file letter starts
    split = next(
        (i for i in range(1, len(text)) if text[i] in FILE_LETTERS),
        None,
    )
    if split is None:
        raise PositionError(f"Invalid move: {text!r}")
    try:
        from_square = geometry.parse_square(text[:split])
        to_square = geometry.parse_square(text[split:])
    except ValueError as e:
        raise PositionError(f"Invalid move {text!r}: {e}") from e
    if promotion is not None and promotion not in geometry.promotion_types:
        raise PositionError(f"Cannot promote to {chess.piece_name(promotion)} on {geometry!r}")
    return Move(from_square, to_square, promotion)
