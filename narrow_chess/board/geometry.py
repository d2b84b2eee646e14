"""
Board Geometry for Narrow Boards

This module describes the shape of a board. Geometry is derived, never
stored alongside the cells: it is computed from a variant tag and optional
explicit dimensions, and two geometries are equal iff their dimensions are.
That keeps position keys sound: the same key always means the same board.

Square Indexing:
    - Squares are numbered row-major: index = row * width + file
    - Row 0 = the top of the board (Black's back rank)
    - Row height-1 = the bottom of the board (White's back rank)
    - File 0 = the a-file

    Single-file board (1x6):      Two-file board (2x3):
        0  a6                        0 a3   1 b3
        1  a5                        2 a2   3 b2
        2  a4                        4 a1   5 b1
        3  a3
        4  a2
        5  a1

Variants:
    - thin:   1x12 single-file board
    - skinny: 2x10 two-file board
    - 1xN:    single-file board, height inferred from the cells
    - NxM:    multi-file board, dimensions inferred from the rank groups
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import chess

FILE_LETTERS = "abcdefgh"

MAX_WIDTH = 8
MIN_HEIGHT = 2
MAX_HEIGHT = 16
MAX_SQUARES = 64

# (width, height) of the named boards
VARIANT_PRESETS: Dict[str, Tuple[int, int]] = {
    "thin": (1, 12),
    "skinny": (2, 10),
}

SINGLE_FILE = "1xN"
MULTI_FILE = "NxM"
VARIANTS = (*VARIANT_PRESETS, SINGLE_FILE, MULTI_FILE)

KING_DELTAS = (
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1),           (0, 1),
    (1, -1),  (1, 0),  (1, 1),
)
ROOK_DIRECTIONS = ((-1, 0), (1, 0), (0, -1), (0, 1))
BISHOP_DIRECTIONS = ((-1, -1), (-1, 1), (1, -1), (1, 1))
QUEEN_DIRECTIONS = ROOK_DIRECTIONS + BISHOP_DIRECTIONS

# On a single file the knight leaps two squares along the file
LINEAR_KNIGHT_DELTAS = ((-2, 0), (2, 0))
KNIGHT_DELTAS = (
    (-2, -1), (-2, 1), (-1, -2), (-1, 2),
    (1, -2),  (1, 2),  (2, -1),  (2, 1),
)


@dataclass(frozen=True)
class BoardGeometry:
    """
    Dimensions of a board and the coordinate helpers that depend on them.

    Attributes:
        width: Number of files (1 for single-file boards)
        height: Number of ranks
    """

    width: int
    height: int

    def __post_init__(self):
        if not 1 <= self.width <= MAX_WIDTH:
            raise ValueError(f"width must be between 1 and {MAX_WIDTH}, got {self.width}")
        if not MIN_HEIGHT <= self.height <= MAX_HEIGHT:
            raise ValueError(
                f"height must be between {MIN_HEIGHT} and {MAX_HEIGHT}, got {self.height}"
            )
        if self.width * self.height > MAX_SQUARES:
            raise ValueError(
                f"board has {self.width * self.height} squares, at most {MAX_SQUARES} supported"
            )

    @property
    def size(self) -> int:
        return self.width * self.height

    @property
    def is_single_file(self) -> bool:
        return self.width == 1

    @property
    def variant(self) -> str:
        """Variant tag describing this shape ("1xN" or "NxM")."""
        return SINGLE_FILE if self.is_single_file else MULTI_FILE

    @property
    def files(self) -> List[str]:
        return list(FILE_LETTERS[: self.width])

    @property
    def ranks(self) -> List[int]:
        return list(range(1, self.height + 1))

    @property
    def knight_deltas(self) -> Tuple[Tuple[int, int], ...]:
        return LINEAR_KNIGHT_DELTAS if self.is_single_file else KNIGHT_DELTAS

    @property
    def promotion_types(self) -> Tuple[chess.PieceType, ...]:
        """Piece types a pawn may promote to on this board."""
        if self.is_single_file:
            return (chess.ROOK, chess.KNIGHT)
        return (chess.QUEEN, chess.ROOK, chess.BISHOP, chess.KNIGHT)

    def in_bounds(self, row: int, file: int) -> bool:
        return 0 <= row < self.height and 0 <= file < self.width

    def square(self, row: int, file: int) -> int:
        return row * self.width + file

    def coordinates(self, square: int) -> Tuple[int, int]:
        """Convert a square index to (row, file)."""
        return divmod(square, self.width)

    def offset(self, square: int, delta: Tuple[int, int]) -> Optional[int]:
        """Square reached by stepping `delta` (drow, dfile) from `square`, or None if off-board."""
        row, file = divmod(square, self.width)
        row += delta[0]
        file += delta[1]
        if 0 <= row < self.height and 0 <= file < self.width:
            return row * self.width + file
        return None

    def ray(self, square: int, direction: Tuple[int, int]):
        """Yield squares along `direction` from `square` (exclusive) until the edge."""
        row, file = divmod(square, self.width)
        dr, df = direction
        row += dr
        file += df
        while 0 <= row < self.height and 0 <= file < self.width:
            yield row * self.width + file
            row += dr
            file += df

    def back_rank(self, color: chess.Color) -> int:
        return self.height - 1 if color == chess.WHITE else 0

    def pawn_direction(self, color: chess.Color) -> int:
        """Row step of a forward pawn move (White moves up the board)."""
        return -1 if color == chess.WHITE else 1

    def pawn_start_row(self, color: chess.Color) -> int:
        return self.height - 2 if color == chess.WHITE else 1

    def promotion_row(self, color: chess.Color) -> int:
        return 0 if color == chess.WHITE else self.height - 1

    def square_name(self, square: int) -> str:
        """Algebraic name of a square, e.g. a12 or b3 (rank 1 at the bottom)."""
        row, file = divmod(square, self.width)
        return f"{FILE_LETTERS[file]}{self.height - row}"

    def parse_square(self, name: str) -> int:
        """Inverse of square_name()."""
        name = name.strip().lower()
        if len(name) < 2 or name[0] not in FILE_LETTERS or not name[1:].isdigit():
            raise ValueError(f"Invalid square name: {name!r}")
        file = FILE_LETTERS.index(name[0])
        rank = int(name[1:])
        row = self.height - rank
        if not self.in_bounds(row, file):
            raise ValueError(f"Square {name!r} is off a {self.width}x{self.height} board")
        return self.square(row, file)

    def __repr__(self) -> str:
        return f"BoardGeometry({self.width}x{self.height})"


def geometry_for(
    variant: str,
    height: Optional[int] = None,
    width: Optional[int] = None,
) -> BoardGeometry:
    """
    Build the geometry for a variant tag.

    Args:
        variant: "thin", "skinny", "1xN" or "NxM"
        height: Explicit number of ranks (required for 1xN/NxM)
        width: Explicit number of files (NxM only; 1xN is always one file)

    Returns:
        BoardGeometry

    Raises:
        ValueError: Unknown variant, missing or inconsistent dimensions
    """
    if variant in VARIANT_PRESETS:
        preset_width, preset_height = VARIANT_PRESETS[variant]
        if (width is not None and width != preset_width) or (
            height is not None and height != preset_height
        ):
            raise ValueError(
                f"Variant {variant!r} is fixed at {preset_width}x{preset_height}"
            )
        return BoardGeometry(preset_width, preset_height)

    if variant == SINGLE_FILE:
        if width not in (None, 1):
            raise ValueError(f"Variant {SINGLE_FILE!r} has exactly one file, got width={width}")
        if height is None:
            raise ValueError(f"Variant {SINGLE_FILE!r} needs a height")
        return BoardGeometry(1, height)

    if variant == MULTI_FILE:
        if width is None or height is None:
            raise ValueError(f"Variant {MULTI_FILE!r} needs both width and height")
        return BoardGeometry(width, height)

    raise ValueError(f"Unknown variant: {variant!r}. Expected one of {', '.join(VARIANTS)}")
