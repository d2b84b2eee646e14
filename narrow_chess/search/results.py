"""
Search result types shared by the tiers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

from narrow_chess.board.position import Move


class Outcome(Enum):
    """Game-theoretic value of a position, from the side to move's view."""
    WIN = "WIN"
    LOSS = "LOSS"
    DRAW = "DRAW"

    def flip(self) -> "Outcome":
        """Value of the same result from the opponent's view."""
        if self is Outcome.WIN:
            return Outcome.LOSS
        if self is Outcome.LOSS:
            return Outcome.WIN
        return Outcome.DRAW


@dataclass(frozen=True)
class SolveResult:
    """
    Result of the exact solver (tiers 1 and 2).

    Attributes:
        outcome: WIN, LOSS or DRAW for the side to move
        depth: Plies until the outcome
        best_move: Recommended move (None at terminal positions)
        tier: Search tier that produced the result
        complete: False when the value came from a budget or depth bail-out
            and is not a proof
    """

    outcome: Outcome
    depth: int
    best_move: Optional[Move] = None
    tier: int = 1
    complete: bool = True

    def __repr__(self) -> str:
        flag = "" if self.complete else ", incomplete"
        return (
            f"SolveResult({self.outcome.value}, depth={self.depth}, "
            f"move={self.best_move}, tier={self.tier}{flag})"
        )


@dataclass(frozen=True)
class EvalResult:
    """
    Result of the heuristic search (tier 3).

    Attributes:
        score: Centipawns from the side to move's perspective
        best_move: Best move found (None without legal moves)
        depth: Search depth in plies
        nodes: Positions visited
        tier: Search tier that produced the result (0 = last-resort fallback)
        scored_moves: (root move, score) pairs in search order
    """

    score: float
    best_move: Optional[Move] = None
    depth: int = 0
    nodes: int = 0
    tier: int = 3
    scored_moves: Tuple[Tuple[Move, float], ...] = field(default=(), repr=False)

    def ranked_moves(self) -> List[Tuple[Move, float]]:
        """Root moves sorted by score, best first."""
        return sorted(self.scored_moves, key=lambda item: item[1], reverse=True)


SearchResult = Union[SolveResult, EvalResult]


class TierStatus(Enum):
    """
    How a tier attempt ended.

        - SOLVED: The tier produced an answer to return
        - EXHAUSTED: A budget ran out; fall through to the next tier
        - FAILED: The tier raised; fall through to the next tier
    """
    SOLVED = "solved"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


@dataclass(frozen=True)
class TierAttempt:
    """
    Record of one tier attempt.

    Attributes:
        tier: Tier number (1, 2 or 3)
        status: SOLVED, EXHAUSTED or FAILED
        result: The answer (SOLVED) or the best partial result (EXHAUSTED)
        nodes: Nodes searched by the attempt
        reason: Why the tier stopped
    """

    tier: int
    status: TierStatus
    result: Optional[SearchResult] = None
    nodes: int = 0
    reason: str = ""

    @property
    def solved(self) -> bool:
        return self.status is TierStatus.SOLVED
