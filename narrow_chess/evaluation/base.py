"""
Abstract Evaluator Interface

This module defines the abstract base class for position evaluators used
by the heuristic search tier. The search only talks to this interface, so
evaluators can be swapped without touching the search.

Key Principles:
    1. Evaluators are stateless
    2. evaluate() returns centipawns from the side to move's perspective
    3. Positive = the side to move is better
    4. Mated positions score -(MATE_SCORE - ply), so faster mates score higher

Convention:
    - Material values in centipawns (pawn = 100, queen = 900)
    - Return 0 for perfectly equal positions and for draws
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from narrow_chess.board.position import Move, Position
from narrow_chess.board.terminal import terminal
from narrow_chess.rules.ruleset import DEFAULT_RULES, RuleSet


# Evaluation constants
MATE_SCORE = 99999  # Score of delivering mate at the root
INFINITY = MATE_SCORE + 1


def is_mate_score(score: float, mate_score: int = MATE_SCORE) -> bool:
    """True for scores that encode a forced mate rather than an evaluation."""
    return abs(score) > mate_score // 2


class Evaluator(ABC):
    """
    Abstract base class for position evaluation.

    Subclasses implement evaluate(); evaluate_terminal() is shared so every
    evaluator scores mates and draws the same way.
    """

    @abstractmethod
    def evaluate(self, position: Position) -> float:
        """
        Evaluate a position from the side to move's perspective.

        Args:
            position: Position to evaluate

        Returns:
            float: Evaluation in centipawns
        """
        pass

    def evaluate_terminal(
        self,
        position: Position,
        rules: RuleSet = DEFAULT_RULES,
        ply_from_root: int = 0,
        moves: Optional[List[Move]] = None,
        mate_score: int = MATE_SCORE,
    ) -> Optional[float]:
        """
        Score terminal positions (mate, stalemate, rule draws).

        Args:
            position: Position to classify
            rules: Active rule flags
            ply_from_root: Distance from the search root
            moves: Legal moves of `position`, if the caller already has them
            mate_score: Score of delivering mate at the root

        Returns:
            float: -(mate_score - ply) if the side to move is mated, 0 for draws
            None: If the position is not terminal
        """
        kind = terminal(position, rules, moves)
        if kind is None:
            return None
        if kind.is_mate:
            return -(mate_score - ply_from_root)
        return 0.0

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
