"""
Evaluation Module

Static position evaluation for the heuristic search tier. Evaluators are
swappable: the alpha-beta search works with anything implementing the
Evaluator interface.

Key Components:
    - Evaluator (ABC): evaluation interface plus shared terminal scoring
    - ClassicalEvaluator: material + piece-square tables scaled to any board

Data Flow:
    Position → evaluator.evaluate() → float (centipawns)
                                       Positive = side to move is better
"""

from narrow_chess.evaluation.base import Evaluator, MATE_SCORE, INFINITY, is_mate_score
from narrow_chess.evaluation.classical import ClassicalEvaluator, PIECE_VALUES

__all__ = ['Evaluator', 'ClassicalEvaluator', 'MATE_SCORE', 'INFINITY', 'PIECE_VALUES', 'is_mate_score']
