"""
Unit Tests for Evaluation Module

Tests for the ClassicalEvaluator and the Evaluator interface, focusing on:
    - Material counting from the side to move's perspective
    - Piece-square tables scaled onto narrow boards
    - Endgame phase detection
    - Terminal scoring shared by all evaluators
"""

import pytest

from narrow_chess.board import decode, starting_position
from narrow_chess.evaluation import ClassicalEvaluator, Evaluator, MATE_SCORE, is_mate_score
from narrow_chess.evaluation.classical import KNIGHT_TABLE, scale_index
from narrow_chess.rules import RuleSet


class TestClassicalEvaluator:
    """Tests for ClassicalEvaluator."""

    @pytest.fixture
    def evaluator(self):
        """Create evaluator for testing."""
        return ClassicalEvaluator()

    def test_starting_position_balanced(self, evaluator):
        """Test that the mirrored thin start evaluates to zero."""

        score = evaluator.evaluate(starting_position("thin"))
        assert score == pytest.approx(0.0), f"Symmetric start should be 0, got {score}"

    def test_material_advantage(self, evaluator):
        """Test that an extra rook is worth about a rook."""

        position = decode("bk,x,x,x,x,x,x,x,x,x,wr,wk:w")
        score = evaluator.evaluate(position)
        assert score > 400, f"Extra rook should be clearly positive, got {score}"

    def test_side_to_move_perspective(self, evaluator):
        """Test that flipping the side to move negates the score."""

        position = decode("bk,bn,x,x,wn,x,wr,wk:w")
        white_view = evaluator.evaluate(position)
        black_view = evaluator.evaluate(position.with_turn(not position.turn))
        assert white_view == pytest.approx(-black_view)

    def test_knight_prefers_center(self, evaluator):
        """Test the knight table on a 2x8 board."""

        edge = decode("wn,bk/x,x/x,x/x,x/x,x/x,x/x,x/x,wk:w")
        center = decode("x,bk/x,x/x,x/wn,x/x,x/x,x/x,x/x,wk:w")
        assert evaluator.evaluate(center) > evaluator.evaluate(edge)

    def test_pawn_advancement(self, evaluator):
        """Test that advanced pawns score higher."""

        advanced = decode("x,bk/wp,x/x,x/x,x/x,x/x,x/x,x/x,wk:w")
        home = decode("x,bk/x,x/x,x/x,x/x,x/wp,x/x,x/x,wk:w")
        assert evaluator.evaluate(advanced) > evaluator.evaluate(home)

    def test_endgame_detection(self, evaluator):
        """Test the queen / material phase rule."""

        heavy = decode("bq,bk/br,x/x,x/x,x/x,x/x,x/wr,x/wq,wk:w")
        assert not evaluator.is_endgame(heavy), "2Q + 2R is still a middlegame"

        one_queen = decode("x,bk/br,x/x,x/x,x/x,x/x,x/wr,x/wq,wk:w")
        assert evaluator.is_endgame(one_queen), "Below 2600 material is an endgame"

        assert evaluator.is_endgame(starting_position("thin")), "No queens means endgame"

    def test_consistency(self, evaluator):
        """Test that evaluation is deterministic."""

        position = starting_position("skinny")
        assert evaluator.evaluate(position) == evaluator.evaluate(position)


class TestTableScaling:
    """Tests for mapping boards onto the 6x6 tables."""

    def test_scale_index_bounds(self):
        """Test that every row and file lands on the grid."""

        for length in range(1, 17):
            indices = [scale_index(i, length) for i in range(length)]
            assert min(indices) >= 0
            assert max(indices) <= 5
            assert indices == sorted(indices), "Scaling must keep order"

    def test_single_file_reads_inner_column(self):
        """Test that a single file maps to one table column."""

        assert scale_index(0, 1) == 3
        assert scale_index(0, 12) == 0
        assert scale_index(11, 12) == 5

    def test_black_reads_mirrored_rows(self):
        """Test that Black's table rows are flipped."""

        evaluator = ClassicalEvaluator()
        position = decode("bk,x,x,x,x,wk:w")
        assert evaluator.table_coordinates(position, 0, position.turn) == (0, 3)
        assert evaluator.table_coordinates(position, 0, not position.turn) == (5, 3)
        assert KNIGHT_TABLE.shape == (6, 6)


class TestEvaluatorInterface:
    """Tests for the abstract Evaluator interface."""

    def test_evaluator_is_abstract(self):
        """Test that Evaluator cannot be instantiated."""

        with pytest.raises(TypeError):
            Evaluator()

    def test_evaluate_terminal(self):
        """Test mate and draw scoring."""

        evaluator = ClassicalEvaluator()

        mated = decode("bk,x,x,x,x,x,x,x,x,br,x,wk:w")
        assert evaluator.evaluate_terminal(mated, ply_from_root=3) == -(MATE_SCORE - 3)

        stalemate = decode("x,x,x,x,x,x,x,x,x,bk,x,wk:w")
        assert evaluator.evaluate_terminal(stalemate) == 0.0

        assert evaluator.evaluate_terminal(starting_position("thin")) is None

    def test_rule_draw_scores_zero(self):
        """Test that a fifty-move draw scores as a draw."""

        evaluator = ClassicalEvaluator()
        position = decode("bk,x,x,x,x,x,x,x,x,x,wr,wk:w:-:100:0")
        assert evaluator.evaluate_terminal(position, RuleSet(fifty_move_rule=True)) == 0.0
        assert evaluator.evaluate_terminal(position) is None

    def test_is_mate_score(self):
        assert is_mate_score(MATE_SCORE - 5)
        assert is_mate_score(-(MATE_SCORE - 5))
        assert not is_mate_score(900)
