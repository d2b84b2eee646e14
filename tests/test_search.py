"""
Unit Tests for Search Module

Tests for the three search tiers, focusing on:
    - Tier 1: exact WIN / LOSS / DRAW solving, cycles, budgets, caching
    - Tier 2: iterative deepening and its exhaustion report
    - Tier 3: alpha-beta over the static evaluator
    - Tier selection, fall-through and the strategy layer
"""

import random

import pytest

from narrow_chess.board import (
    Move,
    PositionError,
    Terminal,
    apply_move,
    decode,
    encode,
    legal_moves,
    starting_position,
    terminal,
)
from narrow_chess.board.attacks import king_attacked
from narrow_chess.evaluation import ClassicalEvaluator, MATE_SCORE, is_mate_score
from narrow_chess.rules import AIStrategy, RuleSet
from narrow_chess.search import (
    EvalResult,
    ExactSolver,
    Outcome,
    SearchBudget,
    SolveResult,
    SolverConfig,
    TierStatus,
    TranspositionTable,
    apply_strategy,
    estimate_complexity,
    find_best_move,
    iterative_deepening,
    negamax,
    order_moves,
    recommend_move,
    select_tiers,
    solve,
)
from narrow_chess.search import selector, solver
from narrow_chess.evaluation.base import INFINITY


MATE_IN_ONE = "bk,bn,x,x,wn,x,x,wk:w"
WHITE_MATED = "bk,x,x,x,x,x,x,x,x,br,x,wk:w"
WHITE_STALEMATED = "x,x,x,x,x,x,x,x,x,bk,x,wk:w"
BARE_KINGS = "bk,x,x,x,x,x,x,wk:w"
KING_AND_KNIGHT = "bk,x,x,x,wn,x,x,wk:w"
STALEMATE_TRAP = "bk,x,x,wk,x,x,wn,x:w"


@pytest.fixture
def table():
    """Fresh transposition table, so tests never share cached proofs."""
    return TranspositionTable()


def large_budget():
    return SearchBudget(max_nodes=50_000, max_tt_size=50_000)


def retrograde_outcome(root):
    """Value of `root` by fixed-point iteration over every reachable position."""

    children = {}
    values = {}
    seen = {root.key()}
    frontier = [root]
    while frontier:
        position = frontier.pop()
        key = position.key()
        moves = legal_moves(position)
        kind = terminal(position, RuleSet(), moves)
        if kind is not None:
            values[key] = Outcome.LOSS if kind.is_mate else Outcome.DRAW
            continue

        children[key] = []
        for move in moves:
            child = apply_move(position, move)
            children[key].append(child.key())
            if child.key() not in seen:
                seen.add(child.key())
                frontier.append(child)

    changed = True
    while changed:
        changed = False
        for key, replies in children.items():
            if key in values:
                continue
            outcomes = [values.get(reply) for reply in replies]
            if Outcome.LOSS in outcomes:
                values[key] = Outcome.WIN
                changed = True
            elif all(outcome is Outcome.WIN for outcome in outcomes):
                values[key] = Outcome.LOSS
                changed = True

    return values.get(root.key(), Outcome.DRAW)


def random_single_file_positions(count, seed):
    """Random legal 1x8 positions with at most six pieces, kings included."""

    rng = random.Random(seed)
    positions = []
    while len(positions) < count:
        cells = ["x"] * 8
        squares = rng.sample(range(8), rng.randint(2, 6))
        cells[squares[0]] = "wk"
        cells[squares[1]] = "bk"
        for square in squares[2:]:
            cells[square] = rng.choice(["wn", "bn", "wr", "br"])

        try:
            position = decode(",".join(cells) + ":" + rng.choice("wb"))
        except PositionError:
            continue
        if king_attacked(position.board, not position.turn, position.geometry):
            continue
        positions.append(position)
    return positions


class TestExactSolver:
    """Tests for the tier-1 solver."""

    def test_mate_in_one(self, table):
        """Test that the knight mate is found."""

        result = solve(decode(MATE_IN_ONE), table=table)

        assert result.outcome is Outcome.WIN
        assert result.depth == 1
        assert result.best_move == Move(4, 2)
        assert result.complete

        child = apply_move(decode(MATE_IN_ONE), result.best_move)
        assert terminal(child) is Terminal.BLACK_MATE

    def test_checkmated(self, table):
        result = solve(decode(WHITE_MATED), table=table)
        assert result.outcome is Outcome.LOSS
        assert result.depth == 0
        assert result.best_move is None

    def test_stalemate(self, table):
        result = solve(decode(WHITE_STALEMATED), table=table)
        assert result.outcome is Outcome.DRAW
        assert result.depth == 0

    def test_bare_kings(self, table):
        """Test that kings shuffling on one file is a draw."""

        result = solve(decode(BARE_KINGS), table=table, budget=large_budget(), max_depth=100)
        assert result.outcome is Outcome.DRAW

    def test_bare_kings_proved(self, table):
        """Test that a draw made only of cycles is proved on a short file."""

        result = solve(decode("bk,x,x,x,wk:w"), table=table, budget=large_budget(), max_depth=100)
        assert result.outcome is Outcome.DRAW
        assert result.complete, "Draw should be proved within the budget"

    def test_king_and_knight(self, table):
        """Test that a lone knight cannot force mate on a single file."""

        result = solve(decode(KING_AND_KNIGHT), table=table, budget=large_budget())
        assert result.outcome is Outcome.DRAW

    def test_cycle_on_path_is_draw(self, table):
        """Test that a position already on the line is a draw."""

        position = decode(MATE_IN_ONE)
        result = solve(position, path={position.key()}, table=table)
        assert result.outcome is Outcome.DRAW
        assert result.depth == 0

    def test_transposition_reuse(self, table):
        """Test that a second solve is answered from the table."""

        position = decode(MATE_IN_ONE)
        first = solve(position, table=table)

        budget = SearchBudget()
        second = solve(position, table=table, budget=budget)

        assert second == first
        assert budget.nodes == 1, "Cached result should cost a single node"
        assert table.hits >= 1

    def test_node_budget_bailout(self, table):
        """Test that a budget cut-off is an incomplete draw and is not cached."""

        position = decode(KING_AND_KNIGHT)
        budget = SearchBudget(max_nodes=1)
        result = solve(position, table=table, budget=budget)

        assert result.outcome is Outcome.DRAW
        assert not result.complete
        assert budget.bailouts > 0
        assert position.key() not in table, "Bail-outs must never be cached"

    def test_depth_ceiling(self, table):
        """Test that the recursion ceiling marks the result incomplete."""

        result = solve(decode(KING_AND_KNIGHT), table=table, max_depth=1)
        assert not result.complete

    def test_solver_counts_nodes(self, table):
        engine = ExactSolver(table=table)
        engine.solve(decode(MATE_IN_ONE))
        assert engine.nodes > 0

    def test_loss_is_delayed(self, table, monkeypatch):
        """Test that a lost side picks the longest defence."""

        # Root has two moves; both lose, m2 three plies later than m1.
        tree = {
            "R": {"m1": "X1", "m2": "X2"},
            "X1": {"t": "T1"},
            "X2": {"y": "Y"},
            "Y": {"z": "Z"},
            "Z": {"t": "T2"},
            "T1": {},
            "T2": {},
        }

        monkeypatch.setattr(solver, "transposition_key", lambda position: position)
        monkeypatch.setattr(solver, "legal_moves", lambda position, rules: list(tree[position]))
        monkeypatch.setattr(solver, "apply_move", lambda position, move, rules: tree[position][move])
        monkeypatch.setattr(
            solver,
            "terminal",
            lambda position, rules, moves: None if moves else Terminal.WHITE_MATE,
        )

        result = solve("R", table=table)

        assert result.outcome is Outcome.LOSS
        assert result.best_move == "m2", "Should choose the slower loss"
        assert result.depth == 4

    @pytest.mark.parametrize("code,expected", [
        ("bk,bn,bn,x,x,x,wk,x:w", Outcome.LOSS),
        ("x,wn,x,bk,br,wn,wk,bn:b", Outcome.WIN),
    ])
    def test_cycle_draws_are_not_cached_as_proofs(self, table, code, expected):
        """Test positions whose lines revisit earlier positions before the win."""

        position = decode(code)
        result = solve(position, table=table, budget=large_budget())

        assert retrograde_outcome(position) is expected
        assert result.outcome is expected
        assert result.complete

        # A second pass answers from the table and must agree
        assert solve(position, table=table).outcome is expected

    def test_cycle_draw_is_cached_at_its_origin(self, table):
        """Test that a draw resting only on cycles back to the root is cached."""

        position = decode("bk,x,x,x,wk:w")
        solve(position, table=table, budget=large_budget(), max_depth=100)
        assert position.key() in table

    def test_matches_retrograde_analysis(self):
        """Test tier-1 values against fixed-point analysis on random 1x8 positions."""

        shared = TranspositionTable()
        checked = 0

        for position in random_single_file_positions(20, seed=11):
            expected = retrograde_outcome(position)
            result = solve(position, table=shared, budget=SearchBudget(max_nodes=5_000))

            # Wins and losses are always proofs; draws only when complete
            if result.complete or result.outcome is not Outcome.DRAW:
                assert result.outcome is expected, (encode(position), result, expected)
                checked += 1

        assert checked > 0

    def test_thin_start_is_draw(self, table):
        """Test that the thin starting position classifies as a draw.

        The default budget runs out long before the draw is proved, so the
        result is a bail-out draw and is not complete.
        """
        result = solve(starting_position("thin"), rules=RuleSet(), table=table)

        assert result.outcome is Outcome.DRAW
        assert not result.complete


class TestIterativeDeepening:
    """Tests for tier 2."""

    def test_solves_mate_in_one(self, table):
        attempt = iterative_deepening(decode(MATE_IN_ONE), table=table)

        assert attempt.status is TierStatus.SOLVED
        assert attempt.result.outcome is Outcome.WIN
        assert attempt.result.best_move == Move(4, 2)
        assert attempt.result.tier == 2

    def test_exhausted_without_time(self, table):
        """Test that a zero time budget is reported, not raised."""

        attempt = iterative_deepening(decode(KING_AND_KNIGHT), time_budget_ms=0, table=table)

        assert attempt.status is TierStatus.EXHAUSTED
        assert not attempt.solved
        assert "time budget" in attempt.reason

    def test_exhausted_by_node_budget(self, table):
        config = SolverConfig(tier2_max_nodes=5)
        attempt = iterative_deepening(
            decode(KING_AND_KNIGHT), time_budget_ms=10_000, config=config, table=table
        )

        assert attempt.status is TierStatus.EXHAUSTED
        assert "node budget" in attempt.reason
        assert attempt.result is not None
        assert not attempt.result.complete


class TestMinimax:
    """Tests for tier 3."""

    @pytest.fixture
    def evaluator(self):
        """Create evaluator for testing."""
        return ClassicalEvaluator()

    def test_mate_in_one(self, evaluator):
        """Test that alpha-beta finds the knight mate."""

        result = find_best_move(decode(MATE_IN_ONE), depth=2, evaluator=evaluator)

        assert result.best_move == Move(4, 2), f"Should find mate, got {result.best_move}"
        assert result.score == MATE_SCORE - 1
        assert is_mate_score(result.score)
        assert result.nodes > 0
        assert result.tier == 3

    def test_scores_every_root_move(self, evaluator):
        position = decode(MATE_IN_ONE)
        result = find_best_move(position, depth=2, evaluator=evaluator)

        assert {move for move, _ in result.scored_moves} == set(legal_moves(position))
        assert result.ranked_moves()[0][0] == result.best_move

    def test_no_legal_moves(self, evaluator):
        with pytest.raises(ValueError):
            find_best_move(decode(WHITE_STALEMATED), depth=2, evaluator=evaluator)

    def test_terminal_scores(self, evaluator):
        """Test negamax at mated and stalemated nodes."""

        assert negamax(decode(WHITE_MATED), 3, -INFINITY, INFINITY, evaluator) == -MATE_SCORE
        assert negamax(decode(WHITE_STALEMATED), 3, -INFINITY, INFINITY, evaluator) == 0.0

    def test_zero_time_budget_still_answers(self, evaluator):
        position = decode(KING_AND_KNIGHT)
        result = find_best_move(position, depth=6, evaluator=evaluator, time_budget_ms=0)
        assert result.best_move in legal_moves(position)

    def test_order_moves_captures_first(self):
        position = decode("bk,x,x,x,br,x,wr,wk:w")
        ordered = order_moves(position, legal_moves(position))
        assert ordered[0] == Move(6, 4), "Capture should be searched first"

    def test_deterministic(self, evaluator):
        position = decode(KING_AND_KNIGHT)
        first = find_best_move(position, depth=3, evaluator=evaluator)
        second = find_best_move(position, depth=3, evaluator=evaluator)
        assert first.best_move == second.best_move
        assert first.score == second.score

    def test_custom_mate_score(self, evaluator):
        result = find_best_move(decode(MATE_IN_ONE), depth=2, evaluator=evaluator, mate_score=1000)

        assert result.best_move == Move(4, 2)
        assert result.score == 999
        assert is_mate_score(result.score, 1000)

    def test_terminals_scored_by_evaluator(self):
        """Test that negamax asks the evaluator to score terminal nodes."""

        calls = []

        class RecordingEvaluator(ClassicalEvaluator):
            def evaluate_terminal(
                self, position, rules=RuleSet(), ply_from_root=0, moves=None, mate_score=MATE_SCORE
            ):
                calls.append((ply_from_root, mate_score))
                return super().evaluate_terminal(position, rules, ply_from_root, moves, mate_score)

        score = negamax(
            decode(WHITE_MATED), 3, -INFINITY, INFINITY, RecordingEvaluator(),
            ply_from_root=2, mate_score=500,
        )

        assert score == -498
        assert calls == [(2, 500)]


class TestTierSelection:
    """Tests for estimate_complexity(), select_tiers() and recommend_move()."""

    def test_complexity(self):
        assert estimate_complexity(decode("bk,x,x,x,wn,x,x,x,x,x,x,wk:w")) == 6
        assert estimate_complexity(decode(MATE_IN_ONE)) == 6

    def test_select_tiers(self):
        assert select_tiers(decode(MATE_IN_ONE)) == [1, 2, 3]

        medium = decode("bk,bn,x,x,x,x,x,x,x,x,wn,wk:w")
        assert select_tiers(medium) == [2, 3]
        assert select_tiers(medium, move_count=31) == [3], "Too many moves for tier 2"

        assert select_tiers(decode("bk,br,bn,br,bn,x,x,wn,wr,wn,wr,wk:w")) == [3]

    def test_recommend_exact(self, table):
        result = recommend_move(decode(MATE_IN_ONE), table=table)

        assert isinstance(result, SolveResult)
        assert result.tier == 1
        assert result.outcome is Outcome.WIN
        assert result.best_move == Move(4, 2)

    def test_recommend_terminal_position(self, table):
        result = recommend_move(decode(WHITE_MATED), table=table)

        assert result.tier == 0
        assert result.outcome is Outcome.LOSS
        assert result.best_move is None

    def test_fall_through_to_tier3(self, table, monkeypatch):
        """Test that failing tiers are skipped."""

        def broken(*args, **kwargs):
            raise RuntimeError("tier unavailable")

        monkeypatch.setattr(selector, "run_tier1", broken)
        monkeypatch.setattr(selector, "iterative_deepening", broken)

        result = recommend_move(decode(MATE_IN_ONE), table=table)

        assert isinstance(result, EvalResult)
        assert result.tier == 3
        assert result.best_move == Move(4, 2)

    def test_every_tier_fails(self, table, monkeypatch):
        """Test the last-resort first legal move."""

        def broken(*args, **kwargs):
            raise RuntimeError("tier unavailable")

        monkeypatch.setattr(selector, "run_tier1", broken)
        monkeypatch.setattr(selector, "iterative_deepening", broken)
        monkeypatch.setattr(selector, "run_tier3", broken)

        position = decode(MATE_IN_ONE)
        result = recommend_move(position, table=table)

        assert result.tier == 0
        assert result.best_move == legal_moves(position)[0]

    def test_large_position_uses_tier3(self, table):
        config = SolverConfig(tier3_depth_few=2, tier3_depth_some=2, tier3_depth_many=2)
        position = decode("bk,br,bn,br,bn,x,x,wn,wr,wn,wr,wk:w")
        result = recommend_move(position, config=config, table=table)

        assert result.tier == 3
        assert result.best_move == Move(7, 5)


class TestStrategy:
    """Tests for the playing styles."""

    def test_optimal_is_unchanged(self, table):
        position = decode(STALEMATE_TRAP)
        result = SolveResult(Outcome.DRAW, 1, Move(3, 2))
        assert apply_strategy(result, position, RuleSet(), table=table) is result

    def test_aggressive_avoids_stalemate(self, table):
        """Test that a stalemating draw is replaced by a move that keeps playing."""

        position = decode(STALEMATE_TRAP)
        rules = RuleSet(ai_strategy=AIStrategy.AGGRESSIVE)
        assert terminal(apply_move(position, Move(3, 2))) is Terminal.STALEMATE

        result = apply_strategy(SolveResult(Outcome.DRAW, 1, Move(3, 2)), position, rules, table=table)

        assert result.best_move != Move(3, 2)
        assert terminal(apply_move(position, result.best_move, rules), rules) is None

    def test_aggressive_heuristic_result(self, table):
        position = decode(STALEMATE_TRAP)
        rules = RuleSet(ai_strategy=AIStrategy.AGGRESSIVE)
        scored = ((Move(3, 2), 0.0), (Move(6, 4), -10.0))
        result = EvalResult(0.0, Move(3, 2), depth=1, scored_moves=scored)

        chosen = apply_strategy(result, position, rules, table=table)

        assert chosen.best_move == Move(6, 4)
        assert chosen.score == -10.0

    def test_cooperative_keeps_mate_with_configured_score(self):
        """Test that mate detection follows SolverConfig.mate_score."""

        position = decode(MATE_IN_ONE)
        rules = RuleSet(ai_strategy=AIStrategy.COOPERATIVE)
        config = SolverConfig(mate_score=1000, random_seed=3)
        result = find_best_move(position, depth=2, evaluator=ClassicalEvaluator(), mate_score=config.mate_score)

        assert apply_strategy(result, position, rules, config=config) is result

    def test_aggressive_keeps_wins(self, table):
        position = decode(MATE_IN_ONE)
        rules = RuleSet(ai_strategy=AIStrategy.AGGRESSIVE)
        result = SolveResult(Outcome.WIN, 1, Move(4, 2))
        assert apply_strategy(result, position, rules, table=table) is result

    def test_cooperative_keeps_forced_win(self):
        position = decode(MATE_IN_ONE)
        rules = RuleSet(ai_strategy=AIStrategy.COOPERATIVE)
        result = SolveResult(Outcome.WIN, 1, Move(4, 2))
        assert apply_strategy(result, position, rules, rng=random.Random(0)) is result

    def test_cooperative_samples_good_moves(self):
        """Test that sampled moves keep the advantage threshold."""

        position = decode(KING_AND_KNIGHT)
        rules = RuleSet(ai_strategy=AIStrategy.COOPERATIVE)
        moves = legal_moves(position)
        scored = tuple((move, score) for move, score in zip(moves, (100.0, 10.0, 60.0)))
        result = EvalResult(100.0, moves[0], depth=1, scored_moves=scored)

        good = {move for move, score in scored if score >= 50}
        rng = random.Random(7)
        for _ in range(10):
            chosen = apply_strategy(result, position, rules, rng=rng)
            assert chosen.best_move in good

    def test_cooperative_without_scores(self):
        """Test that a drawn exact result becomes a random legal move."""

        position = decode(KING_AND_KNIGHT)
        rules = RuleSet(ai_strategy=AIStrategy.COOPERATIVE)
        result = SolveResult(Outcome.DRAW, 4, Move(4, 2))

        chosen = apply_strategy(result, position, rules, rng=random.Random(3))

        assert chosen.best_move in legal_moves(position)
        assert chosen.outcome is Outcome.DRAW

    def test_seeded_config_is_reproducible(self):
        position = decode(KING_AND_KNIGHT)
        rules = RuleSet(ai_strategy=AIStrategy.COOPERATIVE)
        config = SolverConfig(random_seed=11)
        result = SolveResult(Outcome.DRAW, 4, Move(4, 2))

        first = apply_strategy(result, position, rules, config=config)
        second = apply_strategy(result, position, rules, config=config)
        assert first.best_move == second.best_move


class TestTranspositionTable:
    """Tests for the LRU transposition table."""

    def test_store_and_lookup(self, table):
        result = SolveResult(Outcome.WIN, 1, Move(4, 2))
        table.store("a", result)

        assert table.lookup("a") == result
        assert table.lookup("b") is None
        assert table.get_stats()['hits'] == 1
        assert table.get_stats()['misses'] == 1

    def test_lru_eviction(self):
        table = TranspositionTable(max_size=2)
        draw = SolveResult(Outcome.DRAW, 0)
        table.store("a", draw)
        table.store("b", draw)
        table.lookup("a")
        table.store("c", draw)

        assert "a" in table
        assert "b" not in table, "Least recently used entry should be evicted"
        assert len(table) == 2
        assert table.evictions == 1

    def test_peek_does_not_count(self, table):
        table.store("a", SolveResult(Outcome.DRAW, 0))
        assert table.peek("a") is not None
        assert table.hits == 0

    def test_clear(self, table):
        table.store("a", SolveResult(Outcome.DRAW, 0))
        table.clear()
        assert len(table) == 0

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            TranspositionTable(max_size=0)


class TestSolverConfig:
    """Tests for SolverConfig validation."""

    def test_defaults(self):
        config = SolverConfig()
        assert config.tier1_max_nodes == 10_000
        assert config.tier2_max_time_ms == 2000
        assert config.mate_score == MATE_SCORE

    def test_tier3_depth(self):
        config = SolverConfig()
        assert config.tier3_depth(8) == 6
        assert config.tier3_depth(12) == 5
        assert config.tier3_depth(13) == 4

    @pytest.mark.parametrize("kwargs", [
        {"tier1_max_nodes": 0},
        {"tier2_max_time_ms": -1},
        {"tier1_max_complexity": 20},
        {"tier3_pieces_few": 20},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            SolverConfig(**kwargs)
