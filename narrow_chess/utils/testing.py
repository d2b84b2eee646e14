"""
Engine Testing and Benchmarking

This module provides a scenario suite and a perft counter for checking the
engine on narrow boards.

Test Suites:
    1. Scenario suite: positions with a known game-theoretic value
       - Checkmates, stalemates and bare-king endings on a single file
       - A forced mate in one
       - The standard thin starting position, a draw with best play
       - Each scenario records the expected WIN / LOSS / DRAW for the
         side to move

    2. Perft: counts the leaf nodes of the legal-move tree to a fixed
       depth. Any bug in move generation or king safety shows up as a
       wrong count.

Evaluation Metrics:
    - Correct Outcomes: Number of scenarios classified as expected
    - Time per Position: Average solving time
    - Nodes Searched: Total nodes visited by the solver

References:
    - Perft: https://www.chessprogramming.org/Perft
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from narrow_chess.board.movegen import apply_move, legal_moves
from narrow_chess.board.position import Position, decode, move_to_algebraic
from narrow_chess.rules.ruleset import DEFAULT_RULES, RuleSet
from narrow_chess.search.results import Outcome
from narrow_chess.search.solver import ExactSolver, SearchBudget
from narrow_chess.search.transposition import TranspositionTable

logger = logging.getLogger(__name__)


@dataclass
class ScenarioPosition:
    """
    A position with a known value.

    Attributes:
        code: Position encoding
        expected: Expected outcome for the side to move
        description: Human-readable description of the position
        id: Scenario identifier (e.g., "NC.01")
        variant: Variant tag passed to decode() (inferred if None)
    """
    code: str
    expected: Outcome
    description: str = ""
    id: str = ""
    variant: Optional[str] = None


@dataclass
class ScenarioResult:
    """
    Result of solving a single scenario.

    Attributes:
        position: The scenario
        outcome: Outcome the solver found
        depth: Plies to the outcome
        found_move: Recommended move (coordinate notation, "" if none)
        correct: Whether the outcome matches the expected one
        complete: False if the solver ran out of budget
        time_taken: Time spent solving (seconds)
        nodes_searched: Number of nodes visited
    """
    position: ScenarioPosition
    outcome: Optional[Outcome]
    depth: int
    found_move: str
    correct: bool
    complete: bool
    time_taken: float
    nodes_searched: int = 0


# ============================================================================
# Scenario Suite
# ============================================================================

SCENARIO_POSITIONS = [
    ScenarioPosition(
        id="NC.01",
        code="bk,br,bn,br,bn,x,x,wn,wr,wn,wr,wk:w",
        expected=Outcome.DRAW,
        description="Thin starting position is a draw",
        variant="thin",
    ),
    ScenarioPosition(
        id="NC.02",
        code="bk,x,x,x,x,x,x,x,x,br,x,wk:w",
        expected=Outcome.LOSS,
        description="White is checkmated by the rook",
        variant="thin",
    ),
    ScenarioPosition(
        id="NC.03",
        code="x,x,x,x,x,x,x,x,x,bk,x,wk:w",
        expected=Outcome.DRAW,
        description="White is stalemated",
        variant="thin",
    ),
    ScenarioPosition(
        id="NC.04",
        code="bk,bn,x,x,wn,x,x,wk:w",
        expected=Outcome.WIN,
        description="Knight mates in one",
    ),
    ScenarioPosition(
        id="NC.05",
        code="bk,x,x,x,x,x,x,wk:w",
        expected=Outcome.DRAW,
        description="Bare kings cannot mate",
    ),
    ScenarioPosition(
        id="NC.06",
        code="bk,x,x,x,wn,x,x,wk:w",
        expected=Outcome.DRAW,
        description="King and knight cannot force mate on a single file",
    ),
]


def perft(position: Position, depth: int, rules: RuleSet = DEFAULT_RULES) -> int:
    """
    Count the leaf nodes of the legal-move tree.

    Args:
        position: Root position
        depth: Plies to expand
        rules: Active rule flags

    Returns:
        Number of positions reached after exactly `depth` plies
    """
    if depth == 0:
        return 1
    moves = legal_moves(position, rules)
    if depth == 1:
        return len(moves)
    return sum(perft(apply_move(position, move, rules), depth - 1, rules) for move in moves)


def perft_divide(position: Position, depth: int, rules: RuleSet = DEFAULT_RULES) -> Dict[str, int]:
    """Perft split by root move (coordinate notation → leaf count)."""
    return {
        move_to_algebraic(move, position.geometry): perft(apply_move(position, move, rules), depth - 1, rules)
        for move in legal_moves(position, rules)
    }


def evaluate_scenario(
    scenario: ScenarioPosition,
    rules: RuleSet = DEFAULT_RULES,
    max_nodes: int = 50_000,
    transposition_table: Optional[TranspositionTable] = None,
    verbose: bool = False,
) -> ScenarioResult:
    """
    Solve a single scenario with the exact solver.

    Args:
        scenario: Scenario to solve
        rules: Active rule flags
        max_nodes: Node budget of the solver
        transposition_table: Optional TT (a fresh table if None)
        verbose: If True, print detailed output

    Returns:
        ScenarioResult with the solver's outcome and whether it was correct
    """
    table = TranspositionTable() if transposition_table is None else transposition_table

    if verbose:
        print(f"\nTesting {scenario.id}: {scenario.description}")
        print(f"Code: {scenario.code}")
        print(f"Expected: {scenario.expected.value}")

    start_time = time.time()

    try:
        position = decode(scenario.code, scenario.variant)
        budget = SearchBudget(max_nodes=max_nodes, max_tt_size=len(table) + max_nodes)
        solver = ExactSolver(rules=rules, table=table, budget=budget)
        result = solver.solve(position)
        time_taken = time.time() - start_time

        found_move = (
            move_to_algebraic(result.best_move, position.geometry) if result.best_move else ""
        )
        correct = result.outcome is scenario.expected

        if verbose:
            print(f"Solver found: {result.outcome.value} in {result.depth} ({found_move or '-'})")
            print(f"Nodes searched: {budget.nodes:,}")
            print(f"Time: {time_taken:.2f}s")
            print(f"Result: {'✓ CORRECT' if correct else '✗ WRONG'}")

        return ScenarioResult(
            position=scenario,
            outcome=result.outcome,
            depth=result.depth,
            found_move=found_move,
            correct=correct,
            complete=result.complete,
            time_taken=time_taken,
            nodes_searched=budget.nodes,
        )

    except Exception as e:
        logger.error(f"Error solving scenario {scenario.id}: {e}", exc_info=True)
        return ScenarioResult(
            position=scenario,
            outcome=None,
            depth=0,
            found_move="",
            correct=False,
            complete=False,
            time_taken=time.time() - start_time,
        )


def run_scenarios(
    scenarios: Optional[List[ScenarioPosition]] = None,
    rules: RuleSet = DEFAULT_RULES,
    max_nodes: int = 50_000,
    verbose: bool = True,
) -> Dict[str, Any]:
    """
    Run the scenario suite.

    Args:
        scenarios: Scenarios to run (default: SCENARIO_POSITIONS)
        rules: Active rule flags
        max_nodes: Node budget per scenario
        verbose: If True, print each scenario

    Returns:
        Dictionary with score, total, percentage, avg_time and results
    """
    scenarios = SCENARIO_POSITIONS if scenarios is None else scenarios

    results = [
        evaluate_scenario(scenario, rules, max_nodes=max_nodes, verbose=verbose)
        for scenario in scenarios
    ]

    score = sum(1 for r in results if r.correct)
    total = len(results)
    avg_time = sum(r.time_taken for r in results) / total if total else 0.0

    if verbose:
        print(f"\nScenarios: {score}/{total} correct")

    return {
        'score': score,
        'total': total,
        'percentage': 100.0 * score / total if total else 0.0,
        'avg_time': avg_time,
        'results': results,
    }
