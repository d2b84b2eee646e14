"""
Exact Tri-Valued Solver (Tier 1)

Negamax over WIN / LOSS / DRAW instead of centipawns. Each node is checked
in this order:

    1. Budget exceeded (nodes, table size, deadline)  → DRAW, incomplete
    2. Depth ceiling exceeded                          → DRAW, incomplete
    3. Transposition table hit                         → cached result
    4. Position already on the recursion path (cycle)  → DRAW
    5. Terminal: mate → LOSS, stalemate / rule draw    → DRAW

Otherwise every legal move is searched:
    - A child that is LOSS for the opponent is a WIN for the mover; the
      search stops there (the tri-valued analog of a beta cutoff)
    - Else the shallowest DRAW child is preferred over any losing move
    - Else every move loses and the mover picks the move whose loss is
      deepest, delaying the inevitable

A cycle on the current path is always a draw, whether or not the threefold
rule is on. Such a draw only holds for the line that led to it, so every
result carries the shallowest path ply it leaned on, and a DRAW is cached
only once that ply is the node itself. Wins and losses never lean on a
cycle. Bail-outs are never cached, because a budget-truncated DRAW is not
a proof.

References:
    - Negamax: https://www.chessprogramming.org/Negamax
    - Retrograde analysis: https://www.chessprogramming.org/Retrograde_Analysis
"""

import logging
import time
from dataclasses import dataclass
from typing import Dict, Optional, Set, Tuple

from narrow_chess.board.movegen import apply_move, legal_moves
from narrow_chess.board.position import Position
from narrow_chess.board.terminal import terminal
from narrow_chess.rules.ruleset import DEFAULT_RULES, RuleSet
from narrow_chess.search.config import DEFAULT_CONFIG
from narrow_chess.search.results import Outcome, SolveResult
from narrow_chess.search.transposition import SESSION_TABLE, TranspositionTable

logger = logging.getLogger(__name__)

# Cycle plies: keys handed in by the caller sit above the root, and
# NO_CYCLE marks a result that holds on any line
ABOVE_ROOT = -1
NO_CYCLE = 1 << 30


def transposition_key(position: Position) -> str:
    """Cache key of a position (its full extended encoding)."""
    return position.key()


@dataclass
class SearchBudget:
    """
    Limits of one search, checked at every node.

    Attributes:
        max_nodes: Nodes visited before bailing out
        max_tt_size: Table size at which the search bails out
        deadline: time.monotonic() value after which the search bails out
        nodes: Nodes visited so far
        bailouts: Nodes cut off by max_nodes, max_tt_size or the deadline
    """

    max_nodes: int = DEFAULT_CONFIG.tier1_max_nodes
    max_tt_size: int = DEFAULT_CONFIG.tier1_max_tt_size
    deadline: Optional[float] = None
    nodes: int = 0
    bailouts: int = 0

    def time_up(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def exceeded(self, table: TranspositionTable) -> bool:
        return (
            self.nodes > self.max_nodes
            or len(table) >= self.max_tt_size
            or self.time_up()
        )


class ExactSolver:
    """
    Tier-1 solver bound to a rule set, a transposition table and a budget.

    Attributes:
        rules: Active rule flags
        table: Transposition table (the session table by default)
        budget: Search limits, including the running node count
        max_depth: Recursion ceiling
    """

    def __init__(
        self,
        rules: RuleSet = DEFAULT_RULES,
        table: Optional[TranspositionTable] = None,
        budget: Optional[SearchBudget] = None,
        max_depth: int = DEFAULT_CONFIG.max_depth,
    ):
        self.rules = rules
        self.table = SESSION_TABLE if table is None else table
        self.budget = SearchBudget() if budget is None else budget
        self.max_depth = max_depth

    @property
    def nodes(self) -> int:
        return self.budget.nodes

    def solve(
        self,
        position: Position,
        path: Optional[Set[str]] = None,
        depth: int = 0,
    ) -> SolveResult:
        """
        Solve a position.

        Args:
            position: Position to solve
            path: Keys of the positions on the line leading here (cycle detection)
            depth: Ply of `position` below the search root

        Returns:
            SolveResult from the side to move's perspective
        """
        on_path = dict.fromkeys(path or (), ABOVE_ROOT)
        result, _ = self._solve(position, on_path, depth)
        logger.debug(
            f"Tier 1: {result.outcome.value} in {result.depth} "
            f"({self.budget.nodes} nodes, complete={result.complete})"
        )
        return result

    def _solve(self, position: Position, on_path: Dict[str, int], depth: int) -> Tuple[SolveResult, int]:
        """
        Returns the result and the shallowest ply of `on_path` it relied on
        (NO_CYCLE when the result holds whatever line led here).
        """
        budget = self.budget
        budget.nodes += 1

        if budget.exceeded(self.table):
            budget.bailouts += 1
            return SolveResult(Outcome.DRAW, 0, complete=False), NO_CYCLE

        if depth > self.max_depth:
            return SolveResult(Outcome.DRAW, self.max_depth, complete=False), NO_CYCLE

        key = transposition_key(position)
        cached = self.table.lookup(key)
        if cached is not None:
            return cached, NO_CYCLE

        if key in on_path:
            return SolveResult(Outcome.DRAW, 0), on_path[key]

        moves = legal_moves(position, self.rules)
        kind = terminal(position, self.rules, moves)
        if kind is not None:
            outcome = Outcome.LOSS if kind.is_mate else Outcome.DRAW
            return self._save(key, SolveResult(outcome, 0)), NO_CYCLE

        on_path[key] = depth
        try:
            complete = True
            cycle_ply = NO_CYCLE
            draw_move = None
            draw_depth = None
            loss_move = None
            loss_depth = -1

            for move in moves:
                child = apply_move(position, move, self.rules)
                reply, reply_cycle = self._solve(child, on_path, depth + 1)
                complete = complete and reply.complete

                # Wins and losses never rest on a cycle, so they are proofs
                if reply.outcome is Outcome.LOSS:
                    result = SolveResult(Outcome.WIN, reply.depth + 1, move, complete=reply.complete)
                    return self._save(key, result), NO_CYCLE

                if reply.outcome is Outcome.DRAW:
                    cycle_ply = min(cycle_ply, reply_cycle)
                    if draw_depth is None or reply.depth + 1 < draw_depth:
                        draw_depth = reply.depth + 1
                        draw_move = move
                elif reply.depth > loss_depth:
                    loss_depth = reply.depth
                    loss_move = move
        finally:
            del on_path[key]

        if draw_move is None:
            result = SolveResult(Outcome.LOSS, loss_depth + 1, loss_move, complete=complete)
            return self._save(key, result), NO_CYCLE

        result = SolveResult(Outcome.DRAW, draw_depth, draw_move, complete=complete)
        if cycle_ply < depth:
            # The draw leans on a position further up this line; elsewhere
            # the same position may be won or lost
            return result, cycle_ply
        return self._save(key, result), NO_CYCLE

    def _save(self, key: str, result: SolveResult) -> SolveResult:
        if result.complete:
            self.table.store(key, result)
        return result


def solve(
    position: Position,
    rules: RuleSet = DEFAULT_RULES,
    path: Optional[Set[str]] = None,
    depth: int = 0,
    budget: Optional[SearchBudget] = None,
    table: Optional[TranspositionTable] = None,
    max_depth: int = DEFAULT_CONFIG.max_depth,
) -> SolveResult:
    """
    Solve a position exactly (tier 1).

    Args:
        position: Position to solve
        rules: Active rule flags
        path: Keys already on the line leading here (treated as cycles)
        depth: Ply of `position` below the search root
        budget: Node / table-size / deadline limits (tier-1 defaults if None)
        table: Transposition table (the session table if None)
        max_depth: Recursion ceiling

    Returns:
        SolveResult. complete=False means a limit was hit and the DRAW it
        contains is a bail-out, not a proof.
    """
    solver = ExactSolver(rules=rules, table=table, budget=budget, max_depth=max_depth)
    return solver.solve(position, path=path, depth=depth)
