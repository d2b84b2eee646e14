"""
Solver configuration.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class SolverConfig:
    """Thresholds and budgets of the three search tiers.

    Every limit that keeps a search bounded lives here, so a caller can
    trade answer quality for responsiveness in one place.
    """

    # Tier selection
    tier1_max_complexity: int = 6
    """Highest complexity estimate solved exactly (tier 1)"""

    tier2_max_complexity: int = 12
    """Highest complexity estimate given to iterative deepening (tier 2)"""

    tier2_max_moves: int = 30
    """Tier 2 is skipped when the root has more legal moves than this"""

    complexity_baseline_squares: int = 12
    """Board size the complexity estimate is normalized to (a 1x12 board)"""

    complexity_multiplier: int = 2
    """Game-length multiplier of the complexity estimate"""

    # Tier 1
    tier1_max_nodes: int = 10_000
    """Nodes searched before tier 1 bails out with an incomplete draw"""

    tier1_max_tt_size: int = 50_000
    """Transposition table size at which tier 1 bails out"""

    max_depth: int = 30
    """Recursion ceiling of the exact solver"""

    # Tier 2
    tier2_max_nodes: int = 50_000
    """Node budget of each deepening iteration"""

    tier2_max_tt_size: int = 100_000
    """Transposition table size at which tier 2 stops"""

    tier2_max_time_ms: int = 2000
    """Wall-clock budget of iterative deepening"""

    tier2_max_depth: int = 20
    """Deepest iteration of iterative deepening"""

    # Tier 3
    tier3_depth_few: int = 6
    """Alpha-beta depth with at most tier3_pieces_few pieces"""

    tier3_depth_some: int = 5
    """Alpha-beta depth with at most tier3_pieces_some pieces"""

    tier3_depth_many: int = 4
    """Alpha-beta depth otherwise"""

    tier3_pieces_few: int = 8
    tier3_pieces_some: int = 12

    tier3_max_time_ms: int = 5000
    """Wall clock after which alpha-beta falls back to static evaluation"""

    # Strategy
    cooperative_advantage_cp: int = 50
    """Least score a cooperative engine's sampled move must keep"""

    mate_score: int = 99999
    """Score of delivering mate at the root"""

    random_seed: Optional[int] = None
    """Seed of the cooperative strategy's move sampling (None for random)"""

    def __post_init__(self):
        """Validate configuration after initialization."""
        positive = (
            "tier1_max_nodes", "tier1_max_tt_size", "max_depth",
            "tier2_max_nodes", "tier2_max_tt_size", "tier2_max_depth",
            "tier3_depth_few", "tier3_depth_some", "tier3_depth_many",
            "complexity_baseline_squares", "complexity_multiplier", "mate_score",
        )
        for name in positive:
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")

        for name in ("tier2_max_time_ms", "tier3_max_time_ms", "tier2_max_moves"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must not be negative, got {value}")

        if self.tier1_max_complexity > self.tier2_max_complexity:
            raise ValueError(
                f"tier1_max_complexity ({self.tier1_max_complexity}) cannot exceed "
                f"tier2_max_complexity ({self.tier2_max_complexity})"
            )

        if self.tier3_pieces_few > self.tier3_pieces_some:
            raise ValueError(
                f"tier3_pieces_few ({self.tier3_pieces_few}) cannot exceed "
                f"tier3_pieces_some ({self.tier3_pieces_some})"
            )

    def tier3_depth(self, piece_count: int) -> int:
        """Alpha-beta depth for a position with `piece_count` pieces."""
        if piece_count <= self.tier3_pieces_few:
            return self.tier3_depth_few
        if piece_count <= self.tier3_pieces_some:
            return self.tier3_depth_some
        return self.tier3_depth_many

    def __repr__(self) -> str:
        return (
            f"SolverConfig(\n"
            f"  Tiers: complexity <= {self.tier1_max_complexity} / {self.tier2_max_complexity}, "
            f"moves <= {self.tier2_max_moves}\n"
            f"  Tier 1: {self.tier1_max_nodes} nodes, {self.tier1_max_tt_size} entries, "
            f"depth {self.max_depth}\n"
            f"  Tier 2: {self.tier2_max_nodes} nodes, {self.tier2_max_time_ms} ms, "
            f"depth {self.tier2_max_depth}\n"
            f"  Tier 3: depth {self.tier3_depth_few}/{self.tier3_depth_some}/{self.tier3_depth_many}, "
            f"{self.tier3_max_time_ms} ms\n"
            f")"
        )


DEFAULT_CONFIG = SolverConfig()
