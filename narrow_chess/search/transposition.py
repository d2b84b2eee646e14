"""
Transposition Table for Exact Solving

The exact solver caches every complete result under the position's full
extended encoding (board, side, en-passant target, halfmove clock and
castling rights). Identical keys mean strategically identical positions,
so a cached result can be reused wherever the position is reached again.

The table is LRU-bounded. A process-wide session table is shared by the
tiers of one game; the caller clears it on a new game or when loading an
unrelated position. Every search function also accepts an explicit table.

References:
    - Transposition Table: https://www.chessprogramming.org/Transposition_Table
"""

from collections import OrderedDict
from typing import Dict, Optional

from narrow_chess.search.results import SolveResult


class TranspositionTable:
    """
    LRU-bounded cache from position key to SolveResult.

    Attributes:
        max_size: Maximum number of entries before the oldest is evicted
        table: OrderedDict mapping key → SolveResult, least recently used first
    """

    def __init__(self, max_size: int = 1_000_000):
        """
        Initialize transposition table.

        Args:
            max_size: Maximum number of entries
        """
        if max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self.max_size = max_size
        self.table: "OrderedDict[str, SolveResult]" = OrderedDict()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def store(self, key: str, result: SolveResult):
        """
        Store a solved position.

        Args:
            key: Extended position encoding
            result: Complete solver result
        """
        if key in self.table:
            self.table.move_to_end(key)
        elif len(self.table) >= self.max_size:
            self.table.popitem(last=False)
            self.evictions += 1
        self.table[key] = result

    def lookup(self, key: str) -> Optional[SolveResult]:
        """
        Look up a position, counting the hit or miss.

        Args:
            key: Extended position encoding

        Returns:
            SolveResult if cached, None otherwise
        """
        if key in self.table:
            self.table.move_to_end(key)
            self.hits += 1
            return self.table[key]
        self.misses += 1
        return None

    def peek(self, key: str) -> Optional[SolveResult]:
        """Look up without touching statistics or recency."""
        return self.table.get(key)

    def clear(self):
        """Clear all entries from the transposition table."""
        self.table.clear()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get_stats(self) -> Dict[str, float]:
        """Get statistics about transposition table usage."""
        total_lookups = self.hits + self.misses
        hit_rate = (self.hits / total_lookups * 100) if total_lookups > 0 else 0

        return {
            'entries': len(self.table),
            'max_size': self.max_size,
            'hits': self.hits,
            'misses': self.misses,
            'evictions': self.evictions,
            'hit_rate': hit_rate,
        }

    def __contains__(self, key: str) -> bool:
        return key in self.table

    def __len__(self) -> int:
        return len(self.table)

    def __repr__(self) -> str:
        stats = self.get_stats()
        return (
            f"TranspositionTable(entries={stats['entries']}, "
            f"hit_rate={stats['hit_rate']:.1f}%)"
        )


# Shared by the tiers of one game session
SESSION_TABLE = TranspositionTable()


def clear_session_table():
    """Forget every cached result (new game or unrelated position)."""
    SESSION_TABLE.clear()
