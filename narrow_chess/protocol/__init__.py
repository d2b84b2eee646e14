"""
Protocol Interface

A UCI-style line protocol driving the engine core: set up a position and
rules, list moves, and ask for a recommended move.

Protocol Flow:
    → "isready"
    ← "readyok"
    → "newgame skinny"
    → "position startpos"
    → "go movetime 2000"
    ← "info tier 3 score cp 40 depth 6 nodes 5120 time 1640"
    ← "bestmove a4b4"

Usage:
    python -m narrow_chess.protocol
"""

from narrow_chess.protocol.interface import EngineProtocol, setup_logger

__all__ = ['EngineProtocol', 'setup_logger']
