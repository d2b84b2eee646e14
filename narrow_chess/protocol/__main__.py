"""
Main entry point for running the engine over the line protocol.

Usage:
    python -m narrow_chess.protocol
"""

from narrow_chess.protocol.interface import main

if __name__ == "__main__":
    main()
