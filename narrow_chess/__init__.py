"""
Narrow Chess Engine

Move generation, rule enforcement and position solving for chess variants
played on narrow boards: a single file of 6 to 12 squares up to multi-file
boards of about 3x8.

## Architecture

The engine is organized into several key modules:

1. **board**: Board geometry and the immutable position model
   - Text encoding of positions (also the transposition key)
   - Attack query, legal move generation, move application
   - Terminal classification (mate, stalemate, rule draws)

2. **rules**: Optional rules as a flat, immutable flag record
   - Promotion, en passant, fifty-move and threefold draws, castling rights
   - Playing style: optimal, aggressive or cooperative

3. **evaluation**: Static position evaluation
   - Abstract Evaluator interface (swappable design)
   - ClassicalEvaluator: material + piece-square tables scaled to any board

4. **search**: Three-tier search
   - Tier 1: exact WIN / LOSS / DRAW solver with cycle detection
   - Tier 2: bounded iterative deepening of tier 1
   - Tier 3: alpha-beta over the evaluator
   - Strategy layer and tier selection (recommend_move)

5. **protocol**: Line protocol front-end

6. **utils**: Scenario suite and perft

## Quick Start

```python
from narrow_chess.board import decode, legal_moves
from narrow_chess.rules import RuleSet
from narrow_chess.search import recommend_move

position = decode("bk,br,bn,br,bn,x,x,wn,wr,wn,wr,wk:w", "thin")
rules = RuleSet(fifty_move_rule=True)
result = recommend_move(position, rules, time_budget_ms=1000)
print(result.best_move, result)
```

### As a protocol engine

```bash
python -m narrow_chess.protocol
```

## Version

0.1.0
"""

__version__ = "0.1.0"
__license__ = "MIT"

__all__ = ['__version__']
