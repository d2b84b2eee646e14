"""
Rules Module

Optional rules are a flat immutable flag record threaded through every
generation and application call, so the core stays a pure function of
(position, rules).

Key Components:
    - RuleSet: castling, en_passant, fifty_move_rule, threefold, promotion
      flags plus the engine's playing style
    - AIStrategy: OPTIMAL, AGGRESSIVE or COOPERATIVE
    - DEFAULT_RULES: every optional rule off, optimal play
"""

from narrow_chess.rules.ruleset import AIStrategy, DEFAULT_RULES, RuleSet, parse_strategy

__all__ = ['AIStrategy', 'DEFAULT_RULES', 'RuleSet', 'parse_strategy']
