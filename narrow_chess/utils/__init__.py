"""
Utilities Module

This module provides utility functions for testing and benchmarking the
engine.

Key Components:
    - Scenario suite: positions with a known WIN / LOSS / DRAW value
    - Perft: Move generation verification

Success Metrics:
    - Scenarios: every scenario classified as expected
    - Perft: counts match known values (thin start: 1, 1, 5 at depths 1-3)
"""

from narrow_chess.utils.testing import (
    SCENARIO_POSITIONS,
    ScenarioPosition,
    ScenarioResult,
    evaluate_scenario,
    perft,
    perft_divide,
    run_scenarios,
)

__all__ = [
    'SCENARIO_POSITIONS',
    'ScenarioPosition',
    'ScenarioResult',
    'evaluate_scenario',
    'perft',
    'perft_divide',
    'run_scenarios',
]
