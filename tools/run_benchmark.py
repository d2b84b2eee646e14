#!/usr/bin/env python3
"""
Scenario and Perft Benchmark Runner

Runs the scenario suite at several node budgets and a perft count of the
starting positions, to establish baseline performance metrics for the
engine.

Usage:
    python tools/run_benchmark.py [--budgets 5000,50000] [--perft-depth 6] [--verbose]
"""

import sys
import argparse
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from narrow_chess.board.position import STARTING_POSITIONS, starting_position
from narrow_chess.utils.testing import perft, run_scenarios
import time


def format_time(seconds: float) -> str:
    """Format time"""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    else:
        minutes = int(seconds // 60)
        secs = seconds % 60
        return f"{minutes}m {secs:.0f}s"


def run_perft(depth: int):
    """
    Count perft of every starting position up to `depth`.

    Returns:
        Dictionary variant -> list of (depth, nodes, seconds)
    """
    counts = {}
    for variant in STARTING_POSITIONS:
        position = starting_position(variant)
        rows = []
        for d in range(1, depth + 1):
            start_time = time.time()
            nodes = perft(position, d)
            rows.append((d, nodes, time.time() - start_time))
        counts[variant] = rows
    return counts


def run_benchmark(budgets: list[int], perft_depth: int = 0, verbose: bool = False):
    """
    Run the scenario suite at multiple node budgets.

    Args:
        budgets: Node budgets to test
        perft_depth: Perft depth for the starting positions (0 to skip)
        verbose: If True, print detailed results for each scenario
    """
    print("=" * 80)
    print("SCENARIO BENCHMARK - Narrow Chess Engine")
    print("=" * 80)
    print("Solver: Exact WIN/LOSS/DRAW negamax + Transposition Table")
    print(f"Node budgets: {budgets}")
    print("=" * 80)

    all_results = []

    for budget in budgets:
        print(f"\n{'=' * 80}")
        print(f"BUDGET {budget:,} NODES")
        print("=" * 80)

        start_time = time.time()
        result = run_scenarios(max_nodes=budget, verbose=verbose)
        total_time = time.time() - start_time

        total_nodes = sum(r.nodes_searched for r in result['results'])
        nodes_per_sec = total_nodes / total_time if total_time > 0 else 0
        incomplete = sum(1 for r in result['results'] if not r.complete)

        all_results.append({
            'budget': budget,
            'score': result['score'],
            'total': result['total'],
            'percentage': result['percentage'],
            'avg_time': result['avg_time'],
            'total_nodes': total_nodes,
            'nodes_per_sec': nodes_per_sec,
            'incomplete': incomplete,
            'results': result['results'],
        })

        print(f"\nResults at {budget:,} nodes:")
        print(f"  Correct: {result['score']}/{result['total']} ({result['percentage']:.1f}%)")
        print(f"  Proved (complete): {result['total'] - incomplete}/{result['total']}")
        print(f"  Total time: {format_time(total_time)}")
        print(f"  Total nodes: {total_nodes:,}")
        print(f"  Nodes/sec: {nodes_per_sec:,.0f}")

        failed = [r for r in result['results'] if not r.correct]
        if failed and verbose:
            print("\n  Failed scenarios:")
            for r in failed:
                found = r.outcome.value if r.outcome else "error"
                print(f"    {r.position.id}: Expected {r.position.expected.value}, got {found}")

    print("\n" + "=" * 80)
    print("SUMMARY TABLE")
    print("=" * 80)
    print(f"{'Budget':<10} {'Correct':<12} {'%':<8} {'Avg Time':<12} {'Nodes/sec':<15} {'Proved':<8}")
    print("-" * 80)
    for r in all_results:
        proved = r['total'] - r['incomplete']
        print(f"{r['budget']:<10} {r['score']}/{r['total']:<10} {r['percentage']:<7.1f}% "
              f"{format_time(r['avg_time']):<12} {r['nodes_per_sec']:>12,.0f}  {proved}/{r['total']}")
    print("=" * 80)

    if perft_depth > 0:
        print("\nPERFT")
        print("-" * 80)
        for variant, rows in run_perft(perft_depth).items():
            for depth, nodes, seconds in rows:
                print(f"  {variant:<8} depth {depth:<3} {nodes:>12,} nodes  {format_time(seconds)}")

    print("\n" + "=" * 80)
    print("Benchmark complete!")
    print("=" * 80)

    return all_results


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Run the scenario suite at multiple node budgets"
    )
    parser.add_argument(
        "--budgets",
        type=str,
        default="5000,50000",
        help="Comma-separated list of node budgets (default: 5000,50000)"
    )
    parser.add_argument(
        "--perft-depth",
        type=int,
        default=0,
        help="Perft depth for the starting positions (default: 0, skipped)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print detailed results for each scenario"
    )

    args = parser.parse_args(argv)

    try:
        budgets = [int(b.strip()) for b in args.budgets.split(",")]
    except ValueError:
        print("Error: budgets must be comma-separated integers")
        sys.exit(1)

    try:
        run_benchmark(budgets, perft_depth=args.perft_depth, verbose=args.verbose)
    except KeyboardInterrupt:
        print("\n\nBenchmark interrupted by user")
        sys.exit(1)


if __name__ == "__main__":
    main()
