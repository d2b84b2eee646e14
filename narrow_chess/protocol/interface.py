"""
Line Protocol Implementation

This module implements a small UCI-style text protocol so the engine core
can be driven from a terminal, a script or a GUI process. Commands arrive
one per line on stdin; responses go to stdout. The search runs on the
caller's thread and every command completes before the next is read.

Commands Supported:
    - isready: Synchronization check
    - newgame [thin|skinny]: Start a new game, clearing the transposition table
    - position <code|startpos> [moves m1 m2 ...]: Set the position
    - rules key=value ...: Set optional rules and the playing style
    - moves: List legal moves
    - d: Print the board
    - go [movetime N]: Search and print the recommended move
    - quit: Shut down

Protocol Flow:
    → "newgame thin"
    → "rules fiftyMoveRule=true aiStrategy=aggressive"
    → "position startpos moves a5a7"
    → "go movetime 1000"
    ← "info tier 3 score cp 25 depth 5 nodes 1234 time 87"
    ← "bestmove a8a6"
"""

import logging
import sys
import time
from dataclasses import fields
from pathlib import Path
from typing import Dict, List, Optional

from narrow_chess.board.movegen import apply_move, legal_moves
from narrow_chess.board.position import (
    STARTING_POSITIONS,
    Position,
    PositionError,
    decode,
    encode,
    move_to_algebraic,
    parse_move,
    starting_position,
)
from narrow_chess.evaluation.base import Evaluator
from narrow_chess.evaluation.classical import ClassicalEvaluator
from narrow_chess.rules.ruleset import DEFAULT_RULES, RuleSet
from narrow_chess.search.config import DEFAULT_CONFIG, SolverConfig
from narrow_chess.search.results import EvalResult, SearchResult
from narrow_chess.search.selector import recommend_move
from narrow_chess.search.transposition import TranspositionTable

LOGGER_NAME = "narrow_chess"
DEFAULT_LOG_FILE = Path.home() / ".narrow_chess" / "engine.log"

TRUE_WORDS = ("true", "on", "yes", "1")
FALSE_WORDS = ("false", "off", "no", "0")


def setup_logger(debug=True, log_file: Optional[Path] = None):
    """
    Setup file-based logger for protocol debugging.

    The logger is the package's root logger, so every module logger
    (narrow_chess.search.selector, ...) writes to the same file.

    Args:
        debug: If True, log at DEBUG level; otherwise INFO level
        log_file: Log path (default: ~/.narrow_chess/engine.log)

    Returns:
        Configured logger instance
    """
    log_file = Path(log_file) if log_file is not None else DEFAULT_LOG_FILE
    log_file.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handler = logging.FileHandler(log_file, mode='w')
    formatter = logging.Formatter(
        '%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%H:%M:%S'
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


def parse_rule_tokens(tokens: List[str], current: RuleSet = DEFAULT_RULES) -> RuleSet:
    """
    Parse "key=value" tokens into a RuleSet, starting from `current`.

    Raises:
        ValueError: Malformed token, unknown rule or bad value
    """
    values: Dict[str, object] = {f.name: getattr(current, f.name) for f in fields(RuleSet)}
    for token in tokens:
        if "=" not in token:
            raise ValueError(f"Expected key=value, got {token!r}")
        key, value = token.split("=", 1)
        name = RuleSet.RECORD_KEYS.get(key, key)
        lowered = value.lower()
        if lowered in TRUE_WORDS:
            values[name] = True
        elif lowered in FALSE_WORDS:
            values[name] = False
        else:
            values[name] = value
    return RuleSet.from_dict(values)


class EngineProtocol:
    """
    Text front-end for the narrow-board engine.

    Attributes:
        variant: Variant of the current game ("thin" or "skinny")
        position: Current position
        rules: Active rule flags
        config: Solver thresholds and budgets
        evaluator: Static evaluator for the heuristic tier
        transposition_table: Cache of exact results for the current game
    """

    def __init__(
        self,
        evaluator: Optional[Evaluator] = None,
        config: SolverConfig = DEFAULT_CONFIG,
        debug=True,
        log_file: Optional[Path] = None,
    ):
        """
        Initialize the protocol front-end.

        Args:
            evaluator: Position evaluator (default: ClassicalEvaluator)
            config: Solver configuration
            debug: Enable debug logging (default: True)
            log_file: Log path (default: ~/.narrow_chess/engine.log)
        """
        self.variant = "thin"
        self.position: Position = starting_position(self.variant)
        self.base_code = encode(self.position, extended=True)
        self.rules = DEFAULT_RULES
        self.config = config
        self.evaluator = evaluator if evaluator else ClassicalEvaluator()
        self.transposition_table = TranspositionTable()

        self.name = "NarrowChess"
        self.version = "0.1.0"

        self.logger = setup_logger(debug=debug, log_file=log_file)
        self.logger.info(f"=== {self.name} {self.version} started ===")

    def run(self):
        """
        Main command loop.

        Reads commands from stdin until "quit" or end of input. A failing
        command is logged and reported on stderr; the loop keeps running.
        """
        while True:
            try:
                command = input().strip()

                if not command:
                    continue

                self.logger.debug(f">>> {command}")
                if not self.handle_command(command):
                    break

            except EOFError:
                self.logger.info("EOF received, shutting down")
                break
            except Exception as e:
                self.logger.error(f"Command error: {e}", exc_info=True)
                print(f"# Error: {e}", file=sys.stderr)

    def handle_command(self, command: str) -> bool:
        """
        Dispatch one command line.

        Returns:
            bool: False once "quit" has been handled
        """
        tokens = command.split()
        cmd = tokens[0].lower()

        if cmd == "isready":
            self.handle_isready()
        elif cmd == "newgame":
            self.handle_newgame(tokens)
        elif cmd == "position":
            self.handle_position(tokens)
        elif cmd == "rules":
            self.handle_rules(tokens)
        elif cmd == "moves":
            self.handle_moves()
        elif cmd == "d":
            self.handle_display()
        elif cmd == "go":
            self.handle_go(tokens)
        elif cmd == "quit":
            self.handle_quit()
            return False
        else:
            self.logger.debug(f"Unknown command ignored: {command}")
        return True

    def _send(self, line: str):
        print(line)
        sys.stdout.flush()
        self.logger.debug(f"<<< {line}")

    def handle_isready(self):
        """Handle 'isready' command - synchronization."""
        self._send("readyok")

    def handle_newgame(self, tokens: List[str]):
        """
        Handle 'newgame [variant]' - reset the board and the transposition table.

        Raises:
            PositionError: Unknown variant
        """
        variant = tokens[1] if len(tokens) > 1 else self.variant
        self.position = starting_position(variant)
        self.variant = variant
        self.base_code = encode(self.position, extended=True)
        self.transposition_table.clear()
        self.logger.info(f"New {variant} game: {encode(self.position)}")

    def handle_position(self, tokens: List[str]):
        """
        Handle 'position' command - set the position.

        Formats:
            position startpos
            position startpos moves a5a7
            position bk,x,x,wn,x,wk:w
            position x,bk/x,x/wk,x:b:-:0:0 moves b3a3

        Loading a different base position clears the transposition table.
        Moves are applied until the first illegal one.

        Raises:
            PositionError: Missing or malformed position code
        """
        if len(tokens) < 2:
            raise PositionError("position needs a code or startpos")

        if tokens[1] == "startpos":
            position = starting_position(self.variant)
        elif tokens[1] in STARTING_POSITIONS:
            position = starting_position(tokens[1])
            self.variant = tokens[1]
        else:
            position = decode(tokens[1])

        base_code = encode(position, extended=True)
        if base_code != self.base_code:
            self.transposition_table.clear()
            self.base_code = base_code

        if len(tokens) > 2 and tokens[2] == "moves":
            for text in tokens[3:]:
                move = parse_move(text, position.geometry)
                if move not in legal_moves(position, self.rules):
                    self.logger.error(f"Illegal move: {text}")
                    print(f"# Illegal move: {text}", file=sys.stderr)
                    break
                position = apply_move(position, move, self.rules)

        self.position = position
        self.logger.info(f"Position updated: {encode(position, extended=True)}")

    def handle_rules(self, tokens: List[str]):
        """
        Handle 'rules key=value ...' - change rule flags or the playing style.

        Keys are the catalog names (enPassant, fiftyMoveRule, aiStrategy, ...)
        or their snake_case field names. Cached results depend on the rules,
        so the transposition table is cleared.
        """
        self.rules = parse_rule_tokens(tokens[1:], self.rules)
        self.transposition_table.clear()
        self.logger.info(f"Rules: {self.rules}")

    def handle_moves(self):
        """Handle 'moves' - list the legal moves of the current position."""
        geometry = self.position.geometry
        moves = legal_moves(self.position, self.rules)
        self._send(" ".join(move_to_algebraic(move, geometry) for move in moves))

    def handle_display(self):
        """Handle 'd' - print a board diagram and the position code."""
        for line in self.position.diagram().splitlines():
            self._send(line)
        self._send(f"Code: {encode(self.position, extended=True)}")

    def handle_go(self, tokens: List[str]):
        """
        Handle 'go [movetime N]' - search and report the recommended move.

        Output:
            info tier T result WIN|LOSS|DRAW depth D nodes N time T  (tiers 1-2)
            info tier T score cp S depth D nodes N time T            (tier 3)
            bestmove <move> | bestmove (none)
        """
        movetime = None
        i = 1
        while i < len(tokens):
            if tokens[i] == "movetime" and i + 1 < len(tokens):
                movetime = int(tokens[i + 1])
                i += 2
            else:
                i += 1

        start_time = time.time()
        result = recommend_move(
            self.position,
            self.rules,
            time_budget_ms=movetime,
            config=self.config,
            table=self.transposition_table,
            evaluator=self.evaluator,
        )
        elapsed_ms = int((time.time() - start_time) * 1000)

        self._send(self.format_info(result, elapsed_ms))
        if result.best_move is None:
            self._send("bestmove (none)")
        else:
            self._send(f"bestmove {move_to_algebraic(result.best_move, self.position.geometry)}")

    @staticmethod
    def format_info(result: SearchResult, elapsed_ms: int) -> str:
        parts = ["info", f"tier {result.tier}"]
        if isinstance(result, EvalResult):
            parts += [f"score cp {int(result.score)}", f"depth {result.depth}", f"nodes {result.nodes}"]
        else:
            parts += [f"result {result.outcome.value}", f"depth {result.depth}"]
        parts.append(f"time {elapsed_ms}")
        return " ".join(parts)

    def handle_quit(self):
        """Handle 'quit' command - shutdown."""
        self.logger.info(f"=== {self.name} stopped ===")


def main():
    """Run the engine on stdin/stdout."""
    engine = EngineProtocol()
    engine.run()
