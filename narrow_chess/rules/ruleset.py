"""
Rule Configuration

A RuleSet is a flat, immutable record of optional rules threaded through
move generation, move application and terminal classification. There are
no per-variant subclasses: every variant is the same core called with a
different RuleSet. The default is conservative: every optional rule off,
optimal play.
"""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, Mapping


class AIStrategy(Enum):
    """
    Playing style applied on top of the search result.

        - OPTIMAL: Play the search result unchanged
        - AGGRESSIVE: Risk-seeking, avoids early draws when play can continue
        - COOPERATIVE: Deliberately weak, keeps forced wins and otherwise plays
          a random reasonable move
    """
    OPTIMAL = "optimal"
    AGGRESSIVE = "aggressive"
    COOPERATIVE = "cooperative"


@dataclass(frozen=True)
class RuleSet:
    """
    Optional rules for one game session.

    Attributes:
        castling: Track castling rights (castling moves are never generated)
        en_passant: Allow en-passant captures after a pawn double step
        fifty_move_rule: Draw once the halfmove clock reaches 100
        threefold: Draw on the third occurrence of a position
        promotion: Pawns reaching the last rank promote
        ai_strategy: Playing style of the engine
    """

    castling: bool = False
    en_passant: bool = False
    fifty_move_rule: bool = False
    threefold: bool = False
    promotion: bool = False
    ai_strategy: AIStrategy = AIStrategy.OPTIMAL

    # Record keys used by game-mode catalogs -> field names
    RECORD_KEYS = {
        "castling": "castling",
        "enPassant": "en_passant",
        "fiftyMoveRule": "fifty_move_rule",
        "threefold": "threefold",
        "promotion": "promotion",
        "aiStrategy": "ai_strategy",
    }

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> "RuleSet":
        """
        Build a RuleSet from an externally authored record.

        Accepts the catalog's camelCase keys or the field names. Missing
        keys keep their defaults.

        Args:
            record: Mapping of rule name -> value

        Returns:
            RuleSet

        Raises:
            ValueError: Unknown key, non-boolean flag or unknown strategy
        """
        field_names = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in record.items():
            name = cls.RECORD_KEYS.get(key, key)
            if name not in field_names:
                raise ValueError(f"Unknown rule: {key!r}")
            if name == "ai_strategy":
                values[name] = parse_strategy(value)
            else:
                if not isinstance(value, bool):
                    raise ValueError(f"Rule {key!r} must be true or false, got {value!r}")
                values[name] = value
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Inverse of from_dict(), using the catalog's keys."""
        return {
            key: (getattr(self, name).value if name == "ai_strategy" else getattr(self, name))
            for key, name in self.RECORD_KEYS.items()
        }


def parse_strategy(value: Any) -> AIStrategy:
    if isinstance(value, AIStrategy):
        return value
    try:
        return AIStrategy(str(value).lower())
    except ValueError:
        names = ", ".join(s.value for s in AIStrategy)
        raise ValueError(f"Unknown AI strategy: {value!r}. Expected one of {names}") from None


DEFAULT_RULES = RuleSet()
