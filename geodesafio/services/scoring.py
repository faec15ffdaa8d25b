# geodesafio/services/scoring.py

from __future__ import annotations
from typing import Optional

# Base scoring knobs
DEFAULT_POINTS = 10  # data variants without a difficulty classification
SPEED_BONUS_WINDOW = 20  # seconds; one bonus point per second left in the window
PENALTY = -5  # applied once, when a challenge runs out of attempts
HINT_COST = 5

# Difficulty labels (all keys MUST be lowercase). The data files use the
# Portuguese labels, the API exposes the English ones.
DIFFICULTY_POINTS = {
    "easy": 10,
    "medium": 20,
    "hard": 40,
}

DIFFICULTY_ALIAS = {
    "fácil": "easy", "facil": "easy",
    "médio": "medium", "medio": "medium",
    "difícil": "hard", "dificil": "hard",
}


def canon_difficulty(label: Optional[str]) -> Optional[str]:
    """Map any known difficulty label to 'easy' / 'medium' / 'hard' (or None)."""
    if not label:
        return None
    key = str(label).strip().lower()
    key = DIFFICULTY_ALIAS.get(key, key)
    return key if key in DIFFICULTY_POINTS else None


def base_points(difficulty: Optional[str] = None, override: Optional[int] = None) -> int:
    """
    Points for a correct guess before the speed bonus.
    - An explicit per-record value always wins.
    - Otherwise the difficulty table.
    - Otherwise a flat default.
    """
    if override is not None:
        return int(override)
    key = canon_difficulty(difficulty)
    if key is None:
        return DEFAULT_POINTS
    return DIFFICULTY_POINTS[key]


def speed_bonus(elapsed_seconds: float) -> int:
    elapsed = max(0, int(elapsed_seconds or 0))
    return max(0, SPEED_BONUS_WINDOW - elapsed)


def total_points(
    difficulty: Optional[str] = None,
    override: Optional[int] = None,
    elapsed_seconds: float = 0,
) -> int:
    return base_points(difficulty, override) + speed_bonus(elapsed_seconds)


def penalty() -> int:
    return PENALTY


def hint_cost() -> int:
    return HINT_COST


def can_afford_hint(score: int) -> bool:
    """No partial deductions: the hint is sold only when the full cost is covered."""
    return int(score or 0) >= HINT_COST


def apply_delta(score: int, delta: int) -> int:
    """Add a point delta to a running score. Floors at zero."""
    return max(0, int(score or 0) + int(delta))
