# geodesafio/services/session.py
"""
Per-challenge game state and its transitions.

Lifecycle of one challenge:

    start -> attempting -> solved | exhausted -> advance -> start (next) ...

Every transition takes the current SessionState and returns a new one plus
the events it produced; the input state is never mutated. Callers render
the events and push the score deltas into the leaderboard.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Optional, Union

from .challenges import ChallengeRecord
from .match import choice_options, find_option, is_match
from .scoring import (
    apply_delta,
    base_points,
    can_afford_hint,
    hint_cost,
    penalty,
    speed_bonus,
)

ATTEMPTING = "attempting"
SOLVED = "solved"
EXHAUSTED = "exhausted"


class QuizError(Exception):
    """Base class for rejected player actions."""


class InvalidTransition(QuizError):
    """Raised when an action is not allowed in the current phase."""


class InsufficientScore(QuizError):
    """Raised when the player cannot pay for a hint."""


class SelectionRequired(QuizError):
    """Raised when a multiple-choice guess arrives with nothing selected."""


class InvalidSelection(QuizError):
    """Raised when a multiple-choice guess is not one of the offered options."""


@dataclass(frozen=True)
class GameRules:
    max_attempts: int = 3
    multiple_choice_threshold: int = 2
    initial_blur: int = 30
    blur_step: int = 10

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.multiple_choice_threshold < 1:
            raise ValueError("multiple_choice_threshold must be at least 1")
        if self.initial_blur < 0 or self.blur_step < 0:
            raise ValueError("initial_blur and blur_step cannot be negative")

    @classmethod
    def from_config(cls, config: Any) -> "GameRules":
        return cls(
            max_attempts=int(config.get("MAX_ATTEMPTS", cls.max_attempts)),
            multiple_choice_threshold=int(
                config.get("MULTIPLE_CHOICE_THRESHOLD", cls.multiple_choice_threshold)
            ),
            initial_blur=int(config.get("INITIAL_BLUR", cls.initial_blur)),
            blur_step=int(config.get("BLUR_STEP", cls.blur_step)),
        )

    def blur_for(self, attempts: int) -> int:
        return max(0, self.initial_blur - self.blur_step * max(0, attempts))


# --- Events ---------------------------------------------------------------------

@dataclass(frozen=True)
class GuessAccepted:
    base: int
    bonus: int
    total: int
    elapsed: int

    @property
    def delta(self) -> int:
        return self.total


@dataclass(frozen=True)
class GuessRejected:
    attempt: int
    max_attempts: int
    blur_px: int

    @property
    def message(self) -> str:
        return f"Incorrect, attempt {self.attempt}/{self.max_attempts}"


@dataclass(frozen=True)
class MultipleChoiceActivated:
    options: tuple[str, ...]


@dataclass(frozen=True)
class ChallengeExhausted:
    penalty: int
    title: str

    @property
    def delta(self) -> int:
        return self.penalty


@dataclass(frozen=True)
class HintUnlocked:
    cost: int
    description: str

    @property
    def delta(self) -> int:
        return -self.cost


@dataclass(frozen=True)
class SessionComplete:
    final_score: int
    challenges_played: int


Event = Union[
    GuessAccepted,
    GuessRejected,
    MultipleChoiceActivated,
    ChallengeExhausted,
    HintUnlocked,
    SessionComplete,
]


# --- State ----------------------------------------------------------------------

@dataclass(frozen=True)
class SessionState:
    challenge_index: int = 0
    attempt_count: int = 0
    answered: bool = False
    exhausted: bool = False
    hint_used: bool = False
    start_timestamp: float = 0.0
    score: int = 0
    options: tuple[str, ...] = field(default_factory=tuple)

    @property
    def phase(self) -> str:
        if self.answered:
            return SOLVED
        if self.exhausted:
            return EXHAUSTED
        return ATTEMPTING

    @property
    def finished(self) -> bool:
        return self.phase != ATTEMPTING

    @property
    def multiple_choice(self) -> bool:
        return bool(self.options)

    def reveal_level(self, rules: GameRules) -> int:
        """0 is fully blurred; grows by one per wrong attempt until the image is sharp."""
        steps = math.ceil(rules.initial_blur / rules.blur_step) if rules.blur_step > 0 else 0
        if self.answered:
            return steps
        return min(self.attempt_count, steps)

    def blur_px(self, rules: GameRules) -> int:
        if self.answered:
            return 0
        return rules.blur_for(self.attempt_count)

    def to_dict(self) -> dict:
        return {
            "challenge_index": self.challenge_index,
            "attempt_count": self.attempt_count,
            "answered": self.answered,
            "exhausted": self.exhausted,
            "hint_used": self.hint_used,
            "start_timestamp": self.start_timestamp,
            "score": self.score,
            "options": list(self.options),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SessionState":
        return cls(
            challenge_index=int(data.get("challenge_index", 0) or 0),
            attempt_count=int(data.get("attempt_count", 0) or 0),
            answered=bool(data.get("answered")),
            exhausted=bool(data.get("exhausted")),
            hint_used=bool(data.get("hint_used")),
            start_timestamp=float(data.get("start_timestamp", 0.0) or 0.0),
            score=int(data.get("score", 0) or 0),
            options=tuple(data.get("options") or ()),
        )


# --- Transitions ----------------------------------------------------------------

def start(challenge_index: int, now: float, score: int = 0) -> SessionState:
    """Fresh state for the challenge at `challenge_index`: max blur, no attempts, clock running."""
    return SessionState(
        challenge_index=int(challenge_index),
        start_timestamp=float(now),
        score=max(0, int(score)),
    )


def elapsed_seconds(state: SessionState, now: float) -> int:
    return max(0, math.floor(now - state.start_timestamp))


def submit_guess(
    state: SessionState,
    record: ChallengeRecord,
    answer: Optional[str],
    rules: GameRules,
    now: float,
) -> tuple[SessionState, list[Event]]:
    """
    Evaluate one guess.
    - Ignored (same state, no events) once the challenge is solved or exhausted.
    - In multiple-choice mode `answer` is the selected option and must be one of them.
    """
    if state.finished:
        return state, []

    if state.multiple_choice:
        if not (answer or "").strip():
            raise SelectionRequired("Pick one of the options.")
        if find_option(answer, state.options) is None:
            raise InvalidSelection(f"{answer!r} is not one of the options.")

    if is_match(answer, record.title):
        elapsed = elapsed_seconds(state, now)
        base = base_points(record.difficulty, record.points)
        bonus = speed_bonus(elapsed)
        ev = GuessAccepted(base=base, bonus=bonus, total=base + bonus, elapsed=elapsed)
        new = replace(state, answered=True, score=apply_delta(state.score, ev.delta))
        return new, [ev]

    attempts = state.attempt_count + 1
    new = replace(state, attempt_count=attempts)
    events: list[Event] = [
        GuessRejected(attempt=attempts, max_attempts=rules.max_attempts, blur_px=rules.blur_for(attempts))
    ]

    if attempts >= rules.max_attempts:
        ev = ChallengeExhausted(penalty=penalty(), title=record.title)
        new = replace(new, exhausted=True, score=apply_delta(new.score, ev.delta))
        events.append(ev)
    elif attempts == rules.multiple_choice_threshold and not state.multiple_choice:
        options = tuple(choice_options(record.title, record.multiple_choice_options))
        new = replace(new, options=options)
        events.append(MultipleChoiceActivated(options=options))

    return new, events


def request_hint(
    state: SessionState,
    record: ChallengeRecord,
) -> tuple[SessionState, list[Event]]:
    """Buy the description text. One purchase per challenge; repeat clicks cost nothing."""
    if state.finished:
        raise InvalidTransition("Hints are only available while guessing.")
    if state.hint_used:
        return state, []
    if not can_afford_hint(state.score):
        raise InsufficientScore(f"A hint costs {hint_cost()} points; you have {state.score}.")

    ev = HintUnlocked(cost=hint_cost(), description=record.description)
    return replace(state, hint_used=True, score=apply_delta(state.score, ev.delta)), [ev]


def advance(
    state: SessionState,
    total_challenges: int,
    now: float,
) -> tuple[Optional[SessionState], list[Event]]:
    """
    Move on from a solved or exhausted challenge.
    Returns (None, [SessionComplete]) when the sequence is used up.
    """
    if not state.finished:
        raise InvalidTransition("Finish the current challenge first.")

    nxt = state.challenge_index + 1
    if nxt >= total_challenges:
        return None, [SessionComplete(final_score=state.score, challenges_played=nxt)]
    return start(nxt, now, score=state.score), []
