"""
Domain models for the scheduling engine.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import IntEnum, StrEnum
from typing import Any

from .constants import MIN_EASE, STARTING_EASE


class RecallRating(IntEnum):
    """Four-button recall rating. Ordering is meaningful: GOOD and EASY are correct."""

    AGAIN = 1  # Complete failure to recall
    HARD = 2  # Significant difficulty recalling
    GOOD = 3  # Correct recall with effort
    EASY = 4  # Perfect recall with little/no hesitation

    @property
    def is_correct(self) -> bool:
        return self >= RecallRating.GOOD

    @property
    def description(self) -> str:
        return _RATING_DESCRIPTIONS[self]


_RATING_DESCRIPTIONS = {
    RecallRating.AGAIN: "Again - Complete failure to recall",
    RecallRating.HARD: "Hard - Recalled with significant difficulty",
    RecallRating.GOOD: "Good - Recalled correctly with some effort",
    RecallRating.EASY: "Easy - Perfect recall with no hesitation",
}


class CardState(StrEnum):
    """Persisted scheduling state of a card."""

    NEW = "NEW"
    LEARNING = "LEARNING"
    REVIEW = "REVIEW"
    RELEARNING = "RELEARNING"


class SessionStatus(StrEnum):
    """
    Lifecycle of a review session.

    State machine:
        UNINITIALIZED -> ACTIVE -> COMPLETE
              |            |
              v            +--> ABANDONED
          NOTHING_DUE      +--> FAILED
    """

    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    COMPLETE = "complete"
    NOTHING_DUE = "nothing_due"
    ABANDONED = "abandoned"
    FAILED = "failed"

    def can_accept_ratings(self) -> bool:
        return self is SessionStatus.ACTIVE

    def is_terminal(self) -> bool:
        return self in (
            SessionStatus.COMPLETE,
            SessionStatus.NOTHING_DUE,
            SessionStatus.ABANDONED,
            SessionStatus.FAILED,
        )


@dataclass(frozen=True)
class SchedulingRecord:
    """
    The scheduling-relevant subset of a flashcard's persistent fields.

    Attributes:
        state: Persisted card state.
        ease_factor: Interval growth multiplier, never below MIN_EASE.
        interval_days: Current scheduled interval in (possibly fractional) days.
        review_count: Number of ratings ever applied.
        lapse_count: Number of AGAIN ratings ever applied.
        last_review: Instant of the most recent rating.
        next_review: Instant the card becomes due. None only for never-reviewed cards.
        difficulty: Derived, for display (see scheduling.memory).
        retrievability: Derived recall probability at the time of the last rating.
    """

    state: CardState = CardState.NEW
    ease_factor: float = STARTING_EASE
    interval_days: float = 0.0
    review_count: int = 0
    lapse_count: int = 0
    last_review: datetime | None = None
    next_review: datetime | None = None
    difficulty: float | None = None
    retrievability: float | None = None

    def __post_init__(self) -> None:
        if self.ease_factor < MIN_EASE:
            raise ValueError(f"ease_factor {self.ease_factor} is below minimum {MIN_EASE}")
        if self.interval_days < 0:
            raise ValueError(f"interval_days must be >= 0, got {self.interval_days}")
        if self.review_count < 0 or self.lapse_count < 0:
            raise ValueError("review_count and lapse_count must be >= 0")
        if self.review_count > 0 and self.next_review is None:
            raise ValueError("next_review is required once a card has been reviewed")

    @property
    def is_new(self) -> bool:
        return self.state is CardState.NEW


@dataclass(frozen=True)
class Card:
    """A flashcard as seen by the engine: identity, scope and scheduling state."""

    id: str
    deck_id: str
    record: SchedulingRecord = field(default_factory=SchedulingRecord)
    user_id: str | None = None
    created: datetime | None = None
    data: dict[str, Any] = field(default_factory=dict, compare=False)

    def with_record(self, record: SchedulingRecord) -> "Card":
        return replace(self, record=record)


@dataclass(frozen=True)
class ReviewHistoryItem:
    """
    One rating event. Created once per rating and never mutated.

    Attributes:
        card_id: The card that was rated.
        rating: Button pressed.
        time_spent_ms: Time between the card being shown and rated.
        previous_interval: Interval (days) before the rating.
        new_interval: Interval (days) assigned by the rating.
        timestamp: When the rating happened.
    """

    card_id: str
    rating: RecallRating
    time_spent_ms: int
    previous_interval: float
    new_interval: float
    timestamp: datetime


@dataclass
class Session:
    """Running aggregate for one review session, owned by the orchestrator."""

    id: str
    user_id: str
    start_time: datetime
    deck_id: str | None = None
    end_time: datetime | None = None
    is_complete: bool = False

    total_cards: int = 0
    completed_cards: int = 0
    total_correct: int = 0
    total_incorrect: int = 0

    total_time_ms: int = 0
    average_time_per_card_ms: float = 0.0

    review_history: list[ReviewHistoryItem] = field(default_factory=list)

    @property
    def reviews_done(self) -> int:
        return len(self.review_history)
