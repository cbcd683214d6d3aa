"""
Metrics calculator for deriving insights from scheduling records.

This is a pure computation module with no I/O.
"""

import math
from dataclasses import dataclass
from datetime import datetime

from mnemos.application.scheduling.memory import (
    difficulty_from_ease,
    is_graduated,
    overdue_penalty,
    retrievability_at,
)
from mnemos.application.utils.calendar import days_between
from mnemos.domain.constants import GRADUATED_THRESHOLD_DAYS
from mnemos.domain.models import Card, CardState


@dataclass
class CardInsights:
    """
    Card scheduling state enriched with computed metrics.
    """

    card_id: str
    deck_id: str
    state: CardState
    ease_factor: float
    interval_days: float
    review_count: int
    lapse_count: int

    # Computed metrics
    difficulty: float
    current_retrievability: float | None
    lapse_rate: float | None  # lapses / reviews
    days_overdue: int | None  # Negative if not yet due
    overdue_penalty: float
    graduated: bool


class MetricsCalculator:
    """
    Computes derived metrics from cards.

    Stateless and side-effect free.
    """

    def __init__(self, graduated_threshold_days: float = GRADUATED_THRESHOLD_DAYS):
        self.graduated_threshold_days = graduated_threshold_days

    def enrich(self, card: Card, now: datetime) -> CardInsights:
        """
        Enrich a card with computed metrics as of `now`.
        """
        record = card.record
        return CardInsights(
            card_id=card.id,
            deck_id=card.deck_id,
            state=record.state,
            ease_factor=record.ease_factor,
            interval_days=record.interval_days,
            review_count=record.review_count,
            lapse_count=record.lapse_count,
            difficulty=difficulty_from_ease(record.ease_factor),
            current_retrievability=retrievability_at(record, now),
            lapse_rate=self._compute_lapse_rate(card),
            days_overdue=self._compute_days_overdue(card, now),
            overdue_penalty=overdue_penalty(record, now),
            graduated=is_graduated(record, self.graduated_threshold_days),
        )

    def _compute_lapse_rate(self, card: Card) -> float | None:
        """
        Compute lapse rate as lapses / total reviews.
        """
        if card.record.review_count == 0:
            return None
        return card.record.lapse_count / card.record.review_count

    def _compute_days_overdue(self, card: Card, now: datetime) -> int | None:
        """
        Whole days since the card became due (negative if not yet due).
        """
        if card.record.next_review is None:
            return None
        return math.floor(days_between(card.record.next_review, now))
