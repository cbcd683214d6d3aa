"""
Derived memory metrics.

The scheduler itself is SM-2 style ease/interval arithmetic. Difficulty and
retrievability are reported alongside it through the formulas below; each is a
single function so a different memory model can replace it without touching
the data model.
"""

import math
from datetime import datetime

from mnemos.application.utils.calendar import days_between
from mnemos.domain.constants import (
    GRADUATED_THRESHOLD_DAYS,
    MIN_OVERDUE_PENALTY,
    OVERDUE_PENALTY_DIVISOR,
)
from mnemos.domain.models import CardState, SchedulingRecord


def difficulty_from_ease(ease_factor: float) -> float:
    """Difficulty decreases monotonically as ease grows: 1 / ease."""
    return 1.0 / ease_factor


def retrievability(elapsed_days: float, interval_days: float) -> float:
    """
    Exponential recall decay: R = exp(-t / I).

    t = days since the previous review, I = the interval being scheduled.
    A zero interval means the card is due immediately, so R is 0 once any
    time has passed and 1 otherwise.
    """
    elapsed = max(0.0, elapsed_days)
    if interval_days <= 0:
        return 1.0 if elapsed == 0 else 0.0
    return math.exp(-elapsed / interval_days)


def retrievability_at(record: SchedulingRecord, now: datetime) -> float | None:
    """Current recall probability of a reviewed card, None if never reviewed."""
    if record.last_review is None:
        return None
    return retrievability(days_between(record.last_review, now), record.interval_days)


def is_graduated(
    record: SchedulingRecord, threshold_days: float = GRADUATED_THRESHOLD_DAYS
) -> bool:
    """Display-only label: a REVIEW card whose interval exceeds the threshold."""
    return record.state is CardState.REVIEW and record.interval_days > threshold_days


def overdue_penalty(record: SchedulingRecord, now: datetime) -> float:
    """
    Penalty multiplier for cards reviewed late.

    1.0 when not overdue, decaying logarithmically with whole days overdue
    down to a floor of 0.5.
    """
    if record.next_review is None or record.next_review > now:
        return 1.0

    days_overdue = math.floor(days_between(record.next_review, now))
    return max(1.0 - math.log(days_overdue + 1) / OVERDUE_PENALTY_DIVISOR, MIN_OVERDUE_PENALTY)
