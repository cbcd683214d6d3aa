"""
Forecast aggregation: how many cards become due on each upcoming calendar day.

Buckets are local calendar dates, not rolling 24h windows. The same bucket
semantics serve the "nothing due" screen and post-session summaries.
"""

import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo

from mnemos.application.utils.calendar import local_date
from mnemos.domain.constants import (
    DEFAULT_FORECAST_HORIZON_DAYS,
    THREE_DAY_BUCKET_END,
    TOMORROW_BUCKET_END,
)
from mnemos.domain.models import Card

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForecastBuckets:
    """
    Three-bucket projection used by session summaries.

    Attributes:
        due_tomorrow: Cards due later today or on the next calendar day.
        due_three_days: Cards due on days 2 and 3.
        due_later: Cards due from day 4 up to the horizon.
    """

    due_tomorrow: int = 0
    due_three_days: int = 0
    due_later: int = 0

    @property
    def total(self) -> int:
        return self.due_tomorrow + self.due_three_days + self.due_later


def forecast(
    cards: Iterable[Card],
    now: datetime,
    horizon_days: int = DEFAULT_FORECAST_HORIZON_DAYS,
    tz: tzinfo | None = None,
) -> dict[date, int]:
    """
    Count cards by the local date of their next review.

    Only cards with a next review inside [now, now + horizon_days] are counted;
    never-reviewed cards are excluded.
    """
    horizon = now + timedelta(days=horizon_days)
    counts: Counter[date] = Counter()

    for card in cards:
        next_review = card.record.next_review
        if next_review is None:
            continue
        if now <= next_review <= horizon:
            counts[local_date(next_review, tz)] += 1

    return dict(sorted(counts.items()))


def sum_days(mapping: Mapping[date, int], today: date, first: int, last: int) -> int:
    """Sum buckets for day offsets first..last (inclusive) relative to `today`."""
    return sum(mapping.get(today + timedelta(days=offset), 0) for offset in range(first, last + 1))


def bucket_forecast(
    mapping: Mapping[date, int],
    today: date,
    horizon_days: int = DEFAULT_FORECAST_HORIZON_DAYS,
) -> ForecastBuckets:
    """
    Collapse a per-day forecast into tomorrow / three days / later.

    Day offsets: 0..1 -> tomorrow, 2..3 -> three days, 4..horizon -> later.
    """
    return ForecastBuckets(
        due_tomorrow=sum_days(mapping, today, 0, TOMORROW_BUCKET_END),
        due_three_days=sum_days(mapping, today, TOMORROW_BUCKET_END + 1, THREE_DAY_BUCKET_END),
        due_later=sum_days(mapping, today, THREE_DAY_BUCKET_END + 1, horizon_days),
    )


def local_buckets(
    cards: Iterable[Card],
    now: datetime,
    horizon_days: int = DEFAULT_FORECAST_HORIZON_DAYS,
    tz: tzinfo | None = None,
) -> ForecastBuckets:
    """Forecast computed from an in-memory collection, already bucketed."""
    mapping = forecast(cards, now, horizon_days, tz)
    return bucket_forecast(mapping, local_date(now, tz), horizon_days)


def next_due(cards: Iterable[Card], now: datetime) -> datetime | None:
    """Earliest next review strictly after `now`, or None when nothing is scheduled."""
    upcoming = [
        card.record.next_review
        for card in cards
        if card.record.next_review is not None and card.record.next_review > now
    ]
    return min(upcoming) if upcoming else None


def describe_next_due(moment: datetime | None, now: datetime, tz: tzinfo | None = None) -> str:
    """Human text for the "no cards due" screen."""
    if moment is None:
        return "No upcoming reviews scheduled"

    day_offset = (local_date(moment, tz) - local_date(now, tz)).days
    if day_offset <= 0:
        hours = max(1, round((moment - now).total_seconds() / 3600))
        unit = "hour" if hours == 1 else "hours"
        return f"Next review in {hours} {unit}"
    if day_offset == 1:
        return "Next review tomorrow"
    return f"Next review in {day_offset} days"
