"""
Session summary projection.

Pure computation over a finished (or abandoned) session plus the card
collection. The forecast part can come from an authoritative ForecastSource;
when that fails the summary falls back to the in-memory collection, using the
same bucket semantics either way.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, tzinfo

from mnemos.application.forecast import ForecastBuckets, bucket_forecast, local_buckets
from mnemos.application.utils.calendar import local_date
from mnemos.domain.constants import DEFAULT_FORECAST_HORIZON_DAYS
from mnemos.domain.exceptions import ForecastUnavailableError, StoreError
from mnemos.domain.models import Card, RecallRating, Session
from mnemos.domain.ports import ForecastSource

logger = logging.getLogger(__name__)


@dataclass
class SessionSummary:
    """Presentation-ready aggregates for one session."""

    cards_reviewed: int
    total_time_seconds: float
    average_time_per_card_seconds: float
    correct_percentage: float
    rating_distribution: list[int]
    rating_percentages: list[float]
    forecast: ForecastBuckets = field(default_factory=ForecastBuckets)
    forecast_source: str = "local"  # "local" or "remote"
    is_complete: bool = False


def rating_distribution(session: Session) -> list[int]:
    """Count per rating, index 0 = AGAIN ... 3 = EASY."""
    distribution = [0] * len(RecallRating)
    for item in session.review_history:
        distribution[item.rating - 1] += 1
    return distribution


def rating_percentages(distribution: list[int], total: int) -> list[float]:
    if total == 0:
        return [0.0] * len(distribution)
    return [count / total * 100 for count in distribution]


def accuracy_percentage(session: Session) -> float:
    """totalCorrect / completedCards, as a percentage. 0 when nothing completed."""
    if session.completed_cards == 0:
        return 0.0
    return session.total_correct / session.completed_cards * 100


def build_summary(
    session: Session,
    cards: Iterable[Card],
    now: datetime,
    horizon_days: int = DEFAULT_FORECAST_HORIZON_DAYS,
    tz: tzinfo | None = None,
) -> SessionSummary:
    """Summary with a forecast computed locally from `cards`."""
    buckets = local_buckets(cards, now, horizon_days, tz)
    return _assemble(session, buckets, "local")


async def build_summary_async(
    session: Session,
    cards: Iterable[Card],
    now: datetime,
    source: ForecastSource | None,
    horizon_days: int = DEFAULT_FORECAST_HORIZON_DAYS,
    tz: tzinfo | None = None,
) -> SessionSummary:
    """
    Summary whose forecast is delegated to `source`.

    Falls back to the local forecast if the source is missing or fails.
    """
    cards = list(cards)
    if source is None:
        return build_summary(session, cards, now, horizon_days, tz)

    try:
        mapping = await source.get_forecast(session.user_id, now, horizon_days)
    except (ForecastUnavailableError, StoreError) as e:
        logger.warning(f"Forecast source unavailable, using local estimation: {e}")
        return build_summary(session, cards, now, horizon_days, tz)

    buckets = bucket_forecast(mapping, local_date(now, tz), horizon_days)
    return _assemble(session, buckets, "remote")


def _assemble(session: Session, buckets: ForecastBuckets, source: str) -> SessionSummary:
    distribution = rating_distribution(session)

    if session.end_time is not None:
        total_time = (session.end_time - session.start_time).total_seconds()
    else:
        total_time = 0.0

    return SessionSummary(
        cards_reviewed=session.completed_cards,
        total_time_seconds=total_time,
        average_time_per_card_seconds=session.average_time_per_card_ms / 1000,
        correct_percentage=accuracy_percentage(session),
        rating_distribution=distribution,
        rating_percentages=rating_percentages(distribution, session.reviews_done),
        forecast=buckets,
        forecast_source=source,
        is_complete=session.is_complete,
    )
