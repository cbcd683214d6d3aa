from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from mnemos.application.forecast import ForecastBuckets
from mnemos.application.session.orchestrator import ReviewSessionOrchestrator
from mnemos.application.session.summary import (
    accuracy_percentage,
    build_summary,
    build_summary_async,
    rating_distribution,
    rating_percentages,
)
from mnemos.domain.exceptions import ForecastUnavailableError, StoreUnavailableError
from mnemos.domain.models import CardState, RecallRating, Session


@pytest.fixture
def finished(make_card, now):
    """A completed session: EASY on a new card, AGAIN then GOOD on a review card."""
    orchestrator = ReviewSessionOrchestrator()
    cards = [
        make_card("a"),
        make_card("b", state=CardState.REVIEW, interval_days=5, due_in_days=-1),
    ]
    orchestrator.start(cards, "u1", now)
    updated = [
        orchestrator.rate(RecallRating.EASY, now + timedelta(seconds=4)).card,
        orchestrator.rate(RecallRating.AGAIN, now + timedelta(seconds=10)).card,
        orchestrator.rate(RecallRating.GOOD, now + timedelta(seconds=16)).card,
    ]
    latest = {card.id: card for card in updated}
    return orchestrator.session, list(latest.values())


def test_rating_distribution_and_percentages(finished):
    session, _ = finished

    distribution = rating_distribution(session)

    assert distribution == [1, 0, 1, 1]
    assert rating_percentages(distribution, 3) == pytest.approx([100 / 3, 0, 100 / 3, 100 / 3])
    assert rating_percentages([0, 0, 0, 0], 0) == [0.0, 0.0, 0.0, 0.0]


def test_accuracy_uses_completed_cards(now):
    session = Session(id="s", user_id="u1", start_time=now, completed_cards=4, total_correct=3)
    assert accuracy_percentage(session) == pytest.approx(75.0)
    assert accuracy_percentage(Session(id="s", user_id="u1", start_time=now)) == 0.0


def test_build_summary(finished, now):
    session, cards = finished

    summary = build_summary(session, cards, now + timedelta(seconds=16))

    assert summary.cards_reviewed == 2
    assert summary.total_time_seconds == pytest.approx(16.0)
    assert summary.average_time_per_card_seconds == pytest.approx(8.0)
    assert summary.correct_percentage == pytest.approx(100.0)
    assert summary.rating_distribution == [1, 0, 1, 1]
    assert summary.is_complete is True
    assert summary.forecast_source == "local"
    # "b" is due in 1 day, "a" in 4 days.
    assert summary.forecast == ForecastBuckets(due_tomorrow=1, due_three_days=0, due_later=1)


def test_abandoned_session_has_no_total_time(now):
    session = Session(id="s", user_id="u1", start_time=now)
    summary = build_summary(session, [], now)

    assert summary.total_time_seconds == 0.0
    assert summary.cards_reviewed == 0
    assert summary.is_complete is False
    assert summary.forecast.total == 0


@pytest.mark.asyncio
async def test_build_summary_async_uses_source(finished, now):
    session, cards = finished
    source = AsyncMock()
    source.get_forecast.return_value = {
        now.date() + timedelta(days=1): 5,
        now.date() + timedelta(days=2): 2,
        now.date() + timedelta(days=6): 1,
    }

    summary = await build_summary_async(session, cards, now, source, horizon_days=7)

    source.get_forecast.assert_awaited_once_with("u1", now, 7)
    assert summary.forecast_source == "remote"
    assert summary.forecast == ForecastBuckets(due_tomorrow=5, due_three_days=2, due_later=1)


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [ForecastUnavailableError("down"), StoreUnavailableError("x")])
async def test_build_summary_async_falls_back_to_local(finished, now, error):
    session, cards = finished
    source = AsyncMock()
    source.get_forecast.side_effect = error

    summary = await build_summary_async(session, cards, now, source)

    assert summary.forecast_source == "local"
    assert summary.forecast == build_summary(session, cards, now).forecast


@pytest.mark.asyncio
async def test_build_summary_async_without_source(finished, now):
    session, cards = finished

    summary = await build_summary_async(session, cards, now, None)

    assert summary.forecast_source == "local"
