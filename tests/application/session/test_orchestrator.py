"""Tests for the review session orchestrator state machine."""

from datetime import datetime, timedelta

import pytest

from mnemos.application.session.orchestrator import (
    ReviewSessionOrchestrator,
    generate_session_id,
)
from mnemos.domain.exceptions import SessionStateError
from mnemos.domain.models import CardState, RecallRating, SessionStatus


@pytest.fixture
def orchestrator():
    return ReviewSessionOrchestrator()


@pytest.fixture
def review_card(make_card):
    def _make(card_id="r1", due_in_days=-1.0, **kwargs):
        return make_card(
            card_id,
            state=CardState.REVIEW,
            interval_days=5.0,
            due_in_days=due_in_days,
            **kwargs,
        )

    return _make


# --- Start ---


class TestStart:
    def test_starts_active_with_due_queue(self, orchestrator, make_card, review_card, now):
        cards = [review_card("r1"), make_card("n1"), review_card("future", due_in_days=2)]

        status = orchestrator.start(cards, "u1", now)

        assert status is SessionStatus.ACTIVE
        assert [c.id for c in orchestrator.queue] == ["n1", "r1"]
        assert orchestrator.current_card.id == "n1"
        session = orchestrator.session
        assert session.user_id == "u1"
        assert session.total_cards == 2
        assert session.start_time == now
        assert session.id.startswith("session_")

    def test_nothing_due_records_next_due_and_forecast(self, orchestrator, review_card, now):
        cards = [review_card("a", due_in_days=1), review_card("b", due_in_days=3)]

        status = orchestrator.start(cards, "u1", now)

        assert status is SessionStatus.NOTHING_DUE
        assert orchestrator.session is None
        assert orchestrator.current_card is None
        assert orchestrator.next_due_at == now + timedelta(days=1)
        assert orchestrator.next_due_forecast == {
            now.date() + timedelta(days=1): 1,
            now.date() + timedelta(days=3): 1,
        }

    def test_nothing_due_is_scoped_to_deck(self, orchestrator, review_card, now):
        cards = [
            review_card("es", deck_id="spanish", due_in_days=1),
            review_card("fr", deck_id="french", due_in_days=4),
        ]

        orchestrator.start(cards, "u1", now, deck_id="french")

        assert orchestrator.next_due_at == now + timedelta(days=4)

    def test_empty_collection(self, orchestrator, now):
        assert orchestrator.start([], "u1", now) is SessionStatus.NOTHING_DUE
        assert orchestrator.next_due_at is None

    def test_restart_discards_previous_session(self, orchestrator, make_card, now):
        orchestrator.start([make_card("a")], "u1", now)
        first = orchestrator.session

        orchestrator.start([make_card("b")], "u1", now)

        assert orchestrator.session is not first
        assert [c.id for c in orchestrator.queue] == ["b"]

    def test_respects_new_card_limit(self, make_card, now):
        orchestrator = ReviewSessionOrchestrator(new_card_limit=1)
        orchestrator.start([make_card("a"), make_card("b")], "u1", now)
        assert orchestrator.cards_left == 1


# --- End-to-end scenarios ---


class TestScenarios:
    def test_new_card_good_completes_session(self, orchestrator, make_card, now):
        orchestrator.start([make_card("n1")], "u1", now)

        outcome = orchestrator.rate(RecallRating.GOOD, now + timedelta(seconds=8))

        assert outcome.card.record.state is CardState.LEARNING
        assert outcome.card.record.interval_days == pytest.approx(1.0)
        assert outcome.kept_in_session is False
        assert outcome.session_complete is True
        assert orchestrator.status is SessionStatus.COMPLETE

        session = orchestrator.session
        assert session.is_complete
        assert session.completed_cards == 1
        assert session.total_correct == 1
        assert session.end_time == now + timedelta(seconds=8)

    def test_again_requeues_for_later_today(self, orchestrator, review_card, now):
        orchestrator.start([review_card("r1")], "u1", now)

        outcome = orchestrator.rate(RecallRating.AGAIN, now + timedelta(seconds=5))

        assert outcome.kept_in_session is True
        assert outcome.card.record.state is CardState.RELEARNING
        assert outcome.card.record.next_review.date() == now.date()
        assert outcome.queue_size == 1
        assert orchestrator.status is SessionStatus.ACTIVE
        assert orchestrator.session.completed_cards == 0
        assert orchestrator.session.total_incorrect == 1

        # The re-queued copy carries the updated record.
        assert orchestrator.current_card.record.state is CardState.RELEARNING

        final = orchestrator.rate(RecallRating.GOOD, now + timedelta(seconds=20))

        assert final.kept_in_session is False
        assert final.session_complete is True
        assert orchestrator.status is SessionStatus.COMPLETE
        assert orchestrator.session.completed_cards == 1

    def test_mixed_session_queue_sizes(self, orchestrator, make_card, review_card, now):
        orchestrator.start([review_card("b"), make_card("a")], "u1", now)
        assert [c.id for c in orchestrator.queue] == ["a", "b"]

        sizes = []
        sizes.append(orchestrator.rate(RecallRating.EASY, now + timedelta(seconds=3)).queue_size)
        sizes.append(orchestrator.rate(RecallRating.AGAIN, now + timedelta(seconds=6)).queue_size)
        sizes.append(orchestrator.rate(RecallRating.GOOD, now + timedelta(seconds=9)).queue_size)

        assert sizes == [1, 1, 0]
        session = orchestrator.session
        assert [h.card_id for h in session.review_history] == ["a", "b", "b"]
        assert session.reviews_done == 3
        assert session.completed_cards == 2
        assert (session.total_correct, session.total_incorrect) == (2, 1)
        assert orchestrator.status is SessionStatus.COMPLETE


# --- Laws ---


class TestLaws:
    def test_queue_shrinks_by_one_unless_kept(self, orchestrator, make_card, review_card, now):
        cards = [make_card("n1"), make_card("n2"), review_card("r1"), review_card("r2")]
        orchestrator.start(cards, "u1", now)
        ratings = [
            RecallRating.AGAIN,
            RecallRating.GOOD,
            RecallRating.HARD,
            RecallRating.EASY,
            RecallRating.GOOD,
            RecallRating.GOOD,
            RecallRating.EASY,
            RecallRating.EASY,
        ]

        moment = now
        for rating in ratings:
            if orchestrator.status is not SessionStatus.ACTIVE:
                break
            before = orchestrator.cards_left
            moment += timedelta(seconds=10)
            outcome = orchestrator.rate(rating, moment)
            assert outcome.queue_size == before - 1 + (1 if outcome.kept_in_session else 0)
            assert outcome.session_complete == (outcome.queue_size == 0)

        assert orchestrator.status is SessionStatus.COMPLETE
        assert orchestrator.session.completed_cards == 4

    def test_late_evening_again_leaves_the_session(self, review_card):
        evening = datetime(2026, 10, 18, 23, 30)
        card = review_card("r1")
        orchestrator = ReviewSessionOrchestrator()
        orchestrator.start([card], "u1", evening)

        outcome = orchestrator.rate(RecallRating.AGAIN, evening)

        # 0.1 days past 23:30 falls on the next calendar day.
        assert outcome.kept_in_session is False
        assert orchestrator.status is SessionStatus.COMPLETE

    def test_should_keep_when_next_review_missing(self, orchestrator, make_card, now):
        assert orchestrator.should_keep_in_session(make_card(), now)

    def test_time_accounting(self, orchestrator, make_card, review_card, now):
        orchestrator.start([make_card("n1"), review_card("r1")], "u1", now)

        first = orchestrator.rate(RecallRating.GOOD, now + timedelta(seconds=4))
        orchestrator.rate(RecallRating.GOOD, now + timedelta(seconds=10))

        session = orchestrator.session
        assert first.history_item.time_spent_ms == 4000
        assert session.review_history[1].time_spent_ms == 6000
        assert session.total_time_ms == 10000
        assert session.average_time_per_card_ms == pytest.approx(5000)

    def test_average_is_zero_while_nothing_completed(self, orchestrator, review_card, now):
        orchestrator.start([review_card("r1")], "u1", now)
        orchestrator.rate(RecallRating.AGAIN, now + timedelta(seconds=3))

        assert orchestrator.session.total_time_ms == 3000
        assert orchestrator.session.average_time_per_card_ms == 0.0

    def test_history_records_intervals(self, orchestrator, review_card, now):
        orchestrator.start([review_card("r1")], "u1", now)

        item = orchestrator.rate(RecallRating.GOOD, now).history_item

        assert item.previous_interval == pytest.approx(5.0)
        assert item.new_interval == pytest.approx(12.5)
        assert item.rating is RecallRating.GOOD
        assert item.timestamp == now


# --- Flip, abandon, fail ---


class TestControls:
    def test_flip_toggles_and_resets_after_rating(self, orchestrator, make_card, now):
        orchestrator.start([make_card("a"), make_card("b")], "u1", now)

        assert orchestrator.flip() is True
        assert orchestrator.flip() is False
        orchestrator.flip()
        orchestrator.rate(RecallRating.GOOD, now)

        assert orchestrator.is_flipped is False

    def test_flip_without_card_raises(self, orchestrator):
        with pytest.raises(SessionStateError):
            orchestrator.flip()

    def test_abandon_keeps_partial_session(self, orchestrator, make_card, now):
        orchestrator.start([make_card("a"), make_card("b")], "u1", now)
        orchestrator.rate(RecallRating.GOOD, now)

        session = orchestrator.abandon()

        assert orchestrator.status is SessionStatus.ABANDONED
        assert orchestrator.cards_left == 0
        assert orchestrator.current_card is None
        assert session.is_complete is False
        assert session.reviews_done == 1

    def test_abandon_outside_active_is_noop(self, orchestrator):
        assert orchestrator.abandon() is None
        assert orchestrator.status is SessionStatus.UNINITIALIZED

    def test_fail_records_error(self, orchestrator, make_card, now):
        orchestrator.start([make_card("a")], "u1", now)

        orchestrator.fail("store unavailable")

        assert orchestrator.status is SessionStatus.FAILED
        assert orchestrator.error == "store unavailable"
        assert orchestrator.status.is_terminal()


# --- Errors ---


class TestRateErrors:
    def test_rate_before_start(self, orchestrator, now):
        with pytest.raises(SessionStateError):
            orchestrator.rate(RecallRating.GOOD, now)

    def test_rate_after_complete(self, orchestrator, make_card, now):
        orchestrator.start([make_card("a")], "u1", now)
        orchestrator.rate(RecallRating.GOOD, now)

        with pytest.raises(SessionStateError):
            orchestrator.rate(RecallRating.GOOD, now)

    def test_rate_after_abandon(self, orchestrator, make_card, now):
        orchestrator.start([make_card("a")], "u1", now)
        orchestrator.abandon()

        with pytest.raises(SessionStateError):
            orchestrator.rate(RecallRating.GOOD, now)

    def test_rate_when_nothing_due(self, orchestrator, now):
        orchestrator.start([], "u1", now)

        with pytest.raises(SessionStateError):
            orchestrator.rate(RecallRating.EASY, now)


def test_session_ids_are_unique():
    ids = {generate_session_id() for _ in range(50)}
    assert len(ids) == 50
