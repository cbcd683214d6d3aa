"""
Review session orchestrator.

Owns the working queue of one review session and drives it one rating at a
time. Every transition is a synchronous computation; persisting updated cards
is left to the caller (see ReviewSessionService), which keeps this class
testable without a store.

Queue policy after each rating:
- next review still falls within today (or is missing): the updated card moves
  to the tail and will be shown again before the session can end.
- otherwise: the card leaves the queue for good and counts as completed.

The session completes exactly when the queue becomes empty.
"""

import logging
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, tzinfo

from ulid import ULID

from mnemos.application.due_selector import select_due
from mnemos.application.forecast import forecast, next_due
from mnemos.application.scheduling.policy import SchedulingPolicy
from mnemos.application.utils.calendar import end_of_day
from mnemos.domain.constants import DEFAULT_DAILY_NEW_LIMIT, DEFAULT_FORECAST_HORIZON_DAYS
from mnemos.domain.exceptions import SessionStateError
from mnemos.domain.models import (
    Card,
    RecallRating,
    ReviewHistoryItem,
    Session,
    SessionStatus,
)

logger = logging.getLogger(__name__)


def generate_session_id() -> str:
    """Generate a sortable session ID using ULID."""
    return f"session_{ULID()}"


@dataclass(frozen=True)
class RateOutcome:
    """
    Result of a single rating.

    Attributes:
        card: The card carrying its updated scheduling record. The caller persists it.
        history_item: The history entry appended for this rating.
        kept_in_session: True if the card was re-queued for later today.
        queue_size: Working queue size after the rating.
        session_complete: True if this rating emptied the queue.
        persisted: False if the caller's write of `card` failed.
    """

    card: Card
    history_item: ReviewHistoryItem
    kept_in_session: bool
    queue_size: int
    session_complete: bool
    persisted: bool = True


class ReviewSessionOrchestrator:
    """
    Stateful controller for one review session.

    Not thread-safe: one caller drives it, and each public operation runs to
    completion before the next is invoked.
    """

    def __init__(
        self,
        policy: SchedulingPolicy | None = None,
        new_card_limit: int = DEFAULT_DAILY_NEW_LIMIT,
        horizon_days: int = DEFAULT_FORECAST_HORIZON_DAYS,
        tz: tzinfo | None = None,
    ):
        """
        Args:
            policy: Scheduling policy applied to each rating; default parameters if not given.
            new_card_limit: Daily cap on never-reviewed cards entering the queue.
            horizon_days: Forecast horizon recorded when nothing is due.
            tz: Timezone that defines the user's calendar day.
        """
        self.policy = policy or SchedulingPolicy()
        self.new_card_limit = new_card_limit
        self.horizon_days = horizon_days
        self.tz = tz

        self._status = SessionStatus.UNINITIALIZED
        self._session: Session | None = None
        self._queue: deque[Card] = deque()
        self._shown_at: datetime | None = None
        self._flipped = False
        self._error: str | None = None

        # "Nothing due" messaging
        self.next_due_at: datetime | None = None
        self.next_due_forecast: dict[date, int] = {}

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def queue(self) -> list[Card]:
        return list(self._queue)

    @property
    def cards_left(self) -> int:
        return len(self._queue)

    @property
    def current_card(self) -> Card | None:
        if self._status is not SessionStatus.ACTIVE or not self._queue:
            return None
        return self._queue[0]

    @property
    def is_flipped(self) -> bool:
        return self._flipped

    @property
    def error(self) -> str | None:
        return self._error

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(
        self,
        cards: Iterable[Card],
        user_id: str,
        now: datetime,
        deck_id: str | None = None,
    ) -> SessionStatus:
        """
        Select due cards and open a session over them.

        Returns ACTIVE when there is something to review, NOTHING_DUE otherwise.
        Any previous session held by this orchestrator is discarded.
        """
        if self._status is SessionStatus.ACTIVE:
            logger.info(f"Discarding active session {self._session.id} for a new one")

        collection = list(cards)
        due = select_due(collection, now, deck_id=deck_id, new_card_limit=self.new_card_limit)

        self._reset()

        if not due:
            scoped = [c for c in collection if deck_id is None or c.deck_id == deck_id]
            self.next_due_at = next_due(scoped, now)
            self.next_due_forecast = forecast(scoped, now, self.horizon_days, self.tz)
            self._status = SessionStatus.NOTHING_DUE
            logger.info(f"No cards due for user={user_id} deck={deck_id or 'all'}")
            return self._status

        self._session = Session(
            id=generate_session_id(),
            user_id=user_id,
            deck_id=deck_id,
            start_time=now,
            total_cards=len(due),
        )
        self._queue = deque(due)
        self._shown_at = now
        self._status = SessionStatus.ACTIVE

        logger.info(
            f"Started session {self._session.id} user={user_id} "
            f"deck={deck_id or 'all'} cards={len(due)}"
        )
        return self._status

    def flip(self) -> bool:
        """Toggle answer visibility for the current card. No scheduling effect."""
        if self.current_card is None:
            raise SessionStateError(f"Cannot flip: no card is displayed (status={self._status})")
        self._flipped = not self._flipped
        return self._flipped

    def rate(self, rating: RecallRating, now: datetime) -> RateOutcome:
        """
        Apply a rating to the card at the head of the queue.

        Raises:
            SessionStateError: the session is not active or the queue is empty.
        """
        if not self._status.can_accept_ratings():
            raise SessionStateError(f"Cannot rate: session status is {self._status}")
        if not self._queue or self._session is None:
            raise SessionStateError("Cannot rate: working queue is empty")
        if self._shown_at is None:
            raise SessionStateError("Cannot rate: no current card")

        rating = RecallRating(rating)
        session = self._session

        card = self._queue.popleft()
        time_spent_ms = max(0, int((now - self._shown_at).total_seconds() * 1000))

        record = self.policy.apply(card.record, rating, now)
        updated = card.with_record(record)

        keep = self.should_keep_in_session(updated, now)
        if keep:
            self._queue.append(updated)
        else:
            session.completed_cards += 1

        item = ReviewHistoryItem(
            card_id=card.id,
            rating=rating,
            time_spent_ms=time_spent_ms,
            previous_interval=card.record.interval_days,
            new_interval=record.interval_days,
            timestamp=now,
        )
        session.review_history.append(item)

        if rating.is_correct:
            session.total_correct += 1
        else:
            session.total_incorrect += 1

        # Re-queued cards are not completed yet, so average over completed cards.
        session.total_time_ms += time_spent_ms
        if session.completed_cards > 0:
            session.average_time_per_card_ms = session.total_time_ms / session.completed_cards
        else:
            session.average_time_per_card_ms = 0.0

        complete = not self._queue
        if complete:
            session.is_complete = True
            session.end_time = now
            self._status = SessionStatus.COMPLETE
            self._shown_at = None
            logger.info(
                f"Completed session {session.id}: {session.completed_cards} cards, "
                f"{session.total_correct} correct"
            )
        else:
            self._shown_at = now

        self._flipped = False

        logger.debug(
            f"[session] card={card.id} rating={rating.name} keep={keep} "
            f"queue={len(self._queue)}"
        )
        return RateOutcome(
            card=updated,
            history_item=item,
            kept_in_session=keep,
            queue_size=len(self._queue),
            session_complete=complete,
        )

    def should_keep_in_session(self, card: Card, now: datetime) -> bool:
        """Same-day repeat rule: keep if the next review is missing or still today."""
        next_review = card.record.next_review
        return next_review is None or next_review <= end_of_day(now, self.tz)

    def abandon(self) -> Session | None:
        """
        Discard the working queue without completing the session.

        The partial session stays readable for best-effort persistence.
        """
        if self._status is not SessionStatus.ACTIVE:
            logger.debug(f"abandon() with status={self._status}; nothing to discard")
            return self._session

        logger.info(
            f"Abandoned session {self._session.id} with {len(self._queue)} cards left"
        )
        self._queue.clear()
        self._shown_at = None
        self._flipped = False
        self._status = SessionStatus.ABANDONED
        return self._session

    def fail(self, message: str) -> None:
        """Move to FAILED so callers never see a silently stuck session."""
        logger.error(f"Session failed: {message}")
        self._error = message
        self._queue.clear()
        self._shown_at = None
        self._flipped = False
        self._status = SessionStatus.FAILED

    def _reset(self) -> None:
        self._session = None
        self._queue = deque()
        self._shown_at = None
        self._flipped = False
        self._error = None
        self.next_due_at = None
        self.next_due_forecast = {}
