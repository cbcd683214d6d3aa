"""
Due-card selection for review sessions and dashboards.

Builds the ordered working set for a session by:
1. Narrowing the collection to the requested deck
2. Keeping cards that are new or whose next review has arrived
3. Putting new cards first (capped by the daily new-card limit), then the
   rest ordered by how long they have been due
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from mnemos.domain.constants import DEFAULT_DAILY_NEW_LIMIT
from mnemos.domain.models import Card, CardState

logger = logging.getLogger(__name__)


@dataclass
class DueBreakdown:
    """Due counts per state, for dashboard badges."""

    new: int = 0
    learning: int = 0
    review: int = 0

    @property
    def total(self) -> int:
        return self.new + self.learning + self.review


def is_due(card: Card, now: datetime) -> bool:
    """A card is due if it is new, has no next review, or its next review has arrived."""
    record = card.record
    if record.state is CardState.NEW or record.next_review is None:
        return True
    return record.next_review <= now


def select_due(
    cards: Iterable[Card],
    now: datetime,
    deck_id: str | None = None,
    new_card_limit: int = DEFAULT_DAILY_NEW_LIMIT,
) -> list[Card]:
    """
    Return the ordered due working set.

    Args:
        cards: The user's card collection.
        now: Reference instant.
        deck_id: Optional deck scope.
        new_card_limit: Maximum number of never-scheduled cards to include.

    Returns:
        New cards first (oldest created first), then due cards ascending by
        next review. Empty when nothing is due.
    """
    scoped = _scope(cards, deck_id)

    unscheduled: list[Card] = []
    scheduled: list[Card] = []
    for card in scoped:
        if not is_due(card, now):
            continue
        if card.record.next_review is None:
            unscheduled.append(card)
        else:
            scheduled.append(card)

    unscheduled.sort(key=_creation_key)
    if len(unscheduled) > new_card_limit:
        logger.debug(f"[due] Capping new cards at {new_card_limit} (had {len(unscheduled)})")
        unscheduled = unscheduled[: max(0, new_card_limit)]

    scheduled.sort(key=lambda c: (c.record.next_review, c.id))

    due = unscheduled + scheduled
    logger.debug(f"[due] deck={deck_id or 'all'} due={len(due)} new={len(unscheduled)}")
    return due


def count_due(cards: Iterable[Card], now: datetime, deck_id: str | None = None) -> int:
    """Number of due cards, ignoring the new-card cap."""
    return sum(1 for card in _scope(cards, deck_id) if is_due(card, now))


def due_breakdown(cards: Iterable[Card], now: datetime, deck_id: str | None = None) -> DueBreakdown:
    breakdown = DueBreakdown()
    for card in _scope(cards, deck_id):
        if not is_due(card, now):
            continue
        state = card.record.state
        if state is CardState.NEW:
            breakdown.new += 1
        elif state in (CardState.LEARNING, CardState.RELEARNING):
            breakdown.learning += 1
        else:
            breakdown.review += 1
    return breakdown


def cards_by_state(
    cards: Iterable[Card], state: CardState, deck_id: str | None = None
) -> list[Card]:
    return [card for card in _scope(cards, deck_id) if card.record.state is state]


def upcoming_due(
    cards: Iterable[Card],
    now: datetime,
    days: int = 7,
    deck_id: str | None = None,
) -> list[Card]:
    """Cards that become due after `now` but within the next `days` days, soonest first."""
    horizon = now + timedelta(days=days)
    upcoming = [
        card
        for card in _scope(cards, deck_id)
        if card.record.next_review is not None and now < card.record.next_review <= horizon
    ]
    upcoming.sort(key=lambda c: (c.record.next_review, c.id))
    return upcoming


def _scope(cards: Iterable[Card], deck_id: str | None) -> list[Card]:
    if deck_id is None:
        return list(cards)
    return [card for card in cards if card.deck_id == deck_id]


def _creation_key(card: Card) -> tuple[bool, datetime | None, str]:
    # Cards without a creation time go after dated ones.
    return (card.created is None, card.created, card.id)
