"""
In-memory card store.

Implements both CardRepository and ForecastSource over a plain dict. Used by
tests, by embedders that keep cards in their own process, and as the backing
store of the YAML adapter.
"""

import logging
from collections.abc import Iterable
from datetime import date, datetime, tzinfo

from mnemos.application.forecast import forecast
from mnemos.domain.models import Card
from mnemos.domain.ports import CardRepository, ForecastSource

logger = logging.getLogger(__name__)


class InMemoryCardRepository(CardRepository, ForecastSource):
    """
    Dict-backed store keyed by card ID.

    Cards without a user_id are visible to every user.
    """

    def __init__(self, cards: Iterable[Card] = (), tz: tzinfo | None = None):
        self._cards: dict[str, Card] = {card.id: card for card in cards}
        self.tz = tz

    def __len__(self) -> int:
        return len(self._cards)

    def get(self, card_id: str) -> Card | None:
        return self._cards.get(card_id)

    def all(self) -> list[Card]:
        return list(self._cards.values())

    def add(self, card: Card) -> None:
        self._cards[card.id] = card

    async def get_cards(self, user_id: str, deck_id: str | None = None) -> list[Card]:
        return [
            card
            for card in self._cards.values()
            if (card.user_id is None or card.user_id == user_id)
            and (deck_id is None or card.deck_id == deck_id)
        ]

    async def save_card(self, card: Card) -> None:
        # Last write wins.
        self._cards[card.id] = card
        logger.debug(f"[memory] Saved card {card.id} next_review={card.record.next_review}")

    async def get_forecast(self, user_id: str, now: datetime, days: int) -> dict[date, int]:
        cards = await self.get_cards(user_id)
        return forecast(cards, now, days, self.tz)
