"""
Ports (interfaces) for the engine's external collaborators.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime

from .models import Card


class CardRepository(ABC):
    """
    Port for reading and writing cards in the persistent store.

    Implementations:
        - InMemoryCardRepository: dict-backed store for tests and embedding.
        - YamlCardRepository: deck files on disk, used by the CLI.
    """

    @abstractmethod
    async def get_cards(self, user_id: str, deck_id: str | None = None) -> list[Card]:
        """
        Fetch every card owned by the user, optionally narrowed to one deck.

        Raises:
            StoreUnavailableError: the store could not be reached.
        """
        pass

    @abstractmethod
    async def save_card(self, card: Card) -> None:
        """
        Persist a card's updated scheduling record.

        Raises:
            PersistenceError: the write failed.
        """
        pass


class ForecastSource(ABC):
    """Port for an authoritative per-day forecast of upcoming reviews."""

    @abstractmethod
    async def get_forecast(self, user_id: str, now: datetime, days: int) -> dict[date, int]:
        """
        Return due counts keyed by local calendar date for the next `days` days.

        Raises:
            ForecastUnavailableError: the source could not answer.
        """
        pass
