"""
Review Session Service: Application layer orchestrator.

Connects the synchronous ReviewSessionOrchestrator to the card store: loads
the collection before a session and writes each updated card back after a
rating. Performs no retries; retry policy belongs to whoever calls this.
"""

import logging
from dataclasses import replace
from datetime import datetime

from mnemos.domain.exceptions import StoreError, StoreUnavailableError
from mnemos.domain.models import Card, RecallRating, SessionStatus
from mnemos.domain.ports import CardRepository, ForecastSource

from .orchestrator import RateOutcome, ReviewSessionOrchestrator
from .summary import SessionSummary, build_summary_async

logger = logging.getLogger(__name__)


class ReviewSessionService:
    """
    Application service for running a review session against a card store.

    Follows Dependency Inversion: depends on the CardRepository abstraction,
    not concrete adapter implementations.
    """

    def __init__(
        self,
        repo: CardRepository,
        orchestrator: ReviewSessionOrchestrator | None = None,
        forecast_source: ForecastSource | None = None,
    ):
        """
        Args:
            repo: The repository (port) for loading and saving cards.
            orchestrator: Optional preconfigured orchestrator; default if not provided.
            forecast_source: Optional authoritative forecast for summaries.
        """
        self._repo = repo
        self.orchestrator = orchestrator or ReviewSessionOrchestrator()
        self._forecast_source = forecast_source
        self._cards: dict[str, Card] = {}

    @property
    def cards(self) -> list[Card]:
        """Latest known version of every card loaded for this session."""
        return list(self._cards.values())

    async def start(self, user_id: str, now: datetime, deck_id: str | None = None) -> SessionStatus:
        """
        Load the user's cards and start a session over the due ones.

        Raises:
            StoreUnavailableError: cards could not be loaded. The orchestrator
                is left in FAILED.
        """
        try:
            cards = await self._repo.get_cards(user_id, deck_id)
        except StoreError as e:
            self.orchestrator.fail(f"Could not load cards: {e}")
            if isinstance(e, StoreUnavailableError):
                raise
            raise StoreUnavailableError(str(e)) from e

        self._cards = {card.id: card for card in cards}
        return self.orchestrator.start(cards, user_id, now, deck_id=deck_id)

    async def rate(self, rating: RecallRating, now: datetime) -> RateOutcome:
        """
        Rate the current card and persist its new scheduling record.

        A failed write is logged and reported via `outcome.persisted`; the
        queue is not rolled back because the user has already seen the card.
        """
        outcome = self.orchestrator.rate(rating, now)
        self._cards[outcome.card.id] = outcome.card

        try:
            await self._repo.save_card(outcome.card)
        except StoreError as e:
            logger.warning(f"Failed to persist card {outcome.card.id}: {e}")
            return replace(outcome, persisted=False)

        return outcome

    def flip(self) -> bool:
        return self.orchestrator.flip()

    def abandon(self):
        return self.orchestrator.abandon()

    async def summary(self, now: datetime) -> SessionSummary | None:
        """Summary of the current (finished or abandoned) session, None if there is none."""
        session = self.orchestrator.session
        if session is None:
            return None

        return await build_summary_async(
            session,
            self.cards,
            now,
            self._forecast_source,
            horizon_days=self.orchestrator.horizon_days,
            tz=self.orchestrator.tz,
        )
