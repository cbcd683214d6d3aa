"""
Card Insights Service: Application layer orchestrator.

Coordinates fetching cards from the repository and enriching them with computed metrics.
"""

import logging
from datetime import datetime

from mnemos.domain.ports import CardRepository

from .metrics_calculator import CardInsights, MetricsCalculator

logger = logging.getLogger(__name__)


class CardInsightsService:
    """
    Application service for fetching and enriching card statistics.

    Follows Dependency Inversion: depends on CardRepository abstraction,
    not concrete adapter implementations.
    """

    def __init__(
        self,
        repo: CardRepository,
        calculator: MetricsCalculator | None = None,
    ):
        """
        Args:
            repo: The repository (port) for fetching cards.
            calculator: Optional custom calculator; uses default if not provided.
        """
        self._repo = repo
        self._calc = calculator or MetricsCalculator()

    async def get_insights(
        self, user_id: str, now: datetime, deck_id: str | None = None
    ) -> list[CardInsights]:
        """
        Fetch the user's cards and enrich them with computed metrics.
        """
        cards = await self._repo.get_cards(user_id, deck_id)
        return [self._calc.enrich(card, now) for card in cards]

    async def get_weak_cards(
        self,
        user_id: str,
        now: datetime,
        deck_id: str | None = None,
        lapse_threshold: int = 1,
        retrievability_threshold: float = 0.7,
    ) -> list[CardInsights]:
        """
        Identify cards that are "weak" based on configurable thresholds.

        A card is weak if:
        - it has lapsed at least `lapse_threshold` times, OR
        - its current retrievability is below `retrievability_threshold`

        Returns:
            Weak cards, lowest retrievability first.
        """
        insights = await self.get_insights(user_id, now, deck_id)
        weak = []

        for card in insights:
            is_weak = False

            # Has lapses
            if card.lapse_count >= lapse_threshold:
                is_weak = True

            # Low retrievability
            if (
                card.current_retrievability is not None
                and card.current_retrievability < retrievability_threshold
            ):
                is_weak = True

            if is_weak:
                weak.append(card)

        weak.sort(key=lambda c: (c.current_retrievability is None, c.current_retrievability or 0.0))
        logger.debug(f"[insights] {len(weak)}/{len(insights)} weak cards for user={user_id}")
        return weak
