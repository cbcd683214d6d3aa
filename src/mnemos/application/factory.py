"""
Session Factory
Centralizes building the card store and a configured orchestrator from AppConfig.
"""

import logging

from mnemos.application.config import AppConfig
from mnemos.application.scheduling.policy import SchedulingPolicy
from mnemos.application.session.orchestrator import ReviewSessionOrchestrator
from mnemos.application.session.service import ReviewSessionService
from mnemos.application.utils.calendar import resolve_timezone
from mnemos.domain.ports import CardRepository, ForecastSource
from mnemos.infrastructure.adapters.memory_store import InMemoryCardRepository
from mnemos.infrastructure.adapters.yaml_store import YamlCardRepository

logger = logging.getLogger(__name__)


def get_card_repository(config: AppConfig) -> CardRepository:
    """
    Returns the CardRepository implementation selected by config.
    """
    if config.deck_file is not None:
        logger.debug(f"Store: YAML deck file {config.deck_file}")
        return YamlCardRepository(config.deck_file, tz=resolve_timezone(config.timezone))

    logger.debug("Store: in-memory (no deck_file configured)")
    return InMemoryCardRepository(tz=resolve_timezone(config.timezone))


def build_orchestrator(config: AppConfig) -> ReviewSessionOrchestrator:
    return ReviewSessionOrchestrator(
        policy=SchedulingPolicy(config.scheduler_parameters()),
        new_card_limit=config.daily_new_limit,
        horizon_days=config.forecast_horizon_days,
        tz=resolve_timezone(config.timezone),
    )


def build_session_service(
    config: AppConfig, repo: CardRepository | None = None
) -> ReviewSessionService:
    """
    Wire a ReviewSessionService. Stores that can also answer forecasts are
    used as the summary's forecast source.
    """
    if repo is None:
        repo = get_card_repository(config)
    forecast_source = repo if isinstance(repo, ForecastSource) else None
    return ReviewSessionService(repo, build_orchestrator(config), forecast_source=forecast_source)
