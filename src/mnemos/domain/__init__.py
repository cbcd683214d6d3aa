# Domain Package
from .exceptions import (
    ForecastUnavailableError,
    MnemosError,
    PersistenceError,
    SessionStateError,
    StoreError,
    StoreUnavailableError,
)
from .models import (
    Card,
    CardState,
    RecallRating,
    ReviewHistoryItem,
    SchedulingRecord,
    Session,
    SessionStatus,
)
from .ports import CardRepository, ForecastSource

__all__ = [
    "Card",
    "CardRepository",
    "CardState",
    "ForecastSource",
    "ForecastUnavailableError",
    "MnemosError",
    "PersistenceError",
    "RecallRating",
    "ReviewHistoryItem",
    "SchedulingRecord",
    "Session",
    "SessionStateError",
    "SessionStatus",
    "StoreError",
    "StoreUnavailableError",
]
