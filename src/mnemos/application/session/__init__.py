# Application Session Package
from .orchestrator import RateOutcome, ReviewSessionOrchestrator
from .service import ReviewSessionService
from .summary import SessionSummary, build_summary, build_summary_async

__all__ = [
    "RateOutcome",
    "ReviewSessionOrchestrator",
    "ReviewSessionService",
    "SessionSummary",
    "build_summary",
    "build_summary_async",
]
