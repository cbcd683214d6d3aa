# Application Stats Package
from .metrics_calculator import CardInsights, MetricsCalculator
from .service import CardInsightsService
from .study_stats import DailyStudyStats, StudyStats, aggregate_study_stats

__all__ = [
    "CardInsights",
    "CardInsightsService",
    "DailyStudyStats",
    "MetricsCalculator",
    "StudyStats",
    "aggregate_study_stats",
]
