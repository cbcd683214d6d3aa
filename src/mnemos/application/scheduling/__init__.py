# Application Scheduling Package
from .memory import difficulty_from_ease, is_graduated, overdue_penalty, retrievability
from .policy import DEFAULT_PARAMETERS, SchedulerParameters, SchedulingPolicy, apply, next_state

__all__ = [
    "DEFAULT_PARAMETERS",
    "SchedulerParameters",
    "SchedulingPolicy",
    "apply",
    "difficulty_from_ease",
    "is_graduated",
    "next_state",
    "overdue_penalty",
    "retrievability",
]
