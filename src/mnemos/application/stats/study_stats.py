"""Study statistics across sessions, for the progress dashboard."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo

from mnemos.application.utils.calendar import local_date
from mnemos.domain.models import Session


@dataclass
class DailyStudyStats:
    day: date
    cards: int = 0
    correct: int = 0


@dataclass
class StudyStats:
    total_sessions: int
    total_cards: int
    correct_rate: float  # percentage
    average_cards_per_day: float
    daily: list[DailyStudyStats] = field(default_factory=list)


def aggregate_study_stats(
    sessions: Iterable[Session],
    now: datetime,
    days: int = 30,
    tz: tzinfo | None = None,
) -> StudyStats:
    """
    Aggregate sessions started within the last `days` days.

    Every day in the window gets a row, including days without sessions.
    Abandoned sessions count for the cards they completed.
    """
    if days <= 0:
        raise ValueError("days must be positive")

    window_start = now - timedelta(days=days)
    first_day = local_date(window_start, tz)
    daily: dict[date, DailyStudyStats] = {}
    for offset in range(days + 1):
        day = first_day + timedelta(days=offset)
        daily[day] = DailyStudyStats(day)

    in_window = [s for s in sessions if window_start <= s.start_time <= now]

    for session in in_window:
        day = local_date(session.start_time, tz)
        row = daily.setdefault(day, DailyStudyStats(day))
        row.cards += session.completed_cards
        row.correct += session.total_correct

    total_cards = sum(s.completed_cards for s in in_window)
    total_correct = sum(s.total_correct for s in in_window)

    return StudyStats(
        total_sessions=len(in_window),
        total_cards=total_cards,
        correct_rate=(total_correct / total_cards * 100) if total_cards > 0 else 0.0,
        average_cards_per_day=total_cards / days,
        daily=[daily[d] for d in sorted(daily)],
    )
