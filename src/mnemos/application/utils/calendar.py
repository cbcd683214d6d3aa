"""Calendar-day helpers.

Scheduling decisions that mention "today" use the user's local calendar day,
not a rolling 24h window. Every helper takes an optional tzinfo; when it is
None the datetime is interpreted in its own timezone (or as naive local time).
"""

from datetime import date, datetime, time, timedelta, tzinfo
from zoneinfo import ZoneInfo

from mnemos.domain.constants import SECONDS_PER_DAY


def resolve_timezone(name: str | None) -> tzinfo | None:
    """Turn an IANA timezone name from config into a tzinfo (None stays None)."""
    if not name:
        return None
    return ZoneInfo(name)


def to_local(moment: datetime, tz: tzinfo | None = None) -> datetime:
    if tz is None or moment.tzinfo is None:
        return moment
    return moment.astimezone(tz)


def local_date(moment: datetime, tz: tzinfo | None = None) -> date:
    return to_local(moment, tz).date()


def end_of_day(moment: datetime, tz: tzinfo | None = None) -> datetime:
    """Last representable instant of the local calendar day containing `moment`."""
    local = to_local(moment, tz)
    return datetime.combine(local.date(), time.max, tzinfo=local.tzinfo)


def start_of_day(moment: datetime, tz: tzinfo | None = None) -> datetime:
    local = to_local(moment, tz)
    return datetime.combine(local.date(), time.min, tzinfo=local.tzinfo)


def days_between(earlier: datetime, later: datetime) -> float:
    """Elapsed (fractional) days from `earlier` to `later`; negative if reversed."""
    return (later - earlier).total_seconds() / SECONDS_PER_DAY


def add_days(moment: datetime, days: float) -> datetime:
    return moment + timedelta(days=days)
