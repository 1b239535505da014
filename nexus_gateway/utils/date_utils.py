"""Date and wall-clock helpers"""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

LONDON = ZoneInfo("Europe/London")


def utc_now() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes (e.g. read back from SQLite) as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_london(value: datetime) -> datetime:
    """Convert to UK local time. Naive values are assumed to already be local."""
    if value.tzinfo is None:
        return value.replace(tzinfo=LONDON)
    return value.astimezone(LONDON)


def is_weekday(day: date) -> bool:
    return day.weekday() < 5


def add_working_days(from_date: date, days: int) -> date:
    """Add working days to a date, skipping weekends (bank holidays are not modelled)"""
    current = from_date
    added = 0
    while added < days:
        current += timedelta(days=1)
        if is_weekday(current):
            added += 1
    return current


def start_of_day_utc(now: datetime) -> datetime:
    now = ensure_utc(now)
    return datetime.combine(now.date(), time.min, tzinfo=timezone.utc)


def start_of_month_utc(now: datetime) -> datetime:
    now = ensure_utc(now)
    return datetime.combine(now.date().replace(day=1), time.min, tzinfo=timezone.utc)
