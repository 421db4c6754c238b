"""UTC datetime utilities and P&L period boundaries.

All period boundaries are computed in UTC: the day starts at 00:00Z, the week
starts on Monday 00:00Z, the month starts on the 1st at 00:00Z.
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def day_start(dt: datetime) -> datetime:
    dt = as_utc(dt)
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def week_start(dt: datetime) -> datetime:
    start = day_start(dt)
    return start - timedelta(days=start.weekday())


def month_start(dt: datetime) -> datetime:
    return day_start(dt).replace(day=1)


def same_day(a: datetime, b: datetime) -> bool:
    return day_start(a) == day_start(b)


def same_week(a: datetime, b: datetime) -> bool:
    return week_start(a) == week_start(b)


def same_month(a: datetime, b: datetime) -> bool:
    return month_start(a) == month_start(b)
