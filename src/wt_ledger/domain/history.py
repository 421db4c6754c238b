"""Performance history windows and snapshot shape."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from src.wt_common.enums import Granularity, PerformancePeriod

ALL_TIME_START = datetime(2020, 1, 1, tzinfo=timezone.utc)

_PERIOD_DAYS = {
    PerformancePeriod.ONE_DAY: 1,
    PerformancePeriod.SEVEN_DAYS: 7,
    PerformancePeriod.THIRTY_DAYS: 30,
    PerformancePeriod.NINETY_DAYS: 90,
}

_STEPS = {
    Granularity.HOURLY: timedelta(hours=1),
    Granularity.DAILY: timedelta(days=1),
    Granularity.WEEKLY: timedelta(weeks=1),
}


def period_start(period: PerformancePeriod, now: datetime) -> datetime:
    if period is PerformancePeriod.ALL:
        return ALL_TIME_START
    if period is PerformancePeriod.ONE_YEAR:
        try:
            return now.replace(year=now.year - 1)
        except ValueError:  # Feb 29
            return now.replace(year=now.year - 1, day=28)
    return now - timedelta(days=_PERIOD_DAYS[period])


def step_for(granularity: Granularity) -> timedelta:
    return _STEPS[granularity]


def snapshot_count(start: datetime, end: datetime, step: timedelta) -> int:
    """Number of points snapshot_times(start, end, step) yields."""
    if end <= start:
        return 1
    full_steps = (end - start) // step
    return full_steps + 1 + (1 if start + full_steps * step < end else 0)


def snapshot_times(start: datetime, end: datetime, step: timedelta) -> Iterator[datetime]:
    """start, start + step, ... and finally `end` itself."""
    t = start
    while t < end:
        yield t
        t += step
    yield end


@dataclass(frozen=True)
class Snapshot:
    timestamp: datetime
    cash_balance: int
    portfolio_value: int
    total_value: int
    realized_pnl: int
    unrealized_pnl: int
    total_return: int
    total_return_percent: float
    orders_count: int
    positions: list[dict[str, object]] = field(default_factory=list)
