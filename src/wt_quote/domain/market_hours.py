"""Regular trading session check: weekdays 09:30 to 16:00 exchange local time."""

from datetime import datetime, time
from zoneinfo import ZoneInfo

from config.settings import settings

SESSION_OPEN = time(9, 30)
SESSION_CLOSE = time(16, 0)


def is_market_open(now: datetime | None = None, tz_name: str | None = None) -> bool:
    """True when `now` falls inside the regular session. Holidays are not modelled."""
    tz = ZoneInfo(tz_name or settings.MARKET_TIMEZONE)
    local = now.astimezone(tz) if now is not None else datetime.now(tz)
    if local.weekday() >= 5:
        return False
    return SESSION_OPEN <= local.time() < SESSION_CLOSE
