"""Time windows for project evolution."""

from datetime import datetime, timedelta, timezone

from ..config import DEFAULT_PERIOD, PERIOD_DAYS


def parse_period(value: str | None) -> str:
    """Normalize a period name; unknown values fall back to the default."""
    if value and value.lower() in PERIOD_DAYS:
        return value.lower()
    return DEFAULT_PERIOD


def window_start(period: str, now: datetime | None = None) -> datetime | None:
    """Earliest creation time included in the window, or None for "all"."""
    days = PERIOD_DAYS[parse_period(period)]
    if days is None:
        return None
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now - timedelta(days=days)
