from __future__ import annotations

from datetime import date, datetime


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def calendar_day(value: datetime | date) -> str:
    """Calendar-day string (YYYY-MM-DD) used to scope shift markers."""
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def hhmm(value: datetime) -> str:
    return value.strftime("%H:%M")


def duration_ms(start: datetime, end: datetime) -> int:
    return int(round((end - start).total_seconds() * 1000))


def format_duration(milliseconds: int) -> str:
    """Format a duration as '3h 25m' (floored to whole minutes)."""
    total_minutes = max(int(milliseconds), 0) // 60_000
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours}h {minutes}m"
