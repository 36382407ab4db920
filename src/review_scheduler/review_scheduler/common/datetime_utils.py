from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 local timestamp (no timezone). Empty input gives None."""
    v = (value or "").strip()
    if not v:
        return None
    return datetime.fromisoformat(v)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open [00:00, next day 00:00) range for a calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()
