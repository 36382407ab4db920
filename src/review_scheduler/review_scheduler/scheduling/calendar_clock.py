"""Business-calendar time arithmetic.

Pure functions over naive local datetimes. The business window is
08:45-16:20 on every day except Sunday.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

from ..core.constants import COLLEGE_DAY_END, COLLEGE_DAY_START, NON_WORKING_WEEKDAY

ONE_DAY = timedelta(hours=24)


def is_working_day(day: date) -> bool:
    return day.weekday() != NON_WORKING_WEEKDAY


def business_window(day: date) -> tuple[datetime, datetime]:
    return datetime.combine(day, COLLEGE_DAY_START), datetime.combine(day, COLLEGE_DAY_END)


def college_seconds_between(start: datetime, end: datetime) -> int:
    """Seconds of ``[start, end]`` that fall inside business windows."""
    if start >= end:
        return 0

    total = 0.0
    day = start.date()
    last = end.date()
    while day <= last:
        if is_working_day(day):
            win_start, win_end = business_window(day)
            active_start = max(start, win_start)
            active_end = min(end, win_end)
            if active_start < active_end:
                total += (active_end - active_start).total_seconds()
        day += timedelta(days=1)

    return max(0, int(total))


def add_skipping_sundays(start: datetime, duration: timedelta) -> datetime:
    """Wall-clock ``start + duration``, extended by 24h for every Sunday the span touches.

    Each calendar day from ``start``'s date up to the (growing) result date is
    inspected once, so a Sunday start, a Sunday in the middle and a Sunday
    landing all push the result forward; the result is never a Sunday.
    """
    if duration < timedelta(0):
        raise ValueError("duration must not be negative")

    end = start + duration
    day = start.date()
    while day <= end.date():
        if not is_working_day(day):
            end += ONE_DAY
        day += timedelta(days=1)
    return end


def access_window_end(start: datetime, hours: float) -> datetime:
    return add_skipping_sundays(start, timedelta(hours=float(hours)))
