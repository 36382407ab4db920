from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from src.review_scheduler.review_scheduler.scheduling.calendar_clock import (
    access_window_end,
    add_skipping_sundays,
    college_seconds_between,
)

DAY = timedelta(hours=24)


@pytest.mark.parametrize(
    "start, expected",
    [
        # Friday -> Saturday: nothing to skip
        (datetime(2026, 2, 13, 10, 0), datetime(2026, 2, 14, 10, 0)),
        # Saturday would land on Sunday -> Monday
        (datetime(2026, 2, 14, 10, 0), datetime(2026, 2, 16, 10, 0)),
        # Sunday start -> Tuesday
        (datetime(2026, 2, 15, 10, 0), datetime(2026, 2, 17, 10, 0)),
    ],
)
def test_one_day_window_skips_sunday(start, expected):
    assert add_skipping_sundays(start, DAY) == expected


def test_each_sunday_in_span_adds_a_day():
    # Sat 7th + 8 days touches Sun 8th and Sun 15th
    assert add_skipping_sundays(datetime(2026, 2, 7, 10, 0), 8 * DAY) == datetime(2026, 2, 17, 10, 0)


def test_result_is_never_a_sunday():
    start = datetime(2026, 2, 9, 9, 30)
    for hours in range(0, 24 * 15, 7):
        assert add_skipping_sundays(start, timedelta(hours=hours)).weekday() != 6


def test_negative_duration_is_rejected():
    with pytest.raises(ValueError):
        add_skipping_sundays(datetime(2026, 2, 13, 10, 0), -DAY)


def test_access_window_end_takes_hours():
    assert access_window_end(datetime(2026, 2, 14, 10, 0), 24) == datetime(2026, 2, 16, 10, 0)


def test_full_business_day_counts_window_only():
    # 08:45-16:20
    assert college_seconds_between(datetime(2026, 2, 16, 8, 0), datetime(2026, 2, 16, 17, 0)) == 27300


def test_sunday_and_off_hours_count_nothing():
    assert college_seconds_between(datetime(2026, 2, 15, 0, 0), datetime(2026, 2, 15, 23, 59)) == 0
    assert college_seconds_between(datetime(2026, 2, 16, 17, 0), datetime(2026, 2, 17, 8, 0)) == 0


def test_reversed_range_is_zero():
    assert college_seconds_between(datetime(2026, 2, 16, 12, 0), datetime(2026, 2, 16, 10, 0)) == 0


def test_span_over_weekend():
    # Sat 16:00-16:20 plus Mon 08:45-09:00
    assert college_seconds_between(datetime(2026, 2, 14, 16, 0), datetime(2026, 2, 16, 9, 0)) == 2100


def test_business_seconds_are_additive():
    a = datetime(2026, 2, 12, 11, 17)
    b = datetime(2026, 2, 15, 3, 0)
    c = datetime(2026, 2, 18, 14, 5)
    assert college_seconds_between(a, c) == college_seconds_between(a, b) + college_seconds_between(b, c)
