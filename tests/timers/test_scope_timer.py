from __future__ import annotations

from datetime import datetime

import pytest

from src.review_scheduler.review_scheduler.core.enums import TimerState
from src.review_scheduler.review_scheduler.core.exceptions import NotFoundError, ValidationError
from src.review_scheduler.review_scheduler.core.transitions import TIMER_TRANSITIONS, can_transition
from src.review_scheduler.review_scheduler.timers.model import Scope
from src.review_scheduler.review_scheduler.timers.service import current_remaining
from tests.fakes import World

MONDAY_9 = datetime(2026, 2, 16, 9, 0)


def _world(remaining: int = 7200) -> World:
    w = World()
    w.scopes.add(Scope(scope_id="scope-1", name="2026 batch", total_hours=2, remaining_seconds=remaining))
    return w


def test_running_timer_counts_down_in_business_hours():
    w = _world()
    w.timer.start("scope-1", now=MONDAY_9)

    status = w.timer.status("scope-1", now=datetime(2026, 2, 16, 10, 0))

    assert status["isRunning"] is True
    assert status["state"] == "RUNNING"
    assert status["remainingSeconds"] == 7200 - 3600


def test_timer_does_not_tick_overnight_or_on_sunday():
    w = _world()
    w.timer.start("scope-1", now=datetime(2026, 2, 14, 16, 20))

    status = w.timer.status("scope-1", now=datetime(2026, 2, 16, 8, 45))

    assert status["remainingSeconds"] == 7200


def test_remaining_never_goes_negative():
    w = _world(remaining=100)
    w.timer.start("scope-1", now=MONDAY_9)

    assert w.timer.status("scope-1", now=datetime(2026, 2, 17, 9, 0))["remainingSeconds"] == 0
    paused = w.timer.pause("scope-1", now=datetime(2026, 2, 17, 9, 0))
    assert paused.remaining_seconds == 0


def test_pause_then_start_keeps_remaining():
    w = _world()
    w.timer.start("scope-1", now=MONDAY_9)
    paused = w.timer.pause("scope-1", now=datetime(2026, 2, 16, 9, 30))
    restarted = w.timer.start("scope-1", now=datetime(2026, 2, 16, 9, 30))

    assert paused.remaining_seconds == 7200 - 1800
    assert restarted.remaining_seconds == paused.remaining_seconds
    assert restarted.is_running


def test_paused_timer_is_frozen():
    w = _world()
    w.timer.start("scope-1", now=MONDAY_9)
    w.timer.pause("scope-1", now=datetime(2026, 2, 16, 10, 0))

    assert w.timer.status("scope-1", now=datetime(2026, 2, 18, 12, 0))["remainingSeconds"] == 3600


def test_start_while_running_keeps_anchor():
    w = _world()
    first = w.timer.start("scope-1", now=MONDAY_9)
    second = w.timer.start("scope-1", now=datetime(2026, 2, 16, 11, 0))

    assert second.last_updated == first.last_updated
    assert current_remaining(second, datetime(2026, 2, 16, 11, 0)) == 0


def test_timer_only_moves_between_states():
    assert can_transition(TIMER_TRANSITIONS, TimerState.PAUSED, TimerState.RUNNING)
    assert can_transition(TIMER_TRANSITIONS, TimerState.RUNNING, TimerState.PAUSED)
    assert not can_transition(TIMER_TRANSITIONS, TimerState.RUNNING, TimerState.RUNNING)
    assert not can_transition(TIMER_TRANSITIONS, TimerState.PAUSED, TimerState.PAUSED)


def test_pause_while_paused_is_noop():
    w = _world()
    scope = w.timer.pause("scope-1", now=MONDAY_9)
    assert scope.remaining_seconds == 7200
    assert scope.last_updated is None


def test_reset_floors_to_whole_seconds_and_pauses():
    w = _world()
    w.timer.start("scope-1", now=MONDAY_9)

    scope = w.timer.reset("scope-1", total_hours=1.00001)

    assert scope.remaining_seconds == 3600
    assert scope.is_running is False
    assert scope.last_updated is None


def test_reset_without_hours_restores_total():
    w = _world(remaining=5)
    assert w.timer.reset("scope-1").remaining_seconds == 7200


def test_reset_rejects_negative_hours():
    w = _world()
    with pytest.raises(ValidationError):
        w.timer.reset("scope-1", total_hours=-1)


def test_unknown_scope():
    w = _world()
    with pytest.raises(NotFoundError):
        w.timer.start("nope", now=MONDAY_9)
