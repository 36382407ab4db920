from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import datetime
from typing import Optional

from ..common.transactions import TransactionManager
from ..core.enums import TimerState
from ..core.exceptions import NotFoundError, ValidationError
from ..core.transitions import TIMER_TRANSITIONS, can_transition
from ..scheduling.calendar_clock import college_seconds_between
from .model import Scope
from .repository import ScopeRepository

logger = logging.getLogger(__name__)


def current_remaining(scope: Scope, now: datetime) -> int:
    """Live countdown value. Exhaustion is only observed here; nothing auto-pauses at zero."""
    if not scope.is_running or scope.last_updated is None:
        return max(0, int(scope.remaining_seconds))
    elapsed = college_seconds_between(scope.last_updated, now)
    return max(0, int(scope.remaining_seconds) - elapsed)


class ScopeTimerService:
    """Per-scope countdown that only ticks during business hours."""

    def __init__(self, scopes: ScopeRepository, transactions: TransactionManager):
        self._scopes = scopes
        self._tx = transactions

    def _load(self, scope_id: str, *, for_update: bool = False) -> Scope:
        scope = self._scopes.get_by_id(scope_id, for_update=for_update)
        if not scope:
            raise NotFoundError("Scope", scope_id)
        return scope

    def _save(self, scope: Scope) -> Scope:
        if not self._scopes.save_timer(
            scope_id=scope.scope_id,
            total_hours=scope.total_hours,
            remaining_seconds=scope.remaining_seconds,
            is_running=scope.is_running,
            last_updated=scope.last_updated,
        ):
            raise NotFoundError("Scope", scope.scope_id)
        return scope

    def start(self, scope_id: str, *, now: datetime) -> Scope:
        with self._tx.transaction():
            scope = self._load(scope_id, for_update=True)
            if not can_transition(TIMER_TRANSITIONS, scope.timer_state, TimerState.RUNNING):
                # Re-anchoring a running timer would drop the elapsed seconds.
                return scope
            scope = self._save(replace(scope, is_running=True, last_updated=now))
        logger.info("timer started scope=%s remaining=%s", scope_id, scope.remaining_seconds)
        return scope

    def pause(self, scope_id: str, *, now: datetime) -> Scope:
        with self._tx.transaction():
            scope = self._load(scope_id, for_update=True)
            if not can_transition(TIMER_TRANSITIONS, scope.timer_state, TimerState.PAUSED):
                return scope
            remaining = current_remaining(scope, now)
            scope = self._save(replace(scope, remaining_seconds=remaining, is_running=False, last_updated=now))
        logger.info("timer paused scope=%s remaining=%s", scope_id, scope.remaining_seconds)
        return scope

    def reset(self, scope_id: str, *, total_hours: Optional[float] = None) -> Scope:
        with self._tx.transaction():
            scope = self._load(scope_id, for_update=True)
            hours = scope.total_hours if total_hours is None else float(total_hours)
            if hours < 0 or math.isnan(hours):
                raise ValidationError("totalHours must be zero or positive")
            scope = self._save(
                replace(
                    scope,
                    total_hours=hours,
                    remaining_seconds=int(math.floor(hours * 3600)),
                    is_running=False,
                    last_updated=None,
                )
            )
        logger.info("timer reset scope=%s total_hours=%s", scope_id, scope.total_hours)
        return scope

    def status(self, scope_id: str, *, now: datetime) -> dict:
        scope = self._load(scope_id)
        return {
            "scopeId": scope.scope_id,
            "state": scope.timer_state.value,
            "isRunning": scope.is_running,
            "totalHours": scope.total_hours,
            "remainingSeconds": current_remaining(scope, now),
            "lastUpdated": scope.last_updated.isoformat() if scope.last_updated else None,
        }
