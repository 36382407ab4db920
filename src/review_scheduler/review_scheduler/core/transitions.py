"""Closed transition tables for the workflow enums.

Services call ``ensure_transition`` before persisting a new state so an
illegal move is rejected before any mutation happens.
"""

from __future__ import annotations

from typing import Mapping, TypeVar

from .enums import ApprovalStatus, TeamStatus, TimerState
from .exceptions import PreconditionFailedError

S = TypeVar("S")

TEAM_TRANSITIONS: Mapping[TeamStatus, frozenset] = {
    TeamStatus.PENDING: frozenset({TeamStatus.APPROVED, TeamStatus.IN_PROGRESS, TeamStatus.REJECTED}),
    TeamStatus.APPROVED: frozenset({TeamStatus.IN_PROGRESS, TeamStatus.NOT_COMPLETED}),
    TeamStatus.NOT_COMPLETED: frozenset({TeamStatus.IN_PROGRESS, TeamStatus.READY_FOR_REVIEW}),
    TeamStatus.IN_PROGRESS: frozenset({TeamStatus.IN_PROGRESS, TeamStatus.READY_FOR_REVIEW}),
    TeamStatus.CHANGES_REQUIRED: frozenset({TeamStatus.IN_PROGRESS, TeamStatus.READY_FOR_REVIEW}),
    TeamStatus.READY_FOR_REVIEW: frozenset(
        {
            TeamStatus.IN_PROGRESS,
            TeamStatus.COMPLETED,
            TeamStatus.CHANGES_REQUIRED,
            TeamStatus.NOT_COMPLETED,
            TeamStatus.REJECTED,
        }
    ),
    TeamStatus.COMPLETED: frozenset({TeamStatus.IN_PROGRESS, TeamStatus.READY_FOR_REVIEW}),
    TeamStatus.REJECTED: frozenset(),
}

# Statuses from which a team may submit its project for the next review phase.
SUBMITTABLE_TEAM_STATUSES = frozenset(
    {
        TeamStatus.CHANGES_REQUIRED,
        TeamStatus.IN_PROGRESS,
        TeamStatus.NOT_COMPLETED,
        TeamStatus.COMPLETED,
    }
)

APPROVAL_TRANSITIONS: Mapping[ApprovalStatus, frozenset] = {
    ApprovalStatus.PENDING: frozenset({ApprovalStatus.APPROVED, ApprovalStatus.REJECTED}),
    ApprovalStatus.APPROVED: frozenset({ApprovalStatus.PENDING}),
    ApprovalStatus.REJECTED: frozenset({ApprovalStatus.PENDING}),
}

# Repeating start or pause is not a move; the timer service treats it as a no-op.
TIMER_TRANSITIONS: Mapping[TimerState, frozenset] = {
    TimerState.PAUSED: frozenset({TimerState.RUNNING}),
    TimerState.RUNNING: frozenset({TimerState.PAUSED}),
}


def can_transition(table: Mapping[S, frozenset], current: S, target: S) -> bool:
    return target in table.get(current, frozenset())


def ensure_transition(table: Mapping[S, frozenset], current: S, target: S, *, label: str) -> None:
    if not can_transition(table, current, target):
        cur = getattr(current, "value", current)
        tgt = getattr(target, "value", target)
        raise PreconditionFailedError(f"{label} cannot move from {cur} to {tgt}")
