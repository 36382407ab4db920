"""Phase progression for a team.

A phase is settled once it has a non-PENDING review or an access window that
has already expired. A missed window still settles its phase, so a team is
never stuck waiting on an assignment nobody can act on any more.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from ..core.enums import ReviewStatus
from .model import Review, ReviewAssignment

# Review outcomes that close a phase for resubmission purposes.
_CLOSED_REVIEW_STATUSES = frozenset({ReviewStatus.COMPLETED, ReviewStatus.NOT_COMPLETED})


def settled_phases(
    reviews: Iterable[Review],
    assignments: Iterable[ReviewAssignment],
    now: datetime,
) -> set[int]:
    phases = {r.review_phase for r in reviews if r.status != ReviewStatus.PENDING}
    phases.update(a.review_phase for a in assignments if a.is_expired(now))
    return phases


def compute_next_phase(
    submission_phase: int,
    reviews: Iterable[Review],
    assignments: Iterable[ReviewAssignment],
    now: datetime,
) -> int:
    """``max(submission_phase, 1 + highest settled phase)``; never below the submitted phase."""
    settled = settled_phases(reviews, assignments, now)
    return max(int(submission_phase or 0), 1 + max(settled, default=0))


def phase_to_submit(
    submission_phase: int,
    reviews: Iterable[Review],
    assignments: Iterable[ReviewAssignment],
    now: datetime,
) -> int:
    """Phase a student submission targets.

    A live window on a phase that is not closed yet wins (resubmission after
    CHANGES_REQUIRED); otherwise the next unsettled phase.
    """
    reviews = list(reviews)
    assignments = list(assignments)
    closed = {r.review_phase for r in reviews if r.status in _CLOSED_REVIEW_STATUSES}
    active: Optional[ReviewAssignment] = next(
        (
            a
            for a in sorted(assignments, key=lambda a: a.review_phase)
            if a.access_expires_at is not None and a.review_phase not in closed and a.is_live(now)
        ),
        None,
    )
    if active is not None:
        return active.review_phase
    return compute_next_phase(submission_phase, reviews, assignments, now)
