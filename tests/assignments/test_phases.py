from __future__ import annotations

from datetime import datetime

from src.review_scheduler.review_scheduler.assignments.model import Review, ReviewAssignment
from src.review_scheduler.review_scheduler.assignments.phases import compute_next_phase, phase_to_submit
from src.review_scheduler.review_scheduler.core.enums import AssignmentMode, ReviewStatus

NOW = datetime(2026, 3, 2, 10, 0)


def _review(phase: int, status: ReviewStatus) -> Review:
    return Review(
        review_id=f"r{phase}{status.value}",
        team_id="t1",
        project_id="p1",
        faculty_id="f1",
        review_phase=phase,
        status=status,
    )


def _assignment(phase: int, expires: datetime) -> ReviewAssignment:
    return ReviewAssignment(
        assignment_id=f"a{phase}",
        project_id="p1",
        faculty_id="f1",
        review_phase=phase,
        mode=AssignmentMode.ONLINE,
        access_expires_at=expires,
    )


def test_fresh_team_starts_at_phase_one():
    assert compute_next_phase(0, [], [], NOW) == 1


def test_pending_review_does_not_settle_its_phase():
    assert compute_next_phase(0, [_review(1, ReviewStatus.PENDING)], [], NOW) == 1


def test_evaluated_and_expired_phases_settle():
    reviews = [_review(1, ReviewStatus.COMPLETED)]
    assignments = [_assignment(2, datetime(2026, 3, 1, 10, 0))]
    assert compute_next_phase(1, reviews, assignments, NOW) == 3


def test_next_phase_never_regresses_below_submission():
    assert compute_next_phase(3, [_review(1, ReviewStatus.COMPLETED)], [], NOW) == 3


def test_submission_prefers_live_window_on_open_phase():
    reviews = [_review(1, ReviewStatus.CHANGES_REQUIRED)]
    assignments = [_assignment(1, datetime(2026, 3, 3, 10, 0))]
    assert phase_to_submit(1, reviews, assignments, NOW) == 1


def test_submission_ignores_live_window_on_closed_phase():
    reviews = [_review(1, ReviewStatus.COMPLETED)]
    assignments = [_assignment(1, datetime(2026, 3, 3, 10, 0))]
    assert phase_to_submit(1, reviews, assignments, NOW) == 2
