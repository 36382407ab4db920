from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AssignmentMode, ReviewStatus
from .model import Review, ReviewAssignment


class AssignmentRepository(Protocol):
    def upsert(
        self,
        *,
        project_id: str,
        faculty_id: str,
        review_phase: int,
        mode: AssignmentMode,
        access_starts_at: Optional[datetime],
        access_expires_at: Optional[datetime],
        assigned_at: datetime,
        assigned_by: Optional[str],
    ) -> ReviewAssignment:
        """Insert or overwrite the record keyed by (project, faculty, phase)."""

        raise NotImplementedError

    def get_by_id(self, assignment_id: str) -> Optional[ReviewAssignment]:
        raise NotImplementedError

    def get(self, *, project_id: str, faculty_id: str, review_phase: int) -> Optional[ReviewAssignment]:
        raise NotImplementedError

    def list_for_project(self, project_id: str) -> Sequence[ReviewAssignment]:
        raise NotImplementedError

    def expire(self, *, project_id: str, faculty_id: str, review_phase: int, at: datetime) -> int:
        raise NotImplementedError

    def update_window(
        self,
        assignment_id: str,
        *,
        access_starts_at: Optional[datetime],
        access_expires_at: Optional[datetime],
    ) -> bool:
        raise NotImplementedError

    def extend_phase(self, *, project_id: str, review_phase: int, access_expires_at: datetime) -> int:
        raise NotImplementedError

    def delete(self, assignment_id: str) -> bool:
        raise NotImplementedError

    def list_for_faculty(self, faculty_id: str) -> Sequence[ReviewAssignment]:
        raise NotImplementedError

    def list_expired(self, *, before: datetime) -> Sequence[ReviewAssignment]:
        raise NotImplementedError


class ReviewRepository(Protocol):
    def list_for_team(self, team_id: str) -> Sequence[Review]:
        raise NotImplementedError

    def find_pending(self, *, team_id: str, review_phase: int) -> Optional[Review]:
        raise NotImplementedError

    def create(
        self,
        *,
        team_id: str,
        project_id: Optional[str],
        faculty_id: str,
        review_phase: int,
        status: ReviewStatus,
        created_at: datetime,
    ) -> Review:
        raise NotImplementedError

    def reassign(self, review_id: str, *, faculty_id: str) -> bool:
        raise NotImplementedError

    def set_status(self, review_id: str, status: ReviewStatus) -> bool:
        raise NotImplementedError

    def latest_open_changes_required(self, team_id: str) -> Optional[Review]:
        """Most recent CHANGES_REQUIRED review that has not been completed."""

        raise NotImplementedError

    def cancel_open(self, team_id: str) -> int:
        """Close PENDING / READY_FOR_REVIEW reviews as NOT_COMPLETED."""

        raise NotImplementedError

    def latest_for_team(self, team_id: str) -> Optional[Review]:
        raise NotImplementedError
