from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..core.enums import AssignmentMode, ReviewStatus


@dataclass(frozen=True)
class ReviewAssignment:
    """Time-bounded right of one faculty member to evaluate a project in a phase.

    Unique on (project_id, faculty_id, review_phase). A missing start means
    immediately active; a missing expiry means permanent.
    """

    assignment_id: str
    project_id: str
    faculty_id: str
    review_phase: int
    mode: AssignmentMode
    access_starts_at: Optional[datetime] = None
    access_expires_at: Optional[datetime] = None
    assigned_at: Optional[datetime] = None
    assigned_by: Optional[str] = None

    def is_live(self, now: datetime) -> bool:
        if self.access_starts_at is not None and now < self.access_starts_at:
            return False
        if self.access_expires_at is not None and now >= self.access_expires_at:
            return False
        return True

    def is_expired(self, now: datetime) -> bool:
        return self.access_expires_at is not None and self.access_expires_at < now

    def to_dict(self) -> dict:
        return {
            "id": self.assignment_id,
            "projectId": self.project_id,
            "facultyId": self.faculty_id,
            "reviewPhase": self.review_phase,
            "mode": self.mode.value,
            "accessStartsAt": self.access_starts_at.isoformat() if self.access_starts_at else None,
            "accessExpiresAt": self.access_expires_at.isoformat() if self.access_expires_at else None,
            "assignedAt": self.assigned_at.isoformat() if self.assigned_at else None,
            "assignedBy": self.assigned_by,
        }


@dataclass(frozen=True)
class Review:
    review_id: str
    team_id: str
    project_id: Optional[str]
    faculty_id: str
    review_phase: int
    status: ReviewStatus
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class AccessWindow:
    """Requested access window: explicit start (None = now) plus a duration in hours (None = permanent)."""

    starts_at: Optional[datetime] = None
    duration_hours: Optional[float] = None
    mode: AssignmentMode = AssignmentMode.ONLINE

    def resolve(self, now: datetime, *, fallback_start: Optional[datetime] = None) -> tuple[datetime, Optional[datetime]]:
        start = self.starts_at or fallback_start or now
        if self.duration_hours is not None and float(self.duration_hours) > 0:
            return start, start + timedelta(hours=float(self.duration_hours))
        return start, None
