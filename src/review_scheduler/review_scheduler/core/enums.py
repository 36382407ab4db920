from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Principal role used for authorization checks."""

    ADMIN = "ADMIN"
    FACULTY = "FACULTY"
    STUDENT = "STUDENT"


class TeamStatus(str, Enum):
    """Team workflow status as stored in the database."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    NOT_COMPLETED = "NOT_COMPLETED"
    IN_PROGRESS = "IN_PROGRESS"
    CHANGES_REQUIRED = "CHANGES_REQUIRED"
    READY_FOR_REVIEW = "READY_FOR_REVIEW"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"


class ReviewStatus(str, Enum):
    """Outcome of one review attempt. PENDING means not yet evaluated."""

    PENDING = "PENDING"
    NOT_COMPLETED = "NOT_COMPLETED"
    IN_PROGRESS = "IN_PROGRESS"
    CHANGES_REQUIRED = "CHANGES_REQUIRED"
    READY_FOR_REVIEW = "READY_FOR_REVIEW"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"


class ApprovalStatus(str, Enum):
    """Guide / subject expert request status."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class FacultyRole(str, Enum):
    GUIDE = "GUIDE"
    EXPERT = "EXPERT"


class AssignmentMode(str, Enum):
    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"


class TimerState(str, Enum):
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"


class BatchOutcome(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class AbsenceKind(str, Enum):
    MARKED_ABSENT = "MARKED_ABSENT"
    DEADLINE_MISSED = "DEADLINE_MISSED"
