from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AbsenceKind


@dataclass(frozen=True)
class MarkedAbsence:
    """A review mark the faculty flagged as absent."""

    student_id: str
    team_id: str
    project_id: Optional[str]
    scope_id: Optional[str]
    faculty_id: str
    review_phase: int
    marked_at: Optional[datetime] = None


@dataclass(frozen=True)
class Absentee:
    student_id: str
    team_id: str
    project_id: Optional[str]
    faculty_id: str
    review_phase: int
    kind: AbsenceKind
    session_label: str
    at: Optional[datetime] = None

    @property
    def is_explicit(self) -> bool:
        return self.kind == AbsenceKind.MARKED_ABSENT

    def to_dict(self) -> dict:
        return {
            "studentId": self.student_id,
            "teamId": self.team_id,
            "projectId": self.project_id,
            "facultyId": self.faculty_id,
            "reviewPhase": self.review_phase,
            "type": self.kind.value,
            "isExplicit": self.is_explicit,
            "session": self.session_label,
            "date": self.at.isoformat() if self.at else None,
        }
