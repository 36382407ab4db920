from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..assignments.model import Review
from ..assignments.repository import AssignmentRepository, ReviewRepository
from ..core.constants import MISSED_DEADLINE_LABEL
from ..core.enums import AbsenceKind
from ..sessions.repository import SessionRepository
from ..teams.model import Team
from ..teams.repository import TeamRepository
from .model import Absentee
from .repository import AbsenceRepository

logger = logging.getLogger(__name__)


class AbsenteeAuditor:
    """Read-only absentee report.

    Explicit absentees come from marks flagged absent. Implicit ones are the
    members of a team whose access window for a phase expired before any
    review was created for that phase.
    """

    def __init__(
        self,
        *,
        absences: AbsenceRepository,
        assignments: AssignmentRepository,
        reviews: ReviewRepository,
        teams: TeamRepository,
        sessions: SessionRepository,
    ):
        self._absences = absences
        self._assignments = assignments
        self._reviews = reviews
        self._teams = teams
        self._sessions = sessions

    def report(self, *, now: datetime, scope_id: Optional[str] = None) -> list[Absentee]:
        out: list[Absentee] = []
        seen: set[tuple[str, str, int]] = set()

        for m in self._absences.list_marked_absent(scope_id=scope_id):
            key = (m.student_id, m.team_id, m.review_phase)
            if key in seen:
                continue
            seen.add(key)
            out.append(
                Absentee(
                    student_id=m.student_id,
                    team_id=m.team_id,
                    project_id=m.project_id,
                    faculty_id=m.faculty_id,
                    review_phase=m.review_phase,
                    kind=AbsenceKind.MARKED_ABSENT,
                    session_label="Marked Absent",
                    at=m.marked_at,
                )
            )
        explicit = len(out)

        teams: dict[str, Optional[Team]] = {}
        reviews: dict[str, list[Review]] = {}
        for a in self._assignments.list_expired(before=now):
            if a.project_id not in teams:
                teams[a.project_id] = self._teams.get_by_project(a.project_id)
            team = teams[a.project_id]
            if team is None or (scope_id is not None and team.scope_id != scope_id):
                continue
            if team.team_id not in reviews:
                reviews[team.team_id] = list(self._reviews.list_for_team(team.team_id))
            if any(r.review_phase == a.review_phase for r in reviews[team.team_id]):
                continue

            label = MISSED_DEADLINE_LABEL
            if a.assigned_at is not None:
                session = self._sessions.find_active_for_faculty(
                    faculty_id=a.faculty_id, scope_id=team.scope_id, at=a.assigned_at
                )
                if session:
                    label = session.label

            for student_id in team.member_ids:
                key = (student_id, team.team_id, a.review_phase)
                if key in seen:
                    continue
                seen.add(key)
                out.append(
                    Absentee(
                        student_id=student_id,
                        team_id=team.team_id,
                        project_id=a.project_id,
                        faculty_id=a.faculty_id,
                        review_phase=a.review_phase,
                        kind=AbsenceKind.DEADLINE_MISSED,
                        session_label=label,
                        at=a.access_expires_at,
                    )
                )

        logger.debug("absentee report explicit=%s implicit=%s", explicit, len(out) - explicit)
        return out
