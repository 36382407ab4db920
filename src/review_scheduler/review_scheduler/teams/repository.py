from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import ApprovalStatus, FacultyRole, TeamStatus
from .model import Team


class TeamRepository(Protocol):
    """Repository interface for Team.

    The service layer depends on this interface only, never on a concrete DB.
    """

    def get_by_id(self, team_id: str, *, for_update: bool = False) -> Optional[Team]:
        raise NotImplementedError

    def get_by_project(self, project_id: str) -> Optional[Team]:
        raise NotImplementedError

    def list_with_project_for_students(self, student_ids: Iterable[str]) -> Sequence[Team]:
        """Teams that own a project and contain at least one of the students."""

        raise NotImplementedError

    def list_with_guide_in_scope(self, scope_id: str) -> Sequence[Team]:
        raise NotImplementedError

    def count_faculty_roles(self, *, scope_id: Optional[str], faculty_id: str, exclude_team_id: str) -> int:
        """Teams in the scope where the faculty is an APPROVED or PENDING guide or expert."""

        raise NotImplementedError

    def set_status(self, team_id: str, status: TeamStatus) -> bool:
        raise NotImplementedError

    def set_submission(self, team_id: str, *, status: TeamStatus, submission_phase: int) -> bool:
        raise NotImplementedError

    def set_faculty_role(
        self,
        team_id: str,
        *,
        role: FacultyRole,
        faculty_id: Optional[str],
        status: ApprovalStatus,
    ) -> bool:
        raise NotImplementedError
