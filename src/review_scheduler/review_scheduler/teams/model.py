from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import ApprovalStatus, FacultyRole, TeamStatus


@dataclass(frozen=True)
class Team:
    """Domain entity: a student team, its project and its guide/expert requests."""

    team_id: str
    scope_id: Optional[str]
    status: TeamStatus
    project_id: Optional[str] = None
    submission_phase: int = 0
    guide_id: Optional[str] = None
    guide_status: ApprovalStatus = ApprovalStatus.PENDING
    expert_id: Optional[str] = None
    expert_status: ApprovalStatus = ApprovalStatus.PENDING
    member_ids: tuple[str, ...] = ()

    def holder(self, role: FacultyRole) -> Optional[str]:
        return self.guide_id if role == FacultyRole.GUIDE else self.expert_id

    def approval(self, role: FacultyRole) -> ApprovalStatus:
        return self.guide_status if role == FacultyRole.GUIDE else self.expert_status

    def other_holder(self, role: FacultyRole) -> Optional[str]:
        return self.expert_id if role == FacultyRole.GUIDE else self.guide_id
