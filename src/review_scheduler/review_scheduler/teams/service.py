from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..assignments.phases import phase_to_submit
from ..assignments.repository import AssignmentRepository, ReviewRepository
from ..assignments.service import AssignmentService
from ..common.transactions import TransactionManager
from ..core.constants import DEFAULT_ACCESS_HOURS, FACULTY_TEAM_QUOTA, SYSTEM_ASSIGNER
from ..core.enums import ApprovalStatus, FacultyRole, ReviewStatus, TeamStatus
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PreconditionFailedError,
    ValidationError,
)
from ..core.transitions import APPROVAL_TRANSITIONS, SUBMITTABLE_TEAM_STATUSES, ensure_transition
from ..scheduling.calendar_clock import access_window_end
from ..timers.model import Scope
from ..timers.repository import ScopeRepository
from .model import Team
from .repository import TeamRepository

logger = logging.getLogger(__name__)

# Statuses whose admin override closes the team's open reviews.
_REOPENING_STATUSES = frozenset({TeamStatus.NOT_COMPLETED, TeamStatus.IN_PROGRESS, TeamStatus.PENDING})


class TeamService:
    """Guide / subject expert requests, quota, submission and status overrides."""

    def __init__(
        self,
        *,
        teams: TeamRepository,
        scopes: ScopeRepository,
        reviews: ReviewRepository,
        assignments: AssignmentRepository,
        engine: AssignmentService,
        transactions: TransactionManager,
        quota: int = FACULTY_TEAM_QUOTA,
        access_hours: float = DEFAULT_ACCESS_HOURS,
    ):
        self._teams = teams
        self._scopes = scopes
        self._reviews = reviews
        self._assignments = assignments
        self._engine = engine
        self._tx = transactions
        self._quota = quota
        self._access_hours = access_hours

    def _load(self, team_id: str) -> Team:
        team = self._teams.get_by_id(team_id, for_update=True)
        if not team:
            raise NotFoundError("Team", team_id)
        return team

    def _scope(self, team: Team) -> Optional[Scope]:
        return self._scopes.get_by_id(team.scope_id) if team.scope_id else None

    @staticmethod
    def _require_member(team: Team, student_id: str) -> None:
        if student_id not in team.member_ids:
            raise AuthorizationError("You are not a member of this team")

    # -------- Quota --------
    def faculty_load(self, *, scope_id: Optional[str], faculty_id: str, exclude_team_id: str) -> int:
        """Teams in the scope (other than the excluded one) where the faculty is a live guide or expert."""
        return self._teams.count_faculty_roles(
            scope_id=scope_id, faculty_id=faculty_id, exclude_team_id=exclude_team_id
        )

    def _ensure_quota(self, team: Team, faculty_id: str) -> None:
        load = self.faculty_load(scope_id=team.scope_id, faculty_id=faculty_id, exclude_team_id=team.team_id)
        if load >= self._quota:
            logger.warning("quota reached faculty=%s scope=%s load=%s", faculty_id, team.scope_id, load)
            raise ConflictError(
                f"Faculty already guides or reviews {load} teams in this scope (limit {self._quota})"
            )

    @staticmethod
    def _ensure_distinct_roles(team: Team, role: FacultyRole, faculty_id: str) -> None:
        if team.other_holder(role) == faculty_id:
            raise ConflictError("The same faculty cannot be both guide and subject expert of a team")

    # -------- Student requests --------
    def _select(self, team_id: str, faculty_id: str, role: FacultyRole, *, student_id: str) -> Team:
        if not faculty_id:
            raise ValidationError("facultyId is required")
        with self._tx.transaction():
            team = self._load(team_id)
            self._require_member(team, student_id)
            if not team.project_id:
                raise PreconditionFailedError("Select a project before requesting a guide or expert")
            if role == FacultyRole.EXPERT:
                scope = self._scope(team)
                if scope and scope.require_guide and not team.guide_id:
                    raise PreconditionFailedError("A guide must be selected before a subject expert")
            if team.holder(role) and team.approval(role) == ApprovalStatus.APPROVED:
                raise PreconditionFailedError(f"The {role.value.lower()} is already approved and cannot be changed")
            self._ensure_distinct_roles(team, role, faculty_id)
            self._ensure_quota(team, faculty_id)
            self._teams.set_faculty_role(team_id, role=role, faculty_id=faculty_id, status=ApprovalStatus.PENDING)
        logger.info("%s requested team=%s faculty=%s", role.value.lower(), team_id, faculty_id)
        return self._teams.get_by_id(team_id)

    def select_guide(self, team_id: str, faculty_id: str, *, student_id: str) -> Team:
        return self._select(team_id, faculty_id, FacultyRole.GUIDE, student_id=student_id)

    def select_expert(self, team_id: str, faculty_id: str, *, student_id: str) -> Team:
        return self._select(team_id, faculty_id, FacultyRole.EXPERT, student_id=student_id)

    def respond_to_request(self, team_id: str, role: FacultyRole, *, faculty_id: str, approve: bool) -> Team:
        target = ApprovalStatus.APPROVED if approve else ApprovalStatus.REJECTED
        with self._tx.transaction():
            team = self._load(team_id)
            if team.holder(role) != faculty_id:
                raise AuthorizationError("This request is not addressed to you")
            ensure_transition(APPROVAL_TRANSITIONS, team.approval(role), target, label=f"{role.value.title()} request")
            if approve:
                self._ensure_quota(team, faculty_id)
            self._teams.set_faculty_role(team_id, role=role, faculty_id=faculty_id, status=target)
        logger.info("%s request %s team=%s faculty=%s", role.value.lower(), target.value.lower(), team_id, faculty_id)
        return self._teams.get_by_id(team_id)

    # -------- Admin --------
    def assign_team_faculty(self, team_id: str, faculty_id: str, role: FacultyRole) -> Team:
        if not faculty_id:
            raise ValidationError("facultyId is required")
        with self._tx.transaction():
            team = self._load(team_id)
            self._ensure_distinct_roles(team, role, faculty_id)
            self._ensure_quota(team, faculty_id)
            self._teams.set_faculty_role(team_id, role=role, faculty_id=faculty_id, status=ApprovalStatus.APPROVED)
        logger.info("%s assigned team=%s faculty=%s", role.value.lower(), team_id, faculty_id)
        return self._teams.get_by_id(team_id)

    def unassign_team_faculty(self, team_id: str, role: FacultyRole) -> Team:
        with self._tx.transaction():
            self._load(team_id)
            self._teams.set_faculty_role(team_id, role=role, faculty_id=None, status=ApprovalStatus.PENDING)
        logger.info("%s unassigned team=%s", role.value.lower(), team_id)
        return self._teams.get_by_id(team_id)

    def set_status(self, team_id: str, status: TeamStatus, *, now: datetime) -> Team:
        """Admin override: any target status, with the review side effects it implies."""
        with self._tx.transaction():
            team = self._load(team_id)
            self._teams.set_status(team_id, status)

            if status != TeamStatus.PENDING:
                for role in (FacultyRole.GUIDE, FacultyRole.EXPERT):
                    if team.holder(role) and team.approval(role) != ApprovalStatus.APPROVED:
                        self._teams.set_faculty_role(
                            team_id, role=role, faculty_id=team.holder(role), status=ApprovalStatus.APPROVED
                        )

            if status in _REOPENING_STATUSES:
                closed = self._reviews.cancel_open(team_id)
                logger.info("closed %s open reviews team=%s", closed, team_id)

            if status == TeamStatus.CHANGES_REQUIRED and team.project_id:
                latest = self._reviews.latest_for_team(team_id)
                if latest:
                    self._assignments.extend_phase(
                        project_id=team.project_id,
                        review_phase=latest.review_phase,
                        access_expires_at=access_window_end(now, self._access_hours),
                    )
        logger.info("team status override team=%s %s -> %s", team_id, team.status.value, status.value)
        return self._teams.get_by_id(team_id)

    # -------- Submission --------
    def submit_for_review(self, team_id: str, *, student_id: str, now: datetime) -> Team:
        with self._tx.transaction():
            team = self._load(team_id)
            self._require_member(team, student_id)
            if not team.project_id:
                raise PreconditionFailedError("No project assigned. Cannot submit.")

            scope = self._scope(team)
            if scope:
                if scope.require_guide and (not team.guide_id or team.guide_status != ApprovalStatus.APPROVED):
                    raise PreconditionFailedError("An approved guide is required before submitting")
                if scope.require_subject_expert and (
                    not team.expert_id or team.expert_status != ApprovalStatus.APPROVED
                ):
                    raise PreconditionFailedError("An approved subject expert is required before submitting")

            if team.status not in SUBMITTABLE_TEAM_STATUSES:
                raise PreconditionFailedError(
                    f"Team status does not allow submission for review. Current status: {team.status.value}"
                )

            phase = phase_to_submit(
                team.submission_phase,
                self._reviews.list_for_team(team_id),
                self._assignments.list_for_project(team.project_id),
                now,
            )
            if scope and phase > scope.number_of_phases:
                raise ConflictError("All phases for this batch are already completed")

            feedback = self._reviews.latest_open_changes_required(team_id)
            if feedback:
                self._reviews.set_status(feedback.review_id, ReviewStatus.READY_FOR_REVIEW)
                self._engine.refresh_access(
                    project_id=team.project_id,
                    faculty_id=feedback.faculty_id,
                    review_phase=feedback.review_phase or phase,
                    assigned_by=SYSTEM_ASSIGNER,
                    now=now,
                    mode=None,
                )

            self._teams.set_submission(team_id, status=TeamStatus.READY_FOR_REVIEW, submission_phase=phase)
        logger.info("team submitted team=%s phase=%s", team_id, phase)
        return self._teams.get_by_id(team_id)
