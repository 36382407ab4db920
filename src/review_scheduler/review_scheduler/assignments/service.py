from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from itertools import product
from typing import Iterable, Optional, Sequence

from ..common.batch import BatchResult, ItemOutcome, run_in_chunks
from ..common.datetime_utils import day_bounds
from ..common.transactions import TransactionManager
from ..common.validators import require_positive, unique_ids
from ..core.constants import (
    BATCH_CHUNK_SIZE,
    BATCH_TRANSACTION_TIMEOUT_SECONDS,
    DEFAULT_ACCESS_HOURS,
)
from ..core.enums import AssignmentMode, BatchOutcome, ReviewStatus, TeamStatus
from ..core.exceptions import ConflictError, NotFoundError, PreconditionFailedError, ValidationError
from ..core.transitions import TEAM_TRANSITIONS, can_transition
from ..scheduling.calendar_clock import access_window_end
from ..sessions.model import LabSession
from ..sessions.repository import SessionRepository
from ..teams.model import Team
from ..teams.repository import TeamRepository
from ..timers.repository import ScopeRepository
from .model import AccessWindow, ReviewAssignment
from .phases import compute_next_phase
from .repository import AssignmentRepository, ReviewRepository

logger = logging.getLogger(__name__)

NO_SESSION_FOUND = "no session found"


@dataclass(frozen=True)
class SessionMatch:
    """Faculty picked for a team from the session timetable."""

    faculty_id: str
    session: LabSession
    reason: str


class AssignmentService:
    """Review phases, faculty access windows and pending-review transfers."""

    def __init__(
        self,
        *,
        teams: TeamRepository,
        scopes: ScopeRepository,
        assignments: AssignmentRepository,
        reviews: ReviewRepository,
        sessions: SessionRepository,
        transactions: TransactionManager,
        access_hours: float = DEFAULT_ACCESS_HOURS,
        chunk_size: int = BATCH_CHUNK_SIZE,
        batch_timeout_seconds: int = BATCH_TRANSACTION_TIMEOUT_SECONDS,
    ):
        self._teams = teams
        self._scopes = scopes
        self._assignments = assignments
        self._reviews = reviews
        self._sessions = sessions
        self._tx = transactions
        self._access_hours = access_hours
        self._chunk_size = chunk_size
        self._batch_timeout = batch_timeout_seconds

    # -------- Phases --------
    def next_phase(self, team: Team, now: datetime) -> int:
        reviews = self._reviews.list_for_team(team.team_id)
        assignments = self._assignments.list_for_project(team.project_id) if team.project_id else []
        phase = compute_next_phase(team.submission_phase, reviews, assignments, now)
        logger.debug("next phase team=%s phase=%s", team.team_id, phase)
        return phase

    def _team_for_project(self, project_id: str) -> Team:
        team = self._teams.get_by_project(project_id)
        if not team:
            raise NotFoundError("Project", project_id)
        return team

    def _check_phase(self, team: Team, review_phase: int) -> None:
        review_phase = require_positive(review_phase, "reviewPhase")
        if team.scope_id:
            scope = self._scopes.get_by_id(team.scope_id)
            if scope and review_phase > scope.number_of_phases:
                raise ValidationError(
                    f"reviewPhase {review_phase} exceeds the {scope.number_of_phases} phases of this scope"
                )
        for r in self._reviews.list_for_team(team.team_id):
            if r.review_phase == review_phase and r.status == ReviewStatus.COMPLETED:
                raise ConflictError(f"Phase {review_phase} is already completed for this team")

    # -------- Single assignments --------
    def _assign(
        self,
        *,
        project_id: str,
        faculty_id: str,
        review_phase: int,
        window: AccessWindow,
        assigned_by: Optional[str],
        now: datetime,
    ) -> ReviewAssignment:
        self._check_phase(self._team_for_project(project_id), review_phase)
        starts_at, expires_at = window.resolve(now)
        return self._assignments.upsert(
            project_id=project_id,
            faculty_id=faculty_id,
            review_phase=int(review_phase),
            mode=window.mode,
            access_starts_at=starts_at,
            access_expires_at=expires_at,
            assigned_at=now,
            assigned_by=assigned_by,
        )

    def assign_faculty(
        self,
        *,
        project_id: str,
        faculty_id: str,
        review_phase: int,
        window: AccessWindow,
        assigned_by: Optional[str],
        now: datetime,
    ) -> ReviewAssignment:
        with self._tx.transaction():
            assignment = self._assign(
                project_id=project_id,
                faculty_id=faculty_id,
                review_phase=review_phase,
                window=window,
                assigned_by=assigned_by,
                now=now,
            )
        logger.info(
            "assigned faculty=%s project=%s phase=%s expires=%s",
            faculty_id,
            project_id,
            review_phase,
            assignment.access_expires_at,
        )
        return assignment

    def bulk_assign_faculty(
        self,
        *,
        project_ids: Iterable[str],
        faculty_ids: Iterable[str],
        review_phase: int,
        window: AccessWindow,
        assigned_by: Optional[str],
        now: datetime,
        distribute_evenly: bool = False,
    ) -> BatchResult:
        projects = unique_ids(project_ids)
        faculty = unique_ids(faculty_ids)
        if not projects or not faculty:
            raise ValidationError("projectIds and facultyIds are required")

        if distribute_evenly:
            pairs = [(p, faculty[i % len(faculty)]) for i, p in enumerate(projects)]
        else:
            pairs = list(product(projects, faculty))

        def handle(pair: tuple[str, str]) -> ItemOutcome:
            project_id, faculty_id = pair
            a = self._assign(
                project_id=project_id,
                faculty_id=faculty_id,
                review_phase=review_phase,
                window=window,
                assigned_by=assigned_by,
                now=now,
            )
            return ItemOutcome(detail={"assignmentId": a.assignment_id})

        result = self._run(pairs, handle, key=lambda p: f"{p[0]}:{p[1]}")
        logger.info("bulk assign phase=%s success=%s failed=%s", review_phase, result.succeeded, result.failures)
        return result

    def _update_window(self, assignment_id: str, window: AccessWindow, now: datetime) -> ReviewAssignment:
        current = self._assignments.get_by_id(assignment_id)
        if not current:
            raise NotFoundError("Assignment", assignment_id)
        starts_at, expires_at = window.resolve(now, fallback_start=current.access_starts_at)
        self._assignments.update_window(assignment_id, access_starts_at=starts_at, access_expires_at=expires_at)
        return replace(current, access_starts_at=starts_at, access_expires_at=expires_at)

    def update_access_window(self, assignment_id: str, *, window: AccessWindow, now: datetime) -> ReviewAssignment:
        with self._tx.transaction():
            updated = self._update_window(assignment_id, window, now)
        logger.info("access window updated id=%s expires=%s", assignment_id, updated.access_expires_at)
        return updated

    def bulk_update_access_window(
        self, assignment_ids: Iterable[str], *, window: AccessWindow, now: datetime
    ) -> BatchResult:
        ids = unique_ids(assignment_ids)
        if not ids:
            raise ValidationError("assignmentIds are required")

        def handle(assignment_id: str) -> ItemOutcome:
            a = self._update_window(assignment_id, window, now)
            expires = a.access_expires_at.isoformat() if a.access_expires_at else None
            return ItemOutcome(detail={"accessExpiresAt": expires})

        return self._run(ids, handle)

    def _delete(self, assignment_id: str) -> None:
        if not self._assignments.delete(assignment_id):
            raise NotFoundError("Assignment", assignment_id)

    def unassign(self, assignment_id: str) -> None:
        with self._tx.transaction():
            self._delete(assignment_id)
        logger.info("assignment removed id=%s", assignment_id)

    def bulk_unassign(self, assignment_ids: Iterable[str]) -> BatchResult:
        ids = unique_ids(assignment_ids)
        if not ids:
            raise ValidationError("assignmentIds are required")
        return self._run(ids, self._delete)

    def list_live_assignments(self, faculty_id: str, *, now: datetime) -> list[ReviewAssignment]:
        return [a for a in self._assignments.list_for_faculty(faculty_id) if a.is_live(now)]

    # -------- Transfers --------
    def refresh_access(
        self,
        *,
        project_id: str,
        faculty_id: str,
        review_phase: int,
        assigned_by: Optional[str],
        now: datetime,
        mode: Optional[AssignmentMode] = AssignmentMode.OFFLINE,
    ) -> ReviewAssignment:
        """Grant (or re-grant) a fresh Sunday-skipping window starting now.

        An existing record keeps its original start and assigner, and its mode
        when ``mode`` is None.
        """
        existing = self._assignments.get(project_id=project_id, faculty_id=faculty_id, review_phase=review_phase)
        if mode is None:
            mode = existing.mode if existing else AssignmentMode.OFFLINE
        return self._assignments.upsert(
            project_id=project_id,
            faculty_id=faculty_id,
            review_phase=review_phase,
            mode=mode,
            access_starts_at=existing.access_starts_at if existing else now,
            access_expires_at=access_window_end(now, self._access_hours),
            assigned_at=now,
            assigned_by=existing.assigned_by if existing else assigned_by,
        )

    def transfer_pending_review(
        self,
        team: Team,
        faculty_id: str,
        review_phase: int,
        *,
        assigned_by: Optional[str],
        now: datetime,
    ) -> str:
        """Move the team's pending review for the phase to ``faculty_id``.

        Must run inside the caller's transaction: the old faculty's window is
        closed at ``now`` in the same unit as the new grant.
        """
        if not team.project_id:
            raise PreconditionFailedError("Team has no project to review")

        note = "assigned"
        pending = self._reviews.find_pending(team_id=team.team_id, review_phase=review_phase)
        if pending:
            if pending.faculty_id != faculty_id:
                self._reviews.reassign(pending.review_id, faculty_id=faculty_id)
                self._assignments.expire(
                    project_id=team.project_id,
                    faculty_id=pending.faculty_id,
                    review_phase=review_phase,
                    at=now,
                )
                note = "transferred from previous faculty"
                logger.info(
                    "review transferred team=%s phase=%s from=%s to=%s",
                    team.team_id,
                    review_phase,
                    pending.faculty_id,
                    faculty_id,
                )
        else:
            self._reviews.create(
                team_id=team.team_id,
                project_id=team.project_id,
                faculty_id=faculty_id,
                review_phase=review_phase,
                status=ReviewStatus.PENDING,
                created_at=now,
            )

        self.refresh_access(
            project_id=team.project_id,
            faculty_id=faculty_id,
            review_phase=review_phase,
            assigned_by=assigned_by,
            now=now,
        )
        return note

    def _move_to_in_progress(self, team: Team) -> bool:
        if not can_transition(TEAM_TRANSITIONS, team.status, TeamStatus.IN_PROGRESS):
            return False
        self._teams.set_status(team.team_id, TeamStatus.IN_PROGRESS)
        return True

    def sync_team_reviews_with_session(
        self,
        student_ids: Iterable[str],
        faculty_id: str,
        *,
        assigned_by: Optional[str],
        now: datetime,
    ) -> int:
        """Point every affected team's pending review at the session's faculty."""
        synced = 0
        for team in self._teams.list_with_project_for_students(unique_ids(student_ids)):
            if team.status == TeamStatus.REJECTED:
                logger.info("session sync skipped rejected team=%s", team.team_id)
                continue
            phase = self.next_phase(team, now)
            self.transfer_pending_review(team, faculty_id, phase, assigned_by=assigned_by, now=now)
            self._move_to_in_progress(team)
            synced += 1
        return synced

    def _load_team(self, team_id: str) -> Team:
        team = self._teams.get_by_id(team_id, for_update=True)
        if not team:
            raise NotFoundError("Team", team_id)
        return team

    def bulk_reassign(
        self, team_ids: Iterable[str], faculty_id: str, *, assigned_by: Optional[str], now: datetime
    ) -> BatchResult:
        ids = unique_ids(team_ids)
        if not ids:
            raise ValidationError("teamIds are required")

        def handle(team_id: str) -> ItemOutcome:
            team = self._load_team(team_id)
            phase = self.next_phase(team, now)
            note = self.transfer_pending_review(team, faculty_id, phase, assigned_by=assigned_by, now=now)
            return ItemOutcome(reason=note, detail={"phase": phase, "facultyId": faculty_id})

        result = self._run(ids, handle)
        logger.info("bulk reassign faculty=%s success=%s failed=%s", faculty_id, result.succeeded, result.failures)
        return result

    # -------- Session driven --------
    def auto_assign_from_session(self, team: Team, now: datetime) -> Optional[SessionMatch]:
        """Faculty of the session the team is in right now, else its next session today."""
        if not team.member_ids:
            return None
        active = self._sessions.find_active_for_students(team.member_ids, now)
        if active:
            return SessionMatch(faculty_id=active.faculty_id, session=active, reason="active session")

        _, end_of_day = day_bounds(now.date())
        upcoming = self._sessions.find_next_for_students(team.member_ids, after=now, before=end_of_day)
        if upcoming:
            return SessionMatch(faculty_id=upcoming.faculty_id, session=upcoming, reason="upcoming session")
        return None

    def auto_assign_reviews(
        self,
        team_ids: Iterable[str],
        *,
        assigned_by: Optional[str],
        now: datetime,
        override_faculty_id: Optional[str] = None,
    ) -> BatchResult:
        ids = unique_ids(team_ids)
        if not ids:
            raise ValidationError("teamIds are required")

        def handle(team_id: str) -> ItemOutcome:
            team = self._load_team(team_id)
            if not team.project_id:
                return ItemOutcome(BatchOutcome.SKIPPED, "team has no project")
            if team.status == TeamStatus.REJECTED:
                return ItemOutcome(BatchOutcome.SKIPPED, "team is rejected")

            match = self.auto_assign_from_session(team, now)
            if match:
                faculty_id, reason = match.faculty_id, match.reason
            elif override_faculty_id:
                faculty_id, reason = override_faculty_id, "manual override"
            else:
                return ItemOutcome(BatchOutcome.SKIPPED, NO_SESSION_FOUND)

            phase = self.next_phase(team, now)
            self.transfer_pending_review(team, faculty_id, phase, assigned_by=assigned_by, now=now)
            self._move_to_in_progress(team)
            return ItemOutcome(reason=reason, detail={"facultyId": faculty_id, "phase": phase})

        result = self._run(ids, handle)
        logger.info(
            "auto assign success=%s skipped=%s failed=%s", result.succeeded, result.skips, result.failures
        )
        return result

    def release_guide_reviews(
        self,
        scope_id: str,
        *,
        review_phase: int,
        window: AccessWindow,
        assigned_by: Optional[str],
        now: datetime,
    ) -> BatchResult:
        """Open the phase to each team's own guide, for every team in the scope."""
        if not self._scopes.get_by_id(scope_id):
            raise NotFoundError("Scope", scope_id)
        teams: Sequence[Team] = self._teams.list_with_guide_in_scope(scope_id)

        def handle(team: Team) -> ItemOutcome:
            if not team.project_id:
                return ItemOutcome(BatchOutcome.SKIPPED, "team has no project")
            a = self._assign(
                project_id=team.project_id,
                faculty_id=team.guide_id,
                review_phase=review_phase,
                window=window,
                assigned_by=assigned_by,
                now=now,
            )
            return ItemOutcome(detail={"assignmentId": a.assignment_id, "facultyId": team.guide_id})

        result = self._run(teams, handle, key=lambda t: t.team_id)
        logger.info("guide reviews released scope=%s phase=%s success=%s", scope_id, review_phase, result.succeeded)
        return result

    def _run(self, items, handler, *, key=str) -> BatchResult:
        return run_in_chunks(
            items,
            handler,
            transactions=self._tx,
            key=key,
            chunk_size=self._chunk_size,
            timeout_seconds=self._batch_timeout,
        )
