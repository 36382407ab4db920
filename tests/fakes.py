"""In-memory stand-ins for the repository Protocols and the transaction manager."""

from __future__ import annotations

import itertools
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable, Optional, Sequence

from src.review_scheduler.review_scheduler.absentees.model import MarkedAbsence
from src.review_scheduler.review_scheduler.absentees.service import AbsenteeAuditor
from src.review_scheduler.review_scheduler.assignments.model import Review, ReviewAssignment
from src.review_scheduler.review_scheduler.assignments.service import AssignmentService
from src.review_scheduler.review_scheduler.common.validators import unique_ids
from src.review_scheduler.review_scheduler.core.enums import (
    ApprovalStatus,
    AssignmentMode,
    FacultyRole,
    ReviewStatus,
    TeamStatus,
)
from src.review_scheduler.review_scheduler.sessions.model import LabSession, Venue
from src.review_scheduler.review_scheduler.sessions.service import SessionScheduler
from src.review_scheduler.review_scheduler.teams.model import Team
from src.review_scheduler.review_scheduler.teams.service import TeamService
from src.review_scheduler.review_scheduler.timers.model import Scope
from src.review_scheduler.review_scheduler.timers.service import ScopeTimerService

_ids = itertools.count(1)


def new_id(prefix: str) -> str:
    return f"{prefix}-{next(_ids)}"


class Store:
    """Keyed rows that a FakeTransactions savepoint can snapshot and restore."""

    def __init__(self):
        self.rows: dict = {}

    def snapshot(self) -> dict:
        return dict(self.rows)

    def restore(self, snap: dict) -> None:
        self.rows = dict(snap)


class FakeTransactions:
    def __init__(self, *stores: Store):
        self.stores = list(stores)
        self.transactions = 0
        self.timeouts: list[Optional[int]] = []
        self.depth = 0

    @contextmanager
    def _guard(self):
        snaps = [s.snapshot() for s in self.stores]
        try:
            yield
        except Exception:
            for s, snap in zip(self.stores, snaps):
                s.restore(snap)
            raise

    @contextmanager
    def transaction(self, *, timeout_seconds: Optional[int] = None):
        if self.depth:
            yield
            return
        self.transactions += 1
        self.timeouts.append(timeout_seconds)
        self.depth += 1
        try:
            with self._guard():
                yield
        finally:
            self.depth -= 1

    @contextmanager
    def savepoint(self):
        with self._guard():
            yield


class InMemoryScopes(Store):
    def add(self, scope: Scope) -> Scope:
        self.rows[scope.scope_id] = scope
        return scope

    def get_by_id(self, scope_id: str, *, for_update: bool = False) -> Optional[Scope]:
        return self.rows.get(scope_id)

    def save_timer(self, *, scope_id, total_hours, remaining_seconds, is_running, last_updated) -> bool:
        scope = self.rows.get(scope_id)
        if not scope:
            return False
        self.rows[scope_id] = replace(
            scope,
            total_hours=total_hours,
            remaining_seconds=remaining_seconds,
            is_running=is_running,
            last_updated=last_updated,
        )
        return True


class InMemoryTeams(Store):
    def add(self, team: Team) -> Team:
        self.rows[team.team_id] = team
        return team

    def get_by_id(self, team_id: str, *, for_update: bool = False) -> Optional[Team]:
        return self.rows.get(team_id)

    def get_by_project(self, project_id: str) -> Optional[Team]:
        return next((t for t in self.rows.values() if t.project_id == project_id), None)

    def list_with_project_for_students(self, student_ids: Iterable[str]) -> Sequence[Team]:
        ids = set(student_ids)
        return [t for t in self.rows.values() if t.project_id and ids.intersection(t.member_ids)]

    def list_with_guide_in_scope(self, scope_id: str) -> Sequence[Team]:
        return [t for t in self.rows.values() if t.scope_id == scope_id and t.guide_id]

    def count_faculty_roles(self, *, scope_id, faculty_id, exclude_team_id) -> int:
        live = (ApprovalStatus.APPROVED, ApprovalStatus.PENDING)
        return sum(
            1
            for t in self.rows.values()
            if t.scope_id == scope_id
            and t.team_id != exclude_team_id
            and (
                (t.guide_id == faculty_id and t.guide_status in live)
                or (t.expert_id == faculty_id and t.expert_status in live)
            )
        )

    def set_status(self, team_id: str, status: TeamStatus) -> bool:
        if team_id not in self.rows:
            return False
        self.rows[team_id] = replace(self.rows[team_id], status=status)
        return True

    def set_submission(self, team_id: str, *, status: TeamStatus, submission_phase: int) -> bool:
        if team_id not in self.rows:
            return False
        self.rows[team_id] = replace(self.rows[team_id], status=status, submission_phase=submission_phase)
        return True

    def set_faculty_role(self, team_id: str, *, role, faculty_id, status) -> bool:
        if team_id not in self.rows:
            return False
        if role == FacultyRole.GUIDE:
            self.rows[team_id] = replace(self.rows[team_id], guide_id=faculty_id, guide_status=status)
        else:
            self.rows[team_id] = replace(self.rows[team_id], expert_id=faculty_id, expert_status=status)
        return True


class InMemoryAssignments(Store):
    """Keyed by (project_id, faculty_id, review_phase), like the UNIQUE index."""

    def add(self, a: ReviewAssignment) -> ReviewAssignment:
        self.rows[(a.project_id, a.faculty_id, a.review_phase)] = a
        return a

    def upsert(
        self,
        *,
        project_id,
        faculty_id,
        review_phase,
        mode,
        access_starts_at,
        access_expires_at,
        assigned_at,
        assigned_by,
    ) -> ReviewAssignment:
        key = (project_id, faculty_id, review_phase)
        existing = self.rows.get(key)
        self.rows[key] = ReviewAssignment(
            assignment_id=existing.assignment_id if existing else new_id("asg"),
            project_id=project_id,
            faculty_id=faculty_id,
            review_phase=review_phase,
            mode=mode,
            access_starts_at=access_starts_at,
            access_expires_at=access_expires_at,
            assigned_at=assigned_at,
            assigned_by=assigned_by,
        )
        return self.rows[key]

    def _by_id(self, assignment_id):
        return next(((k, a) for k, a in self.rows.items() if a.assignment_id == assignment_id), (None, None))

    def get_by_id(self, assignment_id: str) -> Optional[ReviewAssignment]:
        return self._by_id(assignment_id)[1]

    def get(self, *, project_id, faculty_id, review_phase) -> Optional[ReviewAssignment]:
        return self.rows.get((project_id, faculty_id, review_phase))

    def list_for_project(self, project_id: str) -> Sequence[ReviewAssignment]:
        return [a for a in self.rows.values() if a.project_id == project_id]

    def expire(self, *, project_id, faculty_id, review_phase, at) -> int:
        key = (project_id, faculty_id, review_phase)
        if key not in self.rows:
            return 0
        self.rows[key] = replace(self.rows[key], access_expires_at=at)
        return 1

    def update_window(self, assignment_id, *, access_starts_at, access_expires_at) -> bool:
        key, a = self._by_id(assignment_id)
        if a is None:
            return False
        self.rows[key] = replace(a, access_starts_at=access_starts_at, access_expires_at=access_expires_at)
        return True

    def extend_phase(self, *, project_id, review_phase, access_expires_at) -> int:
        n = 0
        for key, a in list(self.rows.items()):
            if a.project_id == project_id and a.review_phase == review_phase:
                self.rows[key] = replace(a, access_expires_at=access_expires_at)
                n += 1
        return n

    def delete(self, assignment_id: str) -> bool:
        key, a = self._by_id(assignment_id)
        if a is None:
            return False
        del self.rows[key]
        return True

    def list_for_faculty(self, faculty_id: str) -> Sequence[ReviewAssignment]:
        return [a for a in self.rows.values() if a.faculty_id == faculty_id]

    def list_expired(self, *, before: datetime) -> Sequence[ReviewAssignment]:
        return [a for a in self.rows.values() if a.access_expires_at is not None and a.access_expires_at < before]


class InMemoryReviews(Store):
    def add(self, r: Review) -> Review:
        self.rows[r.review_id] = r
        return r

    def _ordered(self, team_id: str) -> list[Review]:
        return sorted(
            (r for r in self.rows.values() if r.team_id == team_id),
            key=lambda r: (r.created_at or datetime.min, r.review_id),
        )

    def list_for_team(self, team_id: str) -> Sequence[Review]:
        return self._ordered(team_id)

    def find_pending(self, *, team_id, review_phase) -> Optional[Review]:
        return next(
            (r for r in self._ordered(team_id) if r.review_phase == review_phase and r.status == ReviewStatus.PENDING),
            None,
        )

    def create(self, *, team_id, project_id, faculty_id, review_phase, status, created_at) -> Review:
        return self.add(
            Review(
                review_id=new_id("rev"),
                team_id=team_id,
                project_id=project_id,
                faculty_id=faculty_id,
                review_phase=review_phase,
                status=status,
                created_at=created_at,
            )
        )

    def reassign(self, review_id: str, *, faculty_id: str) -> bool:
        if review_id not in self.rows:
            return False
        self.rows[review_id] = replace(self.rows[review_id], faculty_id=faculty_id)
        return True

    def set_status(self, review_id: str, status: ReviewStatus) -> bool:
        if review_id not in self.rows:
            return False
        self.rows[review_id] = replace(self.rows[review_id], status=status)
        return True

    def latest_open_changes_required(self, team_id: str) -> Optional[Review]:
        rows = [
            r
            for r in self._ordered(team_id)
            if r.status == ReviewStatus.CHANGES_REQUIRED and r.completed_at is None
        ]
        return rows[-1] if rows else None

    def cancel_open(self, team_id: str) -> int:
        n = 0
        for r in self._ordered(team_id):
            if r.status in (ReviewStatus.PENDING, ReviewStatus.READY_FOR_REVIEW):
                self.rows[r.review_id] = replace(r, status=ReviewStatus.NOT_COMPLETED)
                n += 1
        return n

    def latest_for_team(self, team_id: str) -> Optional[Review]:
        rows = self._ordered(team_id)
        return rows[-1] if rows else None


class InMemoryVenues(Store):
    def add(self, venue: Venue) -> Venue:
        self.rows[venue.venue_id] = venue
        return venue

    def get_by_id(self, venue_id: str) -> Optional[Venue]:
        return self.rows.get(venue_id)


class InMemorySessions(Store):
    def add(self, s: LabSession) -> LabSession:
        self.rows[s.session_id] = s
        return s

    def get_by_id(self, session_id: str, *, for_update: bool = False) -> Optional[LabSession]:
        return self.rows.get(session_id)

    def find_faculty_overlap(self, *, faculty_id, start, end, exclude_session_id=None) -> Optional[LabSession]:
        return next(
            (
                s
                for s in sorted(self.rows.values(), key=lambda s: s.start_time)
                if s.faculty_id == faculty_id and s.session_id != exclude_session_id and s.overlaps(start, end)
            ),
            None,
        )

    def create(self, *, venue_id, faculty_id, scope_id, start_time, end_time, title, student_ids) -> LabSession:
        return self.add(
            LabSession(
                session_id=new_id("ses"),
                venue_id=venue_id,
                faculty_id=faculty_id,
                scope_id=scope_id,
                start_time=start_time,
                end_time=end_time,
                title=title,
                student_ids=frozenset(unique_ids(student_ids)),
            )
        )

    def update(self, session_id, *, faculty_id=None, student_ids=None) -> bool:
        s = self.rows.get(session_id)
        if s is None:
            return False
        if faculty_id is not None:
            s = replace(s, faculty_id=faculty_id)
        if student_ids is not None:
            s = replace(s, student_ids=frozenset(unique_ids(student_ids)))
        self.rows[session_id] = s
        return True

    def list_between(self, start, end, *, scope_id=None, venue_id=None) -> Sequence[LabSession]:
        return sorted(
            (
                s
                for s in self.rows.values()
                if start <= s.start_time < end
                and (scope_id is None or s.scope_id == scope_id)
                and (venue_id is None or s.venue_id == venue_id)
            ),
            key=lambda s: (s.start_time, s.session_id),
        )

    def set_venue(self, session_ids, venue_id) -> int:
        for sid in session_ids:
            self.rows[sid] = replace(self.rows[sid], venue_id=venue_id)
        return len(session_ids)

    def delete(self, session_id: str) -> bool:
        return self.rows.pop(session_id, None) is not None

    def _ordered(self):
        return sorted(self.rows.values(), key=lambda s: s.start_time)

    def find_active_for_students(self, student_ids, at) -> Optional[LabSession]:
        ids = set(student_ids)
        return next((s for s in self._ordered() if ids & s.student_ids and s.covers(at)), None)

    def find_next_for_students(self, student_ids, *, after, before) -> Optional[LabSession]:
        ids = set(student_ids)
        return next((s for s in self._ordered() if ids & s.student_ids and after < s.start_time < before), None)

    def find_active_for_faculty(self, *, faculty_id, scope_id, at) -> Optional[LabSession]:
        return next(
            (s for s in self._ordered() if s.faculty_id == faculty_id and s.scope_id == scope_id and s.covers(at)),
            None,
        )


class InMemoryAbsences(Store):
    def add(self, m: MarkedAbsence) -> MarkedAbsence:
        self.rows[len(self.rows)] = m
        return m

    def list_marked_absent(self, *, scope_id=None) -> Sequence[MarkedAbsence]:
        return [m for m in self.rows.values() if scope_id is None or m.scope_id == scope_id]


@dataclass
class World:
    """All fakes plus the services wired over them, like build_container does."""

    scopes: InMemoryScopes = field(default_factory=InMemoryScopes)
    teams: InMemoryTeams = field(default_factory=InMemoryTeams)
    assignments: InMemoryAssignments = field(default_factory=InMemoryAssignments)
    reviews: InMemoryReviews = field(default_factory=InMemoryReviews)
    sessions: InMemorySessions = field(default_factory=InMemorySessions)
    venues: InMemoryVenues = field(default_factory=InMemoryVenues)
    absences: InMemoryAbsences = field(default_factory=InMemoryAbsences)

    def __post_init__(self):
        self.tx = FakeTransactions(
            self.scopes, self.teams, self.assignments, self.reviews, self.sessions, self.venues, self.absences
        )
        self.timer = ScopeTimerService(self.scopes, self.tx)
        self.engine = AssignmentService(
            teams=self.teams,
            scopes=self.scopes,
            assignments=self.assignments,
            reviews=self.reviews,
            sessions=self.sessions,
            transactions=self.tx,
            chunk_size=2,
        )
        self.team_service = TeamService(
            teams=self.teams,
            scopes=self.scopes,
            reviews=self.reviews,
            assignments=self.assignments,
            engine=self.engine,
            transactions=self.tx,
        )
        self.scheduler = SessionScheduler(
            sessions=self.sessions,
            venues=self.venues,
            engine=self.engine,
            transactions=self.tx,
        )
        self.auditor = AbsenteeAuditor(
            absences=self.absences,
            assignments=self.assignments,
            reviews=self.reviews,
            teams=self.teams,
            sessions=self.sessions,
        )

    def add_team(
        self,
        team_id: str,
        *,
        scope_id: Optional[str] = "scope-1",
        project_id: Optional[str] = None,
        members: Iterable[str] = (),
        status: TeamStatus = TeamStatus.IN_PROGRESS,
        **kwargs,
    ) -> Team:
        return self.teams.add(
            Team(
                team_id=team_id,
                scope_id=scope_id,
                status=status,
                project_id=project_id,
                member_ids=tuple(members),
                **kwargs,
            )
        )

    def add_assignment(
        self,
        project_id: str,
        faculty_id: str,
        review_phase: int,
        *,
        expires: Optional[datetime] = None,
        starts: Optional[datetime] = None,
        assigned_at: Optional[datetime] = None,
        mode: AssignmentMode = AssignmentMode.ONLINE,
    ) -> ReviewAssignment:
        return self.assignments.add(
            ReviewAssignment(
                assignment_id=new_id("asg"),
                project_id=project_id,
                faculty_id=faculty_id,
                review_phase=review_phase,
                mode=mode,
                access_starts_at=starts,
                access_expires_at=expires,
                assigned_at=assigned_at,
                assigned_by="admin-1",
            )
        )

    def add_review(
        self,
        team_id: str,
        faculty_id: str,
        review_phase: int,
        status: ReviewStatus,
        *,
        created_at: Optional[datetime] = None,
        project_id: Optional[str] = None,
    ) -> Review:
        return self.reviews.add(
            Review(
                review_id=new_id("rev"),
                team_id=team_id,
                project_id=project_id,
                faculty_id=faculty_id,
                review_phase=review_phase,
                status=status,
                created_at=created_at or datetime(2026, 1, 1),
            )
        )
