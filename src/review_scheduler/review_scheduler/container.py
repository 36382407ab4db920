from __future__ import annotations

from dataclasses import dataclass

from .absentees.mysql_absence_repository import MySQLAbsenceRepository
from .absentees.service import AbsenteeAuditor
from .assignments.mysql_assignment_repository import MySQLAssignmentRepository, MySQLReviewRepository
from .assignments.service import AssignmentService
from .core.constants import (
    BATCH_CHUNK_SIZE,
    BATCH_TRANSACTION_TIMEOUT_SECONDS,
    DEFAULT_ACCESS_HOURS,
    FACULTY_TEAM_QUOTA,
)
from .database.connection import DBConfig, DatabaseConnection
from .sessions.mysql_session_repository import MySQLSessionRepository, MySQLVenueRepository
from .sessions.service import SessionScheduler
from .teams.mysql_team_repository import MySQLTeamRepository
from .teams.service import TeamService
from .timers.mysql_scope_repository import MySQLScopeRepository
from .timers.service import ScopeTimerService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    scopes_repo: MySQLScopeRepository
    teams_repo: MySQLTeamRepository
    assignments_repo: MySQLAssignmentRepository
    reviews_repo: MySQLReviewRepository
    sessions_repo: MySQLSessionRepository
    venues_repo: MySQLVenueRepository
    absences_repo: MySQLAbsenceRepository

    timer_service: ScopeTimerService
    assignment_service: AssignmentService
    team_service: TeamService
    session_scheduler: SessionScheduler
    absentee_auditor: AbsenteeAuditor


def build_container(
    *,
    db_config: dict,
    quota: int = FACULTY_TEAM_QUOTA,
    access_hours: float = DEFAULT_ACCESS_HOURS,
    chunk_size: int = BATCH_CHUNK_SIZE,
    batch_timeout_seconds: int = BATCH_TRANSACTION_TIMEOUT_SECONDS,
) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    scopes_repo = MySQLScopeRepository(conn)
    teams_repo = MySQLTeamRepository(conn)
    assignments_repo = MySQLAssignmentRepository(conn)
    reviews_repo = MySQLReviewRepository(conn)
    sessions_repo = MySQLSessionRepository(conn)
    venues_repo = MySQLVenueRepository(conn)
    absences_repo = MySQLAbsenceRepository(conn)

    timer_service = ScopeTimerService(scopes_repo, conn)
    assignment_service = AssignmentService(
        teams=teams_repo,
        scopes=scopes_repo,
        assignments=assignments_repo,
        reviews=reviews_repo,
        sessions=sessions_repo,
        transactions=conn,
        access_hours=access_hours,
        chunk_size=chunk_size,
        batch_timeout_seconds=batch_timeout_seconds,
    )
    team_service = TeamService(
        teams=teams_repo,
        scopes=scopes_repo,
        reviews=reviews_repo,
        assignments=assignments_repo,
        engine=assignment_service,
        transactions=conn,
        quota=quota,
        access_hours=access_hours,
    )
    session_scheduler = SessionScheduler(
        sessions=sessions_repo,
        venues=venues_repo,
        engine=assignment_service,
        transactions=conn,
        chunk_size=chunk_size,
        batch_timeout_seconds=batch_timeout_seconds,
    )
    absentee_auditor = AbsenteeAuditor(
        absences=absences_repo,
        assignments=assignments_repo,
        reviews=reviews_repo,
        teams=teams_repo,
        sessions=sessions_repo,
    )

    return Container(
        conn=conn,
        scopes_repo=scopes_repo,
        teams_repo=teams_repo,
        assignments_repo=assignments_repo,
        reviews_repo=reviews_repo,
        sessions_repo=sessions_repo,
        venues_repo=venues_repo,
        absences_repo=absences_repo,
        timer_service=timer_service,
        assignment_service=assignment_service,
        team_service=team_service,
        session_scheduler=session_scheduler,
        absentee_auditor=absentee_auditor,
    )
