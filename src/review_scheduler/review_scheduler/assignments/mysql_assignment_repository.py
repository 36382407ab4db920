from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import AssignmentMode, ReviewStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_datetime
from .model import Review, ReviewAssignment
from .repository import AssignmentRepository, ReviewRepository

_ASSIGNMENT_COLUMNS = """
    assignment_id, project_id, faculty_id, review_phase, mode,
    access_starts_at, access_expires_at, assigned_at, assigned_by
"""

_REVIEW_COLUMNS = """
    review_id, team_id, project_id, faculty_id, review_phase, status, completed_at, created_at
"""


def _to_assignment(r: dict) -> ReviewAssignment:
    return ReviewAssignment(
        assignment_id=str(r["assignment_id"]),
        project_id=str(r["project_id"]),
        faculty_id=str(r["faculty_id"]),
        review_phase=int(r["review_phase"]),
        mode=AssignmentMode(r["mode"]),
        access_starts_at=normalize_mysql_datetime(r.get("access_starts_at")),
        access_expires_at=normalize_mysql_datetime(r.get("access_expires_at")),
        assigned_at=normalize_mysql_datetime(r.get("assigned_at")),
        assigned_by=r.get("assigned_by"),
    )


def _to_review(r: dict) -> Review:
    return Review(
        review_id=str(r["review_id"]),
        team_id=str(r["team_id"]),
        project_id=str(r["project_id"]) if r.get("project_id") else None,
        faculty_id=str(r["faculty_id"]),
        review_phase=int(r["review_phase"]),
        status=ReviewStatus(r["status"]),
        completed_at=normalize_mysql_datetime(r.get("completed_at")),
        created_at=normalize_mysql_datetime(r.get("created_at")),
    )


class MySQLAssignmentRepository(AssignmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def upsert(
        self,
        *,
        project_id: str,
        faculty_id: str,
        review_phase: int,
        mode: AssignmentMode,
        access_starts_at: Optional[datetime],
        access_expires_at: Optional[datetime],
        assigned_at: datetime,
        assigned_by: Optional[str],
    ) -> ReviewAssignment:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO review_assignments(
                    assignment_id, project_id, faculty_id, review_phase, mode,
                    access_starts_at, access_expires_at, assigned_at, assigned_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    mode=VALUES(mode),
                    access_starts_at=VALUES(access_starts_at),
                    access_expires_at=VALUES(access_expires_at),
                    assigned_at=VALUES(assigned_at),
                    assigned_by=VALUES(assigned_by)
                """,
                (
                    str(uuid.uuid4()),
                    project_id,
                    faculty_id,
                    int(review_phase),
                    mode.value,
                    access_starts_at,
                    access_expires_at,
                    assigned_at,
                    assigned_by,
                ),
            )
            cur.execute(
                f"""
                SELECT {_ASSIGNMENT_COLUMNS}
                FROM review_assignments
                WHERE project_id=%s AND faculty_id=%s AND review_phase=%s
                """,
                (project_id, faculty_id, int(review_phase)),
            )
            return _to_assignment(fetchone(cur))

    def get_by_id(self, assignment_id: str) -> Optional[ReviewAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_ASSIGNMENT_COLUMNS} FROM review_assignments WHERE assignment_id=%s",
                (assignment_id,),
            )
            r = fetchone(cur)
            return _to_assignment(r) if r else None

    def get(self, *, project_id: str, faculty_id: str, review_phase: int) -> Optional[ReviewAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_ASSIGNMENT_COLUMNS}
                FROM review_assignments
                WHERE project_id=%s AND faculty_id=%s AND review_phase=%s
                """,
                (project_id, faculty_id, int(review_phase)),
            )
            r = fetchone(cur)
            return _to_assignment(r) if r else None

    def list_for_project(self, project_id: str) -> Sequence[ReviewAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_ASSIGNMENT_COLUMNS}
                FROM review_assignments
                WHERE project_id=%s
                ORDER BY review_phase, assigned_at
                """,
                (project_id,),
            )
            return [_to_assignment(r) for r in fetchall(cur)]

    def expire(self, *, project_id: str, faculty_id: str, review_phase: int, at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE review_assignments
                SET access_expires_at=%s
                WHERE project_id=%s AND faculty_id=%s AND review_phase=%s
                """,
                (at, project_id, faculty_id, int(review_phase)),
            )
            return int(cur.rowcount)

    def update_window(
        self,
        assignment_id: str,
        *,
        access_starts_at: Optional[datetime],
        access_expires_at: Optional[datetime],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE review_assignments
                SET access_starts_at=%s, access_expires_at=%s
                WHERE assignment_id=%s
                """,
                (access_starts_at, access_expires_at, assignment_id),
            )
            return cur.rowcount > 0

    def extend_phase(self, *, project_id: str, review_phase: int, access_expires_at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE review_assignments
                SET access_expires_at=%s
                WHERE project_id=%s AND review_phase=%s
                """,
                (access_expires_at, project_id, int(review_phase)),
            )
            return int(cur.rowcount)

    def delete(self, assignment_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM review_assignments WHERE assignment_id=%s", (assignment_id,))
            return cur.rowcount > 0

    def list_for_faculty(self, faculty_id: str) -> Sequence[ReviewAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_ASSIGNMENT_COLUMNS}
                FROM review_assignments
                WHERE faculty_id=%s
                ORDER BY assigned_at DESC
                """,
                (faculty_id,),
            )
            return [_to_assignment(r) for r in fetchall(cur)]

    def list_expired(self, *, before: datetime) -> Sequence[ReviewAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_ASSIGNMENT_COLUMNS}
                FROM review_assignments
                WHERE access_expires_at IS NOT NULL AND access_expires_at < %s
                ORDER BY project_id, review_phase
                """,
                (before,),
            )
            return [_to_assignment(r) for r in fetchall(cur)]


class MySQLReviewRepository(ReviewRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_team(self, team_id: str) -> Sequence[Review]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_REVIEW_COLUMNS} FROM reviews WHERE team_id=%s ORDER BY review_phase, created_at",
                (team_id,),
            )
            return [_to_review(r) for r in fetchall(cur)]

    def find_pending(self, *, team_id: str, review_phase: int) -> Optional[Review]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_REVIEW_COLUMNS}
                FROM reviews
                WHERE team_id=%s AND review_phase=%s AND status=%s
                ORDER BY created_at
                LIMIT 1
                """,
                (team_id, int(review_phase), ReviewStatus.PENDING.value),
            )
            r = fetchone(cur)
            return _to_review(r) if r else None

    def create(
        self,
        *,
        team_id: str,
        project_id: Optional[str],
        faculty_id: str,
        review_phase: int,
        status: ReviewStatus,
        created_at: datetime,
    ) -> Review:
        review_id = str(uuid.uuid4())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO reviews(review_id, team_id, project_id, faculty_id, review_phase, status, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (review_id, team_id, project_id, faculty_id, int(review_phase), status.value, created_at),
            )
        return Review(
            review_id=review_id,
            team_id=team_id,
            project_id=project_id,
            faculty_id=faculty_id,
            review_phase=int(review_phase),
            status=status,
            created_at=created_at,
        )

    def reassign(self, review_id: str, *, faculty_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE reviews SET faculty_id=%s WHERE review_id=%s", (faculty_id, review_id))
            return cur.rowcount > 0

    def set_status(self, review_id: str, status: ReviewStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE reviews SET status=%s WHERE review_id=%s", (status.value, review_id))
            return cur.rowcount > 0

    def latest_open_changes_required(self, team_id: str) -> Optional[Review]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_REVIEW_COLUMNS}
                FROM reviews
                WHERE team_id=%s AND status=%s AND completed_at IS NULL
                ORDER BY created_at DESC
                LIMIT 1
                """,
                (team_id, ReviewStatus.CHANGES_REQUIRED.value),
            )
            r = fetchone(cur)
            return _to_review(r) if r else None

    def cancel_open(self, team_id: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE reviews
                SET status=%s
                WHERE team_id=%s AND status IN (%s, %s)
                """,
                (
                    ReviewStatus.NOT_COMPLETED.value,
                    team_id,
                    ReviewStatus.PENDING.value,
                    ReviewStatus.READY_FOR_REVIEW.value,
                ),
            )
            return int(cur.rowcount)

    def latest_for_team(self, team_id: str) -> Optional[Review]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_REVIEW_COLUMNS}
                FROM reviews
                WHERE team_id=%s
                ORDER BY created_at DESC
                LIMIT 1
                """,
                (team_id,),
            )
            r = fetchone(cur)
            return _to_review(r) if r else None
