from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, normalize_mysql_datetime
from .model import MarkedAbsence
from .repository import AbsenceRepository


class MySQLAbsenceRepository(AbsenceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_marked_absent(self, *, scope_id: Optional[str] = None) -> Sequence[MarkedAbsence]:
        clauses = ["m.is_absent=1"]
        params: list[object] = []
        if scope_id is not None:
            clauses.append("t.scope_id=%s")
            params.append(scope_id)
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT m.student_id, r.team_id, r.project_id, t.scope_id,
                       r.faculty_id, r.review_phase, m.created_at
                FROM review_marks m
                JOIN reviews r ON r.review_id = m.review_id
                JOIN teams t ON t.team_id = r.team_id
                WHERE {where}
                ORDER BY r.review_phase, m.created_at
                """,
                tuple(params),
            )
            return [
                MarkedAbsence(
                    student_id=str(r["student_id"]),
                    team_id=str(r["team_id"]),
                    project_id=str(r["project_id"]) if r.get("project_id") else None,
                    scope_id=str(r["scope_id"]) if r.get("scope_id") else None,
                    faculty_id=str(r["faculty_id"]),
                    review_phase=int(r["review_phase"]),
                    marked_at=normalize_mysql_datetime(r.get("created_at")),
                )
                for r in fetchall(cur)
            ]
