from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..core.enums import ApprovalStatus, FacultyRole, TeamStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import Team
from .repository import TeamRepository

_TEAM_COLUMNS = """
    t.team_id, t.scope_id, t.project_id, t.status, t.submission_phase,
    t.guide_id, t.guide_status, t.expert_id, t.expert_status
"""

_ROLE_COLUMNS = {
    FacultyRole.GUIDE: ("guide_id", "guide_status"),
    FacultyRole.EXPERT: ("expert_id", "expert_status"),
}


class MySQLTeamRepository(TeamRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _members(self, cur, team_ids: Sequence[str]) -> dict[str, tuple[str, ...]]:
        if not team_ids:
            return {}
        cur.execute(
            f"""
            SELECT team_id, student_id
            FROM team_members
            WHERE team_id IN ({in_clause(team_ids)})
            ORDER BY team_id, student_id
            """,
            tuple(team_ids),
        )
        out: dict[str, list[str]] = {}
        for r in fetchall(cur):
            out.setdefault(str(r["team_id"]), []).append(str(r["student_id"]))
        return {k: tuple(v) for k, v in out.items()}

    def _to_teams(self, cur, rows) -> list[Team]:
        members = self._members(cur, [str(r["team_id"]) for r in rows])
        return [
            Team(
                team_id=str(r["team_id"]),
                scope_id=str(r["scope_id"]) if r.get("scope_id") else None,
                status=TeamStatus(r["status"]),
                project_id=str(r["project_id"]) if r.get("project_id") else None,
                submission_phase=int(r.get("submission_phase") or 0),
                guide_id=str(r["guide_id"]) if r.get("guide_id") else None,
                guide_status=ApprovalStatus(r["guide_status"]),
                expert_id=str(r["expert_id"]) if r.get("expert_id") else None,
                expert_status=ApprovalStatus(r["expert_status"]),
                member_ids=members.get(str(r["team_id"]), ()),
            )
            for r in rows
        ]

    def get_by_id(self, team_id: str, *, for_update: bool = False) -> Optional[Team]:
        lock = " FOR UPDATE" if for_update else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_TEAM_COLUMNS} FROM teams t WHERE t.team_id=%s{lock}", (team_id,))
            rows = fetchall(cur)
            if not rows:
                return None
            return self._to_teams(cur, rows[:1])[0]

    def get_by_project(self, project_id: str) -> Optional[Team]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_TEAM_COLUMNS} FROM teams t WHERE t.project_id=%s", (project_id,))
            rows = fetchall(cur)
            if not rows:
                return None
            return self._to_teams(cur, rows[:1])[0]

    def list_with_project_for_students(self, student_ids: Iterable[str]) -> Sequence[Team]:
        ids = list(student_ids)
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT DISTINCT {_TEAM_COLUMNS}
                FROM teams t
                JOIN team_members m ON m.team_id = t.team_id
                WHERE t.project_id IS NOT NULL
                  AND m.student_id IN ({in_clause(ids)})
                ORDER BY t.team_id
                """,
                tuple(ids),
            )
            return self._to_teams(cur, fetchall(cur))

    def list_with_guide_in_scope(self, scope_id: str) -> Sequence[Team]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_TEAM_COLUMNS}
                FROM teams t
                WHERE t.scope_id=%s AND t.guide_id IS NOT NULL
                ORDER BY t.team_id
                """,
                (scope_id,),
            )
            return self._to_teams(cur, fetchall(cur))

    def count_faculty_roles(self, *, scope_id: Optional[str], faculty_id: str, exclude_team_id: str) -> int:
        live = (ApprovalStatus.APPROVED.value, ApprovalStatus.PENDING.value)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS cnt
                FROM teams
                WHERE scope_id <=> %s
                  AND team_id <> %s
                  AND (
                        (guide_id=%s AND guide_status IN (%s, %s))
                     OR (expert_id=%s AND expert_status IN (%s, %s))
                  )
                """,
                (scope_id, exclude_team_id, faculty_id, *live, faculty_id, *live),
            )
            r = fetchone(cur)
            return int(r["cnt"]) if r else 0

    def set_status(self, team_id: str, status: TeamStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE teams SET status=%s WHERE team_id=%s", (status.value, team_id))
            return cur.rowcount > 0

    def set_submission(self, team_id: str, *, status: TeamStatus, submission_phase: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE teams SET status=%s, submission_phase=%s WHERE team_id=%s",
                (status.value, int(submission_phase), team_id),
            )
            return cur.rowcount > 0

    def set_faculty_role(
        self,
        team_id: str,
        *,
        role: FacultyRole,
        faculty_id: Optional[str],
        status: ApprovalStatus,
    ) -> bool:
        id_col, status_col = _ROLE_COLUMNS[role]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE teams SET {id_col}=%s, {status_col}=%s WHERE team_id=%s",
                (faculty_id, status.value, team_id),
            )
            return cur.rowcount > 0
