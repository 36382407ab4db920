from __future__ import annotations

import uuid
from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..common.validators import unique_ids
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, normalize_mysql_datetime
from .model import LabSession, Venue
from .repository import SessionRepository, VenueRepository

_SESSION_COLUMNS = "s.session_id, s.venue_id, s.faculty_id, s.scope_id, s.title, s.start_time, s.end_time"


class MySQLVenueRepository(VenueRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, venue_id: str) -> Optional[Venue]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT venue_id, name, capacity, is_active FROM venues WHERE venue_id=%s",
                (venue_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Venue(
                venue_id=str(r["venue_id"]),
                name=r["name"],
                capacity=int(r["capacity"]) if r.get("capacity") is not None else None,
                is_active=bool(r["is_active"]),
            )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _rosters(self, cur, session_ids: Sequence[str]) -> dict[str, frozenset[str]]:
        if not session_ids:
            return {}
        cur.execute(
            f"""
            SELECT session_id, student_id
            FROM session_students
            WHERE session_id IN ({in_clause(session_ids)})
            """,
            tuple(session_ids),
        )
        out: dict[str, set[str]] = {}
        for r in fetchall(cur):
            out.setdefault(str(r["session_id"]), set()).add(str(r["student_id"]))
        return {k: frozenset(v) for k, v in out.items()}

    def _to_sessions(self, cur, rows) -> list[LabSession]:
        rosters = self._rosters(cur, [str(r["session_id"]) for r in rows])
        return [
            LabSession(
                session_id=str(r["session_id"]),
                venue_id=str(r["venue_id"]),
                faculty_id=str(r["faculty_id"]),
                scope_id=str(r["scope_id"]) if r.get("scope_id") else None,
                title=r.get("title"),
                start_time=normalize_mysql_datetime(r["start_time"]),
                end_time=normalize_mysql_datetime(r["end_time"]),
                student_ids=rosters.get(str(r["session_id"]), frozenset()),
            )
            for r in rows
        ]

    def _one(self, sql: str, params: tuple) -> Optional[LabSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            rows = fetchall(cur)
            if not rows:
                return None
            return self._to_sessions(cur, rows[:1])[0]

    def _write_roster(self, cur, session_id: str, student_ids: Iterable[str]) -> None:
        cur.execute("DELETE FROM session_students WHERE session_id=%s", (session_id,))
        ids = unique_ids(student_ids)
        if ids:
            cur.executemany(
                "INSERT INTO session_students(session_id, student_id) VALUES(%s,%s)",
                [(session_id, sid) for sid in ids],
            )

    def get_by_id(self, session_id: str, *, for_update: bool = False) -> Optional[LabSession]:
        lock = " FOR UPDATE" if for_update else ""
        return self._one(f"SELECT {_SESSION_COLUMNS} FROM lab_sessions s WHERE s.session_id=%s{lock}", (session_id,))

    def find_faculty_overlap(
        self,
        *,
        faculty_id: str,
        start: datetime,
        end: datetime,
        exclude_session_id: Optional[str] = None,
    ) -> Optional[LabSession]:
        clauses = ["s.faculty_id=%s", "s.start_time < %s", "s.end_time > %s"]
        params: list[object] = [faculty_id, end, start]
        if exclude_session_id is not None:
            clauses.append("s.session_id <> %s")
            params.append(exclude_session_id)
        where = " AND ".join(clauses)
        return self._one(
            f"SELECT {_SESSION_COLUMNS} FROM lab_sessions s WHERE {where} ORDER BY s.start_time LIMIT 1",
            tuple(params),
        )

    def create(
        self,
        *,
        venue_id: str,
        faculty_id: str,
        scope_id: Optional[str],
        start_time: datetime,
        end_time: datetime,
        title: Optional[str],
        student_ids: Iterable[str],
    ) -> LabSession:
        session_id = str(uuid.uuid4())
        roster = unique_ids(student_ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO lab_sessions(session_id, venue_id, faculty_id, scope_id, title, start_time, end_time)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (session_id, venue_id, faculty_id, scope_id, title, start_time, end_time),
            )
            self._write_roster(cur, session_id, roster)
        return LabSession(
            session_id=session_id,
            venue_id=venue_id,
            faculty_id=faculty_id,
            scope_id=scope_id,
            title=title,
            start_time=start_time,
            end_time=end_time,
            student_ids=frozenset(roster),
        )

    def update(
        self,
        session_id: str,
        *,
        faculty_id: Optional[str] = None,
        student_ids: Optional[Iterable[str]] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT session_id FROM lab_sessions WHERE session_id=%s", (session_id,))
            if not fetchall(cur):
                return False
            if faculty_id is not None:
                cur.execute("UPDATE lab_sessions SET faculty_id=%s WHERE session_id=%s", (faculty_id, session_id))
            if student_ids is not None:
                self._write_roster(cur, session_id, student_ids)
            return True

    def list_between(
        self,
        start: datetime,
        end: datetime,
        *,
        scope_id: Optional[str] = None,
        venue_id: Optional[str] = None,
    ) -> Sequence[LabSession]:
        clauses = ["s.start_time >= %s", "s.start_time < %s"]
        params: list[object] = [start, end]
        if scope_id is not None:
            clauses.append("s.scope_id=%s")
            params.append(scope_id)
        if venue_id is not None:
            clauses.append("s.venue_id=%s")
            params.append(venue_id)
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SESSION_COLUMNS} FROM lab_sessions s WHERE {where} ORDER BY s.start_time, s.session_id",
                tuple(params),
            )
            return self._to_sessions(cur, fetchall(cur))

    def set_venue(self, session_ids: Sequence[str], venue_id: str) -> int:
        if not session_ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE lab_sessions SET venue_id=%s WHERE session_id IN ({in_clause(session_ids)})",
                (venue_id, *session_ids),
            )
            return int(cur.rowcount)

    def delete(self, session_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM session_students WHERE session_id=%s", (session_id,))
            cur.execute("DELETE FROM lab_sessions WHERE session_id=%s", (session_id,))
            return cur.rowcount > 0

    def find_active_for_students(self, student_ids: Iterable[str], at: datetime) -> Optional[LabSession]:
        ids = unique_ids(student_ids)
        if not ids:
            return None
        return self._one(
            f"""
            SELECT DISTINCT {_SESSION_COLUMNS}
            FROM lab_sessions s
            JOIN session_students ss ON ss.session_id = s.session_id
            WHERE ss.student_id IN ({in_clause(ids)})
              AND s.start_time <= %s AND s.end_time >= %s
            ORDER BY s.start_time
            LIMIT 1
            """,
            (*ids, at, at),
        )

    def find_next_for_students(
        self, student_ids: Iterable[str], *, after: datetime, before: datetime
    ) -> Optional[LabSession]:
        ids = unique_ids(student_ids)
        if not ids:
            return None
        return self._one(
            f"""
            SELECT DISTINCT {_SESSION_COLUMNS}
            FROM lab_sessions s
            JOIN session_students ss ON ss.session_id = s.session_id
            WHERE ss.student_id IN ({in_clause(ids)})
              AND s.start_time > %s AND s.start_time < %s
            ORDER BY s.start_time
            LIMIT 1
            """,
            (*ids, after, before),
        )

    def find_active_for_faculty(
        self, *, faculty_id: str, scope_id: Optional[str], at: datetime
    ) -> Optional[LabSession]:
        return self._one(
            f"""
            SELECT {_SESSION_COLUMNS}
            FROM lab_sessions s
            WHERE s.faculty_id=%s AND s.scope_id <=> %s
              AND s.start_time <= %s AND s.end_time >= %s
            ORDER BY s.start_time
            LIMIT 1
            """,
            (faculty_id, scope_id, at, at),
        )
