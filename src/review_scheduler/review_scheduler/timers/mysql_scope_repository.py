from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, normalize_mysql_datetime
from .model import Scope
from .repository import ScopeRepository


class MySQLScopeRepository(ScopeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, scope_id: str, *, for_update: bool = False) -> Optional[Scope]:
        lock = " FOR UPDATE" if for_update else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT scope_id, name, number_of_phases, require_guide, require_subject_expert,
                       total_hours, remaining_seconds, is_running, last_updated, is_active
                FROM scopes
                WHERE scope_id=%s{lock}
                """,
                (scope_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Scope(
                scope_id=str(r["scope_id"]),
                name=r["name"],
                number_of_phases=int(r["number_of_phases"]),
                require_guide=bool(r["require_guide"]),
                require_subject_expert=bool(r["require_subject_expert"]),
                total_hours=float(r.get("total_hours") or 0),
                remaining_seconds=int(r.get("remaining_seconds") or 0),
                is_running=bool(r["is_running"]),
                last_updated=normalize_mysql_datetime(r.get("last_updated")),
                is_active=bool(r["is_active"]),
            )

    def save_timer(
        self,
        *,
        scope_id: str,
        total_hours: float,
        remaining_seconds: int,
        is_running: bool,
        last_updated: Optional[datetime],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE scopes
                SET total_hours=%s, remaining_seconds=%s, is_running=%s, last_updated=%s
                WHERE scope_id=%s
                """,
                (float(total_hours), int(remaining_seconds), int(bool(is_running)), last_updated, scope_id),
            )
            return cur.rowcount > 0
