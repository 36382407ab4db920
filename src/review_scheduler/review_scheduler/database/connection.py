from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

import mysql.connector
from mysql.connector.constants import ClientFlag

logger = logging.getLogger(__name__)


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str


class DatabaseConnection:
    """Singleton-like DB connection factory.

    Outside ``transaction()`` every repository call gets a short-lived
    connection. Inside it, all cursors on the same thread share one connection
    so a multi-step use case commits or rolls back as a unit.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config
        self._local = threading.local()

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
            # UPDATE rowcount reports matched rows, not only changed ones.
            client_flags=[ClientFlag.FOUND_ROWS],
        )

    def active(self):
        """Connection of the enclosing transaction on this thread, if any."""
        return getattr(self._local, "conn", None)

    @contextmanager
    def transaction(self, *, timeout_seconds: Optional[int] = None) -> Iterator[None]:
        if self.active() is not None:
            # Nested use joins the outer unit of work.
            yield
            return

        conn = self.connect()
        self._local.conn = conn
        try:
            if timeout_seconds:
                cur = conn.cursor()
                try:
                    cur.execute("SET SESSION innodb_lock_wait_timeout = %s", (int(timeout_seconds),))
                finally:
                    cur.close()
            conn.start_transaction()
            yield
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._local.conn = None
            conn.close()

    @contextmanager
    def savepoint(self) -> Iterator[None]:
        """Roll back only the wrapped statements when they raise."""
        conn = self.active()
        if conn is None:
            raise RuntimeError("savepoint() requires an open transaction")

        name = f"sp_{uuid.uuid4().hex[:12]}"
        cur = conn.cursor()
        try:
            cur.execute(f"SAVEPOINT {name}")
            try:
                yield
            except Exception:
                cur.execute(f"ROLLBACK TO SAVEPOINT {name}")
                logger.debug("rolled back to %s", name)
                raise
            cur.execute(f"RELEASE SAVEPOINT {name}")
        finally:
            cur.close()
