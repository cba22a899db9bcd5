from __future__ import annotations

import logging
import os
import sqlite3
import threading
from contextlib import contextmanager, suppress
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Sequence

from bookshop.constants import DATE_FORMAT
from bookshop.errors import PersistenceError

logger = logging.getLogger(__name__)

SCHEMA_PATH = os.path.join(os.path.dirname(__file__), "schema.sql")


def utc_now_str() -> str:
    return datetime.now(timezone.utc).strftime(DATE_FORMAT)


def to_db_date(dt: datetime) -> str:
    """Aware datetimes are converted to UTC; naive ones are taken as UTC already."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime(DATE_FORMAT)


class Database:
    """
    Single connection to the local store.

    Lifecycle is explicit: open() at startup, close() at shutdown.
    The connection runs in autocommit mode; multi-statement writes go
    through transaction(). Access from several threads is serialized
    by one re-entrant lock, held for the whole of a transaction.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise PersistenceError("database is not open, call open() first")
        return self._conn

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def open(self) -> "Database":
        if self._conn is not None:
            return self
        if self.path != ":memory:":
            os.makedirs(os.path.dirname(os.path.abspath(self.path)), exist_ok=True)
        try:
            # одно соединение на процесс; потоки пула FastAPI идут через self._lock
            conn = sqlite3.connect(self.path, isolation_level=None, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
        except sqlite3.Error as e:
            raise PersistenceError(f"cannot open database {self.path}: {e}") from e
        self._conn = conn
        logger.info("Database opened: %s", self.path)
        return self

    def close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None
        logger.info("Database closed: %s", self.path)

    def __enter__(self) -> "Database":
        return self.open()

    def __exit__(self, *exc: object) -> None:
        self.close()

    def init_db(self) -> None:
        with open(SCHEMA_PATH, "r", encoding="utf-8") as f:
            script = f.read()
        try:
            self.conn.executescript(script)
        except sqlite3.Error as e:
            raise PersistenceError(f"schema init failed: {e}") from e

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        # блокировка держится всю транзакцию: чужой поток ждёт, а не пишет в неё
        with self._lock:
            conn = self.conn
            try:
                conn.execute("BEGIN")
            except sqlite3.Error as e:
                raise PersistenceError(f"cannot begin transaction: {e}") from e
            try:
                yield conn
            except sqlite3.Error as e:
                self._rollback(conn)
                raise PersistenceError(str(e)) from e
            except BaseException:
                self._rollback(conn)
                raise
            try:
                conn.execute("COMMIT")
            except sqlite3.Error as e:
                self._rollback(conn)
                raise PersistenceError(f"commit failed: {e}") from e

    @staticmethod
    def _rollback(conn: sqlite3.Connection) -> None:
        with suppress(sqlite3.Error):
            conn.execute("ROLLBACK")

    def execute(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        with self._lock:
            try:
                return self.conn.execute(sql, params)
            except sqlite3.Error as e:
                raise PersistenceError(str(e)) from e

    def query(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        with self._lock:
            rows = self._fetch(sql, params, all_rows=True)
        return [dict(r) for r in rows]

    def query_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        with self._lock:
            row = self._fetch(sql, params)
        return dict(row) if row else None

    def scalar(self, sql: str, params: Sequence[Any] = ()) -> Any:
        with self._lock:
            row = self._fetch(sql, params)
        return row[0] if row else None

    def _fetch(self, sql: str, params: Sequence[Any], all_rows: bool = False) -> Any:
        cur = self.execute(sql, params)
        try:
            return cur.fetchall() if all_rows else cur.fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(str(e)) from e
