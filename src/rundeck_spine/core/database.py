"""SQLite connection adapter and schema.

Wraps a raw :class:`sqlite3.Connection` so stores can share one connection
between the CLI thread and the worker thread. Every store method holds
``conn.lock`` for the duration of its statement(s) and commit.

Usage::

    conn = SqliteConnection(settings.database_path)
    initialize_schema(conn)
    store = SQLiteTrackingStore(conn)
"""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path
from typing import Any

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS core_tracking (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS core_timers (
    id TEXT PRIMARY KEY,
    fire_at_ms INTEGER NOT NULL,
    payload TEXT NOT NULL,
    pending_event_id TEXT,
    description TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_core_timers_fire_at ON core_timers (fire_at_ms);

CREATE TABLE IF NOT EXISTS core_events (
    id TEXT PRIMARY KEY,
    channel TEXT NOT NULL,
    parent_event_id TEXT,
    completes_pending_id TEXT,
    payload TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS core_pending_events (
    id TEXT PRIMARY KEY,
    channel TEXT NOT NULL,
    payload TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    state TEXT NOT NULL DEFAULT 'pending',
    reason TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class SqliteConnection:
    """Thread-shareable ``sqlite3`` connection with a re-entrant lock."""

    def __init__(self, path: str | Path = ":memory:", *, row_factory: Any = sqlite3.Row) -> None:
        if str(path) != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(path), check_same_thread=False)
        self._conn.row_factory = row_factory
        self.lock = threading.RLock()

    def execute(self, sql: str, params: tuple | list = ()) -> sqlite3.Cursor:
        return self._conn.execute(sql, params)

    def executemany(self, sql: str, params: list[tuple]) -> sqlite3.Cursor:
        return self._conn.executemany(sql, params)

    def executescript(self, script: str) -> None:
        self._conn.executescript(script)

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        self._conn.close()

    @property
    def raw(self) -> sqlite3.Connection:
        """Access the underlying ``sqlite3.Connection`` (e.g. for pragmas)."""
        return self._conn

    def __repr__(self) -> str:
        return f"SqliteConnection({self._conn!r})"


def initialize_schema(conn: SqliteConnection) -> None:
    """Create the tracking, timer and event tables if missing."""
    with conn.lock:
        conn.executescript(SCHEMA_SQL)
        conn.commit()


__all__ = ["SCHEMA_SQL", "SqliteConnection", "initialize_schema"]
