"""Durable keyed storage for in-flight tracker state.

The tracker and the scavenger only ever talk to the :class:`TrackingStore`
protocol::

    store.get(key)                 -> TrackingRecord | None
    store.set(key, record)
    store.delete([key, ...])
    store.list(prefix, cursor)     -> ListPage(pairs, next_cursor)

``list`` returns keys in ascending order. ``next_cursor`` is the first key
of the following page (inclusive), ``None`` once the scan is complete.

Implementations:
    InMemoryTrackingStore  ─ tests and single-process experiments
    SQLiteTrackingStore    ─ survives restarts (table ``core_tracking``)
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from rundeck_spine.core.database import SqliteConnection
from rundeck_spine.core.logging import get_logger
from rundeck_spine.core.timestamps import utc_now

from .models import ListPage, TrackingRecord

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 100


@runtime_checkable
class TrackingStore(Protocol):
    """Protocol for tracker state storage."""

    def get(self, key: str) -> TrackingRecord | None:
        ...

    def set(self, key: str, record: TrackingRecord) -> None:
        ...

    def delete(self, keys: Iterable[str]) -> None:
        ...

    def list(self, prefix: str, cursor: str | None = None) -> ListPage:
        ...


def _page(
    pairs: list[tuple[str, TrackingRecord]], page_size: int
) -> ListPage:
    if len(pairs) > page_size:
        return ListPage(pairs=pairs[:page_size], next_cursor=pairs[page_size][0])
    return ListPage(pairs=pairs, next_cursor=None)


class InMemoryTrackingStore:
    """Dict-backed store. Records are copied in and out via their dict form."""

    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self._data: dict[str, dict] = {}
        self._page_size = page_size

    def get(self, key: str) -> TrackingRecord | None:
        value = self._data.get(key)
        if value is None:
            return None
        return TrackingRecord.from_dict(key, value)

    def set(self, key: str, record: TrackingRecord) -> None:
        self._data[key] = record.to_dict()

    def delete(self, keys: Iterable[str]) -> None:
        for key in keys:
            self._data.pop(key, None)

    def list(self, prefix: str, cursor: str | None = None) -> ListPage:
        keys = sorted(
            k for k in self._data
            if k.startswith(prefix) and (cursor is None or k >= cursor)
        )
        pairs = [
            (k, TrackingRecord.from_dict(k, self._data[k]))
            for k in keys[: self._page_size + 1]
        ]
        return _page(pairs, self._page_size)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data


class SQLiteTrackingStore:
    """Tracking store persisted in the ``core_tracking`` table.

    Values are the JSON form of :meth:`TrackingRecord.to_dict`. Rows that
    fail to decode are logged; :meth:`get` reports them as absent and
    :meth:`list` skips them.
    """

    def __init__(self, conn: SqliteConnection, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self._conn = conn
        self._page_size = page_size

    def get(self, key: str) -> TrackingRecord | None:
        with self._conn.lock:
            row = self._conn.execute(
                "SELECT value FROM core_tracking WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            return None
        try:
            return TrackingRecord.from_dict(key, json.loads(row[0]))
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("tracking_record_undecodable", tracking_key=key, error=str(exc))
            return None

    def set(self, key: str, record: TrackingRecord) -> None:
        with self._conn.lock:
            self._conn.execute(
                """
                INSERT INTO core_tracking (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, json.dumps(record.to_dict()), utc_now().isoformat()),
            )
            self._conn.commit()

    def delete(self, keys: Iterable[str]) -> None:
        keys = list(keys)
        if not keys:
            return
        with self._conn.lock:
            self._conn.executemany(
                "DELETE FROM core_tracking WHERE key = ?", [(k,) for k in keys]
            )
            self._conn.commit()

    def list(self, prefix: str, cursor: str | None = None) -> ListPage:
        with self._conn.lock:
            rows = self._conn.execute(
                """
                SELECT key, value FROM core_tracking
                WHERE substr(key, 1, ?) = ? AND key >= ?
                ORDER BY key
                LIMIT ?
                """,
                (len(prefix), prefix, cursor or "", self._page_size + 1),
            ).fetchall()

        pairs = []
        for key, value in rows:
            try:
                pairs.append((key, TrackingRecord.from_dict(key, json.loads(value))))
            except (ValueError, KeyError, TypeError) as exc:
                logger.warning("tracking_record_undecodable", tracking_key=key, error=str(exc))
        if len(rows) > self._page_size:
            return ListPage(
                pairs=[p for p in pairs if p[0] != rows[self._page_size][0]],
                next_cursor=rows[self._page_size][0],
            )
        return ListPage(pairs=pairs, next_cursor=None)


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "TrackingStore",
    "InMemoryTrackingStore",
    "SQLiteTrackingStore",
]
