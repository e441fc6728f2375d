"""Tests for tracking stores: in-memory and SQLite."""

from __future__ import annotations

import pytest

from rundeck_spine.tracking import (
    TRACKING_PREFIX,
    ExecutionTracker,
    InMemoryTrackingStore,
    SQLiteTrackingStore,
    TrackingRecord,
    TrackingStore,
)
from tests._support.fakes import T0, ScriptedStatusSource


def _record(key: str, execution_id: int = 1, status: str = "running") -> TrackingRecord:
    return TrackingRecord(
        tracking_key=key,
        execution_id=execution_id,
        pending_event_id=f"pending-{execution_id}",
        last_status=status,
        parent_event_id=key.removeprefix(TRACKING_PREFIX),
        created_at=T0,
    )


@pytest.fixture(params=["memory", "sqlite"])
def any_store(request, conn) -> TrackingStore:
    if request.param == "memory":
        return InMemoryTrackingStore(page_size=2)
    return SQLiteTrackingStore(conn, page_size=2)


def _scan(store, prefix=TRACKING_PREFIX):
    keys, cursor, pages = [], None, 0
    while True:
        page = store.list(prefix, cursor)
        pages += 1
        keys.extend(k for k, _ in page.pairs)
        if not page.next_cursor:
            return keys, pages
        cursor = page.next_cursor


class TestPointOperations:
    def test_implements_protocol(self, any_store):
        assert isinstance(any_store, TrackingStore)

    def test_get_missing(self, any_store):
        assert any_store.get("tracking:nope") is None

    def test_set_then_get(self, any_store):
        any_store.set("tracking:a", _record("tracking:a", 42))
        record = any_store.get("tracking:a")
        assert record.execution_id == 42
        assert record.created_at == T0
        assert record.tracking_key == "tracking:a"

    def test_set_overwrites(self, any_store):
        any_store.set("tracking:a", _record("tracking:a"))
        any_store.set("tracking:a", _record("tracking:a").with_error_count(2))
        assert any_store.get("tracking:a").error_count == 2

    def test_delete_many_and_missing(self, any_store):
        for k in ("tracking:a", "tracking:b"):
            any_store.set(k, _record(k))
        any_store.delete(["tracking:a", "tracking:b", "tracking:zzz"])
        assert any_store.get("tracking:a") is None
        assert any_store.get("tracking:b") is None

    def test_delete_empty(self, any_store):
        any_store.delete([])


class TestListPagination:
    def test_scans_every_key_in_order(self, any_store):
        keys = [f"tracking:{c}" for c in "edcba"]
        for k in keys:
            any_store.set(k, _record(k))

        scanned, pages = _scan(any_store)

        assert scanned == sorted(keys)
        assert pages == 3

    def test_exact_page_has_no_cursor(self, any_store):
        for k in ("tracking:a", "tracking:b"):
            any_store.set(k, _record(k))
        page = any_store.list(TRACKING_PREFIX)
        assert len(page.pairs) == 2
        assert page.next_cursor is None

    def test_prefix_filter(self, any_store):
        any_store.set("tracking:a", _record("tracking:a"))
        any_store.set("other:a", _record("other:a"))
        scanned, _ = _scan(any_store)
        assert scanned == ["tracking:a"]

    def test_empty(self, any_store):
        page = any_store.list(TRACKING_PREFIX)
        assert page.pairs == []
        assert page.next_cursor is None


class TestSQLiteStore:
    def test_survives_reopen(self, tmp_path):
        from rundeck_spine.core.database import SqliteConnection, initialize_schema

        path = tmp_path / "db" / "tracking.db"
        first = SqliteConnection(path)
        initialize_schema(first)
        SQLiteTrackingStore(first).set("tracking:a", _record("tracking:a", 9))
        first.close()

        second = SqliteConnection(path)
        initialize_schema(second)
        assert SQLiteTrackingStore(second).get("tracking:a").execution_id == 9
        second.close()

    def test_undecodable_row_is_skipped(self, conn):
        store = SQLiteTrackingStore(conn)
        store.set("tracking:good", _record("tracking:good"))
        conn.execute(
            "INSERT INTO core_tracking (key, value, updated_at) VALUES (?, ?, ?)",
            ("tracking:bad", "{not json", T0.isoformat()),
        )
        conn.commit()

        page = store.list(TRACKING_PREFIX)

        assert [k for k, _ in page.pairs] == ["tracking:good"]

    def test_undecodable_row_reads_as_absent(self, conn):
        store = SQLiteTrackingStore(conn)
        conn.execute(
            "INSERT INTO core_tracking (key, value, updated_at) VALUES (?, ?, ?)",
            ("tracking:bad", '{"executionId": 1}', T0.isoformat()),
        )
        conn.commit()

        assert store.get("tracking:bad") is None

    def test_poll_over_undecodable_row_is_noop(self, conn, scheduler, sink, config):
        store = SQLiteTrackingStore(conn)
        conn.execute(
            "INSERT INTO core_tracking (key, value, updated_at) VALUES (?, ?, ?)",
            ("tracking:bad", "{not json", T0.isoformat()),
        )
        conn.commit()
        source = ScriptedStatusSource("running")

        ExecutionTracker(store, scheduler, sink).poll("tracking:bad", "pending-1", source, config)

        assert source.calls == []
        assert sink.events == []
        assert len(scheduler) == 0

    def test_invalid_page_size(self, conn):
        with pytest.raises(ValueError):
            SQLiteTrackingStore(conn, page_size=0)


class TestInMemoryStore:
    def test_len_and_contains(self):
        store = InMemoryTrackingStore()
        store.set("tracking:a", _record("tracking:a"))
        assert len(store) == 1
        assert "tracking:a" in store

    def test_returned_record_is_a_copy(self):
        store = InMemoryTrackingStore()
        store.set("tracking:a", _record("tracking:a"))
        record = store.get("tracking:a")
        record.error_count = 99
        assert store.get("tracking:a").error_count == 0
