"""Tests for wake schedulers: InMemoryScheduler and SQLiteTimerQueue."""

from __future__ import annotations

from rundeck_spine.tracking import InMemoryScheduler, Scheduler, SQLiteTimerQueue


class TestInMemoryScheduler:
    def test_schedule_records_wake(self, clock):
        scheduler = InMemoryScheduler(clock)
        wake_id = scheduler.schedule(5, "tracking:a", "pending-1", "Polling execution 1")

        assert isinstance(scheduler, Scheduler)
        assert len(scheduler) == 1
        wake = scheduler.wakes[0]
        assert wake.id == wake_id
        assert wake.payload == "tracking:a"
        assert wake.pending_event_id == "pending-1"
        assert (wake.fire_at - clock()).total_seconds() == 5

    def test_pop_due_only_returns_due(self, clock):
        scheduler = InMemoryScheduler(clock)
        scheduler.schedule(10, "tracking:late", "p2")
        scheduler.schedule(5, "tracking:early", "p1")

        clock.advance(5)
        due = scheduler.pop_due()

        assert [w.payload for w in due] == ["tracking:early"]
        assert [w.payload for w in scheduler.wakes] == ["tracking:late"]

    def test_pop_due_orders_by_fire_time(self, clock):
        scheduler = InMemoryScheduler(clock)
        scheduler.schedule(3, "tracking:b", "p")
        scheduler.schedule(1, "tracking:a", "p")

        clock.advance(10)

        assert [w.payload for w in scheduler.pop_due()] == ["tracking:a", "tracking:b"]
        assert len(scheduler) == 0


class TestSQLiteTimerQueue:
    def test_claim_due_removes_claimed_rows(self, conn, clock):
        timers = SQLiteTimerQueue(conn, clock)
        timers.schedule(5, "tracking:a", "pending-a", "Polling execution 1")
        timers.schedule(60, "tracking:b", "pending-b")

        assert timers.claim_due() == []

        clock.advance(5)
        due = timers.claim_due()

        assert len(due) == 1
        assert due[0].payload == "tracking:a"
        assert due[0].pending_event_id == "pending-a"
        assert due[0].description == "Polling execution 1"
        assert timers.claim_due() == []
        assert [w.payload for w in timers.pending()] == ["tracking:b"]

    def test_claim_due_respects_limit(self, conn, clock):
        timers = SQLiteTimerQueue(conn, clock)
        for i in range(5):
            timers.schedule(i, f"tracking:{i}", "p")
        clock.advance(10)

        first = timers.claim_due(limit=3)
        rest = timers.claim_due()

        assert [w.payload for w in first] == ["tracking:0", "tracking:1", "tracking:2"]
        assert [w.payload for w in rest] == ["tracking:3", "tracking:4"]

    def test_null_pending_id_round_trips(self, conn, clock):
        timers = SQLiteTimerQueue(conn, clock)
        timers.schedule(0, "tracking:a", None)
        assert timers.claim_due()[0].pending_event_id is None

    def test_wakes_survive_reopen(self, tmp_path, clock):
        from rundeck_spine.core.database import SqliteConnection, initialize_schema

        path = tmp_path / "tracking.db"
        first = SqliteConnection(path)
        initialize_schema(first)
        SQLiteTimerQueue(first, clock).schedule(5, "tracking:a", "p")
        first.close()

        second = SqliteConnection(path)
        clock.advance(6)
        due = SQLiteTimerQueue(second, clock).claim_due()
        second.close()

        assert [w.payload for w in due] == ["tracking:a"]
