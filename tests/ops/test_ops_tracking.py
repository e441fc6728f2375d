"""Tests for tracking operations and suggestions."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import MagicMock

from rundeck_spine.core.errors import NetworkError
from rundeck_spine.ops.context import OperationContext
from rundeck_spine.ops.requests import TimerRequest
from rundeck_spine.ops.suggestions import Suggestion, suggest_jobs, suggest_projects
from rundeck_spine.ops.tracking import (
    cleanup_tracking,
    handle_timer,
    list_tracking,
    make_wake_handler,
)
from rundeck_spine.rundeck import RundeckClient, RundeckJob, RundeckProject
from rundeck_spine.tracking import (
    ExecutionTracker,
    PendingState,
    ScheduledWake,
    SQLiteEventSink,
    SQLiteTimerQueue,
    SQLiteTrackingStore,
    TrackerConfig,
    TrackingWorker,
)
from tests._support.fakes import T0, make_execution


def _start(ctx, status="running"):
    key = ctx.tracker.start(make_execution(42, status), ctx.request_id, TrackerConfig())
    pending_id = next(iter(ctx.tracker.sink.pending))
    return key, pending_id


class TestHandleTimer:
    def test_polls_tracker(self, ctx, client, sink):
        key, pending_id = _start(ctx)
        client.get_execution.return_value = make_execution(42, "succeeded")

        result = handle_timer(ctx, TimerRequest(tracking_key=key, pending_event_id=pending_id))

        assert result.success
        assert sink.pending[pending_id].state is PendingState.COMPLETED

    def test_uses_settings_retry_budget(self, ctx, client, store, sink):
        ctx.settings.max_retries = 1
        key, pending_id = _start(ctx)
        client.get_execution.side_effect = NetworkError("down")

        handle_timer(ctx, TimerRequest(tracking_key=key, pending_event_id=pending_id))

        assert key not in store
        assert sink.pending[pending_id].state is PendingState.CANCELLED

    def test_missing_pending_id(self, ctx, client):
        result = handle_timer(ctx, TimerRequest(tracking_key="tracking:x"))

        assert result.success
        assert result.warnings == ["missing pending event id"]
        client.get_execution.assert_not_called()

    def test_without_client_keeps_wake_chain(self, ctx, store, scheduler, clock):
        key, pending_id = _start(ctx)
        scheduler.wakes.clear()
        ctx.client = None

        result = handle_timer(ctx, TimerRequest(tracking_key=key, pending_event_id=pending_id))

        assert result.error.code == "CONFIG_MISSING"
        assert key in store
        [wake] = scheduler.wakes
        assert (wake.payload, wake.pending_event_id) == (key, pending_id)
        assert (wake.fire_at - clock()).total_seconds() == 5

    def test_without_client_missing_record(self, ctx, scheduler):
        ctx.client = None

        result = handle_timer(ctx, TimerRequest(tracking_key="tracking:x", pending_event_id="p"))

        assert result.error.code == "CONFIG_MISSING"
        assert len(scheduler) == 0

    def test_wake_handler_adapter(self, ctx, client, sink):
        key, pending_id = _start(ctx)
        client.get_execution.return_value = make_execution(42, "aborted")

        make_wake_handler(ctx)(ScheduledWake(id="w", fire_at=T0, payload=key, pending_event_id=pending_id))

        assert sink.events[0].complete == pending_id


class TestWorkerWithoutClient:
    def test_tracker_survives_until_api_is_configured(self, settings, conn, clock):
        store = SQLiteTrackingStore(conn)
        timers = SQLiteTimerQueue(conn, clock)
        sink = SQLiteEventSink(conn)
        tracker = ExecutionTracker(store, timers, sink, clock)
        ctx = OperationContext(settings=settings, tracker=tracker, client=None, request_id="req-1")
        worker = TrackingWorker(timers, make_wake_handler(ctx), None, clock=clock)

        key = tracker.start(make_execution(42, "running"), "req-1", TrackerConfig())
        clock.advance(60)

        assert worker.tick() == 1
        assert store.get(key) is not None
        [wake] = timers.pending()
        assert wake.payload == key

        ctx.client = MagicMock(spec=RundeckClient)
        ctx.client.get_execution.return_value = make_execution(42, "succeeded")
        clock.advance(5)

        assert worker.tick() == 1
        assert store.get(key) is None
        assert timers.pending() == []


class TestCleanupAndList:
    def test_cleanup_reports(self, ctx, clock, store):
        key, _ = _start(ctx)
        clock.advance(timedelta(hours=25).total_seconds())

        result = cleanup_tracking(ctx)

        assert result.success
        assert result.data["evicted"] == 1
        assert key not in store

    def test_cleanup_without_scavenger(self, ctx):
        ctx.scavenger = None
        assert cleanup_tracking(ctx).error.code == "CONFIG_MISSING"

    def test_list_tracking(self, ctx):
        key, pending_id = _start(ctx)

        result = list_tracking(ctx)

        assert result.total == 1
        item = result.data[0]
        assert item["tracking_key"] == key
        assert item["execution_id"] == 42
        assert item["pending_event_id"] == pending_id
        assert result.has_more is False


class TestSuggestions:
    def test_projects_filter_on_name_or_label(self, ctx, client):
        client.list_projects.return_value = [
            RundeckProject(name="ops", label="Operations"),
            RundeckProject(name="web"),
        ]

        assert suggest_projects(ctx, "OPER") == [Suggestion(label="Operations", value="ops")]
        assert [s.value for s in suggest_projects(ctx)] == ["ops", "web"]

    def test_projects_failure_returns_empty(self, ctx, client):
        client.list_projects.side_effect = NetworkError("down")
        assert suggest_projects(ctx) == []

    def test_jobs_labels(self, ctx, client):
        client.list_jobs.return_value = [
            RundeckJob.model_validate({"id": "j1", "name": "deploy", "group": "web", "project": "ops"}),
            RundeckJob.model_validate({"id": "j2", "name": "backup", "project": "ops"}),
        ]

        suggestions = suggest_jobs(ctx, "ops")

        assert suggestions == [
            Suggestion(label="web/deploy", value="j1"),
            Suggestion(label="backup", value="j2"),
        ]
        assert suggest_jobs(ctx, "ops", "WEB") == [Suggestion(label="web/deploy", value="j1")]

    def test_jobs_without_project(self, ctx, client):
        assert suggest_jobs(ctx, None) == []
        client.list_jobs.assert_not_called()
