"""Execution tracking: durable, restart-safe polling of Rundeck executions.

Usage::

    from rundeck_spine.tracking import (
        ExecutionTracker, InMemoryEventSink, InMemoryScheduler,
        InMemoryTrackingStore, TrackerConfig,
    )

    tracker = ExecutionTracker(InMemoryTrackingStore(), InMemoryScheduler(), InMemoryEventSink())
    key = tracker.start(execution, parent_event_id="evt-1", config=TrackerConfig())
    tracker.poll(key, pending_event_id, client, TrackerConfig())

Modules
-------
models     TrackingRecord, TrackerConfig, ScheduledWake, ListPage
store      TrackingStore protocol, in-memory and SQLite stores
scheduler  Scheduler protocol, in-memory scheduler, SQLite timer queue
sink       EventSink protocol, in-memory and SQLite sinks
tracker    ExecutionTracker state machine
scavenger  TTL eviction of abandoned trackers
worker     Thread loop delivering due wakes and running the scavenger
"""

from .models import (
    TRACKING_PREFIX,
    ListPage,
    ScheduledWake,
    TrackerConfig,
    TrackingRecord,
    tracking_key_for,
)
from .scavenger import TIMEOUT_REASON, TRACKING_TTL, CleanupReport, Scavenger
from .scheduler import InMemoryScheduler, Scheduler, SQLiteTimerQueue
from .sink import (
    EmittedEvent,
    EventSink,
    InMemoryEventSink,
    PendingEvent,
    PendingState,
    SQLiteEventSink,
)
from .store import InMemoryTrackingStore, SQLiteTrackingStore, TrackingStore
from .tracker import ExecutionTracker, StatusSource
from .worker import TrackingWorker

__all__ = [
    "TRACKING_PREFIX",
    "ListPage",
    "ScheduledWake",
    "TrackerConfig",
    "TrackingRecord",
    "tracking_key_for",
    "TIMEOUT_REASON",
    "TRACKING_TTL",
    "CleanupReport",
    "Scavenger",
    "InMemoryScheduler",
    "Scheduler",
    "SQLiteTimerQueue",
    "EmittedEvent",
    "EventSink",
    "InMemoryEventSink",
    "PendingEvent",
    "PendingState",
    "SQLiteEventSink",
    "InMemoryTrackingStore",
    "SQLiteTrackingStore",
    "TrackingStore",
    "ExecutionTracker",
    "StatusSource",
    "TrackingWorker",
]
