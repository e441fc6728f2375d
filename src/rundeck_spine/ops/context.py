"""
Request-scoped context for operations.

Every operation function receives an :class:`OperationContext` as its first
argument. The context carries the collaborators an operation may need (the
Rundeck client, the tracker, the scavenger), the settings they were built
from, and a ``request_id`` that doubles as the parent correlation id of
every event the request produces.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from rundeck_spine.core.database import SqliteConnection, initialize_schema
from rundeck_spine.core.errors import MissingConfigError
from rundeck_spine.core.settings import RundeckSettings
from rundeck_spine.rundeck.client import RundeckClient
from rundeck_spine.tracking import (
    ExecutionTracker,
    Scavenger,
    SQLiteEventSink,
    SQLiteTimerQueue,
    SQLiteTrackingStore,
)


@dataclass
class OperationContext:
    """Context passed to every operation function.

    Attributes:
        settings: Settings the collaborators were built from.
        tracker: Tracker used by run/subscribe/timer operations.
        client: Rundeck client, ``None`` when the API is not configured.
        scavenger: Scavenger used by cleanup operations.
        request_id: Unique ID for this invocation; parent id for emitted events.
        caller: Origin of the request (``"cli"``, ``"worker"``, ``"sdk"``).
        metadata: Arbitrary key/value pairs forwarded to logging.
    """

    settings: RundeckSettings
    tracker: ExecutionTracker
    client: RundeckClient | None = None
    scavenger: Scavenger | None = None
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    caller: str = "sdk"
    metadata: dict[str, Any] = field(default_factory=dict)

    def require_client(self) -> RundeckClient:
        if self.client is None:
            raise MissingConfigError("RUNDECK_URL", "Rundeck API is not configured (set RUNDECK_URL and RUNDECK_API_TOKEN)")
        return self.client


@dataclass
class Runtime:
    """SQLite-backed collaborators shared by the CLI and the worker."""

    conn: SqliteConnection
    store: SQLiteTrackingStore
    timers: SQLiteTimerQueue
    sink: SQLiteEventSink
    tracker: ExecutionTracker
    scavenger: Scavenger

    def close(self) -> None:
        self.conn.close()


def open_runtime(settings: RundeckSettings) -> Runtime:
    """Open the tracking database and wire the durable collaborators."""
    conn = SqliteConnection(settings.database_path)
    initialize_schema(conn)
    store = SQLiteTrackingStore(conn)
    timers = SQLiteTimerQueue(conn)
    sink = SQLiteEventSink(conn)
    return Runtime(
        conn=conn,
        store=store,
        timers=timers,
        sink=sink,
        tracker=ExecutionTracker(store, timers, sink),
        scavenger=Scavenger(store, sink),
    )


def make_context(
    settings: RundeckSettings,
    runtime: Runtime,
    *,
    caller: str = "sdk",
    with_client: bool = True,
) -> OperationContext:
    """Build an :class:`OperationContext`; the client is omitted when not configured."""
    client = None
    if with_client and settings.url and settings.api_token is not None:
        client = RundeckClient.from_settings(settings)
    return OperationContext(
        settings=settings,
        tracker=runtime.tracker,
        client=client,
        scavenger=runtime.scavenger,
        caller=caller,
    )


__all__ = ["OperationContext", "Runtime", "open_runtime", "make_context"]
