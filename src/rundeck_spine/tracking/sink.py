"""Notification sink: emitted events and pending placeholders.

A *pending placeholder* is the visible "in progress" marker a consumer sees
while an execution is being tracked. It ends in one of two ways:

- an ``emit(..., complete=pending_event_id)`` resolves it (state
  ``completed``);
- ``cancel_pending(pending_event_id, reason)`` cancels it (state
  ``cancelled``).

Implementations:
    InMemoryEventSink  ─ tests, keeps everything in lists/dicts
    SQLiteEventSink    ─ ``core_events`` / ``core_pending_events`` tables,
                         read back by ``rundeck-spine events``
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from rundeck_spine.core.database import SqliteConnection
from rundeck_spine.core.logging import get_logger
from rundeck_spine.core.timestamps import utc_now

logger = get_logger(__name__)


class PendingState(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class EmittedEvent:
    """An event published on an output channel."""

    id: str
    event: dict[str, Any]
    channel: str
    parent_event_id: str | None = None
    complete: str | None = None
    created_at: datetime = field(default_factory=utc_now)


@dataclass(slots=True)
class PendingEvent:
    """A placeholder visible to consumers until completed or cancelled."""

    id: str
    event: dict[str, Any]
    channel: str
    description: str
    state: PendingState = PendingState.PENDING
    reason: str | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


@runtime_checkable
class EventSink(Protocol):
    """Protocol for emitting notifications and managing placeholders."""

    def emit(
        self,
        event: dict[str, Any],
        channel: str,
        parent_event_id: str | None = None,
        complete: str | None = None,
    ) -> str:
        ...

    def create_pending(self, event: dict[str, Any], channel: str, description: str) -> str:
        ...

    def update_pending(
        self,
        pending_event_id: str,
        event: dict[str, Any] | None = None,
        description: str | None = None,
    ) -> None:
        ...

    def cancel_pending(self, pending_event_id: str, reason: str) -> None:
        ...


class InMemoryEventSink:
    """Records every call for inspection."""

    def __init__(self) -> None:
        self.events: list[EmittedEvent] = []
        self.pending: dict[str, PendingEvent] = {}

    def emit(
        self,
        event: dict[str, Any],
        channel: str,
        parent_event_id: str | None = None,
        complete: str | None = None,
    ) -> str:
        emitted = EmittedEvent(
            id=str(uuid.uuid4()),
            event=event,
            channel=channel,
            parent_event_id=parent_event_id,
            complete=complete,
        )
        self.events.append(emitted)
        placeholder = self.pending.get(complete) if complete is not None else None
        if placeholder is not None and placeholder.state is PendingState.PENDING:
            placeholder.state = PendingState.COMPLETED
            placeholder.event = event
            placeholder.updated_at = utc_now()
        return emitted.id

    def create_pending(self, event: dict[str, Any], channel: str, description: str) -> str:
        pending_id = str(uuid.uuid4())
        self.pending[pending_id] = PendingEvent(
            id=pending_id, event=event, channel=channel, description=description
        )
        return pending_id

    def update_pending(
        self,
        pending_event_id: str,
        event: dict[str, Any] | None = None,
        description: str | None = None,
    ) -> None:
        placeholder = self.pending.get(pending_event_id)
        if placeholder is None:
            logger.warning("pending_event_not_found", pending_event_id=pending_event_id)
            return
        if event is not None:
            placeholder.event = event
        if description is not None:
            placeholder.description = description
        placeholder.updated_at = utc_now()

    def cancel_pending(self, pending_event_id: str, reason: str) -> None:
        placeholder = self.pending.get(pending_event_id)
        if placeholder is None:
            logger.warning("pending_event_not_found", pending_event_id=pending_event_id)
            return
        placeholder.state = PendingState.CANCELLED
        placeholder.reason = reason
        placeholder.updated_at = utc_now()

    def open_placeholders(self) -> list[PendingEvent]:
        return [p for p in self.pending.values() if p.state is PendingState.PENDING]


class SQLiteEventSink:
    """Event sink persisted in SQLite."""

    def __init__(self, conn: SqliteConnection) -> None:
        self._conn = conn

    def emit(
        self,
        event: dict[str, Any],
        channel: str,
        parent_event_id: str | None = None,
        complete: str | None = None,
    ) -> str:
        event_id = str(uuid.uuid4())
        now = utc_now().isoformat()
        payload = json.dumps(event, default=str)
        with self._conn.lock:
            self._conn.execute(
                """
                INSERT INTO core_events (
                    id, channel, parent_event_id, completes_pending_id, payload, created_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (event_id, channel, parent_event_id, complete, payload, now),
            )
            if complete is not None:
                self._conn.execute(
                    """
                    UPDATE core_pending_events
                    SET state = ?, payload = ?, updated_at = ?
                    WHERE id = ? AND state = ?
                    """,
                    (PendingState.COMPLETED.value, payload, now, complete,
                     PendingState.PENDING.value),
                )
            self._conn.commit()
        logger.info("event_emitted", event_id=event_id, channel=channel, completes=complete)
        return event_id

    def create_pending(self, event: dict[str, Any], channel: str, description: str) -> str:
        pending_id = str(uuid.uuid4())
        now = utc_now().isoformat()
        with self._conn.lock:
            self._conn.execute(
                """
                INSERT INTO core_pending_events (
                    id, channel, payload, description, state, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (pending_id, channel, json.dumps(event, default=str), description,
                 PendingState.PENDING.value, now, now),
            )
            self._conn.commit()
        return pending_id

    def update_pending(
        self,
        pending_event_id: str,
        event: dict[str, Any] | None = None,
        description: str | None = None,
    ) -> None:
        sets = ["updated_at = ?"]
        params: list[Any] = [utc_now().isoformat()]
        if event is not None:
            sets.append("payload = ?")
            params.append(json.dumps(event, default=str))
        if description is not None:
            sets.append("description = ?")
            params.append(description)
        params.append(pending_event_id)

        with self._conn.lock:
            cursor = self._conn.execute(
                f"UPDATE core_pending_events SET {', '.join(sets)} WHERE id = ?",
                params,
            )
            self._conn.commit()
        if cursor.rowcount == 0:
            logger.warning("pending_event_not_found", pending_event_id=pending_event_id)

    def cancel_pending(self, pending_event_id: str, reason: str) -> None:
        with self._conn.lock:
            cursor = self._conn.execute(
                """
                UPDATE core_pending_events
                SET state = ?, reason = ?, updated_at = ?
                WHERE id = ?
                """,
                (PendingState.CANCELLED.value, reason, utc_now().isoformat(), pending_event_id),
            )
            self._conn.commit()
        if cursor.rowcount == 0:
            logger.warning("pending_event_not_found", pending_event_id=pending_event_id)

    def list_events(self, channel: str | None = None, limit: int = 50) -> list[EmittedEvent]:
        query = """
            SELECT id, channel, parent_event_id, completes_pending_id, payload, created_at
            FROM core_events
        """
        params: list[Any] = []
        if channel:
            query += " WHERE channel = ?"
            params.append(channel)
        query += " ORDER BY created_at DESC LIMIT ?"
        params.append(limit)

        with self._conn.lock:
            rows = self._conn.execute(query, params).fetchall()
        return [
            EmittedEvent(
                id=row[0],
                channel=row[1],
                parent_event_id=row[2],
                complete=row[3],
                event=json.loads(row[4]),
                created_at=datetime.fromisoformat(row[5]),
            )
            for row in rows
        ]

    def list_pending(self, state: PendingState | None = PendingState.PENDING) -> list[PendingEvent]:
        query = f"SELECT {_PENDING_COLUMNS} FROM core_pending_events"
        params: list[Any] = []
        if state is not None:
            query += " WHERE state = ?"
            params.append(state.value)
        query += " ORDER BY created_at DESC"

        with self._conn.lock:
            rows = self._conn.execute(query, params).fetchall()
        return [self._row_to_pending(row) for row in rows]

    def get_pending(self, pending_event_id: str) -> PendingEvent | None:
        with self._conn.lock:
            row = self._conn.execute(
                f"SELECT {_PENDING_COLUMNS} FROM core_pending_events WHERE id = ?",
                (pending_event_id,),
            ).fetchone()
        return self._row_to_pending(row) if row else None

    def _row_to_pending(self, row: tuple) -> PendingEvent:
        return PendingEvent(
            id=row[0],
            channel=row[1],
            event=json.loads(row[2]),
            description=row[3],
            state=PendingState(row[4]),
            reason=row[5],
            created_at=datetime.fromisoformat(row[6]),
            updated_at=datetime.fromisoformat(row[7]),
        )


_PENDING_COLUMNS = "id, channel, payload, description, state, reason, created_at, updated_at"


__all__ = [
    "PendingState",
    "EmittedEvent",
    "PendingEvent",
    "EventSink",
    "InMemoryEventSink",
    "SQLiteEventSink",
]
