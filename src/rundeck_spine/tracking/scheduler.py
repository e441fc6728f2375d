"""One-shot delayed activations ("wakes") for trackers.

The tracker asks for a wake with::

    scheduler.schedule(delay_seconds, payload, pending_event_id, description)

and something outside the core later delivers it to the wake handler.
Delivery order between wakes is not guaranteed and a wake may in rare cases
be delivered twice; the tracker tolerates both.

Implementations:
    InMemoryScheduler  ─ records wakes; tests pop them with ``pop_due``
    SQLiteTimerQueue   ─ durable ``core_timers`` table drained by the worker

┌──────────────────────────────────────────────────────────────────────┐
│  Tracker.start / Tracker.poll                                        │
│        │ schedule(delay, tracking_key, pending_event_id)             │
│        ▼                                                             │
│  core_timers ──► TrackingWorker.tick() ──► claim_due(now)            │
│                                   │                                  │
│                                   ▼                                  │
│                      handle_timer → Tracker.poll                     │
└──────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Protocol, runtime_checkable

from rundeck_spine.core.database import SqliteConnection
from rundeck_spine.core.logging import get_logger
from rundeck_spine.core.timestamps import from_epoch_ms, to_epoch_ms, utc_now

from .models import ScheduledWake

logger = get_logger(__name__)


@runtime_checkable
class Scheduler(Protocol):
    """Protocol for delayed activation delivery."""

    def schedule(
        self,
        delay_seconds: float,
        payload: str,
        pending_event_id: str | None,
        description: str = "",
    ) -> str:
        """Request one activation after ``delay_seconds``; returns the wake id."""
        ...


class InMemoryScheduler:
    """Keeps wakes in a list. Nothing fires on its own."""

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock
        self.wakes: list[ScheduledWake] = []

    def schedule(
        self,
        delay_seconds: float,
        payload: str,
        pending_event_id: str | None,
        description: str = "",
    ) -> str:
        wake = ScheduledWake(
            id=str(uuid.uuid4()),
            fire_at=self._clock() + timedelta(seconds=delay_seconds),
            payload=payload,
            pending_event_id=pending_event_id,
            description=description,
        )
        self.wakes.append(wake)
        return wake.id

    def pop_due(self, now: datetime | None = None) -> list[ScheduledWake]:
        """Remove and return every wake due at ``now`` (earliest first)."""
        now = now or self._clock()
        due = sorted((w for w in self.wakes if w.fire_at <= now), key=lambda w: w.fire_at)
        self.wakes = [w for w in self.wakes if w.fire_at > now]
        return due

    def __len__(self) -> int:
        return len(self.wakes)


class SQLiteTimerQueue:
    """Durable timer queue in the ``core_timers`` table.

    Wakes survive a restart: the worker picks up whatever is due when it
    comes back. :meth:`claim_due` deletes the rows it returns inside one
    locked transaction so a wake is handed out once per queue.
    """

    def __init__(self, conn: SqliteConnection, clock: Callable[[], datetime] = utc_now) -> None:
        self._conn = conn
        self._clock = clock

    def schedule(
        self,
        delay_seconds: float,
        payload: str,
        pending_event_id: str | None,
        description: str = "",
    ) -> str:
        now = self._clock()
        wake_id = str(uuid.uuid4())
        fire_at = now + timedelta(seconds=delay_seconds)
        with self._conn.lock:
            self._conn.execute(
                """
                INSERT INTO core_timers (
                    id, fire_at_ms, payload, pending_event_id, description, created_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    wake_id,
                    to_epoch_ms(fire_at),
                    payload,
                    pending_event_id,
                    description,
                    now.isoformat(),
                ),
            )
            self._conn.commit()
        logger.debug("wake_scheduled", wake_id=wake_id, payload=payload, delay_seconds=delay_seconds)
        return wake_id

    def claim_due(self, now: datetime | None = None, limit: int = 100) -> list[ScheduledWake]:
        """Remove and return up to ``limit`` wakes due at ``now``."""
        now = now or self._clock()
        with self._conn.lock:
            rows = self._conn.execute(
                """
                SELECT id, fire_at_ms, payload, pending_event_id, description
                FROM core_timers
                WHERE fire_at_ms <= ?
                ORDER BY fire_at_ms
                LIMIT ?
                """,
                (to_epoch_ms(now), limit),
            ).fetchall()
            if rows:
                self._conn.executemany(
                    "DELETE FROM core_timers WHERE id = ?", [(row[0],) for row in rows]
                )
                self._conn.commit()
        return [self._row_to_wake(row) for row in rows]

    def pending(self) -> list[ScheduledWake]:
        """All wakes not yet claimed, earliest first."""
        with self._conn.lock:
            rows = self._conn.execute(
                """
                SELECT id, fire_at_ms, payload, pending_event_id, description
                FROM core_timers ORDER BY fire_at_ms
                """
            ).fetchall()
        return [self._row_to_wake(row) for row in rows]

    def _row_to_wake(self, row: tuple) -> ScheduledWake:
        return ScheduledWake(
            id=row[0],
            fire_at=from_epoch_ms(row[1]),
            payload=row[2],
            pending_event_id=row[3],
            description=row[4] or "",
        )


__all__ = ["Scheduler", "InMemoryScheduler", "SQLiteTimerQueue"]
