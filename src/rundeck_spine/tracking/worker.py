"""Tracking worker: delivers due wakes and runs the scavenger.

┌──────────────────────────────────────────────────────────────────────┐
│  TrackingWorker                                                      │
│                                                                      │
│  start()                                                             │
│     └── daemon thread                                                │
│           while not stop_event.wait(tick_interval):                  │
│               tick()                                                 │
│                 ├── timers.claim_due(now) → on_wake(wake) each       │
│                 └── every cleanup_interval → scavenger.cleanup()     │
│                                                                      │
│  stop()  → stop_event.set(); thread.join(timeout)                    │
└──────────────────────────────────────────────────────────────────────┘

A failure while handling one wake is logged and does not affect the other
wakes in the same tick.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import datetime
from typing import Any

from rundeck_spine.core.logging import get_logger
from rundeck_spine.core.timestamps import utc_now

from .models import ScheduledWake
from .scavenger import CleanupReport, Scavenger
from .scheduler import SQLiteTimerQueue

logger = get_logger(__name__)

WakeHandler = Callable[[ScheduledWake], None]


class TrackingWorker:
    """Beat-style loop over the durable timer queue.

    Example:
        >>> worker = TrackingWorker(timers, handle_wake, scavenger)
        >>> worker.start()
        >>> # ... later ...
        >>> worker.stop()
    """

    def __init__(
        self,
        timers: SQLiteTimerQueue,
        on_wake: WakeHandler,
        scavenger: Scavenger | None = None,
        tick_interval: float = 1.0,
        cleanup_interval: float = 3600.0,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._timers = timers
        self._on_wake = on_wake
        self._scavenger = scavenger
        self._tick_interval = tick_interval
        self._cleanup_interval = cleanup_interval
        self._clock = clock

        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._tick_count = 0
        self._last_tick: datetime | None = None
        self._last_cleanup: datetime | None = None
        self._last_report: CleanupReport | None = None

    def tick(self) -> int:
        """Run one iteration. Returns the number of wakes dispatched."""
        now = self._clock()
        self._tick_count += 1
        self._last_tick = now

        dispatched = 0
        for wake in self._timers.claim_due(now):
            try:
                self._on_wake(wake)
            except Exception as exc:
                logger.exception("wake_handler_failed", wake_id=wake.id, payload=wake.payload, error=str(exc))
            dispatched += 1

        if self._scavenger is not None and self._cleanup_due(now):
            self._last_cleanup = now
            try:
                self._last_report = self._scavenger.cleanup()
            except Exception as exc:
                logger.exception("scavenger_failed", error=str(exc))

        return dispatched

    def _cleanup_due(self, now: datetime) -> bool:
        if self._last_cleanup is None:
            return True
        return (now - self._last_cleanup).total_seconds() >= self._cleanup_interval

    def start(self) -> None:
        """Start the loop in a daemon thread."""
        if self.is_running:
            logger.warning("tracking_worker_already_started")
            return

        self._stop_event.clear()

        def _loop() -> None:
            logger.info("tracking_worker_started", tick_interval=self._tick_interval)
            while not self._stop_event.wait(self._tick_interval):
                try:
                    self.tick()
                except Exception as exc:
                    logger.exception("tracking_worker_tick_failed", error=str(exc))
            logger.info("tracking_worker_stopped")

        self._thread = threading.Thread(target=_loop, daemon=True, name="rundeck-spine-worker")
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the loop, waiting up to ``timeout`` seconds for the current tick."""
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning("tracking_worker_stop_timeout")
        self._thread = None

    def run_forever(self) -> None:
        """Block the calling thread until :meth:`stop` is called from elsewhere."""
        self.start()
        try:
            while not self._stop_event.wait(0.5):
                pass
        finally:
            self.stop()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def health(self) -> dict[str, Any]:
        return {
            "healthy": self.is_running,
            "tick_count": self._tick_count,
            "last_tick": self._last_tick.isoformat() if self._last_tick else None,
            "last_cleanup": self._last_cleanup.isoformat() if self._last_cleanup else None,
            "last_evicted": self._last_report.evicted if self._last_report else None,
            "pending_wakes": len(self._timers.pending()),
        }


__all__ = ["WakeHandler", "TrackingWorker"]
