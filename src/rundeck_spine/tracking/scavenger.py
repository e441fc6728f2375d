"""Scavenger: evicts trackers older than a fixed TTL.

Backstop for trackers whose wake chain was lost (host restart without a
durable scheduler, scheduler failure, bug). Runs on an external cadence,
hourly by default through :class:`~rundeck_spine.tracking.worker.TrackingWorker`.

The TTL is global and independent of poll interval and retry settings.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from rundeck_spine.core.logging import get_logger
from rundeck_spine.core.timestamps import utc_now

from .models import TRACKING_PREFIX
from .sink import EventSink
from .store import TrackingStore

logger = get_logger(__name__)

TRACKING_TTL = timedelta(hours=24)
DEFAULT_MAX_PAGES = 10_000
TIMEOUT_REASON = "Execution tracking timed out after 24 hours"


@dataclass(frozen=True, slots=True)
class CleanupReport:
    """Outcome of one scavenger run."""

    pages: int
    scanned: int
    evicted: int
    page_cap_hit: bool = False


class Scavenger:
    """Cancels and deletes tracking records created before ``now - TTL``."""

    def __init__(
        self,
        store: TrackingStore,
        sink: EventSink,
        clock: Callable[[], datetime] = utc_now,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> None:
        self.store = store
        self.sink = sink
        self._clock = clock
        self._max_pages = max_pages

    def cleanup(self) -> CleanupReport:
        threshold = self._clock() - TRACKING_TTL
        cursor: str | None = None
        pages = scanned = evicted = 0

        while True:
            if pages >= self._max_pages:
                logger.warning(
                    "scavenger_page_cap_hit",
                    max_pages=self._max_pages,
                    cursor=cursor,
                )
                return CleanupReport(pages, scanned, evicted, page_cap_hit=True)

            page = self.store.list(TRACKING_PREFIX, cursor)
            pages += 1

            for key, record in page.pairs:
                scanned += 1
                if record.created_at < threshold:
                    self.sink.cancel_pending(record.pending_event_id, TIMEOUT_REASON)
                    self.store.delete([key])
                    evicted += 1
                    logger.info(
                        "scavenger_evicted",
                        tracking_key=key,
                        execution_id=record.execution_id,
                        created_at=record.created_at.isoformat(),
                    )

            if not page.next_cursor:
                break
            cursor = page.next_cursor

        logger.info("scavenger_completed", pages=pages, scanned=scanned, evicted=evicted)
        return CleanupReport(pages, scanned, evicted)


__all__ = ["TRACKING_TTL", "TIMEOUT_REASON", "CleanupReport", "Scavenger"]
