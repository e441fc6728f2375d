"""Execution tracker: restart-safe polling of a Rundeck execution.

Each call is an independent activation. All state lives in the
:class:`~rundeck_spine.tracking.store.TrackingStore`; nothing is carried in
memory between ``start`` and ``poll`` or between two polls.

State per tracking key::

    polling (record exists)
      ├── status unchanged        → re-persist error_count=0, wake again
      ├── non-terminal change     → emit, update placeholder, wake again
      ├── terminal change         → emit completing event, delete   (completed)
      ├── fetch fails, budget ok  → error_count += 1, wake again
      └── fetch fails, exhausted  → cancel placeholder, delete       (aborted)

    Scavenger TTL                 → cancel placeholder, delete       (evicted)

Completed, aborted and evicted all end with the record gone. A wake for a
missing record is a no-op, which makes duplicate and late wakes harmless
and makes deletion the only cancellation signal.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Protocol, runtime_checkable

from rundeck_spine.core.errors import TransientError
from rundeck_spine.core.logging import get_logger
from rundeck_spine.core.statuses import is_terminal
from rundeck_spine.core.timestamps import utc_now
from rundeck_spine.rundeck.models import RundeckExecution, map_execution

from .models import TrackerConfig, TrackingRecord, tracking_key_for
from .scheduler import Scheduler
from .sink import EventSink
from .store import TrackingStore

logger = get_logger(__name__)


@runtime_checkable
class StatusSource(Protocol):
    """Remote status fetch. Raises :class:`TransientError` on failure."""

    def get_execution(self, execution_id: int | str) -> RundeckExecution:
        ...


def _status_description(execution_id: int, status: str) -> str:
    return f"Execution {execution_id} is {status}"


class ExecutionTracker:
    """Starts and advances tracking sessions.

    Args:
        store: Durable tracker state.
        scheduler: Delivers the next wake.
        sink: Receives emitted events and placeholder updates.
        clock: Source of ``created_at`` timestamps.
    """

    def __init__(
        self,
        store: TrackingStore,
        scheduler: Scheduler,
        sink: EventSink,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.scheduler = scheduler
        self.sink = sink
        self._clock = clock

    def start(
        self,
        execution: RundeckExecution,
        parent_event_id: str,
        config: TrackerConfig,
        *,
        poll_interval: float | None = None,
        max_retries: int | None = None,
    ) -> str | None:
        """Begin tracking ``execution``.

        ``poll_interval`` and ``max_retries`` pin this tracker's own values;
        they are stored on the record and win over the config of later polls.
        Raises ``ValueError`` for a non-positive interval or budget.

        Returns the tracking key, or ``None`` when the execution was already
        terminal and a single event was emitted instead.
        """
        config = config.override(poll_interval=poll_interval, max_retries=max_retries)
        event = map_execution(execution)

        if is_terminal(execution.status):
            self.sink.emit(event, config.channel, parent_event_id=parent_event_id)
            logger.info(
                "tracking_skipped_terminal",
                execution_id=execution.id,
                status=execution.status,
            )
            return None

        tracking_key = tracking_key_for(parent_event_id)
        pending_event_id = self.sink.create_pending(
            event,
            config.channel,
            _status_description(execution.id, execution.status),
        )
        self.store.set(
            tracking_key,
            TrackingRecord(
                tracking_key=tracking_key,
                execution_id=execution.id,
                pending_event_id=pending_event_id,
                last_status=execution.status,
                parent_event_id=parent_event_id,
                created_at=self._clock(),
                error_count=0,
                channel=config.channel,
                poll_interval=poll_interval,
                max_retries=max_retries,
            ),
        )
        self.scheduler.schedule(
            config.poll_interval,
            tracking_key,
            pending_event_id,
            f"Polling execution {execution.id}",
        )
        logger.info(
            "tracking_started",
            tracking_key=tracking_key,
            execution_id=execution.id,
            status=execution.status,
            poll_interval=config.poll_interval,
        )
        return tracking_key

    def poll(
        self,
        tracking_key: str,
        pending_event_id: str | None,
        client: StatusSource,
        config: TrackerConfig,
    ) -> None:
        """Advance one tracker by one scheduled activation.

        Events go to the channel recorded at start. ``config`` supplies the
        poll interval and retry budget unless the record pins its own.
        """
        if not pending_event_id:
            logger.error("poll_missing_pending_event", tracking_key=tracking_key)
            return

        record = self.store.get(tracking_key)
        if record is None:
            logger.info("tracking_record_missing", tracking_key=tracking_key)
            return
        config = record.resolve_config(config)

        try:
            execution = client.get_execution(record.execution_id)
        except TransientError as exc:
            self._on_fetch_failure(record, pending_event_id, config, exc)
            return

        if execution.status == record.last_status:
            self.store.set(tracking_key, record.with_status(execution.status))
            self._schedule_next(record, pending_event_id, config)
            logger.debug(
                "poll_status_unchanged",
                tracking_key=tracking_key,
                execution_id=record.execution_id,
                status=execution.status,
            )
            return

        self.store.set(tracking_key, record.with_status(execution.status))
        event = map_execution(execution)

        if is_terminal(execution.status):
            self.sink.emit(
                event,
                record.channel,
                parent_event_id=record.parent_event_id,
                complete=pending_event_id,
            )
            self.store.delete([tracking_key])
            logger.info(
                "tracking_completed",
                tracking_key=tracking_key,
                execution_id=record.execution_id,
                status=execution.status,
            )
            return

        self.sink.emit(event, record.channel, parent_event_id=record.parent_event_id)
        self.sink.update_pending(
            pending_event_id,
            event=event,
            description=_status_description(record.execution_id, execution.status),
        )
        self._schedule_next(record, pending_event_id, config)
        logger.info(
            "poll_status_changed",
            tracking_key=tracking_key,
            execution_id=record.execution_id,
            previous_status=record.last_status,
            status=execution.status,
        )

    def _on_fetch_failure(
        self,
        record: TrackingRecord,
        pending_event_id: str,
        config: TrackerConfig,
        error: TransientError,
    ) -> None:
        error_count = record.error_count + 1
        logger.warning(
            "poll_failed",
            tracking_key=record.tracking_key,
            execution_id=record.execution_id,
            attempt=error_count,
            max_retries=config.max_retries,
            error=str(error),
        )

        if error_count >= config.max_retries:
            self.sink.cancel_pending(
                pending_event_id,
                f"Polling failed after {config.max_retries} consecutive attempts",
            )
            self.store.delete([record.tracking_key])
            logger.error(
                "poll_retry_exhausted",
                tracking_key=record.tracking_key,
                execution_id=record.execution_id,
                max_retries=config.max_retries,
            )
            return

        self.store.set(record.tracking_key, record.with_error_count(error_count))
        self.sink.update_pending(
            pending_event_id,
            description=(
                f"Error polling execution {record.execution_id}, "
                f"retrying ({error_count}/{config.max_retries})..."
            ),
        )
        self.scheduler.schedule(
            config.poll_interval,
            record.tracking_key,
            pending_event_id,
            f"Retrying poll for execution {record.execution_id}",
        )

    def _schedule_next(
        self,
        record: TrackingRecord,
        pending_event_id: str,
        config: TrackerConfig,
    ) -> None:
        self.scheduler.schedule(
            config.poll_interval,
            record.tracking_key,
            pending_event_id,
            f"Polling execution {record.execution_id}",
        )


__all__ = ["StatusSource", "ExecutionTracker"]
