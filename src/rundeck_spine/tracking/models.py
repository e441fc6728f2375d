"""Tracking domain models.

- TrackingRecord: durable state of one active poll loop
- TrackerConfig: per-call tracking configuration
- ScheduledWake: one pending activation handed out by a scheduler
- ListPage: one page of a prefix scan over a tracking store
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from rundeck_spine.core.timestamps import from_epoch_ms, to_epoch_ms, utc_now

TRACKING_PREFIX = "tracking:"


def tracking_key_for(parent_event_id: str) -> str:
    """Derive the tracking key from the originating request's event id."""
    return f"{TRACKING_PREFIX}{parent_event_id}"


@dataclass(frozen=True, slots=True)
class TrackerConfig:
    """Configuration passed explicitly into every tracker call.

    Attributes:
        poll_interval: Seconds between scheduled wakes.
        max_retries: Consecutive fetch failures before the tracker gives up.
        channel: Output channel for trackers started with this config.
    """

    poll_interval: float = 5.0
    max_retries: int = 3
    channel: str = "default"

    def __post_init__(self) -> None:
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {self.max_retries}")

    def override(
        self,
        *,
        poll_interval: float | None = None,
        max_retries: int | None = None,
        channel: str | None = None,
    ) -> TrackerConfig:
        """Copy with the given fields replaced; ``None`` keeps the current value."""
        return replace(
            self,
            poll_interval=self.poll_interval if poll_interval is None else poll_interval,
            max_retries=self.max_retries if max_retries is None else max_retries,
            channel=self.channel if channel is None else channel,
        )


@dataclass(slots=True)
class TrackingRecord:
    """Durable state of one in-flight tracker.

    Serialised with :meth:`to_dict` into the camelCase JSON layout stored
    under ``tracking_key``; ``createdAt`` is epoch milliseconds.
    ``channel`` is the output channel chosen at start; every later poll
    publishes there. ``poll_interval`` and ``max_retries`` are set only when
    the tracker was started with its own values; otherwise each poll uses
    the config it is called with.
    """

    tracking_key: str
    execution_id: int
    pending_event_id: str
    last_status: str
    parent_event_id: str
    created_at: datetime = field(default_factory=utc_now)
    error_count: int = 0
    channel: str = "default"
    poll_interval: float | None = None
    max_retries: int | None = None

    def resolve_config(self, config: TrackerConfig) -> TrackerConfig:
        """The config this tracker polls with: its own values over ``config``."""
        return config.override(
            poll_interval=self.poll_interval,
            max_retries=self.max_retries,
            channel=self.channel,
        )

    def with_status(self, status: str) -> TrackingRecord:
        """Copy with a freshly observed status and a reset error counter."""
        return replace(self, last_status=status, error_count=0)

    def with_error_count(self, error_count: int) -> TrackingRecord:
        return replace(self, error_count=error_count)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "executionId": self.execution_id,
            "pendingEventId": self.pending_event_id,
            "lastStatus": self.last_status,
            "parentEventId": self.parent_event_id,
            "createdAt": to_epoch_ms(self.created_at),
            "errorCount": self.error_count,
            "channel": self.channel,
        }
        if self.poll_interval is not None:
            data["pollInterval"] = self.poll_interval
        if self.max_retries is not None:
            data["maxRetries"] = self.max_retries
        return data

    @classmethod
    def from_dict(cls, tracking_key: str, data: dict[str, Any]) -> TrackingRecord:
        return cls(
            tracking_key=tracking_key,
            execution_id=data["executionId"],
            pending_event_id=data["pendingEventId"],
            last_status=data["lastStatus"],
            parent_event_id=data["parentEventId"],
            created_at=from_epoch_ms(data["createdAt"]),
            error_count=data.get("errorCount") or 0,
            channel=data.get("channel") or "default",
            poll_interval=data.get("pollInterval"),
            max_retries=data.get("maxRetries"),
        )


@dataclass(frozen=True, slots=True)
class ScheduledWake:
    """A one-shot delayed activation.

    Attributes:
        id: Scheduler-assigned identifier.
        fire_at: When the wake becomes due.
        payload: Opaque payload (the tracking key).
        pending_event_id: Placeholder the wake is correlated with.
        description: Human-readable purpose, for operators.
    """

    id: str
    fire_at: datetime
    payload: str
    pending_event_id: str | None
    description: str = ""


@dataclass(frozen=True, slots=True)
class ListPage:
    """One page of a prefix scan.

    ``next_cursor`` is the key to resume from, or ``None`` on the last page.
    """

    pairs: list[tuple[str, TrackingRecord]]
    next_cursor: str | None = None


__all__ = [
    "TRACKING_PREFIX",
    "tracking_key_for",
    "TrackerConfig",
    "TrackingRecord",
    "ScheduledWake",
    "ListPage",
]
