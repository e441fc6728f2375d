"""Rundeck execution statuses and the terminal-status classifier.

This is the only place that knows which statuses end an execution. The
tracker, the ops layer and the CLI all import from here.

Status graph as seen by the tracker::

    scheduled → running → succeeded | failed | failed-with-retry
                        | aborted | timedout

``other`` (custom status) and any unknown string are treated as still
running; polling continues until a terminal status shows up or the
tracker is evicted.
"""

from __future__ import annotations

from enum import Enum


class ExecutionStatus(str, Enum):
    """Statuses reported by the Rundeck execution API."""

    RUNNING = "running"
    SCHEDULED = "scheduled"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    FAILED_WITH_RETRY = "failed-with-retry"
    ABORTED = "aborted"
    TIMEDOUT = "timedout"
    OTHER = "other"


TERMINAL_STATUSES: frozenset[str] = frozenset(
    {
        ExecutionStatus.SUCCEEDED.value,
        ExecutionStatus.FAILED.value,
        ExecutionStatus.FAILED_WITH_RETRY.value,
        ExecutionStatus.ABORTED.value,
        ExecutionStatus.TIMEDOUT.value,
    }
)


def is_terminal(status: str) -> bool:
    """Return True if ``status`` is one the remote job never leaves."""
    if isinstance(status, ExecutionStatus):
        status = status.value
    return status in TERMINAL_STATUSES


__all__ = ["ExecutionStatus", "TERMINAL_STATUSES", "is_terminal"]
