"""
Typed request objects for operations.

Each dataclass is the input contract of one operation function. Requests
carry only transport-agnostic data: no raw HTTP bodies, no Typer params.
"""

from __future__ import annotations

from dataclasses import dataclass

# ------------------------------------------------------------------ #
# Execution operations
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class GetExecutionRequest:
    """Request for :func:`rundeck_spine.ops.executions.get_execution`."""

    execution_id: int


@dataclass(frozen=True, slots=True)
class ListExecutionsRequest:
    """Request for :func:`rundeck_spine.ops.executions.list_executions`.

    Attributes:
        project: Rundeck project name.
        status: Optional status filter; one of the known execution statuses.
        max: Page size (default 20).
        offset: Zero-based offset.
    """

    project: str
    status: str | None = None
    max: int = 20
    offset: int = 0


@dataclass(frozen=True, slots=True)
class SubscribeRequest:
    """Request for :func:`rundeck_spine.ops.executions.subscribe_to_execution`.

    Attributes:
        execution_id: Rundeck execution ID.
        poll_interval: Seconds between polls for this tracker; ``None`` uses settings.
        max_retries: Retry budget for this tracker; ``None`` uses settings.
    """

    execution_id: int
    poll_interval: float | None = None
    max_retries: int | None = None


# ------------------------------------------------------------------ #
# Job operations
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class ListJobsRequest:
    """Request for :func:`rundeck_spine.ops.jobs.list_jobs`.

    Attributes:
        project: Rundeck project name.
        job_filter: Substring match on job name.
        group_path: Group path filter (``"*"`` for all groups).
    """

    project: str
    job_filter: str | None = None
    group_path: str | None = None


@dataclass(frozen=True, slots=True)
class RunJobRequest:
    """Request for :func:`rundeck_spine.ops.jobs.run_job`.

    Attributes:
        job_id: Rundeck job UUID.
        options: JSON object of job options, as a string.
        node_filter: Override of the job's node filter.
        log_level: Execution log level.
        track: Start a tracker after triggering; ``None`` uses settings.
        poll_interval: Seconds between polls for this tracker; ``None`` uses settings.
        max_retries: Retry budget for this tracker; ``None`` uses settings.
    """

    job_id: str
    options: str | None = None
    node_filter: str | None = None
    log_level: str = "INFO"
    track: bool | None = None
    poll_interval: float | None = None
    max_retries: int | None = None


# ------------------------------------------------------------------ #
# Tracking operations
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class TimerRequest:
    """One scheduled wake delivered to :func:`rundeck_spine.ops.tracking.handle_timer`."""

    tracking_key: str
    pending_event_id: str | None = None
