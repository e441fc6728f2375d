"""
Execution operations: fetch, list, subscribe.
"""

from __future__ import annotations

from typing import Any

from rundeck_spine.core.errors import PayloadError, TrackerError
from rundeck_spine.core.logging import get_logger
from rundeck_spine.core.statuses import ExecutionStatus
from rundeck_spine.rundeck.models import map_execution
from rundeck_spine.tracking import TrackerConfig
from rundeck_spine.ops.context import OperationContext
from rundeck_spine.ops.requests import (
    GetExecutionRequest,
    ListExecutionsRequest,
    SubscribeRequest,
)
from rundeck_spine.ops.result import OperationResult, start_timer

logger = get_logger(__name__)

DEFAULT_CHANNEL = "default"

_KNOWN_STATUSES = {s.value for s in ExecutionStatus}


def tracker_config_for(
    ctx: OperationContext,
    channel: str,
    poll_interval: float | None = None,
    max_retries: int | None = None,
) -> TrackerConfig:
    """Settings-derived tracker config with per-request overrides applied."""
    try:
        return ctx.settings.tracker_config(channel).override(
            poll_interval=poll_interval, max_retries=max_retries
        )
    except ValueError as exc:
        raise PayloadError(str(exc), cause=exc) from exc


def get_execution(
    ctx: OperationContext,
    request: GetExecutionRequest,
) -> OperationResult[dict[str, Any]]:
    """Fetch one execution and return its event payload form."""
    timer = start_timer()
    try:
        execution = ctx.require_client().get_execution(request.execution_id)
    except TrackerError as exc:
        logger.warning("op_failed", op="get_execution", **exc.to_dict())
        return OperationResult.from_error(exc, elapsed_ms=timer.elapsed_ms)
    return OperationResult.ok(map_execution(execution), elapsed_ms=timer.elapsed_ms)


def list_executions(
    ctx: OperationContext,
    request: ListExecutionsRequest,
) -> OperationResult[dict[str, Any]]:
    """List a project's executions with Rundeck's paging block."""
    timer = start_timer()

    if request.status and request.status not in _KNOWN_STATUSES:
        return OperationResult.fail(
            "VALIDATION_FAILED",
            f"Unknown status filter '{request.status}'",
            details={"allowed": sorted(_KNOWN_STATUSES)},
            elapsed_ms=timer.elapsed_ms,
        )
    if request.max < 1 or request.offset < 0:
        return OperationResult.fail(
            "VALIDATION_FAILED",
            "max must be >= 1 and offset must be >= 0",
            elapsed_ms=timer.elapsed_ms,
        )

    try:
        page = ctx.require_client().list_executions(
            request.project,
            status=request.status,
            max_results=request.max,
            offset=request.offset,
        )
    except TrackerError as exc:
        logger.warning("op_failed", op="list_executions", **exc.to_dict())
        return OperationResult.from_error(exc, elapsed_ms=timer.elapsed_ms)

    return OperationResult.ok(
        {
            "project": request.project,
            "paging": page.paging.model_dump(),
            "executions": [map_execution(e) for e in page.executions],
        },
        elapsed_ms=timer.elapsed_ms,
    )


def subscribe_to_execution(
    ctx: OperationContext,
    request: SubscribeRequest,
) -> OperationResult[dict[str, Any]]:
    """Start tracking an existing execution on the ``default`` channel.

    Returns the tracking key, or ``None`` for it when the execution had
    already finished and its final state was emitted straight away.
    """
    timer = start_timer()
    try:
        tracker_config_for(ctx, DEFAULT_CHANNEL, request.poll_interval, request.max_retries)
        execution = ctx.require_client().get_execution(request.execution_id)
    except TrackerError as exc:
        logger.warning("op_failed", op="subscribe_to_execution", **exc.to_dict())
        return OperationResult.from_error(exc, elapsed_ms=timer.elapsed_ms)

    tracking_key = ctx.tracker.start(
        execution,
        parent_event_id=ctx.request_id,
        config=ctx.settings.tracker_config(DEFAULT_CHANNEL),
        poll_interval=request.poll_interval,
        max_retries=request.max_retries,
    )
    return OperationResult.ok(
        {
            "execution_id": execution.id,
            "status": execution.status,
            "tracking_key": tracking_key,
        },
        elapsed_ms=timer.elapsed_ms,
    )


__all__ = [
    "DEFAULT_CHANNEL",
    "tracker_config_for",
    "get_execution",
    "list_executions",
    "subscribe_to_execution",
]
