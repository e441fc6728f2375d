"""
Job operations: list and run.

``run_job`` emits the freshly submitted execution on the ``default``
channel right away, then (unless tracking is disabled) hands the execution
to the tracker, which reports every later status change on the
``stateChanged`` channel.
"""

from __future__ import annotations

import json
from typing import Any

from rundeck_spine.core.errors import PayloadError, TrackerError
from rundeck_spine.core.logging import get_logger
from rundeck_spine.rundeck.models import RunJobRequest as RundeckRunJobBody
from rundeck_spine.rundeck.models import map_execution, map_job
from rundeck_spine.ops.context import OperationContext
from rundeck_spine.ops.executions import DEFAULT_CHANNEL, tracker_config_for
from rundeck_spine.ops.requests import ListJobsRequest, RunJobRequest
from rundeck_spine.ops.result import OperationResult, start_timer

logger = get_logger(__name__)

STATE_CHANGED_CHANNEL = "stateChanged"


def list_jobs(
    ctx: OperationContext,
    request: ListJobsRequest,
) -> OperationResult[dict[str, Any]]:
    """List the jobs of a project, optionally filtered by name or group."""
    timer = start_timer()
    try:
        jobs = ctx.require_client().list_jobs(
            request.project,
            job_filter=request.job_filter,
            group_path=request.group_path,
        )
    except TrackerError as exc:
        logger.warning("op_failed", op="list_jobs", **exc.to_dict())
        return OperationResult.from_error(exc, elapsed_ms=timer.elapsed_ms)

    return OperationResult.ok(
        {
            "project": request.project,
            "total": len(jobs),
            "jobs": [map_job(job) for job in jobs],
        },
        elapsed_ms=timer.elapsed_ms,
    )


def _parse_options(raw: str | None) -> dict[str, Any] | None:
    if not raw:
        return None
    try:
        options = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise PayloadError(f"Job options are not valid JSON: {exc.msg}", cause=exc) from exc
    if not isinstance(options, dict):
        raise PayloadError("Job options must be a JSON object")
    return options


def run_job(
    ctx: OperationContext,
    request: RunJobRequest,
) -> OperationResult[dict[str, Any]]:
    """Trigger a job and optionally track its execution until completion."""
    timer = start_timer()

    try:
        tracker_config_for(ctx, STATE_CHANGED_CHANNEL, request.poll_interval, request.max_retries)
        body = RundeckRunJobBody(
            loglevel=request.log_level,
            options=_parse_options(request.options),
            filter=request.node_filter or None,
        )
        execution = ctx.require_client().run_job(request.job_id, body)
    except TrackerError as exc:
        logger.warning("op_failed", op="run_job", job_id=request.job_id, **exc.to_dict())
        return OperationResult.from_error(exc, elapsed_ms=timer.elapsed_ms)

    event = map_execution(execution)
    ctx.tracker.sink.emit(event, DEFAULT_CHANNEL)
    logger.info("job_submitted", job_id=request.job_id, execution_id=execution.id)

    track = ctx.settings.track_execution if request.track is None else request.track
    tracking_key = None
    if track:
        tracking_key = ctx.tracker.start(
            execution,
            parent_event_id=ctx.request_id,
            config=ctx.settings.tracker_config(STATE_CHANGED_CHANNEL),
            poll_interval=request.poll_interval,
            max_retries=request.max_retries,
        )

    return OperationResult.ok(
        {"execution": event, "tracking_key": tracking_key},
        elapsed_ms=timer.elapsed_ms,
    )


__all__ = ["STATE_CHANGED_CHANNEL", "list_jobs", "run_job"]
