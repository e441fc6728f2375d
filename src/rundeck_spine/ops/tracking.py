"""
Tracking operations: wake handling, scavenging and inspection.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from rundeck_spine.core.logging import LogContext, get_logger
from rundeck_spine.tracking import TRACKING_PREFIX, CleanupReport, ScheduledWake
from rundeck_spine.ops.context import OperationContext
from rundeck_spine.ops.requests import TimerRequest
from rundeck_spine.ops.result import OperationResult, PagedResult, start_timer

logger = get_logger(__name__)


def handle_timer(ctx: OperationContext, request: TimerRequest) -> OperationResult[None]:
    """Deliver one scheduled wake to the tracker.

    A wake without a placeholder id is logged and dropped; the tracker
    itself treats a missing record as already resolved. Without a Rundeck
    client the wake is put back one poll interval later, so the tracker
    keeps its poll loop until the API is configured or the scavenger
    evicts it.
    """
    timer = start_timer()

    if not request.pending_event_id:
        logger.error("timer_missing_pending_event", tracking_key=request.tracking_key)
        return OperationResult.ok(None, warnings=["missing pending event id"], elapsed_ms=timer.elapsed_ms)

    client = ctx.client
    if client is None:
        _defer_wake(ctx, request)
        return OperationResult.fail(
            "CONFIG_MISSING",
            "Rundeck API is not configured (set RUNDECK_URL and RUNDECK_API_TOKEN)",
            elapsed_ms=timer.elapsed_ms,
        )

    with LogContext(tracking_key=request.tracking_key, request_id=ctx.request_id):
        ctx.tracker.poll(
            request.tracking_key,
            request.pending_event_id,
            client,
            ctx.settings.tracker_config(),
        )
    return OperationResult.ok(None, elapsed_ms=timer.elapsed_ms)


def _defer_wake(ctx: OperationContext, request: TimerRequest) -> None:
    record = ctx.tracker.store.get(request.tracking_key)
    if record is None:
        logger.error("timer_client_unconfigured", tracking_key=request.tracking_key)
        return
    config = record.resolve_config(ctx.settings.tracker_config())
    ctx.tracker.scheduler.schedule(
        config.poll_interval,
        request.tracking_key,
        request.pending_event_id,
        f"Waiting for Rundeck API configuration (execution {record.execution_id})",
    )
    logger.error(
        "timer_client_unconfigured",
        tracking_key=request.tracking_key,
        retry_in=config.poll_interval,
    )


def make_wake_handler(ctx: OperationContext):
    """Adapt :func:`handle_timer` to the worker's ``on_wake`` callback."""

    def _on_wake(wake: ScheduledWake) -> None:
        handle_timer(
            ctx,
            TimerRequest(tracking_key=wake.payload, pending_event_id=wake.pending_event_id),
        )

    return _on_wake


def cleanup_tracking(ctx: OperationContext) -> OperationResult[dict[str, Any]]:
    """Run the scavenger once."""
    timer = start_timer()
    if ctx.scavenger is None:
        return OperationResult.fail(
            "CONFIG_MISSING", "No scavenger configured", elapsed_ms=timer.elapsed_ms
        )
    report: CleanupReport = ctx.scavenger.cleanup()
    result = OperationResult.ok(asdict(report), elapsed_ms=timer.elapsed_ms)
    if report.page_cap_hit:
        result.warnings.append("page cap reached before the scan finished")
    return result


def list_tracking(ctx: OperationContext) -> PagedResult[dict[str, Any]]:
    """List every active tracker."""
    timer = start_timer()
    items: list[dict[str, Any]] = []
    cursor: str | None = None
    while True:
        page = ctx.tracker.store.list(TRACKING_PREFIX, cursor)
        for key, record in page.pairs:
            items.append(
                {
                    "tracking_key": key,
                    "execution_id": record.execution_id,
                    "last_status": record.last_status,
                    "channel": record.channel,
                    "error_count": record.error_count,
                    "created_at": record.created_at.isoformat(),
                    "pending_event_id": record.pending_event_id,
                }
            )
        if not page.next_cursor:
            break
        cursor = page.next_cursor
    return PagedResult.from_items(
        items, total=len(items), limit=max(len(items), 1), elapsed_ms=timer.elapsed_ms
    )


__all__ = ["handle_timer", "make_wake_handler", "cleanup_tracking", "list_tracking"]
