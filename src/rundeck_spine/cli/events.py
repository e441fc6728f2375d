"""
CLI: ``rundeck-spine events``, read back emitted events and placeholders.
"""

from __future__ import annotations

import typer

from rundeck_spine.cli.utils import cli_session, output_result
from rundeck_spine.ops.result import OperationResult

app = typer.Typer(no_args_is_help=True)


@app.command("list")
def list_(
    channel: str | None = typer.Option(None, "--channel", "-c"),
    limit: int = typer.Option(50, "--limit", "-n"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List recently emitted events."""
    with cli_session(with_client=False) as (_, runtime):
        events = runtime.sink.list_events(channel=channel, limit=limit)
    rows = [
        {
            "id": e.id,
            "channel": e.channel,
            "execution": e.event.get("id"),
            "status": e.event.get("status"),
            "completes": e.complete or "",
            "created_at": e.created_at.isoformat(),
        }
        for e in events
    ]
    output_result(OperationResult.ok(rows), as_json=json_out, title="Events")


@app.command("pending")
def pending(
    all_states: bool = typer.Option(False, "--all", help="Include completed and cancelled"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List pending placeholders."""
    from rundeck_spine.tracking import PendingState

    with cli_session(with_client=False) as (_, runtime):
        placeholders = runtime.sink.list_pending(state=None if all_states else PendingState.PENDING)
    rows = [
        {
            "id": p.id,
            "channel": p.channel,
            "state": p.state.value,
            "description": p.description,
            "reason": p.reason or "",
        }
        for p in placeholders
    ]
    output_result(OperationResult.ok(rows), as_json=json_out, title="Pending events")
