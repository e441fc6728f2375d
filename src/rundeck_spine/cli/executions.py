"""
CLI: ``rundeck-spine executions``, fetch, list and subscribe to executions.
"""

from __future__ import annotations

import typer

from rundeck_spine.cli.utils import cli_session, output_result, print_table

app = typer.Typer(no_args_is_help=True)


@app.command("get")
def get(
    execution_id: int = typer.Argument(..., help="Rundeck execution ID"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show one execution."""
    from rundeck_spine.ops.executions import get_execution
    from rundeck_spine.ops.requests import GetExecutionRequest

    with cli_session() as (ctx, _):
        result = get_execution(ctx, GetExecutionRequest(execution_id=execution_id))
    output_result(result, as_json=json_out, title=f"Execution {execution_id}")


@app.command("list")
def list_(
    project: str = typer.Argument(..., help="Rundeck project"),
    status: str | None = typer.Option(None, "--status", "-s", help="Status filter"),
    max_results: int = typer.Option(20, "--max", "-n"),
    offset: int = typer.Option(0, "--offset"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List executions of a project."""
    from rundeck_spine.ops.executions import list_executions
    from rundeck_spine.ops.requests import ListExecutionsRequest

    request = ListExecutionsRequest(project=project, status=status, max=max_results, offset=offset)
    with cli_session() as (ctx, _):
        result = list_executions(ctx, request)

    if json_out or not result.success:
        output_result(result, as_json=json_out)
        return

    rows = [
        {
            "id": e["id"],
            "status": e["status"],
            "job": (e["job"] or {}).get("name"),
            "user": e["user"],
            "started": e["dateStarted"],
        }
        for e in result.data["executions"]
    ]
    if rows:
        print_table(rows, title=f"Executions in {project}")
    paging = result.data["paging"]
    typer.echo(f"{paging['count']} of {paging['total']} (offset {paging['offset']})")


@app.command("subscribe")
def subscribe(
    execution_id: int = typer.Argument(..., help="Rundeck execution ID"),
    poll_interval: float | None = typer.Option(None, "--poll-interval", help="Seconds between polls for this tracker"),
    max_retries: int | None = typer.Option(None, "--max-retries", help="Consecutive poll failures before giving up"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Track an execution until it finishes (run ``tracking worker`` to deliver polls)."""
    from rundeck_spine.ops.executions import subscribe_to_execution
    from rundeck_spine.ops.requests import SubscribeRequest

    with cli_session() as (ctx, _):
        request = SubscribeRequest(
            execution_id=execution_id, poll_interval=poll_interval, max_retries=max_retries
        )
        result = subscribe_to_execution(ctx, request)
    output_result(result, as_json=json_out, title="Subscription")
