"""
CLI: ``rundeck-spine tracking``, inspect trackers, scavenge, run the worker.
"""

from __future__ import annotations

import typer

from rundeck_spine.cli.utils import cli_session, console, err_console, output_paged, output_result
from rundeck_spine.core.errors import MissingConfigError

app = typer.Typer(no_args_is_help=True)


@app.command("list")
def list_(json_out: bool = typer.Option(False, "--json")) -> None:
    """List active trackers."""
    from rundeck_spine.ops.tracking import list_tracking

    with cli_session(with_client=False) as (ctx, _):
        result = list_tracking(ctx)
    output_paged(result, as_json=json_out, title="Active trackers")


@app.command("cleanup")
def cleanup(json_out: bool = typer.Option(False, "--json")) -> None:
    """Evict trackers older than 24 hours."""
    from rundeck_spine.ops.tracking import cleanup_tracking

    with cli_session(with_client=False) as (ctx, _):
        result = cleanup_tracking(ctx)
    output_result(result, as_json=json_out, title="Cleanup")


@app.command("worker")
def worker(
    tick: float | None = typer.Option(None, "--tick", help="Seconds between ticks"),
    cleanup_interval: float | None = typer.Option(None, "--cleanup-interval", help="Seconds between scavenger runs"),
) -> None:
    """Deliver scheduled polls and run the scavenger until interrupted."""
    from rundeck_spine.ops.tracking import make_wake_handler
    from rundeck_spine.tracking import TrackingWorker

    with cli_session() as (ctx, runtime):
        try:
            ctx.require_client()
        except MissingConfigError as exc:
            err_console.print(f"[bold red]Error[/bold red] (CONFIG_MISSING): {exc.message}")
            raise typer.Exit(code=1) from None
        ctx.caller = "worker"
        loop = TrackingWorker(
            runtime.timers,
            make_wake_handler(ctx),
            runtime.scavenger,
            tick_interval=tick or ctx.settings.worker_tick,
            cleanup_interval=cleanup_interval or ctx.settings.cleanup_interval,
        )
        console.print("[green]Tracking worker running[/green] (Ctrl+C to stop)")
        try:
            loop.run_forever()
        except KeyboardInterrupt:
            console.print("[dim]Stopping...[/dim]")
        finally:
            loop.stop()
