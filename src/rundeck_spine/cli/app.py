"""
Root Typer application for the rundeck-spine CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

app = Typer(
    name="rundeck-spine",
    help="rundeck-spine: run, watch and subscribe to Rundeck executions.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from rundeck_spine import __version__

        typer.echo(f"rundeck-spine {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Override RUNDECK_LOG_LEVEL."),
) -> None:
    """rundeck-spine CLI: jobs, executions, trackers and events."""
    from rundeck_spine.core.logging import configure_logging
    from rundeck_spine.core.settings import get_settings

    settings = get_settings()
    configure_logging(level=log_level or settings.log_level, json_format=settings.log_json)


# ── Sub-command registration ─────────────────────────────────────────────

from rundeck_spine.cli.events import app as events_app  # noqa: E402
from rundeck_spine.cli.executions import app as executions_app  # noqa: E402
from rundeck_spine.cli.jobs import app as jobs_app  # noqa: E402
from rundeck_spine.cli.tracking import app as tracking_app  # noqa: E402

app.add_typer(executions_app, name="executions", help="Execution commands.")
app.add_typer(jobs_app, name="jobs", help="Job commands.")
app.add_typer(tracking_app, name="tracking", help="Tracker inspection and the poll worker.")
app.add_typer(events_app, name="events", help="Emitted events and pending placeholders.")


if __name__ == "__main__":
    app()
