"""
CLI: ``rundeck-spine jobs``, list and run jobs.
"""

from __future__ import annotations

import json

import typer

from rundeck_spine.cli.utils import cli_session, output_result, print_table

app = typer.Typer(no_args_is_help=True)


def _options_json(pairs: list[str]) -> str | None:
    if not pairs:
        return None
    options: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected KEY=VALUE, got '{pair}'", param_hint="--option")
        options[key] = value
    return json.dumps(options)


@app.command("list")
def list_(
    project: str = typer.Argument(..., help="Rundeck project"),
    job_filter: str | None = typer.Option(None, "--filter", "-f", help="Job name contains"),
    group_path: str | None = typer.Option(None, "--group", "-g", help="Group path, '*' for all"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List jobs in a project."""
    from rundeck_spine.ops.jobs import list_jobs
    from rundeck_spine.ops.requests import ListJobsRequest

    request = ListJobsRequest(project=project, job_filter=job_filter, group_path=group_path)
    with cli_session() as (ctx, _):
        result = list_jobs(ctx, request)

    if json_out or not result.success:
        output_result(result, as_json=json_out)
        return

    jobs = result.data["jobs"]
    if not jobs:
        typer.echo("No jobs.")
        return
    print_table(
        [{"id": j["id"], "group": j["group"], "name": j["name"], "enabled": j["enabled"]} for j in jobs],
        title=f"Jobs in {project}",
    )


@app.command("run")
def run(
    job_id: str = typer.Argument(..., help="Rundeck job UUID"),
    option: list[str] = typer.Option([], "--option", "-o", help="Job option KEY=VALUE (repeatable)"),
    options_json: str | None = typer.Option(None, "--options-json", help="Job options as a JSON object"),
    node_filter: str | None = typer.Option(None, "--node-filter"),
    log_level: str = typer.Option("INFO", "--log-level"),
    track: bool | None = typer.Option(None, "--track/--no-track", help="Track the execution"),
    poll_interval: float | None = typer.Option(None, "--poll-interval", help="Seconds between polls for this tracker"),
    max_retries: int | None = typer.Option(None, "--max-retries", help="Consecutive poll failures before giving up"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Trigger a job."""
    from rundeck_spine.ops.jobs import run_job
    from rundeck_spine.ops.requests import RunJobRequest

    request = RunJobRequest(
        job_id=job_id,
        options=options_json or _options_json(option),
        node_filter=node_filter,
        log_level=log_level,
        track=track,
        poll_interval=poll_interval,
        max_retries=max_retries,
    )
    with cli_session() as (ctx, _):
        result = run_job(ctx, request)
    output_result(result, as_json=json_out, title="Job submitted")
