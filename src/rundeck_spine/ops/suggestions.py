"""
Autocomplete suggestions for project and job inputs.

Suggestions are best-effort: any failure is logged and an empty list is
returned so an input form never breaks because Rundeck is unreachable.
"""

from __future__ import annotations

from dataclasses import dataclass

from rundeck_spine.core.errors import TrackerError
from rundeck_spine.core.logging import get_logger
from rundeck_spine.ops.context import OperationContext

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Suggestion:
    label: str
    value: str


def _matches(search: str | None, *candidates: str | None) -> bool:
    if not search:
        return True
    needle = search.lower()
    return any(c and needle in c.lower() for c in candidates)


def suggest_projects(ctx: OperationContext, search: str | None = None) -> list[Suggestion]:
    """Projects whose name or label contains ``search`` (case-insensitive)."""
    try:
        projects = ctx.require_client().list_projects()
    except TrackerError as exc:
        logger.error("suggest_projects_failed", error=str(exc))
        return []

    suggestions = [
        Suggestion(label=p.label or p.name, value=p.name)
        for p in projects
        if _matches(search, p.name, p.label)
    ]
    logger.debug("suggest_projects", search=search, fetched=len(projects), returned=len(suggestions))
    return suggestions


def suggest_jobs(
    ctx: OperationContext,
    project: str | None,
    search: str | None = None,
) -> list[Suggestion]:
    """Jobs of ``project`` whose name or group contains ``search``."""
    if not project:
        return []
    try:
        jobs = ctx.require_client().list_jobs(project)
    except TrackerError as exc:
        logger.error("suggest_jobs_failed", project=project, error=str(exc))
        return []

    return [
        Suggestion(label=f"{j.group}/{j.name}" if j.group else j.name, value=j.id)
        for j in jobs
        if _matches(search, j.name, j.group)
    ]


__all__ = ["Suggestion", "suggest_projects", "suggest_jobs"]
