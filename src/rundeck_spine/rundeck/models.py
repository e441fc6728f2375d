"""Pydantic models for the Rundeck API payloads this package reads.

Only the fields that are mapped into emitted events are declared; unknown
fields are ignored so API upgrades do not break parsing.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _RundeckModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RundeckProject(_RundeckModel):
    name: str
    url: str | None = None
    description: str | None = None
    label: str | None = None


class RundeckJob(_RundeckModel):
    id: str
    name: str
    group: str | None = ""
    project: str
    description: str | None = ""
    href: str | None = None
    permalink: str | None = None
    scheduled: bool = False
    schedule_enabled: bool = Field(default=False, alias="scheduleEnabled")
    enabled: bool = True
    average_duration: int | None = Field(default=None, alias="averageDuration")


class ExecutionDate(_RundeckModel):
    unixtime: int
    date: str


class ExecutionJob(_RundeckModel):
    id: str
    name: str
    group: str | None = ""
    project: str
    description: str | None = None
    href: str | None = None
    permalink: str | None = None
    average_duration: int | None = Field(default=None, alias="averageDuration")


class RundeckExecution(_RundeckModel):
    """One execution as returned by ``GET execution/{id}`` and ``POST job/{id}/executions``."""

    id: int
    href: str | None = None
    permalink: str | None = None
    status: str
    custom_status: str | None = Field(default=None, alias="customStatus")
    project: str
    user: str | None = None
    server_uuid: str | None = Field(default=None, alias="serverUUID")
    date_started: ExecutionDate | None = Field(default=None, alias="date-started")
    date_ended: ExecutionDate | None = Field(default=None, alias="date-ended")
    job: ExecutionJob | None = None
    description: str | None = None
    argstring: str | None = None
    successful_nodes: list[str] | None = Field(default=None, alias="successfulNodes")
    failed_nodes: list[str] | None = Field(default=None, alias="failedNodes")


class Paging(_RundeckModel):
    count: int
    total: int
    offset: int
    max: int


class ExecutionsPage(_RundeckModel):
    paging: Paging
    executions: list[RundeckExecution]


class RunJobRequest(_RundeckModel):
    """Body of ``POST job/{id}/executions``."""

    loglevel: str = "INFO"
    options: dict[str, Any] | None = None
    filter: str | None = None


def map_execution(execution: RundeckExecution) -> dict[str, Any]:
    """Flatten an execution into the event payload consumers receive."""
    job = execution.job
    return {
        "id": execution.id,
        "href": execution.href,
        "permalink": execution.permalink,
        "status": execution.status,
        "customStatus": execution.custom_status,
        "project": execution.project,
        "user": execution.user,
        "dateStarted": execution.date_started.date if execution.date_started else None,
        "dateEnded": execution.date_ended.date if execution.date_ended else None,
        "job": {
            "id": job.id,
            "name": job.name,
            "group": job.group,
            "project": job.project,
            "description": job.description,
            "averageDuration": job.average_duration,
        } if job else None,
        "description": execution.description,
        "argstring": execution.argstring,
        "successfulNodes": execution.successful_nodes,
        "failedNodes": execution.failed_nodes,
    }


def map_job(job: RundeckJob) -> dict[str, Any]:
    return {
        "id": job.id,
        "name": job.name,
        "group": job.group,
        "project": job.project,
        "description": job.description,
        "href": job.href,
        "permalink": job.permalink,
        "scheduled": job.scheduled,
        "scheduleEnabled": job.schedule_enabled,
        "enabled": job.enabled,
        "averageDuration": job.average_duration,
    }


__all__ = [
    "RundeckProject",
    "RundeckJob",
    "ExecutionDate",
    "ExecutionJob",
    "RundeckExecution",
    "Paging",
    "ExecutionsPage",
    "RunJobRequest",
    "map_execution",
    "map_job",
]
