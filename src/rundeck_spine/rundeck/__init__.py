"""Rundeck REST API client and payload models."""

from .client import RundeckClient
from .models import (
    ExecutionsPage,
    RundeckExecution,
    RundeckJob,
    RundeckProject,
    RunJobRequest,
    map_execution,
    map_job,
)

__all__ = [
    "RundeckClient",
    "ExecutionsPage",
    "RundeckExecution",
    "RundeckJob",
    "RundeckProject",
    "RunJobRequest",
    "map_execution",
    "map_job",
]
