"""
Operations layer: typed, transport-agnostic functions behind the CLI.

Every function takes an :class:`OperationContext` and a request dataclass
and returns an :class:`OperationResult`.
"""

from rundeck_spine.ops.context import OperationContext, Runtime, make_context, open_runtime
from rundeck_spine.ops.executions import get_execution, list_executions, subscribe_to_execution
from rundeck_spine.ops.jobs import list_jobs, run_job
from rundeck_spine.ops.result import OperationError, OperationResult, PagedResult
from rundeck_spine.ops.suggestions import Suggestion, suggest_jobs, suggest_projects
from rundeck_spine.ops.tracking import cleanup_tracking, handle_timer, list_tracking, make_wake_handler

__all__ = [
    "OperationContext",
    "Runtime",
    "make_context",
    "open_runtime",
    "get_execution",
    "list_executions",
    "subscribe_to_execution",
    "list_jobs",
    "run_job",
    "OperationError",
    "OperationResult",
    "PagedResult",
    "Suggestion",
    "suggest_jobs",
    "suggest_projects",
    "cleanup_tracking",
    "handle_timer",
    "list_tracking",
    "make_wake_handler",
]
