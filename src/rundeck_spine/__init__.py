"""rundeck-spine: push-style notifications for long-running Rundeck executions."""

__version__ = "0.1.0"
