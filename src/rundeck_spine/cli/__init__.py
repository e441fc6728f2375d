"""Command-line interface (``rundeck-spine``)."""
