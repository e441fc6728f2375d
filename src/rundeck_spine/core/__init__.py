"""Platform primitives: errors, logging, settings, statuses, storage."""
