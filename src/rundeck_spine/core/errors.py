"""
Structured error types for rundeck-spine.

Errors carry a category, an explicit ``retryable`` flag and structured
context so the tracker can decide between "retry on the next wake" and
"give up", and so log lines stay machine-readable.

Hierarchy::

    TrackerError
    ├── TransientError          (retryable)
    │   ├── NetworkError        transport failure talking to Rundeck
    │   └── RemoteAPIError      non-2xx response from the Rundeck API
    ├── ValidationError
    │   └── PayloadError        malformed activation / user input
    └── ConfigError
        └── MissingConfigError

Only :class:`TransientError` subclasses count against a tracker's retry
budget. Everything else is a bug or a misconfiguration and surfaces to the
caller.

Examples:
    >>> error = NetworkError("connection refused")
    >>> error.retryable
    True
    >>> RemoteAPIError("Rundeck API error (404): nope", status_code=404).to_dict()["context"]
    {'http_status': 404}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and log routing."""

    NETWORK = "NETWORK"
    REMOTE = "REMOTE"
    VALIDATION = "VALIDATION"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Attributes:
        execution_id: Rundeck execution being watched, if any
        tracking_key: Tracker the error belongs to, if any
        url: URL that was being accessed
        http_status: HTTP status code if applicable
        metadata: Additional key-value pairs
    """

    execution_id: int | str | None = None
    tracking_key: str | None = None
    url: str | None = None
    http_status: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["execution_id", "tracking_key", "url", "http_status"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class TrackerError(Exception):
    """Base exception for all rundeck-spine errors.

    Subclasses set ``default_category`` and ``default_retryable`` so call
    sites rarely pass them explicitly.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> TrackerError:
        """Add context to this error (fluent API)."""
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# TRANSIENT ERRORS (count against the poll retry budget)
# =============================================================================


class TransientError(TrackerError):
    """A failure that may succeed on a later attempt."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class NetworkError(TransientError):
    """Transport-level failure (DNS, connect, read timeout, reset)."""

    default_category = ErrorCategory.NETWORK


class RemoteAPIError(TransientError):
    """The Rundeck API answered with a non-success status."""

    default_category = ErrorCategory.REMOTE

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.body = body
        if status_code is not None:
            self.context.http_status = status_code


# =============================================================================
# VALIDATION ERRORS (never retryable)
# =============================================================================


class ValidationError(TrackerError):
    """Input failed validation."""

    default_category = ErrorCategory.VALIDATION


class PayloadError(ValidationError):
    """An activation payload or request body is malformed."""


# =============================================================================
# CONFIG ERRORS (never retryable)
# =============================================================================


class ConfigError(TrackerError):
    """Configuration is invalid."""

    default_category = ErrorCategory.CONFIG


class MissingConfigError(ConfigError):
    """A required setting is not configured."""

    def __init__(self, key: str, message: str | None = None):
        super().__init__(message or f"Missing required configuration: {key}")
        self.key = key


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "TrackerError",
    "TransientError",
    "NetworkError",
    "RemoteAPIError",
    "ValidationError",
    "PayloadError",
    "ConfigError",
    "MissingConfigError",
]
