"""
UTC timestamp helpers (stdlib-only).

Tracking records store ``createdAt`` as epoch milliseconds so the durable
format stays a plain JSON number; these helpers convert both ways.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def to_epoch_ms(dt: datetime) -> int:
    """Convert an aware datetime to integer epoch milliseconds."""
    return int(dt.timestamp() * 1000)


def from_epoch_ms(value: int | float) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(value / 1000, tz=UTC)
