"""Settings for rundeck-spine.

All fields can be set through ``RUNDECK_*`` environment variables (e.g.
``RUNDECK_URL``, ``RUNDECK_API_TOKEN``, ``RUNDECK_POLL_INTERVAL``) or a
``.env`` file in the working directory.

Settings are read once at the edge (CLI, worker) and turned into explicit
values such as :class:`~rundeck_spine.tracking.models.TrackerConfig` that
are passed into every tracker call. Core modules never import
:func:`get_settings`.

Examples:
    >>> settings = RundeckSettings(url="https://rundeck:4440", api_token="t")
    >>> settings.tracker_config("stateChanged").max_retries
    3
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rundeck_spine.core.errors import MissingConfigError

if TYPE_CHECKING:
    from rundeck_spine.tracking.models import TrackerConfig

DEFAULT_API_VERSION = 57


class RundeckSettings(BaseSettings):
    """Configuration for the Rundeck connection, tracking and the worker.

    Fields
    ──────
    url              : Rundeck base URL (e.g. https://rundeck:4440)
    api_token        : API token sent as ``X-Rundeck-Auth-Token``
    api_version      : Rundeck API version segment
    timeout          : HTTP timeout in seconds
    poll_interval    : Seconds between status polls
    max_retries      : Consecutive poll failures before a tracker gives up
    track_execution  : Whether ``jobs run`` starts a tracker by default
    data_dir         : Directory holding the tracking database
    database         : SQLite file (defaults to data_dir / tracking.db)
    worker_tick      : Seconds between worker ticks
    cleanup_interval : Seconds between scavenger runs
    log_level        : Structlog log level
    log_json         : Force JSON (True) or console (False) logs
    """

    model_config = SettingsConfigDict(
        env_prefix="RUNDECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Rundeck API ──────────────────────────────────────────────
    url: str | None = None
    api_token: SecretStr | None = None
    api_version: int = DEFAULT_API_VERSION
    timeout: float = 30.0

    # ── Tracking ─────────────────────────────────────────────────
    poll_interval: float = Field(default=5.0, gt=0)
    max_retries: int = Field(default=3, ge=1)
    track_execution: bool = True

    # ── Storage ──────────────────────────────────────────────────
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".rundeck-spine")
    database: Path | None = None

    # ── Worker ───────────────────────────────────────────────────
    worker_tick: float = Field(default=1.0, gt=0)
    cleanup_interval: float = Field(default=3600.0, gt=0)

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None

    @field_validator("url")
    @classmethod
    def _strip_trailing_slash(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.rstrip("/")

    @property
    def database_path(self) -> Path:
        """Resolved SQLite path for trackers, timers and events."""
        return self.database or self.data_dir / "tracking.db"

    def require_url(self) -> str:
        if not self.url:
            raise MissingConfigError("RUNDECK_URL")
        return self.url

    def require_api_token(self) -> str:
        if self.api_token is None or not self.api_token.get_secret_value():
            raise MissingConfigError("RUNDECK_API_TOKEN")
        return self.api_token.get_secret_value()

    def tracker_config(self, channel: str = "default") -> TrackerConfig:
        """Build the explicit config value passed to tracker calls."""
        from rundeck_spine.tracking.models import TrackerConfig

        return TrackerConfig(
            poll_interval=self.poll_interval,
            max_retries=self.max_retries,
            channel=channel,
        )


@lru_cache(maxsize=1)
def get_settings() -> RundeckSettings:
    """Load settings from the environment once per process."""
    return RundeckSettings()


__all__ = ["DEFAULT_API_VERSION", "RundeckSettings", "get_settings"]
