"""Fixtures for CLI tests: isolated database and a mocked Rundeck client."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from rundeck_spine.rundeck import RundeckClient


@pytest.fixture(autouse=True)
def cli_env(monkeypatch, tmp_path):
    """Point the CLI at a throwaway database and a fake Rundeck."""
    monkeypatch.setenv("RUNDECK_URL", "https://rundeck.example")
    monkeypatch.setenv("RUNDECK_API_TOKEN", "secret")
    monkeypatch.setenv("RUNDECK_DATABASE", str(tmp_path / "cli.db"))
    with patch("rundeck_spine.core.logging.configure_logging"):
        yield tmp_path / "cli.db"


@pytest.fixture()
def rundeck():
    """Mocked RundeckClient returned by ``RundeckClient.from_settings``."""
    client = MagicMock(spec=RundeckClient)
    with patch("rundeck_spine.ops.context.RundeckClient") as cls:
        cls.from_settings.return_value = client
        yield client
