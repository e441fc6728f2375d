"""Fixtures for ops tests: an OperationContext over in-memory collaborators."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from rundeck_spine.core.settings import RundeckSettings
from rundeck_spine.ops.context import OperationContext
from rundeck_spine.rundeck import RundeckClient
from rundeck_spine.tracking import Scavenger


@pytest.fixture()
def settings(tmp_path) -> RundeckSettings:
    return RundeckSettings(
        url="https://rundeck.example",
        api_token="secret",
        data_dir=tmp_path,
        poll_interval=5,
        max_retries=3,
    )


@pytest.fixture()
def client() -> MagicMock:
    return MagicMock(spec=RundeckClient)


@pytest.fixture()
def ctx(settings, tracker, client, store, sink, clock) -> OperationContext:
    return OperationContext(
        settings=settings,
        tracker=tracker,
        client=client,
        scavenger=Scavenger(store, sink, clock),
        request_id="req-1",
        caller="test",
    )
