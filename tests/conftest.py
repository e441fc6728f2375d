"""
Shared pytest fixtures for rundeck-spine tests.

This module provides:
- A controllable clock for deterministic ``createdAt`` / wake times
- In-memory tracking collaborators wired into an ExecutionTracker
- An in-memory SQLite connection with the tracking schema
- Settings isolation (no ``RUNDECK_*`` leakage from the host)

Builders and fakes live in ``tests/_support/fakes.py``.
"""

from __future__ import annotations

import os

import pytest

from rundeck_spine.core.database import SqliteConnection, initialize_schema
from rundeck_spine.core.settings import get_settings
from rundeck_spine.tracking import (
    ExecutionTracker,
    InMemoryEventSink,
    InMemoryScheduler,
    InMemoryTrackingStore,
    TrackerConfig,
)
from tests._support.fakes import FakeClock


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch, tmp_path):
    """Strip host RUNDECK_* variables and reset the cached settings."""
    for name in list(os.environ):
        if name.startswith("RUNDECK_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store() -> InMemoryTrackingStore:
    return InMemoryTrackingStore()


@pytest.fixture()
def scheduler(clock) -> InMemoryScheduler:
    return InMemoryScheduler(clock)


@pytest.fixture()
def sink() -> InMemoryEventSink:
    return InMemoryEventSink()


@pytest.fixture()
def tracker(store, scheduler, sink, clock) -> ExecutionTracker:
    return ExecutionTracker(store, scheduler, sink, clock)


@pytest.fixture()
def config() -> TrackerConfig:
    return TrackerConfig(poll_interval=5.0, max_retries=3, channel="default")


@pytest.fixture()
def conn():
    """In-memory SQLite with the tracking schema."""
    db = SqliteConnection(":memory:")
    initialize_schema(db)
    yield db
    db.close()
