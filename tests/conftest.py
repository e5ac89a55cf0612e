# tests/conftest.py

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from flowtrackr.cli.bootstrap import create_initial_state
from flowtrackr.core.state import AppState, BoardState
from flowtrackr.storage.kv_store import MemoryKeyValueStore
from flowtrackr.storage.migrations import build_default_board
from flowtrackr.tasks.task_store import TaskStore

NOW = datetime(2025, 3, 10, 9, 0, 0, tzinfo=UTC)


@pytest.fixture()
def now() -> datetime:
    return NOW


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the composition root.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="flowtrackr-test",
        log_level="DEBUG",
        console_enabled=False,
        data_dir=tmp_path,
        store_db_path=tmp_path / "board.sqlite3",
        storage_key="workday-board@v1",
        view_mode_key="workday-board@view-mode",
        storage_quota_bytes=5 * 1024 * 1024,
        flush_interval_seconds=0.01,
        seed_demo_tasks=False,
        auto_return_on_stop=False,
    )


@pytest.fixture()
def board(now: datetime) -> BoardState:
    """Default project + the 8 canonical statuses, no tasks."""
    return build_default_board(now=now)


@pytest.fixture()
def kv() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture()
def store(kv: MemoryKeyValueStore, now: datetime) -> TaskStore:
    s = TaskStore(kv)
    s.load(now=now)
    return s


@pytest.fixture()
def state(settings: SimpleNamespace, kv: MemoryKeyValueStore) -> AppState:
    """AppState wired with an in-memory key-value store."""
    return create_initial_state(settings=settings, store=TaskStore(kv))
