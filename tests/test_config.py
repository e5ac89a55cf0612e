# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from flowtrackr.cli.bootstrap import create_initial_state
from flowtrackr.config import Settings
from flowtrackr.storage.kv_store import MemoryKeyValueStore
from flowtrackr.tasks.task_store import TaskStore


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "FLOWTRACKR_DATA_DIR",
        "FLOWTRACKR_STORE_DB_PATH",
        "FLOWTRACKR_FLUSH_INTERVAL_SECONDS",
        "FLOWTRACKR_STORAGE_QUOTA_BYTES",
        "FLOWTRACKR_SEED_DEMO_TASKS",
        "FLOWTRACKR_AUTO_RETURN_ON_STOP",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    s = Settings.from_env()
    assert s.data_dir == Path(".local/flowtrackr")
    assert s.store_db_path == Path(".local/flowtrackr/board.sqlite3")
    assert s.storage_key == "workday-board@v1"
    assert s.flush_interval_seconds == 1.0
    assert s.seed_demo_tasks is True
    assert s.auto_return_on_stop is False


def test_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("FLOWTRACKR_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("FLOWTRACKR_SEED_DEMO_TASKS", "no")
    monkeypatch.setenv("FLOWTRACKR_AUTO_RETURN_ON_STOP", "on")
    monkeypatch.setenv("FLOWTRACKR_FLUSH_INTERVAL_SECONDS", "0.001")
    monkeypatch.setenv("FLOWTRACKR_STORAGE_QUOTA_BYTES", "lots")

    s = Settings.from_env()
    assert s.data_dir == tmp_path
    assert s.store_db_path == tmp_path / "board.sqlite3"
    assert s.seed_demo_tasks is False
    assert s.auto_return_on_stop is True
    assert s.flush_interval_seconds == 0.05
    assert s.storage_quota_bytes == 5 * 1024 * 1024


def test_auto_return_setting_applies_on_startup(settings, kv) -> None:
    settings.auto_return_on_stop = True
    state = create_initial_state(settings=settings, store=TaskStore(kv))
    assert state.board.auto_return_on_stop


def test_unopenable_database_falls_back_to_memory(settings, tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")
    settings.store_db_path = blocker / "board.sqlite3"

    state = create_initial_state(settings=settings)
    assert isinstance(state.store._kv, MemoryKeyValueStore)
    assert state.board.current_project_id == "default"

    state.board.mark_changed()
    assert state.store.flush().ok
