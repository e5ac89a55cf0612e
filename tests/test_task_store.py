# tests/test_task_store.py

from __future__ import annotations

import json
from pathlib import Path

from flowtrackr.core.results import ErrorKind
from flowtrackr.storage.kv_store import MemoryKeyValueStore, SqliteKeyValueStore
from flowtrackr.tasks.projects import create_project
from flowtrackr.tasks.task_api import create_task
from flowtrackr.tasks.task_models import TaskPatch
from flowtrackr.tasks.task_store import STORAGE_KEY, VIEW_MODE_KEY, TaskStore
from flowtrackr.tasks.views import ViewMode

from .conftest import NOW
from .fakes import FlakyKeyValueStore


def test_fresh_load_is_dirty_until_flushed(store: TaskStore, kv: MemoryKeyValueStore) -> None:
    assert store.dirty
    res = store.flush()
    assert res.ok and res.value is True
    assert not store.dirty
    assert kv.get_item(STORAGE_KEY) is not None

    # Clean board: nothing to write.
    assert store.flush().value is False


def test_mutation_marks_dirty_and_round_trips(store: TaskStore, kv: MemoryKeyValueStore) -> None:
    store.flush()
    tid = create_task(store.board, TaskPatch(title="Persist me", owners=["Ana"]), now=NOW).value
    assert store.dirty
    store.flush()

    reloaded = TaskStore(kv)
    reloaded.load(now=NOW)
    task = reloaded.board.find_task(tid)
    assert task is not None
    assert task.title == "Persist me"
    assert task.owners == ["Ana"]
    assert "Ana" in reloaded.board.owner_registry.owners


def test_failed_write_keeps_board_dirty() -> None:
    kv = FlakyKeyValueStore(fail_writes=True)
    store = TaskStore(kv)
    store.load(now=NOW)

    res = store.flush()
    assert not res.ok
    assert res.kind == ErrorKind.STORAGE
    assert store.dirty
    assert kv.writes == 0

    kv.fail_writes = False
    assert store.flush().ok
    assert not store.dirty
    assert kv.writes == 1


def test_quota_exceeded_is_reported() -> None:
    store = TaskStore(MemoryKeyValueStore(quota_bytes=100))
    store.load(now=NOW)
    res = store.flush()
    assert res.kind == ErrorKind.STORAGE
    assert store.dirty


def test_read_failure_starts_fresh_board() -> None:
    kv = FlakyKeyValueStore(fail_reads=True)
    store = TaskStore(kv, seed_demo_tasks=True)
    res = store.load(now=NOW)
    assert res.kind == ErrorKind.STORAGE
    assert len(store.board.tasks) == 4


def test_unreadable_document_is_replaced(kv: MemoryKeyValueStore) -> None:
    kv.set_item(STORAGE_KEY, "{broken")
    store = TaskStore(kv)
    assert store.load(now=NOW).ok
    assert store.board.tasks == []
    store.flush()
    assert json.loads(kv.get_item(STORAGE_KEY))["version"] == 2.1


def test_flush_reaps_orphans(store: TaskStore) -> None:
    pid = create_project(store.board, "Side", now=NOW).value
    tid = create_task(store.board, TaskPatch(title="A", project_id=pid), now=NOW).value
    store.board.projects = [p for p in store.board.projects if p.id != pid]

    store.flush()
    assert store.board.find_task(tid) is None


def test_view_mode_preference(store: TaskStore, kv: MemoryKeyValueStore) -> None:
    assert store.load_view_mode() == ViewMode.BOARD
    assert store.save_view_mode("backlog").value == ViewMode.BACKLOG
    assert kv.get_item(VIEW_MODE_KEY) == "backlog"
    assert TaskStore(kv).load_view_mode() == ViewMode.BACKLOG

    kv.set_item(VIEW_MODE_KEY, "kanban")
    assert store.load_view_mode() == ViewMode.BOARD


def test_sqlite_backend_round_trip(tmp_path: Path) -> None:
    db = tmp_path / "board.sqlite3"
    store = TaskStore(SqliteKeyValueStore(db))
    store.load(now=NOW)
    create_task(store.board, TaskPatch(title="On disk"), now=NOW)
    assert store.flush().ok

    again = TaskStore(SqliteKeyValueStore(db))
    again.load(now=NOW)
    assert [t.title for t in again.board.tasks] == ["On disk"]
