# src/flowtrackr/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once (or takes injected ones),
- ensures local (gitignored) directories exist,
- wires the key-value backend into a TaskStore and loads the board.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import KeyValueStore
from ..core.state import AppState
from ..storage.kv_store import MemoryKeyValueStore, SqliteKeyValueStore, StorageUnavailable
from ..tasks.task_store import TaskStore
from ..tasks.timer import set_auto_return_on_stop

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    for path in (settings.data_dir, settings.store_db_path.parent):
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Cannot create %s: %s", path, e)


def create_task_store(settings) -> TaskStore:
    """SQLite-backed store; an unusable database degrades to memory-only operation."""
    kv: KeyValueStore
    try:
        kv = SqliteKeyValueStore(settings.store_db_path, quota_bytes=settings.storage_quota_bytes)
    except StorageUnavailable:
        logger.exception(
            "Board database unavailable at %s; changes will not survive a restart",
            settings.store_db_path,
        )
        kv = MemoryKeyValueStore(quota_bytes=settings.storage_quota_bytes)
    return TaskStore(
        kv,
        storage_key=settings.storage_key,
        view_mode_key=settings.view_mode_key,
        seed_demo_tasks=settings.seed_demo_tasks,
    )


def create_initial_state(*, settings=None, store: TaskStore | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings (and the store) injectable makes the app easier to test
    and avoids hidden global config reads. If settings is None, falls back to
    get_settings().
    """
    if settings is None:
        settings = get_settings()

    if store is None:
        _ensure_local_dirs(settings)
        store = create_task_store(settings)

    loaded = store.load()
    if not loaded.ok:
        logger.warning("Board loaded with problems: %s", loaded.error)

    # An explicit env switch wins over the stored preference.
    if getattr(settings, "auto_return_on_stop", False) and not store.board.auto_return_on_stop:
        set_auto_return_on_stop(store.board, True)

    return AppState(settings=settings, store=store, view_mode=store.load_view_mode())
