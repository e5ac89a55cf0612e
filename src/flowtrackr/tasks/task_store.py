# src/flowtrackr/tasks/task_store.py

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime

from ..core.ports import KeyValueStore
from ..core.results import ErrorKind, OpResult
from ..core.state import BoardState
from ..core.timeutil import utc_now
from ..storage.kv_store import StorageError
from ..storage.migrations import load_snapshot
from ..storage.snapshot import board_from_snapshot, board_to_snapshot
from .projects import reap_orphans
from .views import ViewMode

logger = logging.getLogger(__name__)

STORAGE_KEY = "workday-board@v1"
VIEW_MODE_KEY = "workday-board@view-mode"


class TaskStore:
    """
    Persistence boundary for one board.

    - load() reads the stored document, migrates it and builds the BoardState
    - flush() writes the full board when its revision moved since the last
      successful write; failures are logged and returned, the board stays dirty
    - the view preference lives under its own key and is never migrated

    The store owns `lock` (an RLock). Front-ends hold it around every board
    operation so the background flusher never serializes a half-applied change.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        *,
        storage_key: str = STORAGE_KEY,
        view_mode_key: str = VIEW_MODE_KEY,
        seed_demo_tasks: bool = False,
    ) -> None:
        self._kv = kv
        self._storage_key = storage_key
        self._view_mode_key = view_mode_key
        self._seed_demo_tasks = seed_demo_tasks
        self._board: BoardState | None = None
        self._saved_revision: int | None = None
        self.lock = threading.RLock()

    @property
    def board(self) -> BoardState:
        if self._board is None:
            raise RuntimeError("TaskStore.load() must be called before using the board")
        return self._board

    @property
    def dirty(self) -> bool:
        return self._board is not None and self._board.revision != self._saved_revision

    # ---- board ----

    def load(self, *, now: datetime | None = None) -> OpResult[BoardState]:
        now = now or utc_now()
        raw: str | None = None
        read_failed = False
        try:
            raw = self._kv.get_item(self._storage_key)
        except StorageError:
            logger.exception("Reading %s failed; starting from a fresh board", self._storage_key)
            read_failed = True

        data = load_snapshot(raw, now=now, seed_demo_tasks=self._seed_demo_tasks)
        with self.lock:
            self._board = board_from_snapshot(data, now=now)
            # Freshly migrated or seeded data is written on the first flush.
            self._saved_revision = None

        logger.info(
            "Board loaded tasks=%s projects=%s statuses=%s",
            len(self._board.tasks),
            len(self._board.projects),
            len(self._board.status_config.statuses),
        )
        if read_failed:
            return OpResult.fail(ErrorKind.STORAGE, "Stored board could not be read")
        return OpResult.success(self._board)

    def flush(self, *, force: bool = False) -> OpResult[bool]:
        """Returns True when something was written, False when the board was clean."""
        with self.lock:
            board = self.board
            reap_orphans(board)
            if not force and board.revision == self._saved_revision:
                return OpResult.success(False)
            revision = board.revision
            payload = json.dumps(board_to_snapshot(board), ensure_ascii=False)

        try:
            self._kv.set_item(self._storage_key, payload)
        except StorageError as e:
            logger.warning("Board flush failed (revision=%s): %s", revision, e)
            return OpResult.fail(ErrorKind.STORAGE, f"Could not save board: {e}")

        with self.lock:
            self._saved_revision = revision
        logger.debug("Board flushed revision=%s bytes=%s", revision, len(payload))
        return OpResult.success(True)

    # ---- view preference ----

    def load_view_mode(self) -> ViewMode:
        try:
            return ViewMode.parse(self._kv.get_item(self._view_mode_key))
        except StorageError:
            logger.exception("Reading view mode failed")
            return ViewMode.BOARD

    def save_view_mode(self, mode: ViewMode | str) -> OpResult[ViewMode]:
        parsed = ViewMode.parse(mode)
        try:
            self._kv.set_item(self._view_mode_key, parsed.value)
        except StorageError as e:
            logger.warning("Saving view mode failed: %s", e)
            return OpResult.fail(ErrorKind.STORAGE, f"Could not save view mode: {e}")
        return OpResult.success(parsed)
