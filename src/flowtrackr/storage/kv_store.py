# src/flowtrackr/storage/kv_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_QUOTA_BYTES = 5 * 1024 * 1024


class StorageError(Exception):
    """Base class for key-value backend failures."""


class StorageQuotaExceeded(StorageError):
    pass


class StorageUnavailable(StorageError):
    pass


def _entry_size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class MemoryKeyValueStore:
    """In-process store with the same quota rules as the SQLite one."""

    def __init__(self, *, quota_bytes: int = DEFAULT_QUOTA_BYTES) -> None:
        self._items: dict[str, str] = {}
        self._quota = int(quota_bytes)

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        others = sum(_entry_size(k, v) for k, v in self._items.items() if k != key)
        if others + _entry_size(key, value) > self._quota:
            raise StorageQuotaExceeded(f"writing {key!r} would exceed {self._quota} bytes")
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._items)


class SqliteKeyValueStore:
    """
    Single-table SQLite key-value store.

    - one row per key, value stored as TEXT
    - total size (keys + values, utf-8 bytes) limited by quota_bytes
    - each call opens its own connection
    """

    def __init__(
        self,
        db_path: str | Path = "flowtrackr.sqlite3",
        *,
        quota_bytes: int = DEFAULT_QUOTA_BYTES,
    ) -> None:
        self._db_path = Path(db_path)
        self._quota = int(quota_bytes)
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._ensure_schema()
        except (OSError, sqlite3.Error) as e:
            raise StorageUnavailable(f"cannot open {self._db_path}: {e}") from e
        logger.info("SqliteKeyValueStore ready db=%s quota=%s", self._db_path, self._quota)

    def close(self) -> None:
        """Shutdown hook (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    # ---- public API ----

    def get_item(self, key: str) -> str | None:
        try:
            conn = self._get_conn()
            try:
                row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StorageUnavailable(f"read of {key!r} failed: {e}") from e
        return None if row is None else str(row[0])

    def set_item(self, key: str, value: str) -> None:
        try:
            conn = self._get_conn()
            try:
                (others,) = conn.execute(
                    """
                    SELECT COALESCE(SUM(LENGTH(CAST(key AS BLOB)) + LENGTH(CAST(value AS BLOB))), 0)
                    FROM kv
                    WHERE key != ?
                    """,
                    (key,),
                ).fetchone()
                if int(others) + _entry_size(key, value) > self._quota:
                    raise StorageQuotaExceeded(
                        f"writing {key!r} would exceed {self._quota} bytes"
                    )
                conn.execute(
                    "INSERT INTO kv(key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (key, value),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StorageUnavailable(f"write of {key!r} failed: {e}") from e
        logger.debug("kv write key=%s bytes=%s", key, _entry_size(key, value))

    def remove_item(self, key: str) -> None:
        try:
            conn = self._get_conn()
            try:
                conn.execute("DELETE FROM kv WHERE key = ?", (key,))
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StorageUnavailable(f"delete of {key!r} failed: {e}") from e
