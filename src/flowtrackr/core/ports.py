# src/flowtrackr/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The task store depends on this Protocol instead of a concrete backend,
so SQLite, in-memory and failing test doubles are interchangeable.
"""

from typing import Protocol


class KeyValueStore(Protocol):
    """
    String -> string storage with a size quota.

    Implementations raise StorageError subclasses (see storage.kv_store)
    when a write does not fit or the backend is unreachable.
    """

    def get_item(self, key: str) -> str | None: ...
    def set_item(self, key: str, value: str) -> None: ...
    def remove_item(self, key: str) -> None: ...
