# tests/fakes.py

from __future__ import annotations

from flowtrackr.storage.kv_store import MemoryKeyValueStore, StorageQuotaExceeded, StorageUnavailable


class FlakyKeyValueStore(MemoryKeyValueStore):
    """
    Fake KeyValueStore used by persistence tests.

    - fail_writes / fail_reads switch the failure on and off
    - writes counts successful set_item calls
    """

    def __init__(self, *, fail_writes: bool = False, fail_reads: bool = False) -> None:
        super().__init__()
        self.fail_writes = fail_writes
        self.fail_reads = fail_reads
        self.writes = 0

    def get_item(self, key: str) -> str | None:
        if self.fail_reads:
            raise StorageUnavailable("backend offline")
        return super().get_item(key)

    def set_item(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise StorageQuotaExceeded("quota exceeded")
        super().set_item(key, value)
        self.writes += 1
