# src/flowtrackr/core/results.py

"""
Structured operation results.

Every engine operation returns an OpResult instead of raising for expected
failures (bad names, exceeded limits, unknown ids, storage trouble).
Callers check `result.ok` and read either `result.value` or `result.error`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(StrEnum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    STORAGE = "storage"


@dataclass(frozen=True, slots=True)
class OpResult(Generic[T]):
    value: T | None = None
    error: str | None = None
    kind: ErrorKind | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any = None) -> OpResult[Any]:
        return cls(value=value)

    @classmethod
    def fail(cls, kind: ErrorKind, error: str) -> OpResult[Any]:
        return cls(error=error, kind=kind)

    def as_dict(self) -> dict[str, Any]:
        """Wire shape for front-ends: {"value": ...} or {"error": reason}."""
        if self.ok:
            return {"value": self.value}
        return {"error": self.error, "kind": str(self.kind)}


def invalid(error: str) -> OpResult[Any]:
    return OpResult.fail(ErrorKind.VALIDATION, error)


def not_found(error: str) -> OpResult[Any]:
    return OpResult.fail(ErrorKind.NOT_FOUND, error)


def conflict(error: str) -> OpResult[Any]:
    return OpResult.fail(ErrorKind.CONFLICT, error)
