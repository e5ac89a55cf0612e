# src/flowtrackr/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import StrEnum
from typing import Any

UNSET: Any = object()

DEFAULT_PROJECT_ID = "default"
IN_PROGRESS_STATUS_ID = "in_progress"
READY_STATUS_ID = "ready"
WAITING_AI_STATUS_ID = "waiting_ai"

MAX_OWNERS_PER_TASK = 5
DEFAULT_LEVEL = 2


class OwnerType(StrEnum):
    SELF = "self"
    AGENT = "agent"
    OTHER = "other"

    @classmethod
    def from_raw(cls, raw: object) -> OwnerType:
        """Older snapshots stored the agent owner type as "ai"."""
        if isinstance(raw, OwnerType):
            return raw
        if not isinstance(raw, str) or not raw:
            return cls.SELF
        s = raw.strip().lower()
        if s == "ai":
            return cls.AGENT
        try:
            return cls(s)
        except ValueError:
            return cls.SELF


class Bucket(StrEnum):
    P0 = "P0"
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"

    @classmethod
    def parse(cls, raw: object) -> Bucket | None:
        if isinstance(raw, Bucket):
            return raw
        if not isinstance(raw, str):
            return None
        try:
            return cls(raw.strip().upper())
        except ValueError:
            return None


@dataclass(slots=True)
class Task:
    id: str
    title: str
    project_id: str
    status: str
    created_at: datetime
    updated_at: datetime

    description: str = ""
    impact: int = DEFAULT_LEVEL
    urgency: int = DEFAULT_LEVEL
    effort: int = DEFAULT_LEVEL
    score: float = 0.0
    priority_bucket: Bucket = Bucket.P3
    bucket_override: Bucket | None = None

    due_at: datetime | None = None
    expected_by: datetime | None = None

    owner_type: OwnerType = OwnerType.SELF
    owners: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)

    time_log_secs: int = 0
    timer_started_at: datetime | None = None

    @property
    def timer_running(self) -> bool:
        return self.timer_started_at is not None


@dataclass(slots=True)
class Project:
    id: str
    name: str
    color: str
    created_at: datetime
    is_default: bool = False


@dataclass(slots=True)
class StatusEntry:
    id: str
    label: str
    order: int
    created_at: datetime
    description: str = ""
    is_default: bool = False
    is_completion: bool = False
    keyboard_shortcut: str = ""


@dataclass(slots=True)
class StatusConfig:
    statuses: list[StatusEntry] = field(default_factory=list)
    version: int = 1


@dataclass(slots=True)
class OwnerStats:
    task_count: int
    first_seen: datetime
    last_used: datetime


@dataclass(slots=True)
class OwnerRegistry:
    owners: set[str] = field(default_factory=set)
    statistics: dict[str, OwnerStats] = field(default_factory=dict)


@dataclass(slots=True)
class TaskPatch:
    """
    Partial task update.

    Fields left at UNSET are not touched. An explicit None clears optional
    fields (due_at, expected_by, priority_bucket).
    """

    title: Any = UNSET
    description: Any = UNSET
    project_id: Any = UNSET
    status: Any = UNSET
    impact: Any = UNSET
    urgency: Any = UNSET
    effort: Any = UNSET
    priority_bucket: Any = UNSET
    due_at: Any = UNSET
    expected_by: Any = UNSET
    owner_type: Any = UNSET
    owners: Any = UNSET
    tags: Any = UNSET
    dependencies: Any = UNSET

    def touched(self, name: str) -> bool:
        return getattr(self, name) is not UNSET

    def items(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if self.touched(f.name)}

    def is_empty(self) -> bool:
        return not self.items()
