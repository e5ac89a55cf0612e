# src/flowtrackr/tasks/views.py

"""Read-only board views: filter, sort, group and the WIP hint."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from ..core.state import BoardState
from ..core.timeutil import ensure_aware
from .projects import visible_tasks
from .statuses import status_order
from .task_models import IN_PROGRESS_STATUS_ID, Task

WIP_LIMIT = 3


class ViewMode(StrEnum):
    BOARD = "board"
    BACKLOG = "backlog"

    @classmethod
    def parse(cls, raw: object) -> ViewMode:
        if isinstance(raw, str):
            try:
                return cls(raw.strip().lower())
            except ValueError:
                pass
        return cls.BOARD


@dataclass(frozen=True, slots=True)
class TaskFilter:
    query: str = ""
    owner: str | None = None

    def matches(self, task: Task) -> bool:
        if self.owner and self.owner not in task.owners:
            return False
        q = self.query.strip().lower()
        if q:
            haystack = f"{task.title} {task.description} {' '.join(task.tags)}".lower()
            if q not in haystack:
                return False
        return True


def _due_key(due_at: datetime | None) -> float:
    return ensure_aware(due_at).timestamp() if due_at is not None else float("inf")


def sorted_tasks(board: BoardState, tasks: list[Task]) -> list[Task]:
    """Status column order, then score (high first), then due date (soonest first)."""
    order = {sid: i for i, sid in enumerate(status_order(board))}
    return sorted(
        tasks,
        key=lambda t: (order.get(t.status, len(order)), -t.score, _due_key(t.due_at)),
    )


def board_view(board: BoardState, flt: TaskFilter | None = None) -> list[Task]:
    flt = flt or TaskFilter()
    return sorted_tasks(board, [t for t in visible_tasks(board) if flt.matches(t)])


def group_by_status(board: BoardState, tasks: list[Task]) -> dict[str, list[Task]]:
    groups: dict[str, list[Task]] = {sid: [] for sid in status_order(board)}
    for t in tasks:
        groups.setdefault(t.status, []).append(t)
    return groups


def wip_count(board: BoardState) -> int:
    return sum(1 for t in visible_tasks(board) if t.status == IN_PROGRESS_STATUS_ID)


def high_wip(board: BoardState) -> bool:
    return wip_count(board) > WIP_LIMIT
