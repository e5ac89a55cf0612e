# src/flowtrackr/tasks/owners.py

"""
Owner registry.

The registry is a materialized view over task owner lists:
- statistics (task count, first seen, last used) are recomputed by a full scan
  inside every operation that mutates tasks (see commit_task_changes),
- names registered without tasks stay known until removed explicitly,
- removing an owner from the registry strips it from every task.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from ..core.results import OpResult, conflict, invalid, not_found
from ..core.state import BoardState
from ..core.timeutil import utc_now
from .scoring import touch_task
from .task_models import MAX_OWNERS_PER_TASK, OwnerRegistry, OwnerStats, Task
from .validation import validate_owner_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RegisteredOwner:
    name: str
    existed: bool


@dataclass(frozen=True, slots=True)
class OwnerSuggestion:
    name: str
    task_count: int


@dataclass(frozen=True, slots=True)
class OwnerSummary:
    name: str
    task_count: int
    first_seen: datetime
    last_used: datetime


@dataclass(frozen=True, slots=True)
class TransferOutcome:
    tasks_updated: int
    source: str
    target: str
    source_removed: bool


@dataclass(frozen=True, slots=True)
class BulkAssignOutcome:
    tasks_updated: int
    failed_task_ids: list[str]


# ---- registry maintenance ----


def rebuild_owner_registry(board: BoardState, *, now: datetime | None = None) -> OwnerRegistry:
    now = now or utc_now()
    previous = board.owner_registry

    stats: dict[str, OwnerStats] = {}
    for task in board.tasks:
        for owner in task.owners:
            s = stats.get(owner)
            if s is None:
                stats[owner] = OwnerStats(
                    task_count=1, first_seen=task.created_at, last_used=task.updated_at
                )
                continue
            s.task_count += 1
            s.first_seen = min(s.first_seen, task.created_at)
            s.last_used = max(s.last_used, task.updated_at)

    owners = set(previous.owners) | set(stats)
    for name in owners - stats.keys():
        prev = previous.statistics.get(name)
        stats[name] = OwnerStats(
            task_count=0,
            first_seen=prev.first_seen if prev else now,
            last_used=prev.last_used if prev else now,
        )

    board.owner_registry = OwnerRegistry(owners=owners, statistics=stats)
    return board.owner_registry


def commit_task_changes(board: BoardState, *, now: datetime | None = None) -> None:
    """Refresh derived views after a task mutation and mark the board for flushing."""
    rebuild_owner_registry(board, now=now)
    board.mark_changed()


# ---- operations ----


def register_owner(
    board: BoardState, name: str, *, now: datetime | None = None
) -> OpResult[RegisteredOwner]:
    checked = validate_owner_name(name)
    if not checked.ok:
        return checked
    clean = str(checked.value)
    if clean in board.owner_registry.owners:
        return OpResult.success(RegisteredOwner(name=clean, existed=True))

    board.owner_registry.owners.add(clean)
    commit_task_changes(board, now=now)
    logger.debug("Owner registered name=%s", clean)
    return OpResult.success(RegisteredOwner(name=clean, existed=False))


def add_owner_to_task(
    board: BoardState, task_id: str, name: str, *, now: datetime | None = None
) -> OpResult[bool]:
    """
    Returns True when the owner was added, False when the task already had it.
    A task holds at most MAX_OWNERS_PER_TASK distinct owners.
    """
    checked = validate_owner_name(name)
    if not checked.ok:
        return checked
    clean = str(checked.value)

    task = board.find_task(task_id)
    if task is None:
        return not_found("Task not found")
    if clean in task.owners:
        return OpResult.success(False)
    if len(task.owners) >= MAX_OWNERS_PER_TASK:
        return invalid(f"Task already has maximum {MAX_OWNERS_PER_TASK} owners")

    now = now or utc_now()
    task.owners.append(clean)
    touch_task(task, now)
    commit_task_changes(board, now=now)
    return OpResult.success(True)


def remove_owner_from_task(
    board: BoardState, task_id: str, name: str, *, now: datetime | None = None
) -> OpResult[bool]:
    task = board.find_task(task_id)
    if task is None:
        return not_found("Task not found")
    if name not in task.owners:
        return OpResult.success(False)

    now = now or utc_now()
    task.owners = [o for o in task.owners if o != name]
    touch_task(task, now)
    commit_task_changes(board, now=now)
    return OpResult.success(True)


def _strip_owner(board: BoardState, name: str, now: datetime) -> int:
    updated = 0
    for task in board.tasks:
        if name in task.owners:
            task.owners = [o for o in task.owners if o != name]
            touch_task(task, now)
            updated += 1
    return updated


def remove_owner(board: BoardState, name: str, *, now: datetime | None = None) -> OpResult[int]:
    """Drop an owner from the registry and from every task. Returns tasks updated."""
    if name not in board.owner_registry.owners:
        return not_found("Owner not found in registry")

    now = now or utc_now()
    updated = _strip_owner(board, name, now)
    board.owner_registry.owners.discard(name)
    board.owner_registry.statistics.pop(name, None)
    commit_task_changes(board, now=now)
    logger.info("Owner removed name=%s tasks_updated=%s", name, updated)
    return OpResult.success(updated)


def unassign_owner_from_all_tasks(
    board: BoardState, name: str, *, now: datetime | None = None
) -> OpResult[int]:
    """Like remove_owner, but the name stays in the registry."""
    now = now or utc_now()
    updated = _strip_owner(board, name, now)
    if updated:
        commit_task_changes(board, now=now)
    return OpResult.success(updated)


def transfer_owner_tasks(
    board: BoardState,
    source: str,
    target: str,
    *,
    remove_source: bool = False,
    now: datetime | None = None,
) -> OpResult[TransferOutcome]:
    if not source or not target:
        return invalid("Both source and target owners are required")
    if source == target:
        return conflict("Cannot transfer to the same owner")
    if source not in board.owner_registry.owners:
        return not_found("Source owner not found in registry")

    checked = validate_owner_name(target)
    if not checked.ok:
        return checked
    clean_target = str(checked.value)
    if clean_target == source:
        return conflict("Cannot transfer to the same owner")

    now = now or utc_now()
    updated = 0
    for task in board.tasks:
        if source not in task.owners:
            continue
        owners = [o for o in task.owners if o != source]
        if clean_target not in owners:
            owners.append(clean_target)
        task.owners = owners
        touch_task(task, now)
        updated += 1

    # The target enters the registry through the rebuild, only when a task moved.
    removed = False
    if updated > 0:
        if remove_source:
            board.owner_registry.owners.discard(source)
            board.owner_registry.statistics.pop(source, None)
            removed = True
        commit_task_changes(board, now=now)

    logger.info(
        "Owner tasks transferred source=%s target=%s tasks=%s removed=%s",
        source,
        clean_target,
        updated,
        removed,
    )
    return OpResult.success(
        TransferOutcome(
            tasks_updated=updated, source=source, target=clean_target, source_removed=removed
        )
    )


def bulk_assign_owner(
    board: BoardState,
    task_ids: Iterable[str],
    name: str,
    *,
    now: datetime | None = None,
) -> OpResult[BulkAssignOutcome]:
    checked = validate_owner_name(name)
    if not checked.ok:
        return checked
    clean = str(checked.value)

    wanted = set(task_ids)
    now = now or utc_now()
    updated = 0
    failed: list[str] = []
    for task in board.tasks:
        if task.id not in wanted or clean in task.owners:
            continue
        if len(task.owners) >= MAX_OWNERS_PER_TASK:
            failed.append(task.id)
            continue
        task.owners.append(clean)
        touch_task(task, now)
        updated += 1

    board.owner_registry.owners.add(clean)
    commit_task_changes(board, now=now)
    return OpResult.success(BulkAssignOutcome(tasks_updated=updated, failed_task_ids=failed))


# ---- read side ----


def _count(board: BoardState, name: str) -> int:
    s = board.owner_registry.statistics.get(name)
    return s.task_count if s else 0


def _usage_order(board: BoardState, names: Iterable[str]) -> list[str]:
    return sorted(names, key=lambda n: (-_count(board, n), n.casefold(), n))


def owner_suggestions(board: BoardState, query: str = "") -> list[OwnerSuggestion]:
    term = (query or "").strip().lower()
    names = [n for n in board.owner_registry.owners if not term or term in n.lower()]
    return [OwnerSuggestion(name=n, task_count=_count(board, n)) for n in _usage_order(board, names)]


def owners_with_stats(board: BoardState) -> list[OwnerSummary]:
    out: list[OwnerSummary] = []
    for name in _usage_order(board, board.owner_registry.owners):
        s = board.owner_registry.statistics[name]
        out.append(
            OwnerSummary(
                name=name, task_count=s.task_count, first_seen=s.first_seen, last_used=s.last_used
            )
        )
    return out


def tasks_by_owner(board: BoardState, name: str) -> list[Task]:
    return [t for t in board.tasks if name in t.owners]


def unowned_tasks(board: BoardState) -> list[Task]:
    return [t for t in board.tasks if not t.owners]
