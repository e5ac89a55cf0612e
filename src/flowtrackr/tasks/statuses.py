# src/flowtrackr/tasks/statuses.py

"""
Status configuration (board columns).

Invariants kept by every operation here:
- at least MIN_STATUSES and at most MAX_STATUSES entries,
- exactly one default entry (new tasks land there),
- at least one completion entry,
- orders are contiguous from zero after a delete.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..core.results import OpResult, invalid, not_found
from ..core.state import BoardState
from ..core.timeutil import utc_now
from .owners import commit_task_changes
from .scoring import touch_task
from .task_models import UNSET, StatusConfig, StatusEntry, Task
from .timer import set_task_status
from .validation import validate_status_description, validate_status_label

logger = logging.getLogger(__name__)

MIN_STATUSES = 2
MAX_STATUSES = 15
CANONICAL_DEFAULT_ID = "backlog"


@dataclass(frozen=True, slots=True)
class CanonicalStatus:
    id: str
    label: str
    description: str
    shortcut: str
    is_default: bool = False
    is_completion: bool = False


CANONICAL_STATUSES: tuple[CanonicalStatus, ...] = (
    CanonicalStatus("backlog", "Backlog", "Ideas and unsorted", "1", is_default=True),
    CanonicalStatus("ready", "Ready", "Triage done", "2"),
    CanonicalStatus("in_progress", "In Progress", "Actively doing", "3"),
    CanonicalStatus("waiting_ai", "Waiting on AI", "Delegated to agent", "4"),
    CanonicalStatus("waiting_other", "Waiting on Others", "Blocked by a human", "5"),
    CanonicalStatus("blocked", "Blocked", "Needs unblocking", "6"),
    CanonicalStatus("in_review", "In Review", "PR/review/QA", "7"),
    CanonicalStatus("done", "Done", "Completed", "8", is_completion=True),
)

CANONICAL_STATUS_IDS = frozenset(c.id for c in CANONICAL_STATUSES)


def canonical_status_config(now: datetime | None = None) -> StatusConfig:
    now = now or utc_now()
    return StatusConfig(
        statuses=[
            StatusEntry(
                id=c.id,
                label=c.label,
                description=c.description,
                order=i,
                created_at=now,
                is_default=c.is_default,
                is_completion=c.is_completion,
                keyboard_shortcut=c.shortcut,
            )
            for i, c in enumerate(CANONICAL_STATUSES)
        ],
        version=1,
    )


# ---- read side ----


def ordered_statuses(board: BoardState) -> list[StatusEntry]:
    return sorted(board.status_config.statuses, key=lambda s: s.order)


def status_order(board: BoardState) -> list[str]:
    return [s.id for s in ordered_statuses(board)]


def status_by_id(board: BoardState, status_id: str) -> StatusEntry | None:
    for s in board.status_config.statuses:
        if s.id == status_id:
            return s
    return None


def default_status(board: BoardState) -> StatusEntry | None:
    for s in ordered_statuses(board):
        if s.is_default:
            return s
    return None


def completion_statuses(board: BoardState) -> list[StatusEntry]:
    return [s for s in ordered_statuses(board) if s.is_completion]


def tasks_for_status(board: BoardState, status_id: str) -> list[Task]:
    return [t for t in board.tasks if t.status == status_id]


def can_delete_status(board: BoardState, status_id: str) -> OpResult[None]:
    statuses = board.status_config.statuses
    status = status_by_id(board, status_id)
    if status is None:
        return not_found("Status not found")
    if len(statuses) <= MIN_STATUSES:
        return invalid(f"Must have at least {MIN_STATUSES} statuses")
    if status.is_default and sum(1 for s in statuses if s.is_default) == 1:
        return invalid(
            "Cannot delete the only default status. Set another status as default first."
        )
    if status.is_completion and sum(1 for s in statuses if s.is_completion) == 1:
        return invalid(
            "Cannot delete the only completion status. Mark another status as completion first."
        )
    return OpResult.success(None)


# ---- operations ----


def create_status(
    board: BoardState,
    label: str,
    description: str = "",
    *,
    is_default: bool = False,
    is_completion: bool = False,
    keyboard_shortcut: str = "",
    now: datetime | None = None,
) -> OpResult[str]:
    statuses = board.status_config.statuses
    checked_label = validate_status_label(label, statuses)
    if not checked_label.ok:
        return checked_label
    checked_desc = validate_status_description(description)
    if not checked_desc.ok:
        return checked_desc
    if len(statuses) >= MAX_STATUSES:
        return invalid(f"Maximum {MAX_STATUSES} statuses allowed")

    entry = StatusEntry(
        id=uuid.uuid4().hex,
        label=str(checked_label.value),
        description=str(checked_desc.value),
        order=len(statuses),
        created_at=now or utc_now(),
        is_default=bool(is_default),
        is_completion=bool(is_completion),
        keyboard_shortcut=(keyboard_shortcut or "").strip(),
    )
    if entry.is_default:
        for s in statuses:
            s.is_default = False
    statuses.append(entry)
    board.mark_changed()
    logger.info("Status created id=%s label=%s", entry.id, entry.label)
    return OpResult.success(entry.id)


def update_status(
    board: BoardState,
    status_id: str,
    *,
    label: Any = UNSET,
    description: Any = UNSET,
    is_default: Any = UNSET,
    is_completion: Any = UNSET,
    keyboard_shortcut: Any = UNSET,
) -> OpResult[StatusEntry]:
    statuses = board.status_config.statuses
    status = status_by_id(board, status_id)
    if status is None:
        return not_found("Status not found")

    changes: dict[str, Any] = {}
    if label is not UNSET:
        checked = validate_status_label(label, statuses, exclude_id=status_id)
        if not checked.ok:
            return checked
        changes["label"] = checked.value
    if description is not UNSET:
        checked = validate_status_description(description)
        if not checked.ok:
            return checked
        changes["description"] = checked.value
    if is_default is not UNSET:
        if not is_default and status.is_default:
            return invalid("Cannot unset the only default status. Set another status as default.")
        changes["is_default"] = bool(is_default)
    if is_completion is not UNSET:
        others = sum(1 for s in statuses if s.is_completion and s.id != status_id)
        if not is_completion and status.is_completion and others == 0:
            return invalid("Cannot remove the completion flag from the only completion status")
        changes["is_completion"] = bool(is_completion)
    if keyboard_shortcut is not UNSET:
        changes["keyboard_shortcut"] = (keyboard_shortcut or "").strip()

    if changes.get("is_default"):
        for s in statuses:
            s.is_default = False
    for name, value in changes.items():
        setattr(status, name, value)

    board.mark_changed()
    return OpResult.success(status)


def delete_status(
    board: BoardState,
    status_id: str,
    migrate_to: str,
    *,
    now: datetime | None = None,
) -> OpResult[int]:
    """Delete a status, moving its tasks to `migrate_to`. Returns tasks migrated."""
    check = can_delete_status(board, status_id)
    if not check.ok:
        return check
    if status_by_id(board, migrate_to) is None:
        return invalid("Invalid migration target status")
    if migrate_to == status_id:
        return invalid("Cannot migrate tasks to the status being deleted")

    now = now or utc_now()
    migrated = 0
    for task in board.tasks:
        if task.status == status_id:
            set_task_status(task, migrate_to, now)
            touch_task(task, now)
            migrated += 1

    remaining = [s for s in ordered_statuses(board) if s.id != status_id]
    for i, s in enumerate(remaining):
        s.order = i
    board.status_config.statuses = remaining

    commit_task_changes(board, now=now)
    logger.info("Status deleted id=%s migrate_to=%s tasks=%s", status_id, migrate_to, migrated)
    return OpResult.success(migrated)


def reorder_statuses(board: BoardState, new_order: Sequence[str]) -> OpResult[None]:
    current = {s.id: s for s in board.status_config.statuses}
    if len(new_order) != len(current) or set(new_order) != set(current):
        return invalid("Invalid reorder: must include all current status IDs")

    board.status_config.statuses = [current[sid] for sid in new_order]
    for i, s in enumerate(board.status_config.statuses):
        s.order = i
    board.mark_changed()
    return OpResult.success(None)


def restore_default_statuses(board: BoardState, *, now: datetime | None = None) -> OpResult[int]:
    """
    Replace the configuration with the canonical set.
    Tasks whose status id is not canonical go to the canonical default.
    Returns the number of tasks reassigned.
    """
    now = now or utc_now()
    migrated = 0
    for task in board.tasks:
        if task.status not in CANONICAL_STATUS_IDS:
            set_task_status(task, CANONICAL_DEFAULT_ID, now)
            touch_task(task, now)
            migrated += 1

    board.status_config = canonical_status_config(now)
    commit_task_changes(board, now=now)
    logger.info("Status configuration restored to defaults tasks_migrated=%s", migrated)
    return OpResult.success(migrated)
