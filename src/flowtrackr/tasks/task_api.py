# src/flowtrackr/tasks/task_api.py

"""
Task lifecycle operations.

Every function takes the BoardState explicitly and returns an OpResult.
A patch is validated completely before the board is touched, so a failed
call never leaves a half-applied change behind.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from ..core.results import OpResult, invalid, not_found
from ..core.state import BoardState
from ..core.timeutil import parse_iso, utc_now
from .owners import commit_task_changes
from .quick_add import parse_quick_add
from .scoring import touch_task
from .statuses import default_status, status_by_id
from .task_models import (
    MAX_OWNERS_PER_TASK,
    WAITING_AI_STATUS_ID,
    Bucket,
    OwnerType,
    Task,
    TaskPatch,
)
from .timer import set_task_status
from .validation import validate_level, validate_owner_name

logger = logging.getLogger(__name__)

UNTITLED = "Untitled"

# Editing any of these without an explicit bucket drops a previous override.
_SCORING_FIELDS = ("impact", "urgency", "effort", "due_at")


# ---- patch validation ----


def _clean_instant(name: str, value: Any) -> OpResult[datetime | None]:
    if value is None or isinstance(value, datetime):
        return OpResult.success(value)
    if isinstance(value, str):
        if not value.strip():
            return OpResult.success(None)
        parsed = parse_iso(value)
        if parsed is None:
            return invalid(f"{name} is not a valid date")
        return OpResult.success(parsed)
    return invalid(f"{name} is not a valid date")


def _clean_strings(name: str, value: Any) -> OpResult[list[str]]:
    if value is None:
        return OpResult.success([])
    if isinstance(value, str) or not isinstance(value, Iterable):
        return invalid(f"{name} must be a list of strings")
    out: list[str] = []
    for item in value:
        if not isinstance(item, str):
            return invalid(f"{name} must be a list of strings")
        s = item.strip()
        if s and s not in out:
            out.append(s)
    return OpResult.success(out)


def _clean_owners(value: Any) -> OpResult[list[str]]:
    listed = _clean_strings("owners", value)
    if not listed.ok:
        return listed
    owners: list[str] = []
    for raw in listed.value or []:
        checked = validate_owner_name(raw)
        if not checked.ok:
            return invalid(f"Invalid owner {raw!r}: {checked.error}")
        if checked.value not in owners:
            owners.append(str(checked.value))
    if len(owners) > MAX_OWNERS_PER_TASK:
        return invalid(f"A task can have at most {MAX_OWNERS_PER_TASK} owners")
    return OpResult.success(owners)


def _clean_owner_type(value: Any) -> OpResult[OwnerType]:
    if isinstance(value, OwnerType):
        return OpResult.success(value)
    if isinstance(value, str) and value.strip().lower() in {"self", "agent", "other", "ai"}:
        return OpResult.success(OwnerType.from_raw(value))
    return invalid(f"Unknown owner type {value!r}")


def _validate_patch(
    board: BoardState, patch: TaskPatch, *, creating: bool
) -> OpResult[dict[str, Any]]:
    """Normalize a patch into plain field values, or fail without side effects."""
    clean: dict[str, Any] = {}

    for name, value in patch.items().items():
        if name == "title":
            title = value.strip() if isinstance(value, str) else ""
            if not title:
                return invalid("Title is required")
            clean[name] = title
        elif name == "description":
            if value is not None and not isinstance(value, str):
                return invalid("description must be text")
            clean[name] = (value or "").strip()
        elif name == "project_id":
            if board.find_project(value) is None:
                return not_found("Project not found")
            clean[name] = value
        elif name == "status":
            if status_by_id(board, value) is None:
                return invalid(f"Unknown status {value!r}")
            clean[name] = value
        elif name in ("impact", "urgency", "effort"):
            checked = validate_level(name, value)
            if not checked.ok:
                return checked
            clean[name] = checked.value
        elif name == "priority_bucket":
            if value is None:
                clean[name] = None
            else:
                bucket = Bucket.parse(value)
                if bucket is None:
                    return invalid(f"Unknown priority bucket {value!r}")
                clean[name] = bucket
        elif name in ("due_at", "expected_by"):
            checked = _clean_instant(name, value)
            if not checked.ok:
                return checked
            clean[name] = checked.value
        elif name == "owner_type":
            checked = _clean_owner_type(value)
            if not checked.ok:
                return checked
            clean[name] = checked.value
        elif name == "owners":
            checked = _clean_owners(value)
            if not checked.ok:
                return checked
            clean[name] = checked.value
        elif name in ("tags", "dependencies"):
            checked = _clean_strings(name, value)
            if not checked.ok:
                return checked
            clean[name] = checked.value

    if creating and "title" not in clean:
        return invalid("Title is required")
    return OpResult.success(clean)


def _apply(task: Task, clean: dict[str, Any], now: datetime) -> None:
    if "priority_bucket" in clean:
        task.bucket_override = clean["priority_bucket"]
    elif any(f in clean for f in _SCORING_FIELDS):
        task.bucket_override = None

    for name, value in clean.items():
        if name in ("priority_bucket", "status"):
            continue
        setattr(task, name, value)

    if "status" in clean:
        set_task_status(task, clean["status"], now)
    touch_task(task, now)


# ---- operations ----


def create_task(board: BoardState, patch: TaskPatch, *, now: datetime | None = None) -> OpResult[str]:
    checked = _validate_patch(board, patch, creating=True)
    if not checked.ok:
        return checked
    clean = checked.value or {}

    project_id = clean.get("project_id")
    if project_id is None:
        project_id = board.current_project_id
        if board.find_project(project_id) is None:
            fallback = board.default_project()
            if fallback is None:
                return not_found("No project available for the new task")
            project_id = fallback.id

    status_id = clean.get("status")
    if status_id is None:
        default = default_status(board)
        if default is None:
            return invalid("No default status configured")
        status_id = default.id

    now = now or utc_now()
    task = Task(
        id=uuid.uuid4().hex,
        title=clean["title"],
        project_id=project_id,
        status=status_id,
        created_at=now,
        updated_at=now,
    )
    clean = {k: v for k, v in clean.items() if k not in ("project_id", "status")}
    _apply(task, clean, now)

    board.tasks.append(task)
    commit_task_changes(board, now=now)
    logger.info("Task created id=%s project=%s status=%s", task.id, task.project_id, task.status)
    return OpResult.success(task.id)


def update_task(
    board: BoardState, task_id: str, patch: TaskPatch, *, now: datetime | None = None
) -> OpResult[Task]:
    task = board.find_task(task_id)
    if task is None:
        return not_found("Task not found")
    checked = _validate_patch(board, patch, creating=False)
    if not checked.ok:
        return checked

    now = now or utc_now()
    _apply(task, checked.value or {}, now)
    commit_task_changes(board, now=now)
    logger.debug("Task updated id=%s fields=%s", task_id, sorted((checked.value or {}).keys()))
    return OpResult.success(task)


def delete_task(board: BoardState, task_id: str, *, now: datetime | None = None) -> OpResult[str]:
    if board.find_task(task_id) is None:
        return not_found("Task not found")
    board.tasks = [t for t in board.tasks if t.id != task_id]
    commit_task_changes(board, now=now)
    logger.info("Task deleted id=%s", task_id)
    return OpResult.success(task_id)


def delete_tasks(
    board: BoardState, task_ids: Iterable[str], *, now: datetime | None = None
) -> OpResult[int]:
    wanted = set(task_ids)
    before = len(board.tasks)
    board.tasks = [t for t in board.tasks if t.id not in wanted]
    deleted = before - len(board.tasks)
    if deleted:
        commit_task_changes(board, now=now)
    return OpResult.success(deleted)


def move_task(
    board: BoardState, task_id: str, status_id: str, *, now: datetime | None = None
) -> OpResult[Task]:
    task = board.find_task(task_id)
    if task is None:
        return not_found("Task not found")
    if status_by_id(board, status_id) is None:
        return invalid(f"Unknown status {status_id!r}")

    now = now or utc_now()
    set_task_status(task, status_id, now)
    touch_task(task, now)
    commit_task_changes(board, now=now)
    return OpResult.success(task)


def create_task_from_quick_add(
    board: BoardState, text: str, *, now: datetime | None = None
) -> OpResult[str]:
    """
    Parse one quick-add line and create the task.
    Agent-owned tasks land in the waiting-on-agent column when it exists.
    """
    now = now or utc_now()
    patch = parse_quick_add(text, now=now)
    if not patch.title:
        patch.title = UNTITLED
    if patch.owner_type == OwnerType.AGENT and status_by_id(board, WAITING_AI_STATUS_ID) is not None:
        patch.status = WAITING_AI_STATUS_ID
    return create_task(board, patch, now=now)
