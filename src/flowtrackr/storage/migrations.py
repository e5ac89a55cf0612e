# src/flowtrackr/storage/migrations.py

"""
Snapshot migrations.

Documents written by older releases are upgraded step by step:

  v1   -> v1.1  owner registry (legacy single ownerRef folded into owners)
  v1.1 -> v2    projects, currentProjectId, projectId on every task
  v2   -> v2.1  status configuration

Each step checks for its own top-level key and does nothing when present,
so every step (and the pipeline as a whole) can run any number of times.
After the steps the document is decoded, cleaned up (orphaned tasks,
unknown statuses, owner statistics) and encoded again.
"""

from __future__ import annotations

import copy
import json
import logging
from datetime import datetime, timedelta
from typing import Any

from ..core.state import BoardState
from ..core.timeutil import to_epoch_ms, to_iso, utc_now
from ..tasks.owners import rebuild_owner_registry
from ..tasks.projects import DEFAULT_PROJECT_COLOR, DEFAULT_PROJECT_NAME, default_project, reap_orphans
from ..tasks.statuses import canonical_status_config, default_status, status_by_id
from ..tasks.task_api import create_task
from ..tasks.task_models import (
    DEFAULT_PROJECT_ID,
    IN_PROGRESS_STATUS_ID,
    OwnerType,
    TaskPatch,
)
from ..tasks.timer import settle_timer
from .snapshot import STORAGE_VERSION, board_from_snapshot, board_to_snapshot, status_config_to_dict

logger = logging.getLogger(__name__)


class SnapshotError(ValueError):
    """The stored document cannot be read as a board snapshot."""


_COLLECTION_SHAPES: dict[str, type] = {
    "tasks": list,
    "projects": list,
    "ownerRegistry": dict,
    "statusConfig": dict,
}


def _check_shape(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise SnapshotError(f"snapshot root must be an object, got {type(data).__name__}")
    for key, expected in _COLLECTION_SHAPES.items():
        value = data.get(key)
        if value is not None and not isinstance(value, expected):
            raise SnapshotError(f"{key} must be a {expected.__name__}, got {type(value).__name__}")
    return data


# ---- steps ----


def migrate_to_v1_1(data: dict[str, Any], *, now: datetime) -> dict[str, Any]:
    tasks = data.get("tasks") or []
    for task in tasks:
        if not isinstance(task.get("owners"), list):
            ref = task.get("ownerRef")
            task["owners"] = [ref] if isinstance(ref, str) and ref.strip() else []

    if "ownerRegistry" in data:
        return data

    now_iso = to_iso(now)
    stats: dict[str, dict[str, Any]] = {}
    for task in tasks:
        stamp = task.get("updatedAt") or task.get("createdAt") or now_iso
        for owner in task["owners"]:
            if not isinstance(owner, str) or not owner:
                continue
            entry = stats.setdefault(
                owner,
                {"taskCount": 0, "lastUsed": stamp, "createdAt": task.get("createdAt") or now_iso},
            )
            entry["taskCount"] += 1
            if str(stamp) > str(entry["lastUsed"]):
                entry["lastUsed"] = stamp

    data["ownerRegistry"] = {"owners": sorted(stats), "statistics": stats}
    logger.info("Migrated snapshot to v1.1 owners=%s", len(stats))
    return data


def migrate_to_v2(data: dict[str, Any], *, now: datetime) -> dict[str, Any]:
    if "projects" not in data:
        data["projects"] = [
            {
                "id": DEFAULT_PROJECT_ID,
                "name": DEFAULT_PROJECT_NAME,
                "color": DEFAULT_PROJECT_COLOR,
                "isDefault": True,
                "createdAt": to_epoch_ms(now),
            }
        ]
        logger.info("Migrated snapshot to v2 (default project added)")
    if not data.get("currentProjectId"):
        data["currentProjectId"] = DEFAULT_PROJECT_ID
    for task in data.get("tasks") or []:
        if not task.get("projectId"):
            task["projectId"] = DEFAULT_PROJECT_ID
    return data


def migrate_to_v2_1(data: dict[str, Any], *, now: datetime) -> dict[str, Any]:
    if "statusConfig" in data:
        return data
    data["statusConfig"] = status_config_to_dict(canonical_status_config(now))
    logger.info("Migrated snapshot to v2.1 (status configuration seeded)")
    return data


MIGRATION_STEPS = (migrate_to_v1_1, migrate_to_v2, migrate_to_v2_1)


# ---- pipeline ----


def _repair_statuses(board: BoardState, now: datetime) -> int:
    fallback = default_status(board)
    fixed = 0
    for task in board.tasks:
        if fallback is not None and status_by_id(board, task.status) is None:
            task.status = fallback.id
            fixed += 1
        if task.timer_running and task.status != IN_PROGRESS_STATUS_ID:
            settle_timer(task, now)
    return fixed


def migrate_snapshot(data: Any, *, now: datetime | None = None) -> dict[str, Any]:
    """
    Upgrade a decoded JSON document to the current version.

    The input is never modified. Raises SnapshotError when the document
    does not have the shape of a snapshot at all.
    """
    now = now or utc_now()
    doc = copy.deepcopy(_check_shape(data))

    tasks = doc.get("tasks") or []
    doc["tasks"] = [t for t in tasks if isinstance(t, dict)]
    if len(doc["tasks"]) != len(tasks):
        logger.warning("Dropped %s malformed task records", len(tasks) - len(doc["tasks"]))

    for step in MIGRATION_STEPS:
        doc = step(doc, now=now)

    board = board_from_snapshot(doc, now=now)
    fixed = _repair_statuses(board, now)
    if fixed:
        logger.info("Reassigned %s tasks with unknown status", fixed)
    reap_orphans(board, now=now)
    rebuild_owner_registry(board, now=now)

    out = board_to_snapshot(board)
    out["version"] = STORAGE_VERSION
    return out


def _seed_patches(now: datetime) -> list[TaskPatch]:
    return [
        TaskPatch(
            title="Fix login bug for Alpha",
            status="in_progress",
            impact=4,
            urgency=5,
            effort=2,
            due_at=now + timedelta(hours=20),
            tags=["bug", "auth"],
        ),
        TaskPatch(
            title="Delegate test data generation to AI",
            status="waiting_ai",
            impact=3,
            urgency=3,
            effort=1,
            due_at=now + timedelta(hours=36),
            expected_by=now + timedelta(hours=8),
            owner_type=OwnerType.AGENT,
            tags=["agent"],
        ),
        TaskPatch(
            title="Prep for requirements call",
            status="ready",
            impact=3,
            urgency=4,
            effort=1,
            due_at=now + timedelta(hours=4),
            tags=["meeting"],
        ),
        TaskPatch(
            title="Refactor payment webhook",
            status="blocked",
            impact=4,
            urgency=2,
            effort=3,
            tags=["tech-debt"],
        ),
    ]


def build_default_board(*, now: datetime | None = None, seed_demo_tasks: bool = False) -> BoardState:
    now = now or utc_now()
    board = BoardState(
        projects=[default_project(now)],
        current_project_id=DEFAULT_PROJECT_ID,
        status_config=canonical_status_config(now),
    )
    if seed_demo_tasks:
        for patch in _seed_patches(now):
            res = create_task(board, patch, now=now)
            if not res.ok:
                logger.warning("Demo task not seeded: %s", res.error)
    return board


def build_default_snapshot(*, now: datetime | None = None, seed_demo_tasks: bool = False) -> dict[str, Any]:
    return board_to_snapshot(build_default_board(now=now, seed_demo_tasks=seed_demo_tasks))


def load_snapshot(
    raw: str | None,
    *,
    now: datetime | None = None,
    seed_demo_tasks: bool = False,
) -> dict[str, Any]:
    """
    Parse and migrate the stored JSON text.

    Missing data yields a fresh default snapshot. Unreadable data is logged
    and replaced by a fresh default snapshot as well.
    """
    now = now or utc_now()
    if raw is None or not raw.strip():
        return build_default_snapshot(now=now, seed_demo_tasks=seed_demo_tasks)

    try:
        data = json.loads(raw)
        return migrate_snapshot(data, now=now)
    except (ValueError, TypeError, OverflowError) as e:
        # JSONDecodeError and SnapshotError are ValueErrors.
        logger.warning("Stored board is unreadable (%s); starting from a fresh board", e)
        return build_default_snapshot(now=now, seed_demo_tasks=seed_demo_tasks)
