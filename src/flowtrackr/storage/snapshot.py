# src/flowtrackr/storage/snapshot.py

"""
Snapshot codec: BoardState <-> the persisted JSON document.

Persisted keys are camelCase. Instants are ISO-8601 UTC strings with
millisecond precision, except project createdAt which is epoch milliseconds.
Decoding is lenient field by field; shape checks for the document as a whole
live in storage.migrations.
"""

from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime
from typing import Any

from ..core.state import BoardState
from ..core.timeutil import parse_iso, to_epoch_ms, to_iso, utc_now
from ..tasks.projects import DEFAULT_PROJECT_COLOR, default_project
from ..tasks.scoring import priority_score, score_to_bucket
from ..tasks.statuses import MIN_STATUSES, canonical_status_config
from ..tasks.task_models import (
    DEFAULT_LEVEL,
    DEFAULT_PROJECT_ID,
    MAX_OWNERS_PER_TASK,
    Bucket,
    OwnerRegistry,
    OwnerStats,
    OwnerType,
    Project,
    StatusConfig,
    StatusEntry,
    Task,
)
from ..tasks.validation import LEVEL_MAX, LEVEL_MIN

logger = logging.getLogger(__name__)

STORAGE_VERSION = 2.1


# ---- encode ----


def task_to_dict(t: Task) -> dict[str, Any]:
    return {
        "id": t.id,
        "title": t.title,
        "description": t.description,
        "projectId": t.project_id,
        "status": t.status,
        "impact": t.impact,
        "urgency": t.urgency,
        "effort": t.effort,
        "score": t.score,
        "priorityBucket": t.priority_bucket.value,
        "bucketOverride": t.bucket_override.value if t.bucket_override else None,
        "dueAt": to_iso(t.due_at),
        "ownerType": t.owner_type.value,
        "owners": list(t.owners),
        "tags": list(t.tags),
        "dependencies": list(t.dependencies),
        "createdAt": to_iso(t.created_at),
        "updatedAt": to_iso(t.updated_at),
        "expectedBy": to_iso(t.expected_by),
        "timeLogSecs": t.time_log_secs,
        "timerStartedAt": to_iso(t.timer_started_at),
    }


def project_to_dict(p: Project) -> dict[str, Any]:
    return {
        "id": p.id,
        "name": p.name,
        "color": p.color,
        "isDefault": p.is_default,
        "createdAt": to_epoch_ms(p.created_at),
    }


def status_to_dict(s: StatusEntry) -> dict[str, Any]:
    return {
        "id": s.id,
        "label": s.label,
        "description": s.description,
        "order": s.order,
        "isDefault": s.is_default,
        "isCompletionState": s.is_completion,
        "keyboardShortcut": s.keyboard_shortcut,
        "createdAt": to_iso(s.created_at),
        "canDelete": True,
    }


def status_config_to_dict(cfg: StatusConfig) -> dict[str, Any]:
    ordered = sorted(cfg.statuses, key=lambda s: s.order)
    return {"statuses": [status_to_dict(s) for s in ordered], "version": cfg.version}


def owner_registry_to_dict(reg: OwnerRegistry) -> dict[str, Any]:
    return {
        "owners": sorted(reg.owners),
        "statistics": {
            name: {
                "taskCount": s.task_count,
                "lastUsed": to_iso(s.last_used),
                "createdAt": to_iso(s.first_seen),
            }
            for name, s in sorted(reg.statistics.items())
        },
    }


def board_to_snapshot(board: BoardState) -> dict[str, Any]:
    return {
        "tasks": [task_to_dict(t) for t in board.tasks],
        "projects": [project_to_dict(p) for p in board.projects],
        "currentProjectId": board.current_project_id,
        "ownerRegistry": owner_registry_to_dict(board.owner_registry),
        "statusConfig": status_config_to_dict(board.status_config),
        "autoReturnOnStop": board.auto_return_on_stop,
        "version": STORAGE_VERSION,
    }


# ---- decode ----


def _str(raw: Any, default: str = "") -> str:
    return raw if isinstance(raw, str) else default


def _number(raw: Any) -> float | None:
    """Finite int or float; JSON NaN and Infinity count as missing."""
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return None
    if not math.isfinite(raw):
        return None
    return raw


def _level(raw: Any) -> int:
    value = _number(raw)
    if value is None:
        return DEFAULT_LEVEL
    return max(LEVEL_MIN, min(LEVEL_MAX, int(value)))


def _str_list(raw: Any) -> list[str]:
    if not isinstance(raw, list):
        return []
    out: list[str] = []
    for item in raw:
        if isinstance(item, str) and item.strip() and item.strip() not in out:
            out.append(item.strip())
    return out


def task_from_dict(d: dict[str, Any], *, now: datetime) -> Task:
    impact = _level(d.get("impact"))
    urgency = _level(d.get("urgency"))
    effort = _level(d.get("effort"))
    due_at = parse_iso(d.get("dueAt"))

    raw_score = _number(d.get("score"))
    if raw_score is not None:
        score = max(0.0, min(100.0, float(raw_score)))
    else:
        score = priority_score(impact, urgency, effort, due_at, now=now)

    stored_bucket = Bucket.parse(d.get("priorityBucket"))
    if "bucketOverride" in d:
        override = Bucket.parse(d.get("bucketOverride"))
    elif stored_bucket is not None and stored_bucket != score_to_bucket(score):
        # Older documents only kept the effective bucket.
        override = stored_bucket
    else:
        override = None

    raw_secs = _number(d.get("timeLogSecs"))
    secs = int(raw_secs) if raw_secs is not None else 0

    created_at = parse_iso(d.get("createdAt")) or now
    return Task(
        id=_str(d.get("id")) or uuid.uuid4().hex,
        title=_str(d.get("title")).strip() or "Untitled",
        project_id=_str(d.get("projectId"), DEFAULT_PROJECT_ID) or DEFAULT_PROJECT_ID,
        status=_str(d.get("status")),
        created_at=created_at,
        updated_at=parse_iso(d.get("updatedAt")) or created_at,
        description=_str(d.get("description")),
        impact=impact,
        urgency=urgency,
        effort=effort,
        score=score,
        priority_bucket=override or stored_bucket or score_to_bucket(score),
        bucket_override=override,
        due_at=due_at,
        expected_by=parse_iso(d.get("expectedBy")),
        owner_type=OwnerType.from_raw(d.get("ownerType")),
        owners=_str_list(d.get("owners"))[:MAX_OWNERS_PER_TASK],
        tags=_str_list(d.get("tags")),
        dependencies=_str_list(d.get("dependencies")),
        time_log_secs=max(0, secs),
        timer_started_at=parse_iso(d.get("timerStartedAt")),
    )


def project_from_dict(d: dict[str, Any], *, now: datetime) -> Project | None:
    pid = _str(d.get("id"))
    if not pid:
        return None
    return Project(
        id=pid,
        name=_str(d.get("name")) or pid,
        color=_str(d.get("color")) or DEFAULT_PROJECT_COLOR,
        created_at=parse_iso(d.get("createdAt")) or now,
        is_default=bool(d.get("isDefault")) or pid == DEFAULT_PROJECT_ID,
    )


def status_from_dict(d: dict[str, Any], index: int, *, now: datetime) -> StatusEntry | None:
    sid = _str(d.get("id"))
    if not sid:
        return None
    order = d.get("order")
    return StatusEntry(
        id=sid,
        label=_str(d.get("label")) or sid,
        order=order if isinstance(order, int) and not isinstance(order, bool) else index,
        created_at=parse_iso(d.get("createdAt")) or now,
        description=_str(d.get("description")),
        is_default=bool(d.get("isDefault")),
        is_completion=bool(d.get("isCompletionState")),
        keyboard_shortcut=_str(d.get("keyboardShortcut")),
    )


def _decode_projects(raw: Any, *, now: datetime) -> list[Project]:
    projects: list[Project] = []
    seen: set[str] = set()
    for item in raw if isinstance(raw, list) else []:
        p = project_from_dict(item, now=now) if isinstance(item, dict) else None
        if p is None or p.id in seen:
            continue
        seen.add(p.id)
        projects.append(p)

    defaults = [p for p in projects if p.is_default]
    if not defaults:
        projects.insert(0, default_project(now))
    for extra in defaults[1:]:
        extra.is_default = False
    return projects


def _decode_status_config(raw: Any, *, now: datetime) -> StatusConfig:
    raw = raw if isinstance(raw, dict) else {}
    statuses: list[StatusEntry] = []
    seen: set[str] = set()
    raw_statuses = raw.get("statuses")
    for i, item in enumerate(raw_statuses if isinstance(raw_statuses, list) else []):
        s = status_from_dict(item, i, now=now) if isinstance(item, dict) else None
        if s is None or s.id in seen:
            continue
        seen.add(s.id)
        statuses.append(s)

    if len(statuses) < MIN_STATUSES:
        if statuses:
            logger.warning("Status configuration has %s entries; restoring defaults", len(statuses))
        return canonical_status_config(now)

    statuses.sort(key=lambda s: s.order)
    for i, s in enumerate(statuses):
        s.order = i
    defaults = [s for s in statuses if s.is_default]
    if not defaults:
        statuses[0].is_default = True
    for extra in defaults[1:]:
        extra.is_default = False
    if not any(s.is_completion for s in statuses):
        statuses[-1].is_completion = True

    version = raw.get("version")
    return StatusConfig(statuses=statuses, version=version if isinstance(version, int) else 1)


def _decode_owner_registry(raw: Any, *, now: datetime) -> OwnerRegistry:
    raw = raw if isinstance(raw, dict) else {}
    owners = set(_str_list(raw.get("owners")))
    stats: dict[str, OwnerStats] = {}
    raw_stats = raw.get("statistics")
    for name, s in (raw_stats.items() if isinstance(raw_stats, dict) else []):
        if not isinstance(name, str) or not isinstance(s, dict):
            continue
        count = s.get("taskCount")
        stats[name] = OwnerStats(
            task_count=count if isinstance(count, int) and not isinstance(count, bool) else 0,
            first_seen=parse_iso(s.get("createdAt")) or now,
            last_used=parse_iso(s.get("lastUsed")) or now,
        )
    return OwnerRegistry(owners=owners, statistics=stats)


def board_from_snapshot(data: dict[str, Any], *, now: datetime | None = None) -> BoardState:
    """
    Build a BoardState from an already migrated document.

    Structural repairs happen here (exactly one default project, a usable
    status configuration, a valid current project); referential cleanup
    (orphans, unknown statuses, owner statistics) is the migration's job.
    """
    now = now or utc_now()
    projects = _decode_projects(data.get("projects"), now=now)
    tasks = [
        task_from_dict(item, now=now)
        for item in (data.get("tasks") or [])
        if isinstance(item, dict)
    ]

    board = BoardState(
        tasks=tasks,
        projects=projects,
        owner_registry=_decode_owner_registry(data.get("ownerRegistry"), now=now),
        status_config=_decode_status_config(data.get("statusConfig"), now=now),
        auto_return_on_stop=bool(data.get("autoReturnOnStop", False)),
    )

    current = _str(data.get("currentProjectId"))
    if board.find_project(current) is None:
        fallback = board.default_project()
        current = fallback.id if fallback else DEFAULT_PROJECT_ID
    board.current_project_id = current
    return board
