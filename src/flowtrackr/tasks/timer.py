# src/flowtrackr/tasks/timer.py

"""
Focus timer.

Elapsed time lives on the task as `time_log_secs` (closed intervals) plus an
optional `timer_started_at` (the open interval). Reads are always live:
elapsed = time_log_secs + max(0, now - timer_started_at).

A running timer implies the task sits in the in-progress status; any status
change away from it settles the open interval first.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime

from ..core.results import OpResult, invalid, not_found
from ..core.state import BoardState
from ..core.timeutil import ensure_aware, utc_now
from .owners import commit_task_changes
from .scoring import touch_task
from .task_models import IN_PROGRESS_STATUS_ID, READY_STATUS_ID, Task

logger = logging.getLogger(__name__)


def compute_elapsed_secs(task: Task, now: datetime | None = None) -> int:
    base = max(0, int(task.time_log_secs or 0))
    if task.timer_started_at is not None:
        delta = (ensure_aware(now or utc_now()) - ensure_aware(task.timer_started_at)).total_seconds()
        base += max(0, math.floor(delta))
    return base


def format_duration_short(total_seconds: float) -> str:
    s = max(0, math.floor(total_seconds))
    h, rem = divmod(s, 3600)
    m, sec = divmod(rem, 60)
    if h > 0:
        return f"{h}h {m}m"
    if m > 0:
        return f"{m}m {sec}s" if sec else f"{m}m"
    return f"{sec}s"


def settle_timer(task: Task, now: datetime) -> int:
    """Close the open interval into time_log_secs. Returns seconds added."""
    if task.timer_started_at is None:
        return 0
    added = compute_elapsed_secs(task, now) - max(0, int(task.time_log_secs or 0))
    task.time_log_secs = max(0, int(task.time_log_secs or 0)) + added
    task.timer_started_at = None
    return added


def set_task_status(task: Task, status_id: str, now: datetime) -> None:
    if task.timer_running and status_id != IN_PROGRESS_STATUS_ID:
        settle_timer(task, now)
    task.status = status_id


def _has_status(board: BoardState, status_id: str) -> bool:
    return any(s.id == status_id for s in board.status_config.statuses)


def start_timer(board: BoardState, task_id: str, *, now: datetime | None = None) -> OpResult[Task]:
    task = board.find_task(task_id)
    if task is None:
        return not_found("Task not found")
    if not _has_status(board, IN_PROGRESS_STATUS_ID):
        return invalid("No in-progress status is configured")

    now = now or utc_now()
    if task.timer_started_at is None:
        task.timer_started_at = now
    task.status = IN_PROGRESS_STATUS_ID
    touch_task(task, now)
    commit_task_changes(board, now=now)
    logger.debug("Timer started task_id=%s", task_id)
    return OpResult.success(task)


def stop_timer(board: BoardState, task_id: str, *, now: datetime | None = None) -> OpResult[int]:
    """Returns the seconds added by this stop (0 when no timer was running)."""
    task = board.find_task(task_id)
    if task is None:
        return not_found("Task not found")
    if task.timer_started_at is None:
        return OpResult.success(0)

    now = now or utc_now()
    added = settle_timer(task, now)
    if (
        board.auto_return_on_stop
        and task.status == IN_PROGRESS_STATUS_ID
        and _has_status(board, READY_STATUS_ID)
    ):
        task.status = READY_STATUS_ID
    touch_task(task, now)
    commit_task_changes(board, now=now)
    logger.debug("Timer stopped task_id=%s added=%s total=%s", task_id, added, task.time_log_secs)
    return OpResult.success(added)


def set_auto_return_on_stop(board: BoardState, enabled: bool) -> OpResult[bool]:
    board.auto_return_on_stop = bool(enabled)
    board.mark_changed()
    return OpResult.success(board.auto_return_on_stop)


def running_timers(board: BoardState) -> list[Task]:
    return [t for t in board.tasks if t.timer_running]
