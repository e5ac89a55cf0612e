# src/flowtrackr/tasks/scoring.py

"""
Priority scoring.

score = 2*impact + 1.5*urgency - effort
        +2 if due within 24h (overdue included), else +1 if due within 72h
        +1 per active bonus flag
rounded to one decimal and clamped to [0, 100].
"""

from __future__ import annotations

import math
from datetime import datetime

from ..core.timeutil import ensure_aware, utc_now
from .task_models import Bucket, Task

SCORE_MIN = 0.0
SCORE_MAX = 100.0

_BUCKET_FLOORS: tuple[tuple[float, Bucket], ...] = (
    (80.0, Bucket.P0),
    (60.0, Bucket.P1),
    (40.0, Bucket.P2),
)


def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def _round1(x: float) -> float:
    # Half-up, so 12.25 -> 12.3 regardless of float banking.
    return math.floor(x * 10.0 + 0.5) / 10.0


def _whole_hours_until(due_at: datetime, now: datetime) -> int:
    seconds = (ensure_aware(due_at) - ensure_aware(now)).total_seconds()
    return int(seconds / 3600.0)


def due_bonus(due_at: datetime | None, now: datetime | None = None) -> float:
    if due_at is None:
        return 0.0
    hours = _whole_hours_until(due_at, now or utc_now())
    if hours <= 24:
        return 2.0
    if hours <= 72:
        return 1.0
    return 0.0


def priority_score(
    impact: int,
    urgency: int,
    effort: int,
    due_at: datetime | None = None,
    *,
    has_unblocked_deps: bool = False,
    meeting_context: bool = False,
    now: datetime | None = None,
) -> float:
    score = 2.0 * impact + 1.5 * urgency - effort
    score += due_bonus(due_at, now)
    if has_unblocked_deps:
        score += 1.0
    if meeting_context:
        score += 1.0
    return _clamp(_round1(score), SCORE_MIN, SCORE_MAX)


def score_to_bucket(score: float) -> Bucket:
    for floor, bucket in _BUCKET_FLOORS:
        if score >= floor:
            return bucket
    return Bucket.P3


def score_and_bucket(
    impact: int,
    urgency: int,
    effort: int,
    due_at: datetime | None = None,
    *,
    override: Bucket | None = None,
    now: datetime | None = None,
) -> tuple[float, Bucket]:
    """Score is always recomputed; an explicit bucket wins over the derived one."""
    score = priority_score(impact, urgency, effort, due_at, now=now)
    return score, (override or score_to_bucket(score))


def rescore_task(task: Task, now: datetime | None = None) -> None:
    task.score, task.priority_bucket = score_and_bucket(
        task.impact,
        task.urgency,
        task.effort,
        task.due_at,
        override=task.bucket_override,
        now=now,
    )


def touch_task(task: Task, now: datetime | None = None) -> None:
    """Every task mutation stamps updated_at and re-runs scoring."""
    now = now or utc_now()
    task.updated_at = now
    rescore_task(task, now)
