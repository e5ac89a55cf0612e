# tests/test_scoring.py

from __future__ import annotations

from datetime import timedelta

import pytest

from flowtrackr.tasks.scoring import due_bonus, priority_score, score_and_bucket, score_to_bucket
from flowtrackr.tasks.task_models import Bucket

from .conftest import NOW


def test_base_formula_without_due_date() -> None:
    assert priority_score(4, 5, 2, now=NOW) == 13.5
    assert priority_score(2, 2, 2, now=NOW) == 5.0


@pytest.mark.parametrize(
    ("hours", "bonus"),
    [
        (-5, 2.0),  # overdue
        (4, 2.0),
        (24.9, 2.0),  # 24 whole hours
        (25, 1.0),
        (72.5, 1.0),
        (73, 0.0),
        (500, 0.0),
    ],
)
def test_due_bonus_windows(hours: float, bonus: float) -> None:
    assert due_bonus(NOW + timedelta(hours=hours), NOW) == bonus


def test_bonus_flags_add_one_each() -> None:
    base = priority_score(3, 3, 3, now=NOW)
    assert priority_score(3, 3, 3, has_unblocked_deps=True, now=NOW) == base + 1
    assert priority_score(3, 3, 3, has_unblocked_deps=True, meeting_context=True, now=NOW) == base + 2


def test_score_is_clamped_to_zero() -> None:
    assert priority_score(0, 0, 5, now=NOW) == 0.0


def test_score_within_bounds_and_monotonic_in_impact() -> None:
    due = NOW + timedelta(hours=10)
    for urgency in range(6):
        for effort in range(6):
            scores = [priority_score(i, urgency, effort, due, now=NOW) for i in range(6)]
            assert all(0.0 <= s <= 100.0 for s in scores)
            assert scores == sorted(scores)


@pytest.mark.parametrize(
    ("score", "bucket"),
    [
        (100.0, Bucket.P0),
        (80.0, Bucket.P0),
        (79.9, Bucket.P1),
        (60.0, Bucket.P1),
        (59.9, Bucket.P2),
        (40.0, Bucket.P2),
        (39.9, Bucket.P3),
        (0.0, Bucket.P3),
    ],
)
def test_bucket_boundaries(score: float, bucket: Bucket) -> None:
    assert score_to_bucket(score) == bucket


def test_explicit_bucket_wins_but_score_is_recomputed() -> None:
    score, bucket = score_and_bucket(4, 5, 2, override=Bucket.P0, now=NOW)
    assert bucket == Bucket.P0
    assert score == 13.5

    score, bucket = score_and_bucket(4, 5, 2, now=NOW)
    assert bucket == Bucket.P3
