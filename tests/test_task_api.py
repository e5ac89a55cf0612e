# tests/test_task_api.py

from __future__ import annotations

from datetime import timedelta

from flowtrackr.core.results import ErrorKind
from flowtrackr.tasks.task_api import (
    create_task,
    create_task_from_quick_add,
    delete_task,
    delete_tasks,
    move_task,
    update_task,
)
from flowtrackr.tasks.task_models import Bucket, OwnerType, TaskPatch

from .conftest import NOW


def test_create_task_uses_defaults(board) -> None:
    res = create_task(board, TaskPatch(title="  Write docs  "), now=NOW)
    assert res.ok
    task = board.find_task(res.value)
    assert task.title == "Write docs"
    assert task.project_id == "default"
    assert task.status == "backlog"
    assert (task.impact, task.urgency, task.effort) == (2, 2, 2)
    assert task.score == 5.0
    assert task.priority_bucket == Bucket.P3
    assert task.created_at == task.updated_at == NOW
    assert board.revision > 0


def test_create_task_rejects_missing_title(board) -> None:
    res = create_task(board, TaskPatch(title="   "), now=NOW)
    assert not res.ok
    assert res.kind == ErrorKind.VALIDATION
    assert board.tasks == []


def test_failed_validation_leaves_board_untouched(board) -> None:
    tid = create_task(board, TaskPatch(title="A"), now=NOW).value
    revision = board.revision

    res = update_task(board, tid, TaskPatch(title="B", impact=9), now=NOW)
    assert not res.ok
    assert board.find_task(tid).title == "A"
    assert board.revision == revision

    res = update_task(board, tid, TaskPatch(status="nope"), now=NOW)
    assert not res.ok
    res = update_task(board, tid, TaskPatch(owners=["a", "b", "c", "d", "e", "f"]), now=NOW)
    assert not res.ok
    res = update_task(board, tid, TaskPatch(due_at="not a date"), now=NOW)
    assert not res.ok
    assert board.revision == revision


def test_update_rescores_and_stamps(board) -> None:
    tid = create_task(board, TaskPatch(title="A"), now=NOW).value
    later = NOW + timedelta(minutes=5)
    res = update_task(
        board, tid, TaskPatch(impact=4, urgency=5, due_at=NOW + timedelta(hours=2)), now=later
    )
    assert res.ok
    task = res.value
    assert task.score == 15.5
    assert task.updated_at == later
    assert task.created_at == NOW


def test_due_date_accepts_iso_strings(board) -> None:
    res = create_task(board, TaskPatch(title="A", due_at="2025-03-10T12:00:00Z"), now=NOW)
    assert res.ok
    assert board.find_task(res.value).due_at.hour == 12


def test_bucket_override_lifecycle(board) -> None:
    tid = create_task(board, TaskPatch(title="A", priority_bucket="p0"), now=NOW).value
    task = board.find_task(tid)
    assert task.priority_bucket == Bucket.P0
    assert task.bucket_override == Bucket.P0

    # Unrelated edits keep the override.
    update_task(board, tid, TaskPatch(title="A2", tags=["x"]), now=NOW)
    assert task.priority_bucket == Bucket.P0

    # Scoring input edited without a bucket: back to the derived bucket.
    update_task(board, tid, TaskPatch(impact=3), now=NOW)
    assert task.bucket_override is None
    assert task.priority_bucket == Bucket.P3

    # Bucket and scoring input in the same patch: bucket wins.
    update_task(board, tid, TaskPatch(impact=5, priority_bucket=Bucket.P1), now=NOW)
    assert task.priority_bucket == Bucket.P1

    # Explicit None clears.
    update_task(board, tid, TaskPatch(priority_bucket=None), now=NOW)
    assert task.priority_bucket == Bucket.P3


def test_owner_type_is_validated(board) -> None:
    res = create_task(board, TaskPatch(title="A", owner_type="robot"), now=NOW)
    assert not res.ok
    res = create_task(board, TaskPatch(title="A", owner_type="ai"), now=NOW)
    assert board.find_task(res.value).owner_type == OwnerType.AGENT


def test_owners_are_registered(board) -> None:
    create_task(board, TaskPatch(title="A", owners=["Alice", "Bob", "Alice"]), now=NOW)
    assert board.owner_registry.owners == {"Alice", "Bob"}
    assert board.owner_registry.statistics["Alice"].task_count == 1


def test_create_in_unknown_project_fails(board) -> None:
    res = create_task(board, TaskPatch(title="A", project_id="ghost"), now=NOW)
    assert res.kind == ErrorKind.NOT_FOUND


def test_delete_task(board) -> None:
    tid = create_task(board, TaskPatch(title="A"), now=NOW).value
    assert delete_task(board, tid, now=NOW).ok
    assert board.tasks == []
    assert delete_task(board, tid, now=NOW).kind == ErrorKind.NOT_FOUND


def test_delete_tasks_counts(board) -> None:
    ids = [create_task(board, TaskPatch(title=f"T{i}"), now=NOW).value for i in range(3)]
    assert delete_tasks(board, [ids[0], ids[2], "missing"], now=NOW).value == 2
    assert [t.id for t in board.tasks] == [ids[1]]


def test_move_task(board) -> None:
    tid = create_task(board, TaskPatch(title="A"), now=NOW).value
    assert move_task(board, tid, "done", now=NOW).ok
    assert board.find_task(tid).status == "done"
    assert not move_task(board, tid, "nope", now=NOW).ok


def test_quick_add_agent_task_lands_in_waiting_column(board) -> None:
    res = create_task_from_quick_add(board, "Generate fixtures @ai +agent", now=NOW)
    task = board.find_task(res.value)
    assert task.status == "waiting_ai"
    assert task.owner_type == OwnerType.AGENT
    assert task.tags == ["agent"]


def test_quick_add_blank_title_becomes_untitled(board) -> None:
    res = create_task_from_quick_add(board, "+tag !p1", now=NOW)
    task = board.find_task(res.value)
    assert task.title == "Untitled"
    assert task.priority_bucket == Bucket.P1
