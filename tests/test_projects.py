# tests/test_projects.py

from __future__ import annotations

from dataclasses import replace

from flowtrackr.core.results import ErrorKind
from flowtrackr.tasks.projects import (
    PROJECT_COLORS,
    clear_current_project,
    create_project,
    delete_project,
    has_active_timer_in_other_project,
    move_tasks_to_project,
    project_task_count,
    project_with_active_timer,
    reap_orphans,
    rename_project,
    reorder_projects,
    switch_project,
    visible_tasks,
)
from flowtrackr.tasks.task_api import create_task
from flowtrackr.tasks.task_models import TaskPatch
from flowtrackr.tasks.timer import start_timer

from .conftest import NOW


def test_create_project_validates_name(board) -> None:
    res = create_project(board, "Alpha", now=NOW)
    assert res.ok
    project = board.find_project(res.value)
    assert project.name == "Alpha"
    assert project.color in PROJECT_COLORS
    assert not project.is_default

    assert not create_project(board, "alpha", now=NOW).ok
    assert not create_project(board, "x" * 16, now=NOW).ok
    assert not create_project(board, "   ", now=NOW).ok


def test_default_project_is_protected(board) -> None:
    assert not rename_project(board, "default", "Main").ok
    assert not delete_project(board, "default", now=NOW).ok
    assert rename_project(board, "ghost", "X").kind == ErrorKind.NOT_FOUND


def test_rename_allows_same_name_different_case(board) -> None:
    pid = create_project(board, "Alpha", now=NOW).value
    assert rename_project(board, pid, "ALPHA").ok
    assert board.find_project(pid).name == "ALPHA"


def test_delete_project_cascades_and_switches_scope(board) -> None:
    pid = create_project(board, "Alpha", now=NOW).value
    switch_project(board, pid)
    create_task(board, TaskPatch(title="A"), now=NOW)
    create_task(board, TaskPatch(title="B"), now=NOW)
    create_task(board, TaskPatch(title="Elsewhere", project_id="default"), now=NOW)

    res = delete_project(board, pid, now=NOW)
    assert res.value == 2
    assert board.current_project_id == "default"
    assert [t.title for t in board.tasks] == ["Elsewhere"]
    assert board.find_project(pid) is None


def test_new_tasks_land_in_active_project(board) -> None:
    pid = create_project(board, "Alpha", now=NOW).value
    assert switch_project(board, pid).ok
    tid = create_task(board, TaskPatch(title="A"), now=NOW).value
    assert board.find_task(tid).project_id == pid
    assert [t.id for t in visible_tasks(board)] == [tid]
    assert project_task_count(board, "default") == 0

    assert switch_project(board, "ghost").kind == ErrorKind.NOT_FOUND


def test_reorder_appends_missing_projects(board) -> None:
    a = create_project(board, "A", now=NOW).value
    b = create_project(board, "B", now=NOW).value
    reorder_projects(board, [b, "unknown", a])
    assert [p.id for p in board.projects] == [b, a, "default"]


def test_move_tasks_between_projects(board) -> None:
    pid = create_project(board, "Alpha", now=NOW).value
    t1 = create_task(board, TaskPatch(title="A"), now=NOW).value
    t2 = create_task(board, TaskPatch(title="B"), now=NOW).value

    assert move_tasks_to_project(board, [t1], pid, now=NOW).value == 1
    assert board.find_task(t1).project_id == pid
    assert board.find_task(t2).project_id == "default"
    assert move_tasks_to_project(board, [t2], "ghost", now=NOW).kind == ErrorKind.NOT_FOUND


def test_clear_current_project(board) -> None:
    create_task(board, TaskPatch(title="A"), now=NOW)
    pid = create_project(board, "Alpha", now=NOW).value
    create_task(board, TaskPatch(title="B", project_id=pid), now=NOW)

    assert clear_current_project(board, now=NOW).value == 1
    assert [t.title for t in board.tasks] == ["B"]


def test_reap_orphans_removes_exactly_orphans(board) -> None:
    keep = create_task(board, TaskPatch(title="Keep"), now=NOW).value
    template = board.find_task(keep)
    board.tasks.append(replace(template, id="orphan-1", project_id="gone", owners=["Zed"]))
    board.tasks.append(replace(template, id="orphan-2", project_id="also-gone"))

    assert reap_orphans(board, now=NOW) == 2
    assert [t.id for t in board.tasks] == [keep]
    assert reap_orphans(board, now=NOW) == 0


def test_active_timer_lookup(board) -> None:
    pid = create_project(board, "Alpha", now=NOW).value
    tid = create_task(board, TaskPatch(title="A", project_id=pid), now=NOW).value
    assert project_with_active_timer(board) is None

    start_timer(board, tid, now=NOW)
    assert project_with_active_timer(board).id == pid
    assert has_active_timer_in_other_project(board) is True
    switch_project(board, pid)
    assert has_active_timer_in_other_project(board) is False
