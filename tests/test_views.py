# tests/test_views.py

from __future__ import annotations

from datetime import timedelta

from flowtrackr.tasks.projects import create_project
from flowtrackr.tasks.task_api import create_task
from flowtrackr.tasks.task_models import TaskPatch
from flowtrackr.tasks.views import (
    TaskFilter,
    ViewMode,
    board_view,
    group_by_status,
    high_wip,
    wip_count,
)

from .conftest import NOW


def _add(board, title: str, **fields) -> str:
    return create_task(board, TaskPatch(title=title, **fields), now=NOW).value


def test_sort_by_status_then_score_then_due(board) -> None:
    _add(board, "low", status="ready", impact=1, urgency=1)
    _add(board, "high", status="ready", impact=5, urgency=5)
    _add(board, "late", status="backlog", due_at=NOW + timedelta(days=9))
    _add(board, "soon", status="backlog", due_at=NOW + timedelta(days=8))
    _add(board, "done", status="done")

    assert [t.title for t in board_view(board)] == ["soon", "late", "high", "low", "done"]


def test_filter_by_text_and_owner(board) -> None:
    _add(board, "Write API docs", tags=["docs"], owners=["Ana"])
    _add(board, "Fix cache", description="stale API responses")
    _add(board, "Lunch")

    assert [t.title for t in board_view(board, TaskFilter(query="api"))] == [
        "Write API docs",
        "Fix cache",
    ]
    assert [t.title for t in board_view(board, TaskFilter(query="DOCS"))] == ["Write API docs"]
    assert [t.title for t in board_view(board, TaskFilter(owner="Ana"))] == ["Write API docs"]
    assert board_view(board, TaskFilter(query="api", owner="Bo")) == []


def test_view_only_shows_current_project(board) -> None:
    pid = create_project(board, "Other", now=NOW).value
    _add(board, "here")
    _add(board, "there", project_id=pid)
    assert [t.title for t in board_view(board)] == ["here"]


def test_group_by_status_keeps_column_order(board) -> None:
    _add(board, "a", status="blocked")
    groups = group_by_status(board, board_view(board))
    assert list(groups)[:3] == ["backlog", "ready", "in_progress"]
    assert [t.title for t in groups["blocked"]] == ["a"]
    assert groups["done"] == []


def test_high_wip_above_three(board) -> None:
    for i in range(3):
        _add(board, f"wip {i}", status="in_progress")
    assert wip_count(board) == 3
    assert not high_wip(board)
    _add(board, "one more", status="in_progress")
    assert high_wip(board)


def test_view_mode_parse() -> None:
    assert ViewMode.parse("Backlog") == ViewMode.BACKLOG
    assert ViewMode.parse("grid") == ViewMode.BOARD
    assert ViewMode.parse(None) == ViewMode.BOARD
