# src/flowtrackr/tasks/projects.py

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Sequence
from datetime import datetime

from ..core.results import OpResult, invalid, not_found
from ..core.state import BoardState
from ..core.timeutil import utc_now
from .owners import commit_task_changes
from .scoring import touch_task
from .task_models import DEFAULT_PROJECT_ID, Project, Task
from .validation import validate_project_name

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_NAME = "Default"
DEFAULT_PROJECT_COLOR = "#6B7280"

PROJECT_COLORS: tuple[str, ...] = (
    "#EF4444",  # red
    "#F59E0B",  # amber
    "#10B981",  # emerald
    "#3B82F6",  # blue
    "#8B5CF6",  # violet
    "#EC4899",  # pink
    "#14B8A6",  # teal
    "#F97316",  # orange
)


def project_color(index: int) -> str:
    return PROJECT_COLORS[index % len(PROJECT_COLORS)]


def default_project(now: datetime | None = None) -> Project:
    return Project(
        id=DEFAULT_PROJECT_ID,
        name=DEFAULT_PROJECT_NAME,
        color=DEFAULT_PROJECT_COLOR,
        created_at=now or utc_now(),
        is_default=True,
    )


def _default_project_id(board: BoardState) -> str:
    p = board.default_project()
    return p.id if p else DEFAULT_PROJECT_ID


def create_project(board: BoardState, name: str, *, now: datetime | None = None) -> OpResult[str]:
    checked = validate_project_name(name, board.projects)
    if not checked.ok:
        return checked

    project = Project(
        id=f"proj_{uuid.uuid4().hex[:12]}",
        name=str(checked.value),
        color=project_color(len(board.projects)),
        created_at=now or utc_now(),
    )
    board.projects.append(project)
    board.mark_changed()
    logger.info("Project created id=%s name=%s", project.id, project.name)
    return OpResult.success(project.id)


def rename_project(board: BoardState, project_id: str, new_name: str) -> OpResult[Project]:
    project = board.find_project(project_id)
    if project is None:
        return not_found("Project not found")
    if project.is_default:
        return invalid("Cannot rename the default project")
    checked = validate_project_name(new_name, board.projects, exclude_id=project_id)
    if not checked.ok:
        return checked

    project.name = str(checked.value)
    board.mark_changed()
    return OpResult.success(project)


def delete_project(
    board: BoardState, project_id: str, *, now: datetime | None = None
) -> OpResult[int]:
    """Delete a project and all its tasks. Returns the number of tasks deleted."""
    project = board.find_project(project_id)
    if project is None:
        return not_found("Project not found")
    if project.is_default:
        return invalid("Cannot delete the default project")

    before = len(board.tasks)
    board.tasks = [t for t in board.tasks if t.project_id != project_id]
    board.projects = [p for p in board.projects if p.id != project_id]
    if board.current_project_id == project_id:
        board.current_project_id = _default_project_id(board)

    deleted = before - len(board.tasks)
    commit_task_changes(board, now=now)
    logger.info("Project deleted id=%s tasks_deleted=%s", project_id, deleted)
    return OpResult.success(deleted)


def reorder_projects(board: BoardState, ordered_ids: Sequence[str]) -> OpResult[None]:
    """Unknown ids are ignored; projects missing from the list keep their relative order at the end."""
    by_id = {p.id: p for p in board.projects}
    seen: set[str] = set()
    reordered: list[Project] = []
    for pid in ordered_ids:
        if pid in by_id and pid not in seen:
            reordered.append(by_id[pid])
            seen.add(pid)
    reordered.extend(p for p in board.projects if p.id not in seen)

    board.projects = reordered
    board.mark_changed()
    return OpResult.success(None)


def switch_project(board: BoardState, project_id: str) -> OpResult[str]:
    if board.current_project_id == project_id:
        return OpResult.success(project_id)
    if board.find_project(project_id) is None:
        return not_found("Project not found")
    board.current_project_id = project_id
    board.mark_changed()
    return OpResult.success(project_id)


def move_tasks_to_project(
    board: BoardState,
    task_ids: Iterable[str],
    target_project_id: str,
    *,
    now: datetime | None = None,
) -> OpResult[int]:
    if board.find_project(target_project_id) is None:
        return not_found("Target project not found")
    wanted = set(task_ids)
    if not wanted:
        return invalid("No tasks selected")

    now = now or utc_now()
    moved = 0
    for task in board.tasks:
        if task.id in wanted:
            task.project_id = target_project_id
            touch_task(task, now)
            moved += 1
    commit_task_changes(board, now=now)
    return OpResult.success(moved)


def visible_tasks(board: BoardState) -> list[Task]:
    return [t for t in board.tasks if t.project_id == board.current_project_id]


def project_task_count(board: BoardState, project_id: str) -> int:
    return sum(1 for t in board.tasks if t.project_id == project_id)


def clear_current_project(board: BoardState, *, now: datetime | None = None) -> OpResult[int]:
    before = len(board.tasks)
    board.tasks = [t for t in board.tasks if t.project_id != board.current_project_id]
    deleted = before - len(board.tasks)
    if deleted:
        commit_task_changes(board, now=now)
    return OpResult.success(deleted)


def project_with_active_timer(board: BoardState) -> Project | None:
    for t in board.tasks:
        if t.timer_running:
            return board.find_project(t.project_id)
    return None


def has_active_timer_in_other_project(board: BoardState) -> bool:
    return any(t.timer_running and t.project_id != board.current_project_id for t in board.tasks)


def reap_orphans(board: BoardState, *, now: datetime | None = None) -> int:
    """Remove tasks whose project no longer exists. Returns the number removed."""
    known = {p.id for p in board.projects}
    before = len(board.tasks)
    board.tasks = [t for t in board.tasks if t.project_id in known]
    removed = before - len(board.tasks)
    if removed:
        commit_task_changes(board, now=now)
        logger.info("Removed %s orphaned tasks", removed)
    return removed
