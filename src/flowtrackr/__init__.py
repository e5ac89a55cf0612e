"""flowtrackr: a local task board engine (scoring, quick-add, projects, statuses, owners, timers)."""

from __future__ import annotations

from .core.results import ErrorKind, OpResult
from .core.state import BoardState
from .storage.migrations import build_default_board, load_snapshot, migrate_snapshot
from .tasks.owners import (
    add_owner_to_task,
    bulk_assign_owner,
    owner_suggestions,
    owners_with_stats,
    rebuild_owner_registry,
    register_owner,
    remove_owner,
    remove_owner_from_task,
    transfer_owner_tasks,
    unassign_owner_from_all_tasks,
)
from .tasks.projects import (
    create_project,
    delete_project,
    move_tasks_to_project,
    rename_project,
    reorder_projects,
    switch_project,
    visible_tasks,
)
from .tasks.quick_add import parse_quick_add
from .tasks.scoring import priority_score, score_to_bucket
from .tasks.statuses import (
    create_status,
    delete_status,
    reorder_statuses,
    restore_default_statuses,
    update_status,
)
from .tasks.task_api import (
    create_task,
    create_task_from_quick_add,
    delete_task,
    move_task,
    update_task,
)
from .tasks.task_models import Bucket, OwnerType, Task, TaskPatch
from .tasks.task_store import TaskStore
from .tasks.timer import compute_elapsed_secs, start_timer, stop_timer
from .tasks.validation import validate_owner_name

__all__ = [
    "BoardState",
    "Bucket",
    "ErrorKind",
    "OpResult",
    "OwnerType",
    "Task",
    "TaskPatch",
    "TaskStore",
    "add_owner_to_task",
    "build_default_board",
    "bulk_assign_owner",
    "compute_elapsed_secs",
    "create_project",
    "create_status",
    "create_task",
    "create_task_from_quick_add",
    "delete_project",
    "delete_status",
    "delete_task",
    "load_snapshot",
    "migrate_snapshot",
    "move_task",
    "move_tasks_to_project",
    "owner_suggestions",
    "owners_with_stats",
    "parse_quick_add",
    "priority_score",
    "rebuild_owner_registry",
    "register_owner",
    "remove_owner",
    "remove_owner_from_task",
    "rename_project",
    "reorder_projects",
    "reorder_statuses",
    "restore_default_statuses",
    "score_to_bucket",
    "start_timer",
    "stop_timer",
    "switch_project",
    "transfer_owner_tasks",
    "unassign_owner_from_all_tasks",
    "update_status",
    "update_task",
    "validate_owner_name",
    "visible_tasks",
]
