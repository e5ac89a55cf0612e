# src/flowtrackr/core/state.py

"""
Shared state.

BoardState is the board aggregate. It is owned by the caller and passed
explicitly into every operation function (tasks.task_api, tasks.owners,
tasks.projects, tasks.statuses, tasks.timer); there is no module-level store.

AppState is what front-ends (console, commands) carry around: settings, the
persistence boundary and a few UI preferences.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..tasks.task_models import OwnerRegistry, Project, StatusConfig, Task

if TYPE_CHECKING:
    from ..tasks.task_store import TaskStore
    from ..tasks.views import ViewMode


@dataclass
class BoardState:
    tasks: list[Task] = field(default_factory=list)
    projects: list[Project] = field(default_factory=list)
    current_project_id: str = "default"
    owner_registry: OwnerRegistry = field(default_factory=OwnerRegistry)
    status_config: StatusConfig = field(default_factory=StatusConfig)
    auto_return_on_stop: bool = False

    # Bumped by every successful mutation; the flusher persists when it moves.
    revision: int = 0

    def find_task(self, task_id: str) -> Task | None:
        for t in self.tasks:
            if t.id == task_id:
                return t
        return None

    def find_project(self, project_id: str) -> Project | None:
        for p in self.projects:
            if p.id == project_id:
                return p
        return None

    def default_project(self) -> Project | None:
        for p in self.projects:
            if p.is_default:
                return p
        return None

    def mark_changed(self) -> None:
        self.revision += 1


@dataclass
class AppState:
    settings: Any
    store: TaskStore
    view_mode: ViewMode
    owner_filter: str | None = None

    @property
    def board(self) -> BoardState:
        return self.store.board

    @property
    def lock(self) -> threading.RLock:
        return self.store.lock
