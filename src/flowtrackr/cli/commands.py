# src/flowtrackr/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from ..core.results import OpResult
from ..core.state import AppState, BoardState
from ..core.timeutil import ensure_aware, utc_now
from ..tasks import owners as owner_ops
from ..tasks import projects as project_ops
from ..tasks import statuses as status_ops
from ..tasks.quick_add import parse_quick_add
from ..tasks.task_api import (
    create_task_from_quick_add,
    delete_task,
    move_task,
    update_task,
)
from ..tasks.task_models import Task
from ..tasks.timer import (
    compute_elapsed_secs,
    format_duration_short,
    set_auto_return_on_stop,
    start_timer,
    stop_timer,
)
from ..tasks.views import TaskFilter, ViewMode, board_view, group_by_status, high_wip, wip_count

CommandHandler = Callable[[AppState, list[str]], str]

logger = logging.getLogger(__name__)

MIN_ID_PREFIX = 4


class CommandRegistry:
    """Simple slash-command registry used by front-ends (/help, /add, /list, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."
        return handler(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----


def _fmt_local(dt: datetime | None) -> str:
    if dt is None:
        return "-"
    return ensure_aware(dt).astimezone().strftime("%Y-%m-%d %H:%M")


def _reply(res: OpResult, ok_text: str) -> str:
    return ok_text if res.ok else f"Error: {res.error}"


def resolve_task(board: BoardState, ref: str) -> Task | None:
    """Full id, or a unique id prefix of at least MIN_ID_PREFIX characters."""
    task = board.find_task(ref)
    if task is not None or len(ref) < MIN_ID_PREFIX:
        return task
    matches = [t for t in board.tasks if t.id.startswith(ref)]
    return matches[0] if len(matches) == 1 else None


def _task_line(t: Task, now: datetime) -> str:
    owners = f" @{',@'.join(t.owners)}" if t.owners else ""
    tags = f" +{' +'.join(t.tags)}" if t.tags else ""
    timer = ""
    if t.timer_running or t.time_log_secs:
        timer = f" [{format_duration_short(compute_elapsed_secs(t, now))}{'*' if t.timer_running else ''}]"
    due = f" due {_fmt_local(t.due_at)}" if t.due_at else ""
    return f"{t.id[:8]} {t.priority_bucket.value} {t.score:>5.1f} {t.title}{owners}{tags}{due}{timer}"


# ---- commands ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help() + "\nPlain text (without a leading slash) is added as a task."


def cmd_add(state: AppState, args: list[str]) -> str:
    if not args:
        return 'Usage: /add <title> [+tag] [!p0-3] [@owner|@ai|@me] [due:today 17:00] [impact:N]'
    res = create_task_from_quick_add(state.board, " ".join(args))
    if not res.ok:
        return f"Error: {res.error}"
    task = state.board.find_task(str(res.value))
    return f"Added {task.id[:8]}: {task.title} ({task.status}, {task.priority_bucket.value})" if task else "Added."


def cmd_list(state: AppState, args: list[str]) -> str:
    """
    /list               -> current project, grouped by status
    /list <text>        -> filter by title/description/tags
    /list @name <text>  -> filter by owner as well
    """
    board = state.board
    owner = state.owner_filter
    words: list[str] = []
    for a in args:
        if a.startswith("@") and len(a) > 1:
            owner = a[1:]
        else:
            words.append(a)

    tasks = board_view(board, TaskFilter(query=" ".join(words), owner=owner))
    project = board.find_project(board.current_project_id)
    lines = [f"Project: {project.name if project else board.current_project_id} ({len(tasks)} tasks)"]

    now = utc_now()
    labels = {s.id: s.label for s in board.status_config.statuses}
    if state.view_mode == ViewMode.BACKLOG:
        lines.extend(f"  {_task_line(t, now)}  <{labels.get(t.status, t.status)}>" for t in tasks)
    else:
        for status_id, group in group_by_status(board, tasks).items():
            if not group:
                continue
            lines.append(f"[{labels.get(status_id, status_id)}]")
            lines.extend(f"  {_task_line(t, now)}" for t in group)

    if high_wip(board):
        lines.append(f"High WIP ({wip_count(board)}). Consider moving some to Ready or Waiting.")
    return "\n".join(lines)


def cmd_show(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /show <task id>"
    t = resolve_task(state.board, args[0])
    if t is None:
        return f"No task matches {args[0]!r}."
    return "\n".join(
        [
            f"{t.title}",
            f"  id: {t.id}",
            f"  status: {t.status}  project: {t.project_id}",
            f"  impact/urgency/effort: {t.impact}/{t.urgency}/{t.effort}",
            f"  score: {t.score:.1f}  bucket: {t.priority_bucket.value}"
            + (" (manual)" if t.bucket_override else ""),
            f"  due: {_fmt_local(t.due_at)}  expected by: {_fmt_local(t.expected_by)}",
            f"  owner type: {t.owner_type.value}  owners: {', '.join(t.owners) or '-'}",
            f"  tags: {', '.join(t.tags) or '-'}",
            f"  time logged: {format_duration_short(compute_elapsed_secs(t))}"
            + (" (running)" if t.timer_running else ""),
            f"  description: {t.description or '-'}",
        ]
    )


def cmd_move(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /move <task id> <status id>"
    t = resolve_task(state.board, args[0])
    if t is None:
        return f"No task matches {args[0]!r}."
    return _reply(move_task(state.board, t.id, args[1]), f"Moved to {args[1]}.")


def cmd_edit(state: AppState, args: list[str]) -> str:
    """/edit <task id> <quick-add tokens>: only the fields present are changed."""
    if len(args) < 2:
        return "Usage: /edit <task id> <quick-add tokens>"
    t = resolve_task(state.board, args[0])
    if t is None:
        return f"No task matches {args[0]!r}."
    patch = parse_quick_add(" ".join(args[1:]))
    if not patch.title:
        patch.title = t.title
    return _reply(update_task(state.board, t.id, patch), "Updated.")


def cmd_rm(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <task id>"
    t = resolve_task(state.board, args[0])
    if t is None:
        return f"No task matches {args[0]!r}."
    return _reply(delete_task(state.board, t.id), f"Deleted {t.title}.")


def cmd_start(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /start <task id>"
    t = resolve_task(state.board, args[0])
    if t is None:
        return f"No task matches {args[0]!r}."
    return _reply(start_timer(state.board, t.id), f"Timer running for {t.title}.")


def cmd_stop(state: AppState, args: list[str]) -> str:
    if not args:
        running = [t for t in state.board.tasks if t.timer_running]
        if len(running) != 1:
            return "Usage: /stop <task id>"
        args = [running[0].id]
    t = resolve_task(state.board, args[0])
    if t is None:
        return f"No task matches {args[0]!r}."
    res = stop_timer(state.board, t.id)
    if not res.ok:
        return f"Error: {res.error}"
    return f"Stopped (+{format_duration_short(res.value or 0)}, total {format_duration_short(t.time_log_secs)})."


def cmd_project(state: AppState, args: list[str]) -> str:
    """
    /project                      -> list projects
    /project new <name>
    /project use <id>
    /project rename <id> <name>
    /project rm <id>
    /project order <id> <id> ...
    /project moveto <project id> <task id> ...
    /project clear                -> delete every task of the current project
    """
    board = state.board
    sub = args[0].lower() if args else "list"
    rest = args[1:]

    if sub == "list":
        lines = ["Projects:"]
        for p in board.projects:
            marker = "*" if p.id == board.current_project_id else " "
            count = project_ops.project_task_count(board, p.id)
            lines.append(f" {marker} {p.id}  {p.name} ({count} tasks) {p.color}")
        active = project_ops.project_with_active_timer(board)
        if active is not None and project_ops.has_active_timer_in_other_project(board):
            lines.append(f"A timer is running in project {active.name}.")
        return "\n".join(lines)
    if sub == "new" and rest:
        res = project_ops.create_project(board, " ".join(rest))
        return _reply(res, f"Project created: {res.value}")
    if sub == "use" and rest:
        return _reply(project_ops.switch_project(board, rest[0]), f"Switched to {rest[0]}.")
    if sub == "rename" and len(rest) >= 2:
        return _reply(project_ops.rename_project(board, rest[0], " ".join(rest[1:])), "Renamed.")
    if sub == "rm" and rest:
        res = project_ops.delete_project(board, rest[0])
        return _reply(res, f"Project deleted with {res.value} tasks.")
    if sub == "order" and rest:
        return _reply(project_ops.reorder_projects(board, rest), "Reordered.")
    if sub == "moveto" and len(rest) >= 2:
        ids = [t.id for t in (resolve_task(board, r) for r in rest[1:]) if t is not None]
        res = project_ops.move_tasks_to_project(board, ids, rest[0])
        return _reply(res, f"Moved {res.value} tasks.")
    if sub == "clear":
        res = project_ops.clear_current_project(board)
        return _reply(res, f"Deleted {res.value} tasks.")
    return "Usage: /project [list|new|use|rename|rm|order|moveto|clear]"


def cmd_status(state: AppState, args: list[str]) -> str:
    """
    /status                        -> list statuses
    /status new <label>
    /status rename <id> <label>
    /status rm <id> <target id>
    /status order <id> <id> ...
    /status default <id>
    /status done <id> on|off
    /status restore
    """
    board = state.board
    sub = args[0].lower() if args else "list"
    rest = args[1:]

    if sub == "list":
        lines = ["Statuses:"]
        for s in status_ops.ordered_statuses(board):
            flags = "".join(
                [" (default)" if s.is_default else "", " (completion)" if s.is_completion else ""]
            )
            count = len(status_ops.tasks_for_status(board, s.id))
            lines.append(f"  {s.keyboard_shortcut or '-'} {s.id}  {s.label}{flags} [{count}]")
        return "\n".join(lines)
    if sub == "new" and rest:
        res = status_ops.create_status(board, " ".join(rest))
        return _reply(res, f"Status created: {res.value}")
    if sub == "rename" and len(rest) >= 2:
        return _reply(status_ops.update_status(board, rest[0], label=" ".join(rest[1:])), "Renamed.")
    if sub == "rm" and len(rest) >= 2:
        res = status_ops.delete_status(board, rest[0], rest[1])
        return _reply(res, f"Status deleted; {res.value} tasks moved to {rest[1]}.")
    if sub == "order" and rest:
        return _reply(status_ops.reorder_statuses(board, rest), "Reordered.")
    if sub == "default" and rest:
        return _reply(status_ops.update_status(board, rest[0], is_default=True), "Default set.")
    if sub == "done" and len(rest) >= 2:
        flag = rest[1].lower() in ("on", "1", "true", "yes")
        return _reply(status_ops.update_status(board, rest[0], is_completion=flag), "Updated.")
    if sub == "restore":
        res = status_ops.restore_default_statuses(board)
        return _reply(res, f"Default statuses restored; {res.value} tasks moved to backlog.")
    return "Usage: /status [list|new|rename|rm|order|default|done|restore]"


def cmd_owner(state: AppState, args: list[str]) -> str:
    """
    /owner                          -> owners with task counts
    /owner find <text>
    /owner register <name>
    /owner add <task id> <name>
    /owner drop <task id> <name>
    /owner rm <name>                -> remove everywhere
    /owner unassign <name>          -> strip from tasks, keep the name
    /owner transfer <from> <to> [--remove]
    /owner filter [<name>]          -> filter /list by owner (no name clears)
    /owner none                     -> tasks without owners
    """
    board = state.board
    sub = args[0].lower() if args else "list"
    rest = args[1:]

    if sub == "list":
        summaries = owner_ops.owners_with_stats(board)
        if not summaries:
            return "No owners yet."
        return "\n".join(
            ["Owners:"]
            + [f"  {o.name} ({o.task_count} tasks, last used {_fmt_local(o.last_used)})" for o in summaries]
        )
    if sub == "find":
        found = owner_ops.owner_suggestions(board, " ".join(rest))
        return "\n".join(f"  {s.name} ({s.task_count})" for s in found) or "No match."
    if sub == "register" and rest:
        res = owner_ops.register_owner(board, " ".join(rest))
        if not res.ok:
            return f"Error: {res.error}"
        return f"{res.value.name} already known." if res.value.existed else f"Registered {res.value.name}."
    if sub in ("add", "drop") and len(rest) >= 2:
        t = resolve_task(board, rest[0])
        if t is None:
            return f"No task matches {rest[0]!r}."
        name = " ".join(rest[1:])
        if sub == "add":
            res = owner_ops.add_owner_to_task(board, t.id, name)
        else:
            res = owner_ops.remove_owner_from_task(board, t.id, name)
        if not res.ok:
            return f"Error: {res.error}"
        return "Done." if res.value else "Nothing to change."
    if sub == "rm" and rest:
        res = owner_ops.remove_owner(board, " ".join(rest))
        return _reply(res, f"Owner removed from {res.value} tasks.")
    if sub == "unassign" and rest:
        res = owner_ops.unassign_owner_from_all_tasks(board, " ".join(rest))
        return _reply(res, f"Owner unassigned from {res.value} tasks.")
    if sub == "transfer" and len(rest) >= 2:
        remove = "--remove" in rest
        names = [r for r in rest if r != "--remove"]
        res = owner_ops.transfer_owner_tasks(board, names[0], names[1], remove_source=remove)
        if not res.ok:
            return f"Error: {res.error}"
        out = res.value
        suffix = f"; {out.source} removed" if out.source_removed else ""
        return f"Transferred {out.tasks_updated} tasks from {out.source} to {out.target}{suffix}."
    if sub == "filter":
        state.owner_filter = " ".join(rest) or None
        return f"Owner filter: {state.owner_filter or 'off'}"
    if sub == "none":
        now = utc_now()
        tasks = owner_ops.unowned_tasks(board)
        return "\n".join(f"  {_task_line(t, now)}" for t in tasks) or "Every task has an owner."
    return "Usage: /owner [list|find|register|add|drop|rm|unassign|transfer|filter|none]"


def cmd_autoreturn(state: AppState, args: list[str]) -> str:
    if not args:
        return f"Auto-return on stop is {'ON' if state.board.auto_return_on_stop else 'OFF'}."
    flag = args[0].lower() in ("on", "1", "true", "yes")
    set_auto_return_on_stop(state.board, flag)
    return f"Auto-return on stop {'enabled' if flag else 'disabled'}."


def cmd_view(state: AppState, args: list[str]) -> str:
    if not args:
        return f"View: {state.view_mode.value}"
    mode = ViewMode.parse(args[0])
    state.view_mode = mode
    res = state.store.save_view_mode(mode)
    return _reply(res, f"View: {mode.value}")


def cmd_save(state: AppState, args: list[str]) -> str:
    res = state.store.flush(force=True)
    return _reply(res, "Saved.")


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("add", cmd_add, help_text="Quick-add a task: /add Fix login +auth !p1 due:today.")
registry.register("list", cmd_list, help_text="Show the board: /list [@owner] [text].", aliases=["ls"])
registry.register("show", cmd_show, help_text="Task details: /show <id>.")
registry.register("move", cmd_move, help_text="Move a task: /move <id> <status id>.", aliases=["mv"])
registry.register("edit", cmd_edit, help_text="Edit with quick-add tokens: /edit <id> impact:4 +tag.")
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <id>.")
registry.register("start", cmd_start, help_text="Start the timer: /start <id>.")
registry.register("stop", cmd_stop, help_text="Stop the timer: /stop [<id>].")
registry.register("project", cmd_project, help_text="Projects: /project [list|new|use|rename|rm|order|moveto|clear].")
registry.register("status", cmd_status, help_text="Statuses: /status [list|new|rename|rm|order|default|done|restore].")
registry.register("owner", cmd_owner, help_text="Owners: /owner [list|find|register|add|drop|rm|unassign|transfer|filter|none].")
registry.register("autoreturn", cmd_autoreturn, help_text="Return stopped tasks to Ready: /autoreturn on|off.")
registry.register("view", cmd_view, help_text="Switch view: /view board|backlog.")
registry.register("save", cmd_save, help_text="Write the board to storage now.")
