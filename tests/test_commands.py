# tests/test_commands.py

from __future__ import annotations

from flowtrackr.cli.commands import CommandRegistry, resolve_task
from flowtrackr.connectors.console_connector import handle_line
from flowtrackr.tasks.task_models import Bucket, OwnerType
from flowtrackr.tasks.task_store import STORAGE_KEY, VIEW_MODE_KEY
from flowtrackr.tasks.views import ViewMode


def test_command_registry_routes_args_and_aliases(state) -> None:
    reg = CommandRegistry()
    seen: list[list[str]] = []

    def echo(state, args):
        seen.append(args)
        return "ok"

    reg.register("echo", echo, "Echo.", aliases=["e"])

    assert reg.handle(state, "/echo a b") == "ok"
    assert reg.handle(state, "/E c") == "ok"
    assert seen == [["a", "b"], ["c"]]
    assert "/echo - Echo." in reg.build_help()


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_plain_text_is_quick_added(state) -> None:
    reply = handle_line(state, "Write docs +docs !p1 @Ana impact:4")
    assert reply.startswith("Added ")

    (task,) = state.board.tasks
    assert task.title == "Write docs"
    assert task.tags == ["docs"]
    assert task.owners == ["Ana"]
    assert task.impact == 4
    assert task.priority_bucket == Bucket.P1
    assert task.bucket_override == Bucket.P1


def test_agent_tasks_land_in_waiting_status(state) -> None:
    handle_line(state, "/add Generate fixtures @ai")
    (task,) = state.board.tasks
    assert task.owner_type == OwnerType.AGENT
    assert task.status == "waiting_ai"


def test_list_groups_by_status_and_honours_view(state) -> None:
    handle_line(state, "Alpha +one")
    handle_line(state, "Beta @Bo")

    board_text = handle_line(state, "/list")
    assert "[Backlog]" in board_text
    assert "Alpha" in board_text and "Beta" in board_text

    filtered = handle_line(state, "/ls @Bo")
    assert "Beta" in filtered and "Alpha" not in filtered

    assert handle_line(state, "/view backlog") == "View: backlog"
    assert state.view_mode == ViewMode.BACKLOG
    assert state.store.load_view_mode() == ViewMode.BACKLOG
    backlog_text = handle_line(state, "/list")
    assert "[Backlog]" not in backlog_text
    assert "<Backlog>" in backlog_text


def test_move_timer_and_prefix_lookup(state) -> None:
    handle_line(state, "Focus block")
    task = state.board.tasks[0]
    prefix = task.id[:6]
    assert resolve_task(state.board, prefix) is task
    assert resolve_task(state.board, task.id[:3]) is None

    assert handle_line(state, f"/mv {prefix} ready") == "Moved to ready."
    assert task.status == "ready"
    assert handle_line(state, f"/move {prefix} nowhere").startswith("Error:")

    assert handle_line(state, f"/start {prefix}").startswith("Timer running")
    assert task.status == "in_progress"
    assert handle_line(state, "/stop").startswith("Stopped (+")
    assert not task.timer_running


def test_edit_changes_only_given_fields(state) -> None:
    handle_line(state, "Original title +keep urgency:1")
    task = state.board.tasks[0]
    assert handle_line(state, f"/edit {task.id} impact:5") == "Updated."
    assert task.title == "Original title"
    assert task.impact == 5
    assert task.urgency == 1
    assert task.tags == ["keep"]


def test_project_commands(state) -> None:
    reply = handle_line(state, "/project new Side")
    pid = reply.rsplit(" ", 1)[-1]
    assert handle_line(state, f"/project use {pid}") == f"Switched to {pid}."

    handle_line(state, "Side quest")
    assert state.board.tasks[0].project_id == pid
    assert "Side (1 tasks)" in handle_line(state, "/project")

    assert handle_line(state, f"/project rm {pid}") == "Project deleted with 1 tasks."
    assert state.board.tasks == []
    assert state.board.current_project_id == "default"
    assert handle_line(state, "/project rm default").startswith("Error:")


def test_status_and_owner_commands(state) -> None:
    assert "backlog  Backlog (default)" in handle_line(state, "/status")
    assert handle_line(state, "/status rm done backlog").startswith("Error:")

    handle_line(state, "Pair review @Ana")
    assert "Ana (1 tasks" in handle_line(state, "/owner")
    assert handle_line(state, "/owner transfer Ana Bo --remove").startswith("Transferred 1 tasks")
    assert state.board.tasks[0].owners == ["Bo"]
    assert handle_line(state, "/owner filter Bo") == "Owner filter: Bo"
    assert handle_line(state, "/owner filter") == "Owner filter: off"


def test_save_and_autoreturn(state, kv) -> None:
    assert handle_line(state, "/autoreturn on") == "Auto-return on stop enabled."
    assert state.board.auto_return_on_stop
    assert handle_line(state, "/save") == "Saved."
    assert kv.get_item(STORAGE_KEY) is not None
    assert kv.get_item(VIEW_MODE_KEY) is None
