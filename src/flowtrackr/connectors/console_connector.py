# src/flowtrackr/connectors/console_connector.py

from __future__ import annotations

import logging
import sys
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..tasks.task_api import create_task_from_quick_add

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _rewrite_prev_line(line: str) -> None:
    """
    Replace the last terminal line with `line`.
    Best-effort: if not a TTY, just print a new line.
    """
    if sys.stdout.isatty():
        sys.stdout.write("\033[1A\033[2K\r")
        sys.stdout.write(line + "\n")
        sys.stdout.flush()
    else:
        print(line)


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def handle_line(state: AppState, line: str) -> str:
    """
    One console line -> reply text.
    Slash commands go to the registry; anything else is a quick-add.
    """
    with state.lock:
        reply = command_registry.handle(state, line)
        if reply is not None:
            return reply
        res = create_task_from_quick_add(state.board, line)
        if not res.ok:
            return f"Error: {res.error}"
        task = state.board.find_task(str(res.value))
    if task is None:
        return "Added."
    return f"Added {task.id[:8]}: {task.title} ({task.status}, {task.priority_bucket.value})"


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (view=%s).", state.view_mode.value)
    _print_ts("[CONSOLE] Type a task to add it. Use /help for commands. Use /exit to quit.\n")

    while True:
        try:
            user_input = input(">>> ").strip()
            _rewrite_prev_line(f"[{_ts_local()}] >>> {user_input}")
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            reply = handle_line(state, user_input)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        print(f"[{_ts_local()}] {reply}")
