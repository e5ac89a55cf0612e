# src/flowtrackr/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then starts:
- the board flusher in a background thread,
- the console REPL in the main thread (optional).
"""

from __future__ import annotations

import contextlib
import logging
import signal
import threading

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from ..storage.flusher import start_flusher_in_background

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort final write (no exceptions should escape)."""
    try:
        res = state.store.flush()
    except Exception:
        logger.exception("Final flush failed.")
        return
    if not res.ok:
        logger.warning("Final flush failed: %s", res.error)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=getattr(settings, "data_dir", ".local/flowtrackr"), console_level=console_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "flowtrackr"))

    state = create_initial_state(settings=settings)
    flusher = start_flusher_in_background(
        state.store, interval_seconds=settings.flush_interval_seconds
    )

    # Use an Event so main can wait without a busy while-loop.
    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    # Some platforms do not support SIGTERM.
    with contextlib.suppress(ValueError, OSError, AttributeError):
        signal.signal(signal.SIGTERM, _handle_signal)
        if not settings.console_enabled:
            signal.signal(signal.SIGINT, _handle_signal)

    try:
        if settings.console_enabled:
            run_console_loop(state)
            stop_main.set()
        else:
            logger.info("Console disabled. Flushing in the background only. Press Ctrl+C to stop.")
            stop_main.wait()
    finally:
        if flusher is not None:
            flusher.stop()
            flusher.join(timeout=10.0)

        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
