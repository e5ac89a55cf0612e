# src/flowtrackr/storage/flusher.py

from __future__ import annotations

"""
Periodic board flusher.

A small polling loop that writes the board to the key-value store whenever
it changed since the last successful write. A failed write is logged and
left for the next tick; mutation never waits on the flusher.

Two ways to run it:
- `await run_persistence_flusher(store, ...)` inside an existing loop,
- `start_flusher_in_background(store, ...)` for blocking front-ends (console
  REPL): a daemon thread with its own asyncio loop.
"""

import asyncio
import contextlib
import logging
import threading
from dataclasses import dataclass
from typing import Protocol

from ..core.results import OpResult

logger = logging.getLogger(__name__)

DEFAULT_FLUSH_INTERVAL = 1.0


class Flushable(Protocol):
    def flush(self, *, force: bool = False) -> OpResult[bool]: ...


def flush_once(store: Flushable) -> bool:
    """One tick. Returns True when the board is clean afterwards."""
    try:
        res = store.flush()
    except Exception:
        logger.exception("Board flush crashed")
        return False
    if not res.ok:
        logger.debug("Flush will be retried: %s", res.error)
        return False
    return True


async def run_persistence_flusher(
    store: Flushable,
    *,
    interval_seconds: float = DEFAULT_FLUSH_INTERVAL,
    stop_event: asyncio.Event | None = None,
) -> None:
    """
    Every interval_seconds: flush the board if it is dirty.

    Stops when stop_event is set (after one last flush) or when the
    coroutine is cancelled.
    """
    sleep_s = max(0.05, float(interval_seconds))
    logger.info("Flusher started interval=%.2fs", sleep_s)

    try:
        while stop_event is None or not stop_event.is_set():
            flush_once(store)
            if stop_event is None:
                await asyncio.sleep(sleep_s)
                continue
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(stop_event.wait(), timeout=sleep_s)
    finally:
        if stop_event is not None and stop_event.is_set():
            flush_once(store)
        logger.info("Flusher stopped.")


@dataclass
class FlusherBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except RuntimeError:
            logger.debug("Failed to signal flusher stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_flusher_in_background(
    store: Flushable, *, interval_seconds: float = DEFAULT_FLUSH_INTERVAL
) -> FlusherBackgroundRunner | None:
    """Run the flusher in a daemon thread so a blocking REPL can own the main thread."""
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(
                run_persistence_flusher(store, interval_seconds=interval_seconds, stop_event=stop_event)
            )
        finally:
            with contextlib.suppress(RuntimeError):
                loop.close()

    t = threading.Thread(target=runner, name="flowtrackr-flusher", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Flusher thread did not initialize properly.")
        return None

    logger.info("Flusher background thread started.")
    return FlusherBackgroundRunner(thread=t, loop=loop, stop_event=stop_event)
