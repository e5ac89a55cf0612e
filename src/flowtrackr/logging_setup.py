# src/flowtrackr/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "flowtrackr.log"
LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers that tick in the background; the console only shows their problems.
_QUIET_PREFIXES = ("flowtrackr.storage.flusher",)


class _ConsoleNoiseFilter(logging.Filter):
    """
    Console handler filter.

    Board operations, command replies and storage warnings reach the REPL;
    periodic flush ticks, captured warnings and other libraries stay in the
    log file unless they are serious.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name.startswith(_QUIET_PREFIXES):
            return record.levelno >= logging.WARNING
        if name == "flowtrackr" or name.startswith("flowtrackr."):
            return True
        return record.levelno >= logging.ERROR


def _console_handler(level: int, fmt: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(fmt)
    handler.addFilter(_ConsoleNoiseFilter())
    return handler


def _file_handler(path: Path, level: int, fmt: logging.Formatter) -> logging.Handler:
    handler = logging.FileHandler(str(path), encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(fmt)
    return handler


def setup_logging(
    *,
    log_dir: str | Path = ".local/flowtrackr",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Route every logger to stderr (filtered) and to <log_dir>/flowtrackr.log.

    Replaces handlers already on the root logger, so calling it again does
    not duplicate output. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    root.addHandler(_console_handler(console_level, fmt))
    root.addHandler(_file_handler(log_file, file_level, fmt))

    logging.captureWarnings(True)
    return log_file
