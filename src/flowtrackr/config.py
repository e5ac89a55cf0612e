# src/flowtrackr/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Every value has a usable default; nothing is required at import time.
- Composition roots take settings as a parameter so tests can inject their own.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "FLOWTRACKR"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Front-ends ----
    console_enabled: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    store_db_path: Path

    # ---- Storage ----
    storage_key: str
    view_mode_key: str
    storage_quota_bytes: int
    flush_interval_seconds: float

    # ---- Board defaults ----
    seed_demo_tasks: bool
    auto_return_on_stop: bool

    @staticmethod
    def from_env() -> Settings:
        app_name = _env(_k("APP_NAME"), "flowtrackr") or "flowtrackr"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/flowtrackr"))
        store_db_path = _env_path(_k("STORE_DB_PATH"), data_dir / "board.sqlite3")

        storage_key = _env(_k("STORAGE_KEY"), "workday-board@v1") or "workday-board@v1"
        view_mode_key = (
            _env(_k("VIEW_MODE_KEY"), "workday-board@view-mode") or "workday-board@view-mode"
        )
        storage_quota_bytes = max(1024, _env_int(_k("STORAGE_QUOTA_BYTES"), 5 * 1024 * 1024))
        flush_interval_seconds = max(0.05, _env_float(_k("FLUSH_INTERVAL_SECONDS"), 1.0))

        seed_demo_tasks = _env_bool(_k("SEED_DEMO_TASKS"), True)
        auto_return_on_stop = _env_bool(_k("AUTO_RETURN_ON_STOP"), False)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            data_dir=data_dir,
            store_db_path=store_db_path,
            storage_key=storage_key,
            view_mode_key=view_mode_key,
            storage_quota_bytes=storage_quota_bytes,
            flush_interval_seconds=flush_interval_seconds,
            seed_demo_tasks=seed_demo_tasks,
            auto_return_on_stop=auto_return_on_stop,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
