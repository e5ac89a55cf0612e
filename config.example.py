# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Use:
- .env (local, gitignored)
- .env.example as a starting point

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "FLOWTRACKR_APP_NAME": "App display name (default: flowtrackr).",
    "FLOWTRACKR_LOG_LEVEL": "Console logging level (default: INFO).",
    # Front-ends
    "FLOWTRACKR_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
    # Paths (gitignored)
    "FLOWTRACKR_DATA_DIR": "Local data directory (default: .local/flowtrackr).",
    "FLOWTRACKR_STORE_DB_PATH": "Key-value SQLite path (default: <data_dir>/board.sqlite3).",
    # Storage
    "FLOWTRACKR_STORAGE_KEY": "Key of the board document (default: workday-board@v1).",
    "FLOWTRACKR_VIEW_MODE_KEY": "Key of the view preference (default: workday-board@view-mode).",
    "FLOWTRACKR_STORAGE_QUOTA_BYTES": "Total bytes the key-value store may hold (default: 5 MiB).",
    "FLOWTRACKR_FLUSH_INTERVAL_SECONDS": "Background flush period, min 0.05 (default: 1.0).",
    # Board defaults
    "FLOWTRACKR_SEED_DEMO_TASKS": "Seed demo tasks into an empty board (true/false, default: true).",
    "FLOWTRACKR_AUTO_RETURN_ON_STOP": "Force auto-return to Ready when a timer stops (true/false).",
}
