# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file,
see src/focusdesk/config.py). Put machine-specific values in .env (gitignored).

This file exists to make the repo self-documenting without reading config.py.
"""

ENV_VARS = {
    # App / logging
    "FOCUSDESK_APP_NAME": "App display name (default: focusdesk).",
    "FOCUSDESK_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Connectors
    "FOCUSDESK_CONSOLE_ENABLED": "Run the console REPL (true/false, default: true).",
    # Storage
    "FOCUSDESK_DATA_DIR": "Local data directory (default: .local/focusdesk).",
    "FOCUSDESK_DB_PATH": "SQLite database file (default: <data dir>/focusdesk.sqlite3).",
    "FOCUSDESK_ARCHIVE_DIR": "Root of the JSON archive buckets (default: <data dir>/archives).",
    "FOCUSDESK_SCHEMA_PATH": "Override the bundled schema.sql (optional).",
    # Archival / analytics
    "FOCUSDESK_AUTO_ARCHIVE_ON_STARTUP": "Sweep aged-out tasks at startup (true/false, default: true).",
    "FOCUSDESK_STATS_DAYS": "Days shown by /stats without an argument (default: 7).",
}
