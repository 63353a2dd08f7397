# src/focusdesk/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "focusdesk.log"

# Loggers that share the REPL terminal or log every statement; console sees WARNING+ only.
_QUIET_PREFIXES = ("focusdesk.connectors.", "focusdesk.storage.")


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the REPL readable while the log file gets everything.

    Store, session and archive events reach the console at the handler level.
    The console connector and the SQLite layer are muted below WARNING.
    Captured Python warnings and other libraries only show at ERROR+.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if name.startswith("focusdesk."):
            if name.startswith(_QUIET_PREFIXES):
                return record.levelno >= logging.WARNING
            return True

        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/focusdesk",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Install a stderr handler (filtered) and <log_dir>/focusdesk.log (unfiltered).

    Call once from main(), before the database is opened, so the schema and
    startup archive messages land in the file. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    return log_file
