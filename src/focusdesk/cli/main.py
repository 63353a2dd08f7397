# src/focusdesk/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState (which runs the startup auto-archive),
then runs the console REPL in the main thread.
"""

from __future__ import annotations

import logging
import signal
import threading

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    active = None
    try:
        active = state.sessions.get_active()
    except Exception:
        logger.exception("Failed to read the active session.")
    if active is not None:
        # Sessions survive restarts; just leave a trace.
        logger.info("Exiting with an active session on task=%s", active.task_id)

    try:
        state.db.close()
    except Exception:
        logger.debug("Database close failed.", exc_info=True)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/focusdesk")
    log_file = setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s... log=%s", getattr(settings, "app_name", "focusdesk"), log_file)

    state = create_initial_state(settings=settings)

    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        signal.signal(signal.SIGTERM, _handle_signal)
    except (ValueError, OSError):
        # Not available on every platform / thread.
        pass

    try:
        if settings.console_enabled:
            run_console_loop(state)
        else:
            logger.info("Console disabled. Nothing to run in the foreground; press Ctrl+C to stop.")
            try:
                stop_main.wait()
            except KeyboardInterrupt:
                pass
    finally:
        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
