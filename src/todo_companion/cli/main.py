# src/todo_companion/cli/main.py

"""
CLI entrypoint.

Loads settings (fatal on missing storage URL / bot token), initializes
logging, builds AppState, then starts front-ends:
- HTTP API (uvicorn) in a background thread (optional),
- Telegram connector in a background thread (optional),
- console REPL in the main thread (optional).
"""

from __future__ import annotations

import logging
import signal
import sys
import threading

from ..cli.bootstrap import create_initial_state
from ..config import load_settings_or_exit
from ..connectors.console_connector import run_console_loop
from ..connectors.telegram_connector import TelegramBackgroundRunner, start_telegram_in_background
from ..core.errors import StorageUnavailable
from ..logging_setup import setup_logging
from ..web.server import HttpBackgroundRunner, start_http_in_background

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    # TaskStore uses short-lived sqlite connections per call; close() is a no-op hook.
    try:
        store = getattr(state, "task_store", None)
        if store is not None and hasattr(store, "close"):
            store.close()
    except Exception:
        logger.debug("Task store close failed.", exc_info=True)


def main() -> None:
    settings = load_settings_or_exit()

    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    try:
        state = create_initial_state(settings=settings)
    except StorageUnavailable:
        logger.critical("Storage is unavailable at %s; exiting.", settings.tasks_db_path)
        sys.exit(1)

    http_runner: HttpBackgroundRunner | None = start_http_in_background(state)
    telegram_runner: TelegramBackgroundRunner | None = start_telegram_in_background(state)

    # Use an Event so main can wait without a busy while-loop.
    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)
    except (ValueError, AttributeError):
        # Some platforms may not support SIGTERM, etc.
        pass

    try:
        if settings.console_enabled:
            run_console_loop(state)
            stop_main.set()
        else:
            logger.info("Console disabled. Running background front-ends only. Press Ctrl+C to stop.")
            stop_main.wait()

    finally:
        if telegram_runner is not None:
            telegram_runner.stop()
            telegram_runner.join(timeout=10.0)
        if http_runner is not None:
            http_runner.stop()
            http_runner.join(timeout=10.0)

        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
