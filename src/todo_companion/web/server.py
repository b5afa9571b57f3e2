# src/todo_companion/web/server.py

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

import uvicorn

from ..core.state import AppState
from .api import create_app

logger = logging.getLogger(__name__)


@dataclass
class HttpBackgroundRunner:
    thread: threading.Thread
    server: uvicorn.Server

    def stop(self) -> None:
        self.server.should_exit = True

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_http_in_background(state: AppState) -> HttpBackgroundRunner | None:
    """
    Serve the HTTP API with uvicorn in a background thread.

    Signal handling stays with the main thread (uvicorn skips installing its
    handlers outside the main thread).
    """
    settings = state.settings
    if not getattr(settings, "http_enabled", False):
        logger.info("HTTP API disabled, not starting.")
        return None

    config = uvicorn.Config(
        create_app(state),
        host=settings.host,
        port=int(settings.port),
        # Keep our logging_setup handlers instead of uvicorn's dictConfig.
        log_config=None,
    )
    server = uvicorn.Server(config)

    t = threading.Thread(target=server.run, name="http", daemon=True)
    t.start()

    logger.info("HTTP API listening on http://%s:%s/api/tasks", settings.host, settings.port)
    return HttpBackgroundRunner(thread=t, server=server)
