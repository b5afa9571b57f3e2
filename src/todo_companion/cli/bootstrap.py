# src/todo_companion/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- takes settings loaded once by main,
- ensures local (gitignored) directories exist,
- wires the concrete TaskStore into TaskService and AppState.
"""

from __future__ import annotations

import logging

from ..config import Settings
from ..core.state import AppState
from ..tasks.task_service import TaskService
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings: Settings) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden
    global config reads.
    """
    _ensure_local_dirs(settings)

    store = TaskStore(settings.tasks_db_path)
    state = AppState(
        settings=settings,
        task_store=store,
        tasks=TaskService(store),
    )
    logger.info(
        "State ready (telegram=%s http=%s console=%s).",
        settings.telegram_enabled,
        settings.http_enabled,
        settings.console_enabled,
    )
    return state
