# src/todo_companion/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..tasks.task_service import TaskService
from .ports import TaskRepo


@dataclass
class AppState:
    """
    Explicitly constructed collaborators shared by every front-end.

    Built once in cli.bootstrap and passed to connectors and the HTTP app.
    """

    # Settings (or a SimpleNamespace in tests) for easy access in connectors.
    settings: Any

    task_store: TaskRepo
    tasks: TaskService

    def launch_base_url(self) -> str:
        return str(getattr(self.settings, "webapp_url", "") or "").rstrip("/")

    def bot_token(self) -> str | None:
        return getattr(self.settings, "bot_token", None)

    def verify_launch_payload(self) -> bool:
        return bool(getattr(self.settings, "verify_launch_payload", True))

    def launch_payload_max_age(self) -> int:
        return int(getattr(self.settings, "launch_payload_max_age", 0) or 0)
