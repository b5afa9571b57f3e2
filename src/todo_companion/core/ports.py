# src/todo_companion/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage swappable and lets tests run the service against an
in-memory repo instead of SQLite.
"""

from typing import Protocol

from ..tasks.task_models import Task


class TaskRepo(Protocol):
    """
    Persistence contract for tasks.

    update_completion / delete_by_id_and_owner must raise NotFound when no task
    matches BOTH id and owner. Connection failures raise StorageUnavailable.
    """

    def insert(self, *, text: str, owner_id: int, display_name: str | None = None) -> Task: ...
    def find_by_owner(self, owner_id: int) -> list[Task]: ...
    def update_completion(self, task_id: int | str, owner_id: int, completed: bool) -> Task: ...
    def delete_by_id_and_owner(self, task_id: int | str, owner_id: int) -> None: ...
    def count_by_owner(self, owner_id: int) -> tuple[int, int]: ...

    # Diagnostics / observability
    def ping(self) -> bool: ...
    def touch_user(self, owner_id: int, display_name: str | None = None) -> None: ...
