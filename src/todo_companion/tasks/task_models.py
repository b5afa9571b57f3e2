# src/todo_companion/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class Task:
    id: int
    text: str
    completed: bool
    owner_id: int
    display_name: str | None
    created_at: float
    updated_at: float


@dataclass(frozen=True, slots=True)
class TaskSummary:
    """Counts for one owner; pending is derived so it can never drift."""

    total: int
    completed: int

    @property
    def pending(self) -> int:
        return self.total - self.completed
