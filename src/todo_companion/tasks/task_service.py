# src/todo_companion/tasks/task_service.py

from __future__ import annotations

import logging

from ..core.errors import InvalidInput
from ..core.ports import TaskRepo
from .task_models import Task, TaskSummary

logger = logging.getLogger(__name__)


class TaskService:
    """
    CRUD operations on one owner's tasks.

    Every operation is a single request against the repo; ownership is
    enforced by the repo contract (id AND owner on update/delete).
    """

    def __init__(self, repo: TaskRepo) -> None:
        self._repo = repo

    def add_task(self, owner_id: int, text: str, display_name: str | None = None) -> Task:
        clean = (text or "").strip() if isinstance(text, str) else ""
        if not clean:
            raise InvalidInput("Task text must not be empty.")

        task = self._repo.insert(text=clean, owner_id=owner_id, display_name=display_name)
        logger.info("Task added id=%s owner=%s", task.id, owner_id)
        return task

    def list_tasks(self, owner_id: int) -> list[Task]:
        return self._repo.find_by_owner(owner_id)

    def toggle_completion(self, task_id: int | str, owner_id: int, completed: bool) -> Task:
        if not isinstance(completed, bool):
            raise InvalidInput("'completed' must be a boolean.")

        task = self._repo.update_completion(task_id, owner_id, completed)
        logger.info("Task completion set id=%s owner=%s completed=%s", task.id, owner_id, completed)
        return task

    def remove_task(self, task_id: int | str, owner_id: int) -> None:
        self._repo.delete_by_id_and_owner(task_id, owner_id)
        logger.info("Task removed id=%s owner=%s", task_id, owner_id)

    def summarize(self, owner_id: int) -> TaskSummary:
        total, completed = self._repo.count_by_owner(owner_id)
        return TaskSummary(total=total, completed=completed)

    def storage_connected(self) -> bool:
        return self._repo.ping()
