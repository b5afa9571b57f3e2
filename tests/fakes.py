# tests/fakes.py

from __future__ import annotations

from dataclasses import dataclass, field, replace
from unittest.mock import AsyncMock

from todo_companion.core.errors import NotFound, StorageUnavailable
from todo_companion.tasks.task_models import Task


class FakeTaskRepo:
    """
    In-memory TaskRepo used for service unit tests.

    Mirrors the SQLite store contract: newest first, id AND owner on
    update/delete, NotFound otherwise.
    """

    def __init__(self) -> None:
        self.tasks: dict[int, Task] = {}
        self.inserts = 0
        self.touched: dict[int, str | None] = {}
        self._next_id = 1
        self._clock = 1_700_000_000.0

    def _now(self) -> float:
        # Strictly increasing so ordering is deterministic.
        self._clock += 1.0
        return self._clock

    def insert(self, *, text: str, owner_id: int, display_name: str | None = None) -> Task:
        now = self._now()
        task = Task(
            id=self._next_id,
            text=text,
            completed=False,
            owner_id=owner_id,
            display_name=display_name,
            created_at=now,
            updated_at=now,
        )
        self.tasks[task.id] = task
        self._next_id += 1
        self.inserts += 1
        return task

    def find_by_owner(self, owner_id: int) -> list[Task]:
        owned = [t for t in self.tasks.values() if t.owner_id == owner_id]
        return sorted(owned, key=lambda t: (t.created_at, t.id), reverse=True)

    def _owned(self, task_id, owner_id: int) -> Task:
        try:
            tid = int(task_id)
        except (TypeError, ValueError):
            raise NotFound() from None
        task = self.tasks.get(tid)
        if task is None or task.owner_id != owner_id:
            raise NotFound()
        return task

    def update_completion(self, task_id, owner_id: int, completed: bool) -> Task:
        task = self._owned(task_id, owner_id)
        updated = replace(task, completed=completed, updated_at=self._now())
        self.tasks[task.id] = updated
        return updated

    def delete_by_id_and_owner(self, task_id, owner_id: int) -> None:
        task = self._owned(task_id, owner_id)
        del self.tasks[task.id]

    def count_by_owner(self, owner_id: int) -> tuple[int, int]:
        owned = self.find_by_owner(owner_id)
        return len(owned), sum(1 for t in owned if t.completed)

    def ping(self) -> bool:
        return True

    def touch_user(self, owner_id: int, display_name: str | None = None) -> None:
        self.touched[owner_id] = display_name


class DownTaskRepo(FakeTaskRepo):
    """Every storage call fails as if the database were unreachable."""

    def insert(self, **kwargs) -> Task:
        raise StorageUnavailable("database is locked")

    def find_by_owner(self, owner_id: int) -> list[Task]:
        raise StorageUnavailable("database is locked")

    def count_by_owner(self, owner_id: int) -> tuple[int, int]:
        raise StorageUnavailable("database is locked")

    def ping(self) -> bool:
        return False

    def touch_user(self, owner_id: int, display_name: str | None = None) -> None:
        raise StorageUnavailable("database is locked")


@dataclass(slots=True)
class FakeTelegramUser:
    id: int
    username: str | None = None
    first_name: str | None = None


@dataclass(slots=True)
class FakeTelegramMessage:
    text: str
    reply_text: AsyncMock = field(default_factory=AsyncMock)


@dataclass(slots=True)
class FakeUpdate:
    effective_user: FakeTelegramUser | None
    effective_message: FakeTelegramMessage | None
