# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from todo_companion.core.state import AppState
from todo_companion.tasks.task_service import TaskService
from todo_companion.tasks.task_store import TaskStore

from .fakes import FakeTaskRepo

BOT_TOKEN = "123456:TEST-token"


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the front-ends.

    We intentionally use a SimpleNamespace rather than reading the real
    environment, to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="todo-test",
        tasks_db_path=tmp_path / "tasks.sqlite3",
        bot_token=BOT_TOKEN,
        webapp_url="https://todo.example.com",
        verify_launch_payload=True,
        launch_payload_max_age=0,
        static_dir=tmp_path / "no-static",
        cors_origins=["*"],
        telegram_enabled=False,
        http_enabled=False,
        console_enabled=False,
        console_user_id=7,
    )


@pytest.fixture()
def store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore(settings.tasks_db_path)


@pytest.fixture()
def fake_repo() -> FakeTaskRepo:
    return FakeTaskRepo()


@pytest.fixture()
def state(settings: SimpleNamespace, store: TaskStore) -> AppState:
    """
    AppState wired to a real SQLite store in tmp_path.

    The store's ownership scoping is part of what we want to test end to end.
    """
    return AppState(settings=settings, task_store=store, tasks=TaskService(store))


@pytest.fixture()
def fake_state(settings: SimpleNamespace, fake_repo: FakeTaskRepo) -> AppState:
    return AppState(settings=settings, task_store=fake_repo, tasks=TaskService(fake_repo))
