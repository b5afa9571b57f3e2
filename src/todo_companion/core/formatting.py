# src/todo_companion/core/formatting.py

"""Chat-side rendering of tasks, summaries and launch links (transport-agnostic)."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from urllib.parse import urlencode

from ..tasks.task_models import Task, TaskSummary
from .identity import Identity

GLYPH_DONE = "✅"
GLYPH_PENDING = "⬜"

OPEN_APP_LABEL = "📋 Open Todo List"


@dataclass(frozen=True, slots=True)
class ChatReply:
    """Text to send back plus an optional launch link to attach as a button."""

    text: str
    launch_url: str | None = None


def build_launch_url(base_url: str, identity: Identity) -> str | None:
    base = (base_url or "").strip().rstrip("/")
    if not base:
        return None

    params: dict[str, str] = {"userId": str(identity.owner_id)}
    if identity.display_name:
        params["username"] = identity.display_name

    sep = "&" if "?" in base else "?"
    return f"{base}{sep}{urlencode(params)}"


def format_task_line(index: int, task: Task) -> str:
    glyph = GLYPH_DONE if task.completed else GLYPH_PENDING
    return f"{index}. {glyph} {task.text}"


def format_task_list(tasks: Sequence[Task], summary: TaskSummary) -> str:
    if not tasks:
        return "You have no tasks yet. Send me any message to add one."

    lines = ["Your tasks:"]
    for i, task in enumerate(tasks, start=1):
        lines.append(format_task_line(i, task))
    lines.append("")
    lines.append(f"Pending: {summary.pending} of {summary.total}")
    return "\n".join(lines)


def format_summary(summary: TaskSummary) -> str:
    return (
        "Your stats:\n"
        f"  Total: {summary.total}\n"
        f"  Completed: {summary.completed}\n"
        f"  Pending: {summary.pending}"
    )


def format_task_added(task: Task) -> str:
    return f'✅ Task "{task.text}" added!\n\nOpen the app to see all your tasks:'


def format_welcome(app_name: str) -> str:
    return (
        f"📝 Welcome to {app_name}!\n\n"
        "Send me any message and I will save it as a task.\n"
        "Tap the button below to open your task list."
    )
