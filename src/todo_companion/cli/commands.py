# src/todo_companion/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable

from ..core.formatting import (
    ChatReply,
    build_launch_url,
    format_summary,
    format_task_list,
    format_welcome,
)
from ..core.identity import Identity
from ..core.state import AppState

CommandHandler = Callable[[AppState, list[str], Identity], ChatReply]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /list, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str, identity: Identity) -> ChatReply | None:
        """
        Handle a string like "/command args".
        Returns a reply or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return ChatReply("Empty command. Use /help to list available commands.")

        # Telegram group chats address commands as /list@BotName.
        name = parts[0].split("@", 1)[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return ChatReply(f"Unknown command: /{name}. Use /help to list available commands.")

        logger.debug("Command /%s owner=%s args=%s", name, identity.owner_id, args)
        return handler(state, args, identity)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("Any other message is saved as a new task.")
        return "\n".join(lines)


registry = CommandRegistry()


def _launch_url(state: AppState, identity: Identity) -> str | None:
    return build_launch_url(state.launch_base_url(), identity)


def cmd_start(state: AppState, args: list[str], identity: Identity) -> ChatReply:
    app_name = str(getattr(state.settings, "app_name", "todo-companion"))
    return ChatReply(format_welcome(app_name), launch_url=_launch_url(state, identity))


def cmd_help(state: AppState, args: list[str], identity: Identity) -> ChatReply:
    return ChatReply(registry.build_help())


def cmd_list(state: AppState, args: list[str], identity: Identity) -> ChatReply:
    tasks = state.tasks.list_tasks(identity.owner_id)
    summary = state.tasks.summarize(identity.owner_id)
    return ChatReply(format_task_list(tasks, summary), launch_url=_launch_url(state, identity))


def cmd_stats(state: AppState, args: list[str], identity: Identity) -> ChatReply:
    return ChatReply(format_summary(state.tasks.summarize(identity.owner_id)))


registry.register("start", cmd_start, help_text="Open your task list.")
registry.register("list", cmd_list, help_text="Show your tasks.", aliases=["tasks"])
registry.register("stats", cmd_stats, help_text="Show total / completed / pending counts.")
registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
