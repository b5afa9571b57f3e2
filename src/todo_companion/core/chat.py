# src/todo_companion/core/chat.py

"""
Core chat orchestration.

This module is transport-agnostic:
- connectors provide inbound text + the sender's Identity,
- slash-commands are routed through the command registry,
- any other text becomes a new task,
- connectors decide how to deliver the ChatReply (console, Telegram).

Any failure is logged and turned into a generic reply; nothing escapes to the
connector.
"""

from __future__ import annotations

import logging

from ..cli.commands import registry as command_registry
from ..core.errors import InvalidInput, TaskError
from .formatting import ChatReply, build_launch_url, format_task_added
from .identity import Identity
from .state import AppState

logger = logging.getLogger(__name__)

FAILURE_TEXT = "❌ Something went wrong while handling your message. Please try again later."


def add_task_from_text(state: AppState, text: str, identity: Identity) -> ChatReply:
    task = state.tasks.add_task(identity.owner_id, text, identity.display_name)
    return ChatReply(
        format_task_added(task),
        launch_url=build_launch_url(state.launch_base_url(), identity),
    )


def handle_text(state: AppState, text: str, identity: Identity) -> ChatReply:
    body = (text or "").strip()

    try:
        if body.startswith("/"):
            reply = command_registry.handle(state, body, identity)
            # handle() only returns None for non-commands.
            return reply or ChatReply(command_registry.build_help())

        return add_task_from_text(state, body, identity)

    except InvalidInput as e:
        return ChatReply(f"⚠️ {e.message}")
    except TaskError as e:
        logger.error("Chat handler failed owner=%s: %s", identity.owner_id, e)
        return ChatReply(FAILURE_TEXT)
    except Exception:
        logger.exception("Chat handler crashed owner=%s", identity.owner_id)
        return ChatReply(FAILURE_TEXT)


def touch_sender(state: AppState, identity: Identity) -> None:
    """Best-effort last-active record; never affects message handling."""
    try:
        state.task_store.touch_user(identity.owner_id, identity.display_name)
    except Exception:
        logger.debug("touch_user failed owner=%s", identity.owner_id, exc_info=True)
