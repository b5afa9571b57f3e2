# src/todo_companion/connectors/console_connector.py

from __future__ import annotations

import logging
from datetime import datetime

from ..core.chat import handle_text
from ..core.formatting import OPEN_APP_LABEL, ChatReply
from ..core.identity import SOURCE_CHAT, Identity
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def render_reply(reply: ChatReply) -> str:
    if not reply.launch_url:
        return reply.text
    return f"{reply.text}\n{OPEN_APP_LABEL}: {reply.launch_url}"


def console_identity(state: AppState) -> Identity:
    owner_id = int(getattr(state.settings, "console_user_id", 0) or 0)
    return Identity(owner_id=owner_id, display_name="console", source=SOURCE_CHAT)


def run_console_loop(state: AppState) -> None:
    identity = console_identity(state)
    logger.info("Console connector started (owner=%s).", identity.owner_id)
    _print_ts("[CONSOLE] Type a task to add it. Use /help for commands. Use /exit to quit.\n")

    while True:
        try:
            user_input = input(">>> You: ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        reply = handle_text(state, user_input, identity)
        _print_ts(render_reply(reply))

    logger.info("Console connector finished.")
