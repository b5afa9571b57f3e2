# src/todo_companion/connectors/telegram_connector.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from dataclasses import dataclass
from typing import Any

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update, WebAppInfo
from telegram.ext import Application, ContextTypes, MessageHandler, filters

from ..core.chat import handle_text, touch_sender
from ..core.formatting import OPEN_APP_LABEL, ChatReply
from ..core.identity import identity_from_chat_user
from ..core.state import AppState

logger = logging.getLogger(__name__)


def build_reply_markup(launch_url: str | None) -> InlineKeyboardMarkup | None:
    """
    One-button keyboard opening the web client.

    Telegram only opens https URLs as Web Apps; anything else becomes a plain
    link button.
    """
    if not launch_url:
        return None
    if launch_url.startswith("https://"):
        button = InlineKeyboardButton(text=OPEN_APP_LABEL, web_app=WebAppInfo(url=launch_url))
    else:
        button = InlineKeyboardButton(text=OPEN_APP_LABEL, url=launch_url)
    return InlineKeyboardMarkup([[button]])


async def handle_update(state: AppState, update: Any) -> ChatReply | None:
    """
    Route one inbound text message: resolve the sender, run the chat core,
    send the reply. Returns the reply for logging/tests.
    """
    user = getattr(update, "effective_user", None)
    message = getattr(update, "effective_message", None)
    if user is None or message is None:
        return None

    text = (getattr(message, "text", None) or "").strip()
    if not text:
        return None

    identity = identity_from_chat_user(
        user.id,
        username=getattr(user, "username", None),
        first_name=getattr(user, "first_name", None),
    )
    logger.info("Telegram <%s> %r", identity.owner_id, text)

    touch_sender(state, identity)
    reply = handle_text(state, text, identity)

    try:
        await message.reply_text(reply.text, reply_markup=build_reply_markup(reply.launch_url))
    except Exception:
        logger.exception("Failed to send Telegram reply to %s.", identity.owner_id)
    return reply


def build_application(state: AppState) -> Application:
    token = state.bot_token()
    if not token:
        raise ValueError("bot token is required for the Telegram connector")

    application = Application.builder().token(token).build()

    async def on_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await handle_update(state, update)

    # New messages only (edits must not add tasks). Commands go through the
    # same path; the command registry handles them.
    application.add_handler(MessageHandler(filters.UpdateType.MESSAGE & filters.TEXT, on_text))
    return application


async def _run_telegram_bot(state: AppState, stop_event: asyncio.Event) -> None:
    """
    Telegram connector (async): init -> start polling -> wait for stop.

    Shutdown model:
    - main thread sets stop_event via loop.call_soon_threadsafe(stop_event.set)
    """
    application = build_application(state)

    try:
        await application.initialize()
        await application.start()
        if application.updater is None:
            logger.error("Telegram application has no updater; connector will stop.")
            return
        await application.updater.start_polling()
        logger.info("Telegram polling started.")

        await stop_event.wait()

    except asyncio.CancelledError:
        logger.info("Telegram connector cancelled.")
    except Exception:
        logger.exception("Telegram connector crashed.")
    finally:
        if application.updater is not None and application.updater.running:
            with contextlib.suppress(Exception):
                await application.updater.stop()
        if application.running:
            with contextlib.suppress(Exception):
                await application.stop()
        with contextlib.suppress(Exception):
            await application.shutdown()

        logger.info("Telegram connector stopped.")


@dataclass
class TelegramBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal Telegram stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_telegram_in_background(state: AppState) -> TelegramBackgroundRunner | None:
    """
    Start the Telegram connector in a background thread.

    The console REPL (input()) and uvicorn are blocking; the bot is async and
    wants its own event loop.
    """
    if not getattr(state.settings, "telegram_enabled", False):
        logger.info("Telegram connector disabled, not starting.")
        return None

    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(_run_telegram_bot(state, stop_event))
        finally:
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="telegram", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Telegram thread did not initialize properly.")
        return None

    logger.info("Telegram background thread started.")
    return TelegramBackgroundRunner(thread=t, loop=loop, stop_event=stop_event)
