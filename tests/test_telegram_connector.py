# tests/test_telegram_connector.py

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from telegram import Chat, InlineKeyboardMarkup, Message, Update, User

from todo_companion.connectors.telegram_connector import (
    build_application,
    build_reply_markup,
    handle_update,
)

from .fakes import FakeTelegramMessage, FakeTelegramUser, FakeUpdate


@pytest.mark.asyncio
async def test_text_message_adds_task_and_replies_with_button(fake_state, fake_repo) -> None:
    message = FakeTelegramMessage(text="Buy milk")
    update = FakeUpdate(FakeTelegramUser(id=42, username=None, first_name="Neo"), message)

    reply = await handle_update(fake_state, update)

    assert reply is not None
    [task] = fake_repo.find_by_owner(42)
    assert task.text == "Buy milk"
    assert task.display_name == "Neo"
    assert fake_repo.touched == {42: "Neo"}

    message.reply_text.assert_awaited_once()
    args, kwargs = message.reply_text.call_args
    assert '"Buy milk" added' in args[0]
    markup = kwargs["reply_markup"]
    assert isinstance(markup, InlineKeyboardMarkup)
    button = markup.inline_keyboard[0][0]
    assert button.web_app is not None
    assert button.web_app.url == "https://todo.example.com?userId=42&username=Neo"


@pytest.mark.asyncio
async def test_command_message_goes_through_registry(fake_state, fake_repo) -> None:
    message = FakeTelegramMessage(text="/stats")
    update = FakeUpdate(FakeTelegramUser(id=42, username="neo"), message)

    await handle_update(fake_state, update)

    assert fake_repo.inserts == 0
    args, kwargs = message.reply_text.call_args
    assert "Total: 0" in args[0]
    assert kwargs["reply_markup"] is None


@pytest.mark.asyncio
async def test_update_without_sender_or_text_is_ignored(fake_state) -> None:
    message = FakeTelegramMessage(text="   ")
    assert await handle_update(fake_state, FakeUpdate(FakeTelegramUser(id=1), message)) is None
    assert await handle_update(fake_state, FakeUpdate(None, message)) is None
    message.reply_text.assert_not_awaited()


@pytest.mark.asyncio
async def test_send_failure_does_not_raise(fake_state) -> None:
    message = FakeTelegramMessage(text="Buy milk")
    message.reply_text.side_effect = RuntimeError("network down")

    reply = await handle_update(fake_state, FakeUpdate(FakeTelegramUser(id=1), message))
    assert reply is not None


def test_reply_markup_uses_plain_url_for_http() -> None:
    markup = build_reply_markup("http://localhost:3000?userId=1")
    button = markup.inline_keyboard[0][0]
    assert button.url == "http://localhost:3000?userId=1"
    assert button.web_app is None
    assert build_reply_markup(None) is None


def _text_message(text: str) -> Message:
    return Message(
        message_id=1,
        date=datetime.now(UTC),
        chat=Chat(id=42, type=Chat.PRIVATE),
        from_user=User(id=42, first_name="Neo", is_bot=False),
        text=text,
    )


def test_handler_ignores_edited_messages(fake_state) -> None:
    application = build_application(fake_state)
    [handler] = application.handlers[0]

    assert handler.check_update(Update(update_id=1, message=_text_message("Buy milk")))
    assert handler.check_update(Update(update_id=2, message=_text_message("/list")))
    assert not handler.check_update(
        Update(update_id=3, edited_message=_text_message("Buy oat milk"))
    )
