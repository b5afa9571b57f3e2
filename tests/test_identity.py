# tests/test_identity.py

from __future__ import annotations

import json
from urllib.parse import urlencode

import pytest

from todo_companion.core.errors import Unidentified
from todo_companion.core.identity import (
    SOURCE_EXPLICIT,
    SOURCE_HEADER,
    SOURCE_LAUNCH_PAYLOAD,
    identity_from_chat_user,
    parse_launch_payload,
    resolve_identity,
    sign_launch_payload,
)

from .conftest import BOT_TOKEN


def launch_payload(user: dict, *, token: str = BOT_TOKEN) -> str:
    fields = {"auth_date": "1700000000", "query_id": "AAH", "user": json.dumps(user)}
    return urlencode(sign_launch_payload(fields, token))


def test_explicit_wins_over_header_and_payload() -> None:
    ident = resolve_identity(
        explicit="42",
        header="7",
        launch_payload=launch_payload({"id": 9}),
        bot_token=BOT_TOKEN,
    )
    assert ident.owner_id == 42
    assert ident.source == SOURCE_EXPLICIT


def test_header_used_when_no_explicit() -> None:
    ident = resolve_identity(header=" 7 ", display_name="bob")
    assert ident.owner_id == 7
    assert ident.display_name == "bob"
    assert ident.source == SOURCE_HEADER


def test_non_numeric_explicit_falls_through() -> None:
    assert resolve_identity(explicit="abc", header="7").owner_id == 7


def test_signed_payload() -> None:
    ident = resolve_identity(
        launch_payload=launch_payload({"id": 9, "username": "neo", "first_name": "Thomas"}),
        bot_token=BOT_TOKEN,
    )
    assert ident.owner_id == 9
    assert ident.display_name == "neo"
    assert ident.source == SOURCE_LAUNCH_PAYLOAD


def test_payload_with_first_name_only() -> None:
    ident = parse_launch_payload(launch_payload({"id": 9, "first_name": "Thomas"}), bot_token=BOT_TOKEN)
    assert ident is not None
    assert ident.display_name == "Thomas"


def test_forged_payload_is_rejected() -> None:
    forged = launch_payload({"id": 9}, token="999:other-bot")
    assert parse_launch_payload(forged, bot_token=BOT_TOKEN) is None
    with pytest.raises(Unidentified):
        resolve_identity(launch_payload=forged, bot_token=BOT_TOKEN)


def test_unsigned_payload_accepted_when_verification_off() -> None:
    payload = urlencode({"user": json.dumps({"id": 11})})
    assert parse_launch_payload(payload, bot_token=BOT_TOKEN) is None
    ident = parse_launch_payload(payload, bot_token=BOT_TOKEN, verify_signature=False)
    assert ident is not None and ident.owner_id == 11


@pytest.mark.parametrize(
    "payload",
    [
        "not a query string",
        urlencode({"user": "{broken json"}),
        urlencode({"user": json.dumps(["list"])}),
        urlencode({"user": json.dumps({"id": "abc"})}),
        urlencode({"auth_date": "1"}),
    ],
)
def test_malformed_payload_is_unidentified(payload: str) -> None:
    assert parse_launch_payload(payload, verify_signature=False) is None
    with pytest.raises(Unidentified):
        resolve_identity(launch_payload=payload, verify_signature=False)


def test_nothing_resolves_to_unidentified() -> None:
    with pytest.raises(Unidentified):
        resolve_identity()
    with pytest.raises(Unidentified):
        resolve_identity(explicit="", header="  ")


def test_bool_is_not_an_identity() -> None:
    with pytest.raises(Unidentified):
        resolve_identity(explicit=True)


def test_owner_id_outside_integer_range_is_ignored() -> None:
    huge = str(2**63)
    assert resolve_identity(explicit=huge, header="7").owner_id == 7
    assert resolve_identity(header=str(2**63 - 1)).owner_id == 2**63 - 1
    with pytest.raises(Unidentified):
        resolve_identity(explicit=2**64, header=huge)
    assert parse_launch_payload(launch_payload({"id": 2**63}), bot_token=BOT_TOKEN) is None


def test_expired_payload_is_rejected_when_max_age_set() -> None:
    payload = launch_payload({"id": 9})  # auth_date 1700000000

    fresh = parse_launch_payload(payload, bot_token=BOT_TOKEN, max_age=3600, now=1700000100)
    assert fresh is not None and fresh.owner_id == 9

    assert parse_launch_payload(payload, bot_token=BOT_TOKEN, max_age=3600, now=1700003601) is None
    assert parse_launch_payload(payload, bot_token=BOT_TOKEN, max_age=0) is not None
    with pytest.raises(Unidentified):
        resolve_identity(launch_payload=payload, bot_token=BOT_TOKEN, max_age=3600)


def test_payload_without_auth_date_fails_max_age_check() -> None:
    payload = urlencode(sign_launch_payload({"user": json.dumps({"id": 9})}, BOT_TOKEN))
    assert parse_launch_payload(payload, bot_token=BOT_TOKEN) is not None
    assert parse_launch_payload(payload, bot_token=BOT_TOKEN, max_age=60) is None


def test_chat_user_prefers_username() -> None:
    assert identity_from_chat_user(5, "neo", "Thomas").display_name == "neo"
    assert identity_from_chat_user(5, None, "Thomas").display_name == "Thomas"
    assert identity_from_chat_user(5).display_name is None
