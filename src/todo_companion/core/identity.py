# src/todo_companion/core/identity.py

"""
Owner identity resolution.

Resolution order (first match wins):
1. explicit identity parameter (query param / request field),
2. identity header, parsed as an integer,
3. launch payload from the chat client (Telegram WebApp initData).

Anything that does not parse is logged and treated as absent, so resolution
falls through to the next source and finally to Unidentified.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import time
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qsl

from .errors import Unidentified

logger = logging.getLogger(__name__)

SOURCE_EXPLICIT = "explicit"
SOURCE_HEADER = "header"
SOURCE_LAUNCH_PAYLOAD = "launch_payload"
SOURCE_CHAT = "chat"


@dataclass(frozen=True, slots=True)
class Identity:
    owner_id: int
    display_name: str | None = None
    source: str = SOURCE_EXPLICIT


# Owner ids are stored as SQLite INTEGER (signed 64-bit).
OWNER_ID_MIN = -(2**63)
OWNER_ID_MAX = 2**63 - 1


def _parse_owner_id(raw: Any) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        value = raw
    else:
        s = str(raw).strip()
        if not s:
            return None
        try:
            value = int(s)
        except ValueError:
            return None
    if not OWNER_ID_MIN <= value <= OWNER_ID_MAX:
        return None
    return value


def _clean_name(raw: Any) -> str | None:
    if raw is None:
        return None
    s = str(raw).strip()
    return s or None


def _launch_payload_hash(pairs: dict[str, str], bot_token: str) -> str:
    data_check_string = "\n".join(f"{k}={pairs[k]}" for k in sorted(pairs) if k != "hash")
    secret_key = hmac.new(b"WebAppData", bot_token.encode("utf-8"), hashlib.sha256).digest()
    return hmac.new(secret_key, data_check_string.encode("utf-8"), hashlib.sha256).hexdigest()


def _fresh(auth_date: str | None, max_age: int, now: float | None) -> bool:
    try:
        issued = int(auth_date or "")
    except ValueError:
        return False
    current = time.time() if now is None else now
    return current - issued <= max_age


def sign_launch_payload(fields: dict[str, str], bot_token: str) -> dict[str, str]:
    """Return a copy of fields with the 'hash' entry the chat client would add."""
    pairs = {k: v for k, v in fields.items() if k != "hash"}
    pairs["hash"] = _launch_payload_hash(pairs, bot_token)
    return pairs


def parse_launch_payload(
    payload: str,
    *,
    bot_token: str | None = None,
    verify_signature: bool = True,
    max_age: int = 0,
    now: float | None = None,
) -> Identity | None:
    """
    Extract the owner identity from a launch payload.

    Returns None for anything malformed (and for a bad signature when
    verification is on and a bot token is known).

    max_age > 0 also rejects signed payloads whose auth_date is older than
    max_age seconds, so a captured payload cannot be replayed forever.
    """
    if not payload or not payload.strip():
        return None

    try:
        pairs = dict(parse_qsl(payload.strip(), keep_blank_values=True, strict_parsing=True))
    except ValueError:
        logger.warning("Launch payload is not a valid query string.")
        return None

    if verify_signature and bot_token:
        got = pairs.get("hash", "")
        expected = _launch_payload_hash(pairs, bot_token)
        if not got or not hmac.compare_digest(got, expected):
            logger.warning("Launch payload signature mismatch.")
            return None
        if max_age > 0 and not _fresh(pairs.get("auth_date"), max_age, now):
            logger.warning("Launch payload is expired.")
            return None

    raw_user = pairs.get("user")
    if not raw_user:
        logger.warning("Launch payload has no user object.")
        return None

    try:
        user = json.loads(raw_user)
    except ValueError:
        logger.warning("Launch payload user object is not valid JSON.")
        return None
    if not isinstance(user, dict):
        logger.warning("Launch payload user is not an object.")
        return None

    owner_id = _parse_owner_id(user.get("id"))
    if owner_id is None:
        logger.warning("Launch payload user has no numeric id.")
        return None

    name = _clean_name(user.get("username")) or _clean_name(user.get("first_name"))
    return Identity(owner_id=owner_id, display_name=name, source=SOURCE_LAUNCH_PAYLOAD)


def resolve_identity(
    *,
    explicit: Any = None,
    header: str | None = None,
    launch_payload: str | None = None,
    display_name: str | None = None,
    bot_token: str | None = None,
    verify_signature: bool = True,
    max_age: int = 0,
) -> Identity:
    name = _clean_name(display_name)

    owner_id = _parse_owner_id(explicit)
    if owner_id is not None:
        return Identity(owner_id=owner_id, display_name=name, source=SOURCE_EXPLICIT)
    if explicit not in (None, ""):
        logger.debug("Ignoring non-numeric explicit identity %r", explicit)

    owner_id = _parse_owner_id(header)
    if owner_id is not None:
        return Identity(owner_id=owner_id, display_name=name, source=SOURCE_HEADER)
    if header not in (None, ""):
        logger.debug("Ignoring non-numeric identity header %r", header)

    if launch_payload:
        ident = parse_launch_payload(
            launch_payload,
            bot_token=bot_token,
            verify_signature=verify_signature,
            max_age=max_age,
        )
        if ident is not None:
            if name and not ident.display_name:
                return Identity(owner_id=ident.owner_id, display_name=name, source=ident.source)
            return ident

    raise Unidentified()


def identity_from_chat_user(
    user_id: int, username: str | None = None, first_name: str | None = None
) -> Identity:
    """Identity of a chat message sender (username preferred over first name)."""
    return Identity(
        owner_id=int(user_id),
        display_name=_clean_name(username) or _clean_name(first_name),
        source=SOURCE_CHAT,
    )
