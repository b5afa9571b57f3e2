# src/todo_companion/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app, built once in the composition root.
- Required variables are enumerated in one place; a missing one is fatal.
- No secrets read at import time (only .env is loaded into os.environ).
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .tasks.task_store import db_path_from_url

logger = logging.getLogger(__name__)

ENV_PREFIX = "TODO"

DEFAULT_PORT = 3000


class ConfigError(Exception):
    """Startup configuration is missing or invalid."""


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    data_dir: Path

    # ---- Storage ----
    storage_url: str
    tasks_db_path: Path

    # ---- Telegram ----
    bot_token: str | None
    webapp_url: str
    verify_launch_payload: bool
    launch_payload_max_age: int

    # ---- HTTP ----
    host: str
    port: int
    static_dir: Path
    cors_origins: list[str]

    # ---- Connector flags ----
    telegram_enabled: bool
    http_enabled: bool
    console_enabled: bool
    console_user_id: int

    @staticmethod
    def from_env() -> "Settings":
        missing: list[str] = []

        app_name = _env(_k("APP_NAME"), "todo-companion")
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/todo"))

        telegram_enabled = _env_bool(_k("TELEGRAM_ENABLED"), True)
        http_enabled = _env_bool(_k("HTTP_ENABLED"), True)
        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), False)
        console_user_id = _env_int(_k("CONSOLE_USER_ID"), 0)

        storage_url = (_first_env(_k("STORAGE_URL"), default="") or "").strip()
        if not storage_url:
            missing.append(_k("STORAGE_URL"))

        bot_token = (_first_env(_k("BOT_TOKEN"), default="") or "").strip() or None
        if telegram_enabled and not bot_token:
            missing.append(_k("BOT_TOKEN"))

        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

        try:
            tasks_db_path = db_path_from_url(storage_url)
        except ValueError as e:
            raise ConfigError(f"{_k('STORAGE_URL')} is invalid: {e}") from None

        port = _env_int(_k("PORT"), _env_int("PORT", DEFAULT_PORT))
        host = _env(_k("HOST"), "0.0.0.0")
        webapp_url = (_env(_k("WEBAPP_URL"), "") or f"http://localhost:{port}").strip().rstrip("/")

        verify_launch_payload = _env_bool(_k("VERIFY_LAUNCH_PAYLOAD"), True)
        # Seconds; 0 disables the auth_date check.
        launch_payload_max_age = _env_int(_k("LAUNCH_PAYLOAD_MAX_AGE"), 86400)
        static_dir = _env_path(_k("STATIC_DIR"), Path("public"))
        cors_origins = _env_list(_k("CORS_ORIGINS"), ["*"])

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            storage_url=storage_url,
            tasks_db_path=tasks_db_path,
            bot_token=bot_token,
            webapp_url=webapp_url,
            verify_launch_payload=verify_launch_payload,
            launch_payload_max_age=launch_payload_max_age,
            host=host,
            port=port,
            static_dir=static_dir,
            cors_origins=cors_origins,
            telegram_enabled=telegram_enabled,
            http_enabled=http_enabled,
            console_enabled=console_enabled,
            console_user_id=console_user_id,
        )


def load_settings_or_exit() -> Settings:
    """The single fatal path for bad startup configuration."""
    try:
        return Settings.from_env()
    except ConfigError as e:
        # Logging may not be configured yet; stderr is the reliable channel.
        print(f"[config] {e}", file=sys.stderr)
        logger.critical("Configuration error: %s", e)
        sys.exit(1)
