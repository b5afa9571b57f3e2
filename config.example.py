# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets. Put them in .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # Required
    "TODO_STORAGE_URL": "Task storage, e.g. sqlite:///.local/todo/tasks.sqlite3 (required).",
    "TODO_BOT_TOKEN": "Telegram bot token (required while the Telegram connector is enabled).",
    # App / logging
    "TODO_APP_NAME": "App display name (default: todo-companion).",
    "TODO_LOG_LEVEL": "Console logging level (default: INFO).",
    "TODO_DATA_DIR": "Local data directory for the log file (default: .local/todo).",
    # Front-ends
    "TODO_TELEGRAM_ENABLED": "Enable Telegram connector (default: true).",
    "TODO_HTTP_ENABLED": "Enable HTTP API (default: true).",
    "TODO_CONSOLE_ENABLED": "Enable console connector (default: false).",
    "TODO_CONSOLE_USER_ID": "Owner id used by the console connector (default: 0).",
    # HTTP
    "TODO_HOST": "HTTP bind host (default: 0.0.0.0).",
    "TODO_PORT": "HTTP port (PORT is also accepted; default: 3000).",
    "TODO_WEBAPP_URL": "Public base URL put into launch links (default: http://localhost:<port>).",
    "TODO_STATIC_DIR": "Web client directory served at / when present (default: public).",
    "TODO_CORS_ORIGINS": "Comma/space separated allowed origins (default: *).",
    # Identity
    "TODO_VERIFY_LAUNCH_PAYLOAD": "Check the signature of Telegram initData (default: true).",
    "TODO_LAUNCH_PAYLOAD_MAX_AGE": "Reject signed initData older than this many seconds (default: 86400, 0 = off).",
}
