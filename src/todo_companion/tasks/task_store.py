# src/todo_companion/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import time
from collections.abc import Iterator
from pathlib import Path
from urllib.parse import urlparse

from ..core.errors import NotFound, StorageUnavailable
from .task_models import Task

logger = logging.getLogger(__name__)


def db_path_from_url(url: str) -> Path:
    """
    Turn a storage connection string into a SQLite file path.

    Accepted forms:
      sqlite:///relative/tasks.sqlite3
      sqlite:////absolute/tasks.sqlite3
      /plain/path/tasks.sqlite3
    """
    raw = (url or "").strip()
    if not raw:
        raise ValueError("storage url is empty")

    if "://" not in raw:
        return Path(raw).expanduser()

    parsed = urlparse(raw)
    if parsed.scheme != "sqlite":
        raise ValueError(f"unsupported storage scheme: {parsed.scheme!r}")

    # sqlite:///x -> path "/x" (relative), sqlite:////x -> path "//x" (absolute)
    path = parsed.path[1:] if parsed.path.startswith("/") else parsed.path
    if not path:
        raise ValueError("storage url has no database path")
    return Path(path).expanduser()


# SQLite INTEGER range; anything outside it cannot name a row.
_ID_MIN = -(2**63)
_ID_MAX = 2**63 - 1


def _parse_task_id(task_id: int | str) -> int | None:
    if isinstance(task_id, bool):
        return None
    if isinstance(task_id, int):
        value = task_id
    else:
        try:
            value = int(str(task_id).strip())
        except ValueError:
            return None
    if not _ID_MIN <= value <= _ID_MAX:
        return None
    return value


class TaskStore:
    """
    SQLite task store.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Ownership:
    - every read, update and delete is keyed by owner_id
    - update/delete match on id AND owner_id in a single statement

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailable(f"cannot create storage directory: {e}") from e
        self._ensure_schema()
        logger.info("TaskStore ready db=%s total=%s", self._db_path, self.count_tasks())

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    @contextlib.contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        """Short-lived connection; sqlite errors surface as StorageUnavailable."""
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            logger.error("TaskStore connect failed db=%s: %r", self._db_path, e)
            raise StorageUnavailable() from e
        try:
            yield conn
        except sqlite3.Error as e:
            logger.error("TaskStore query failed db=%s: %r", self._db_path, e)
            raise StorageUnavailable() from e
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._session() as conn:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    text TEXT NOT NULL,
                    completed INTEGER NOT NULL DEFAULT 0,
                    owner_id INTEGER NOT NULL,
                    display_name TEXT,
                    created_at REAL NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("completed", "INTEGER NOT NULL DEFAULT 0")
            add_col("display_name", "TEXT")
            add_col("updated_at", "REAL NOT NULL DEFAULT 0")

            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_tasks_owner_created ON tasks(owner_id, created_at)"
            )

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS user_activity (
                    owner_id INTEGER PRIMARY KEY,
                    display_name TEXT,
                    last_seen_at REAL NOT NULL
                )
                """
            )

            conn.commit()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=int(row["id"]),
            text=str(row["text"] or ""),
            completed=bool(row["completed"]),
            owner_id=int(row["owner_id"]),
            display_name=row["display_name"],
            created_at=float(row["created_at"] or 0.0),
            updated_at=float(row["updated_at"] or 0.0),
        )

    @staticmethod
    def _select_owned(conn: sqlite3.Connection, task_id: int, owner_id: int) -> Task | None:
        row = conn.execute(
            "SELECT * FROM tasks WHERE id = ? AND owner_id = ?",
            (task_id, int(owner_id)),
        ).fetchone()
        return TaskStore._row_to_task(row) if row else None

    # ---- public API ----

    def ping(self) -> bool:
        try:
            with self._session() as conn:
                conn.execute("SELECT 1").fetchone()
            return True
        except StorageUnavailable:
            return False

    def count_tasks(self) -> int:
        with self._session() as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)

    def insert(self, *, text: str, owner_id: int, display_name: str | None = None) -> Task:
        now = time.time()
        with self._session() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO tasks(text, completed, owner_id, display_name, created_at, updated_at)
                VALUES (?, 0, ?, ?, ?, ?)
                """,
                (text, int(owner_id), display_name, now, now),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise StorageUnavailable("SQLite did not return lastrowid for tasks insert")

        task = Task(
            id=int(rowid),
            text=text,
            completed=False,
            owner_id=int(owner_id),
            display_name=display_name,
            created_at=now,
            updated_at=now,
        )
        logger.debug("Task inserted id=%s owner=%s", task.id, task.owner_id)
        return task

    def find_by_owner(self, owner_id: int) -> list[Task]:
        """All tasks of one owner, most recent first."""
        with self._session() as conn:
            rows = conn.execute(
                """
                SELECT *
                FROM tasks
                WHERE owner_id = ?
                ORDER BY created_at DESC, id DESC
                """,
                (int(owner_id),),
            ).fetchall()
            return [self._row_to_task(r) for r in rows]

    def update_completion(self, task_id: int | str, owner_id: int, completed: bool) -> Task:
        tid = _parse_task_id(task_id)
        if tid is None:
            raise NotFound()

        with self._session() as conn:
            cur = conn.execute(
                """
                UPDATE tasks
                SET completed = ?, updated_at = ?
                WHERE id = ?
                  AND owner_id = ?
                """,
                (1 if completed else 0, time.time(), tid, int(owner_id)),
            )
            conn.commit()
            if cur.rowcount != 1:
                raise NotFound()
            task = self._select_owned(conn, tid, owner_id)

        if task is None:
            # Deleted between UPDATE and SELECT.
            raise NotFound()
        logger.debug("Task updated id=%s owner=%s completed=%s", tid, owner_id, completed)
        return task

    def delete_by_id_and_owner(self, task_id: int | str, owner_id: int) -> None:
        tid = _parse_task_id(task_id)
        if tid is None:
            raise NotFound()

        with self._session() as conn:
            cur = conn.execute(
                "DELETE FROM tasks WHERE id = ? AND owner_id = ?",
                (tid, int(owner_id)),
            )
            conn.commit()
            if cur.rowcount != 1:
                raise NotFound()
        logger.debug("Task deleted id=%s owner=%s", tid, owner_id)

    def count_by_owner(self, owner_id: int) -> tuple[int, int]:
        """Return (total, completed) for one owner."""
        with self._session() as conn:
            row = conn.execute(
                """
                SELECT COUNT(*) AS total,
                       COALESCE(SUM(CASE WHEN completed THEN 1 ELSE 0 END), 0) AS done
                FROM tasks
                WHERE owner_id = ?
                """,
                (int(owner_id),),
            ).fetchone()
            return int(row["total"]), int(row["done"])

    def touch_user(self, owner_id: int, display_name: str | None = None) -> None:
        """Record when an owner was last active. Observability only."""
        with self._session() as conn:
            conn.execute(
                """
                INSERT INTO user_activity(owner_id, display_name, last_seen_at)
                VALUES (?, ?, ?)
                ON CONFLICT(owner_id) DO UPDATE SET
                    display_name = COALESCE(excluded.display_name, user_activity.display_name),
                    last_seen_at = excluded.last_seen_at
                """,
                (int(owner_id), display_name, time.time()),
            )
            conn.commit()

    def last_seen(self, owner_id: int) -> float | None:
        with self._session() as conn:
            row = conn.execute(
                "SELECT last_seen_at FROM user_activity WHERE owner_id = ?",
                (int(owner_id),),
            ).fetchone()
            return float(row["last_seen_at"]) if row else None
