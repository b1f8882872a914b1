"""SQLite task store.

Thread-safety:
- each method opens its own SQLite connection

Title uniqueness is a column constraint, so two racing writes with the same
title are settled by SQLite at commit time. ``AUTOINCREMENT`` keeps ids of
deleted rows from being handed out again.
"""

import contextlib
import re
import sqlite3
from datetime import datetime
from pathlib import Path

from tasks_api.errors import ConstraintKind, ConstraintViolation
from tasks_api.logging_config import get_logger
from tasks_api.models import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH, Task, TaskDraft, TaskStatus
from tasks_api.store import Clock, stamp_update, utc_now

logger = get_logger(__name__)

_CONSTRAINT_RE = re.compile(r"^(UNIQUE|NOT NULL|CHECK) constraint failed: (?:tasks\.)?(\w+)")

_KINDS: dict[str, ConstraintKind] = {
    "UNIQUE": "unique",
    "NOT NULL": "not_null",
    "CHECK": "check",
}


def classify_integrity_error(exc: sqlite3.IntegrityError) -> ConstraintViolation:
    """Describe which constraint an ``IntegrityError`` reports."""
    detail = str(exc)
    match = _CONSTRAINT_RE.match(detail)
    if match is None:
        return ConstraintViolation("other", None, detail)
    kind, constraint = match.groups()
    return ConstraintViolation(_KINDS[kind], constraint, detail)


class SqliteTaskStore:
    """Task store backed by a single SQLite file."""

    def __init__(self, db_path: str | Path = "tasks.sqlite3", clock: Clock = utc_now) -> None:
        """Open (and create if needed) the database at ``db_path``."""
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._clock = clock
        self._ensure_schema()
        logger.info("SqliteTaskStore ready db=%s", self._db_path)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.DatabaseError):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL UNIQUE,
                    description TEXT,
                    status TEXT NOT NULL DEFAULT 'PENDING',
                    created_at TEXT NOT NULL,
                    updated_at TEXT,
                    CONSTRAINT title_length CHECK (length(title) <= {TITLE_MAX_LENGTH}),
                    CONSTRAINT description_length CHECK (
                        description IS NULL OR length(description) <= {DESCRIPTION_MAX_LENGTH}
                    ),
                    CONSTRAINT status_values CHECK (status IN ('PENDING', 'COMPLETED'))
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=int(row["id"]),
            title=row["title"],
            description=row["description"],
            status=TaskStatus(row["status"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]) if row["updated_at"] else None,
        )

    @staticmethod
    def _select(conn: sqlite3.Connection, task_id: int) -> sqlite3.Row | None:
        cur = conn.execute("SELECT * FROM tasks WHERE id = ?", (int(task_id),))
        return cur.fetchone()

    # ---- public API ----

    def insert(self, draft: TaskDraft) -> Task:
        """Store a new task and return it with its id and ``created_at`` set."""
        status = draft.status or TaskStatus.PENDING
        conn = self._get_conn()
        try:
            try:
                cur = conn.execute(
                    "INSERT INTO tasks(title, description, status, created_at) VALUES (?, ?, ?, ?)",
                    (draft.title, draft.description, status.value, self._clock().isoformat()),
                )
                row = self._select(conn, int(cur.lastrowid))
                conn.commit()
            except sqlite3.IntegrityError as exc:
                conn.rollback()
                raise classify_integrity_error(exc) from exc
            if row is None:
                raise RuntimeError("SQLite did not return the inserted task row")
            task = self._row_to_task(row)
            logger.debug("Task inserted id=%s status=%s", task.id, task.status)
            return task
        finally:
            conn.close()

    def update(self, task: Task) -> Task | None:
        """Replace the stored fields of ``task``. Returns None if it no longer exists."""
        updated_at = stamp_update(task, self._clock())
        conn = self._get_conn()
        try:
            try:
                cur = conn.execute(
                    """
                    UPDATE tasks
                    SET title = ?, description = ?, status = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (task.title, task.description, task.status.value, updated_at.isoformat(), int(task.id)),
                )
                if cur.rowcount == 0:
                    conn.rollback()
                    return None
                row = self._select(conn, task.id)
                conn.commit()
            except sqlite3.IntegrityError as exc:
                conn.rollback()
                raise classify_integrity_error(exc) from exc
            return self._row_to_task(row) if row is not None else None
        finally:
            conn.close()

    def find_by_id(self, task_id: int) -> Task | None:
        """Get a task by its ID, or None if not found."""
        conn = self._get_conn()
        try:
            row = self._select(conn, task_id)
            return self._row_to_task(row) if row is not None else None
        finally:
            conn.close()

    def find_all(self) -> list[Task]:
        """Return all tasks in ascending id order."""
        conn = self._get_conn()
        try:
            cur = conn.execute("SELECT * FROM tasks ORDER BY id ASC")
            return [self._row_to_task(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def delete_by_id(self, task_id: int) -> bool:
        """Delete a task. Returns True if deleted, False if not found."""
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM tasks WHERE id = ?", (int(task_id),))
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def ping(self) -> None:
        """Raise if the database file cannot be queried."""
        conn = self._get_conn()
        try:
            conn.execute("SELECT 1").fetchone()
        finally:
            conn.close()
