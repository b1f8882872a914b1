"""Task storage.

``TaskStore`` is the interface every backend provides. The in-memory backend
keeps tasks in a dict and is what the test-suite runs against; the SQLite
backend lives in :mod:`tasks_api.sqlite_store`.

Stores own identity and timestamps: ``insert`` assigns the id and
``created_at``, ``update`` stamps ``updated_at``. Uniqueness of ``title`` is
checked and written atomically, and a collision is raised as
:class:`~tasks_api.errors.ConstraintViolation`.
"""

import itertools
import threading
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Protocol

from tasks_api.errors import ConstraintViolation
from tasks_api.models import Task, TaskDraft, TaskStatus

Clock = Callable[[], datetime]

TITLE_CONSTRAINT = "title"


def utc_now() -> datetime:
    """Current time in UTC, truncated to whole seconds."""
    return datetime.now(UTC).replace(microsecond=0)


def stamp_update(task: Task, now: datetime) -> datetime:
    """Timestamp for an update of ``task``, never earlier than its creation."""
    return max(now, task.created_at)


class TaskStore(Protocol):
    """Durable keyed storage for tasks."""

    def insert(self, draft: TaskDraft) -> Task: ...

    def update(self, task: Task) -> Task | None: ...

    def find_by_id(self, task_id: int) -> Task | None: ...

    def find_all(self) -> list[Task]: ...

    def delete_by_id(self, task_id: int) -> bool: ...

    def ping(self) -> None: ...


class InMemoryTaskStore:
    """Simple in-memory task storage."""

    def __init__(self, clock: Clock = utc_now) -> None:
        """Initialize an empty task store."""
        self._clock = clock
        self._lock = threading.Lock()
        self._tasks: dict[int, Task] = {}
        self._ids = itertools.count(1)

    def _title_taken(self, title: str, exclude_id: int | None = None) -> bool:
        return any(t.title == title and t.id != exclude_id for t in self._tasks.values())

    def _duplicate_title(self, title: str) -> ConstraintViolation:
        return ConstraintViolation(
            "unique",
            TITLE_CONSTRAINT,
            f"Duplicate entry '{title}' for key 'tasks.title'",
        )

    def insert(self, draft: TaskDraft) -> Task:
        """Store a new task and return it with its id and ``created_at`` set."""
        with self._lock:
            if self._title_taken(draft.title):
                raise self._duplicate_title(draft.title)
            task = Task(
                id=next(self._ids),
                title=draft.title,
                description=draft.description,
                status=draft.status or TaskStatus.PENDING,
                created_at=self._clock(),
            )
            self._tasks[task.id] = task
            return task

    def update(self, task: Task) -> Task | None:
        """Replace the stored fields of ``task``. Returns None if it no longer exists."""
        with self._lock:
            current = self._tasks.get(task.id)
            if current is None:
                return None
            if self._title_taken(task.title, exclude_id=task.id):
                raise self._duplicate_title(task.title)
            updated = current.model_copy(
                update={
                    "title": task.title,
                    "description": task.description,
                    "status": task.status,
                    "updated_at": stamp_update(current, self._clock()),
                }
            )
            self._tasks[task.id] = updated
            return updated

    def find_by_id(self, task_id: int) -> Task | None:
        """Get a task by its ID, or None if not found."""
        return self._tasks.get(task_id)

    def find_all(self) -> list[Task]:
        """Return all tasks in ascending id order."""
        with self._lock:
            return sorted(self._tasks.values(), key=lambda t: t.id)

    def delete_by_id(self, task_id: int) -> bool:
        """Delete a task. Returns True if deleted, False if not found."""
        with self._lock:
            return self._tasks.pop(task_id, None) is not None

    def ping(self) -> None:
        """Always succeeds; there is nothing to connect to."""
        return None
