"""Read/write façade over a :class:`~tasks_api.store.TaskStore`.

The repository reports a title collision as :class:`DuplicateTitleError` and
any other rejected write as :class:`DataIntegrityError`. It does not decide
what either means for the caller.
"""

from tasks_api.errors import ConstraintViolation, DataIntegrityError, DuplicateTitleError
from tasks_api.models import Task, TaskDraft
from tasks_api.store import TITLE_CONSTRAINT, TaskStore


def is_duplicate_title(violation: ConstraintViolation) -> bool:
    return violation.kind == "unique" and violation.constraint == TITLE_CONSTRAINT


def _translate(violation: ConstraintViolation, title: str) -> DuplicateTitleError | DataIntegrityError:
    if is_duplicate_title(violation):
        return DuplicateTitleError(title)
    return DataIntegrityError(violation.detail)


class TaskRepository:
    """Task reads and writes against a store."""

    def __init__(self, store: TaskStore) -> None:
        self._store = store

    def find_all(self) -> list[Task]:
        """Return every stored task in store order."""
        return self._store.find_all()

    def find_by_id(self, task_id: int) -> Task | None:
        """Get a task by its ID, or None if not found."""
        return self._store.find_by_id(task_id)

    def insert(self, draft: TaskDraft) -> Task:
        """Persist a new task.

        Raises:
            DuplicateTitleError: another task already has ``draft.title``.
            DataIntegrityError: any other constraint rejected the row.
        """
        try:
            return self._store.insert(draft)
        except ConstraintViolation as exc:
            raise _translate(exc, draft.title) from exc

    def update(self, task: Task) -> Task | None:
        """Write ``task``'s fields over the stored row. None if the row is gone.

        Raises the same errors as :meth:`insert`.
        """
        try:
            return self._store.update(task)
        except ConstraintViolation as exc:
            raise _translate(exc, task.title) from exc

    def delete_by_id(self, task_id: int) -> bool:
        """Delete a task. Returns True if deleted, False if not found."""
        return self._store.delete_by_id(task_id)
