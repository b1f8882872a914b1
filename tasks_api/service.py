"""Task lifecycle: create, read, replace and delete tasks.

The service is stateless; everything durable lives behind the repository.
Missing tasks are reported as ``None``/``False``, a clashing title as
:class:`~tasks_api.errors.ConflictError`. Every other storage failure is
logged and re-raised unchanged.
"""

import sqlite3

from tasks_api.errors import ConflictError, DuplicateTitleError, StoreError
from tasks_api.logging_config import get_logger, task_context
from tasks_api.models import Task, TaskDraft, TaskStatus
from tasks_api.repository import TaskRepository

logger = get_logger(__name__)


def normalize_draft(draft: TaskDraft) -> TaskDraft:
    """Fill in the default status of a draft that has none."""
    if draft.status is not None:
        return draft
    return draft.model_copy(update={"status": TaskStatus.PENDING})


def title_conflict(title: str) -> ConflictError:
    return ConflictError(f"A task with the title '{title}' already exists", "title", title)


class TaskService:
    def __init__(self, repository: TaskRepository) -> None:
        self._repository = repository

    def list_all(self) -> list[Task]:
        logger.debug("Fetching all tasks")
        tasks = self._repository.find_all()
        logger.info("Retrieved %d tasks", len(tasks))
        return tasks

    def get_by_id(self, task_id: int) -> Task | None:
        logger.debug("Fetching task with id: %s", task_id)
        task = self._repository.find_by_id(task_id)
        if task is None:
            logger.warning("Task not found with id: %s", task_id)
        return task

    def create(self, draft: TaskDraft) -> Task:
        """Store a new task built from ``draft``.

        Raises:
            ConflictError: a task with the same title already exists.
        """
        draft = normalize_draft(draft)
        with task_context(taskTitle=draft.title):
            logger.info("Creating new task with title: '%s'", draft.title)
            try:
                task = self._repository.insert(draft)
            except DuplicateTitleError:
                logger.warning("Attempted to create task with duplicate title: '%s'", draft.title)
                raise title_conflict(draft.title) from None
            except (StoreError, sqlite3.Error):
                logger.exception("Database error while creating task with title: '%s'", draft.title)
                raise
            logger.info("Successfully created task with id: %s and title: '%s'", task.id, task.title)
            return task

    def update(self, task_id: int, draft: TaskDraft) -> Task | None:
        """Replace title, description and status of task ``task_id``.

        Returns None, without writing, when the task does not exist. The id
        and ``created_at`` of the stored task are kept.

        Raises:
            ConflictError: another task already has the new title.
        """
        draft = normalize_draft(draft)
        with task_context(taskId=task_id, taskTitle=draft.title):
            logger.info("Updating task with id: %s and title: '%s'", task_id, draft.title)
            existing = self._repository.find_by_id(task_id)
            if existing is None:
                logger.warning("Attempted to update non-existent task with id: %s", task_id)
                return None

            replacement = existing.model_copy(
                update={"title": draft.title, "description": draft.description, "status": draft.status}
            )
            try:
                saved = self._repository.update(replacement)
            except DuplicateTitleError:
                logger.warning("Attempted to update task id: %s with duplicate title: '%s'", task_id, draft.title)
                raise title_conflict(draft.title) from None
            except (StoreError, sqlite3.Error):
                logger.exception("Database error while updating task id: %s", task_id)
                raise

            if saved is None:
                logger.warning("Task id: %s was deleted before it could be updated", task_id)
                return None
            logger.info("Successfully updated task id: %s from title '%s' to '%s'", task_id, existing.title, saved.title)
            return saved

    def delete(self, task_id: int) -> bool:
        """Delete task ``task_id``. Returns False, without deleting, if it does not exist."""
        with task_context(taskId=task_id):
            logger.info("Deleting task with id: %s", task_id)
            if self._repository.find_by_id(task_id) is None:
                logger.warning("Attempted to delete non-existent task with id: %s", task_id)
                return False
            self._repository.delete_by_id(task_id)
            logger.info("Successfully deleted task with id: %s", task_id)
            return True
