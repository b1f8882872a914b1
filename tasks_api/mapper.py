"""Conversions between API payloads and internal task records."""

from tasks_api.models import Task, TaskDraft, TaskRequest, TaskResponse, TaskStatus


def to_draft(request: TaskRequest) -> TaskDraft:
    """Build the write candidate for a create or replace request."""
    return TaskDraft(
        title=request.title,
        description=request.description,
        status=request.status or TaskStatus.PENDING,
    )


def to_response(task: Task) -> TaskResponse:
    """Build the API view of ``task``.

    Timestamps the task does not have are left unset, so they are dropped
    from the payload instead of being rendered as null.
    """
    fields = {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "status": task.status,
    }
    if task.created_at is not None:
        fields["created_at"] = task.created_at
    if task.updated_at is not None:
        fields["updated_at"] = task.updated_at
    return TaskResponse(**fields)


def to_responses(tasks: list[Task]) -> list[TaskResponse]:
    return [to_response(t) for t in tasks]
