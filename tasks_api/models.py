"""Pydantic models for the Task API.

``Task`` and ``TaskDraft`` are the internal records the service and the stores
exchange. ``TaskRequest``, ``TaskResponse``, ``ErrorResponse`` and
``HealthResponse`` are the wire shapes of the HTTP API.
"""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from tasks_api import __version__

TITLE_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 500
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class TaskStatus(StrEnum):
    """Lifecycle status of a task."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as UTC wall-clock time, e.g. ``2025-01-15T14:30:45Z``.

    Naive datetimes are taken to be UTC already.
    """
    if value.tzinfo is not None:
        value = value.astimezone(UTC)
    return value.strftime(TIMESTAMP_FORMAT)


class TaskDraft(BaseModel):
    """Candidate field values for a task write. Carries no id and no timestamps."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str | None = None
    status: TaskStatus | None = None


class Task(BaseModel):
    """A task as persisted by a store.

    Instances are frozen: ``id`` and the timestamps only ever come from a
    store's write path.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Store-assigned identifier")
    title: str = Field(..., description="Unique task title")
    description: str | None = Field(default=None, description="Optional free text")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Task status")
    created_at: datetime = Field(..., description="When the task was first stored")
    updated_at: datetime | None = Field(default=None, description="When the task was last updated")


class TaskRequest(BaseModel):
    """Request body for creating or replacing a task."""

    title: str | None = Field(
        default=None,
        validate_default=True,
        description="The task title (required, at most 255 characters)",
    )
    description: str | None = Field(
        default=None,
        description="Optional description (at most 500 characters)",
    )
    status: TaskStatus = Field(
        default=TaskStatus.PENDING,
        description="Task status",
        json_schema_extra={"example": "PENDING"},
    )

    @field_validator("title")
    @classmethod
    def _check_title(cls, value: str | None) -> str:
        if value is None or not value.strip():
            raise ValueError("Title is required")
        if len(value) > TITLE_MAX_LENGTH:
            raise ValueError("Title must be under 256 characters")
        return value

    @field_validator("description")
    @classmethod
    def _check_description(cls, value: str | None) -> str | None:
        if value is not None and len(value) > DESCRIPTION_MAX_LENGTH:
            raise ValueError("Description must be under 500 characters")
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _check_status(cls, value: object) -> object:
        if value is None:
            return TaskStatus.PENDING
        if isinstance(value, str) and value in TaskStatus.__members__:
            return value
        raise ValueError("Status must be one of: PENDING, COMPLETED")


class TaskResponse(BaseModel):
    """A task item as returned by the API.

    The timestamp fields are only set when the task has them, so routes
    serialize this model with ``exclude_unset``.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(..., description="Unique identifier for the task")
    title: str = Field(..., description="The task title")
    description: str | None = Field(default=None, description="The task description")
    status: TaskStatus = Field(..., description="Task status")
    created_at: datetime | None = Field(
        default=None,
        alias="createdAt",
        description="Task creation timestamp in UTC",
        json_schema_extra={"format": "yyyy-MM-dd'T'HH:mm:ss'Z'", "example": "2025-01-15T14:30:45Z"},
    )
    updated_at: datetime | None = Field(
        default=None,
        alias="updatedAt",
        description="Task update timestamp in UTC",
        json_schema_extra={"format": "yyyy-MM-dd'T'HH:mm:ss'Z'", "example": "2025-01-15T14:35:20Z"},
    )

    @field_serializer("created_at", "updated_at")
    def _render_timestamp(self, value: datetime | None) -> str | None:
        if value is None:
            return None
        return format_timestamp(value)


class ErrorResponse(BaseModel):
    """Error body for conflicts, integrity failures and bad parameters."""

    error: str
    message: str
    field: str


class DatabaseHealth(BaseModel):
    """Store connectivity as seen by the health check."""

    status: str = "healthy"
    connection: str = "ok"
    error: str | None = None


class HealthResponse(BaseModel):
    """Response from the health check endpoint."""

    status: str = "healthy"
    version: str = __version__
    service: str = "tasks-api"
    timestamp: str = Field(default_factory=lambda: format_timestamp(datetime.now(UTC)))
    database: DatabaseHealth = Field(default_factory=DatabaseHealth)
