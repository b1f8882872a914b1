"""Error types raised by the stores, the repository and the task service.

Stores raise :class:`ConstraintViolation` with a structured description of the
constraint that failed. The repository turns a title collision into
:class:`DuplicateTitleError` and anything else into :class:`DataIntegrityError`.
Only :class:`ConflictError` leaves the service as a domain error.
"""

from typing import Literal

ConstraintKind = Literal["unique", "not_null", "check", "other"]


class StoreError(Exception):
    """Base class for storage-layer failures."""


class ConstraintViolation(StoreError):
    """A write was rejected by a storage constraint."""

    def __init__(self, kind: ConstraintKind, constraint: str | None, detail: str) -> None:
        self.kind = kind
        self.constraint = constraint
        self.detail = detail
        super().__init__(detail)


class DuplicateTitleError(StoreError):
    """The write collided with the unique title of another task."""

    def __init__(self, title: str) -> None:
        self.title = title
        super().__init__(f"Duplicate title: {title!r}")


class DataIntegrityError(StoreError):
    """A constraint other than title uniqueness rejected the write."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(detail)


class ConflictError(Exception):
    """A task field clashes with an existing task."""

    def __init__(self, message: str, field: str, value: str) -> None:
        self.message = message
        self.field = field
        self.value = value
        super().__init__(message)
