"""Result types returned by the validator and registration service."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Why an operation failed."""

    MISSING_FIELD = "missing_field"
    INVALID_EMAIL = "invalid_email"
    INVALID_PHONE = "invalid_phone"
    INVALID_ATTENDANCE = "invalid_attendance"
    DUPLICATE_EMAIL = "duplicate_email"
    NOT_FOUND = "not_found"
    IO_ERROR = "io_error"
    INVALID_ACTION = "invalid_action"

    @property
    def is_validation(self) -> bool:
        return self in _VALIDATION_KINDS


_VALIDATION_KINDS = {
    ErrorKind.MISSING_FIELD,
    ErrorKind.INVALID_EMAIL,
    ErrorKind.INVALID_PHONE,
    ErrorKind.INVALID_ATTENDANCE,
}


@dataclass(frozen=True)
class FieldError:
    """A user-correctable problem with one input field."""

    kind: ErrorKind
    field: str
    message: str


@dataclass(frozen=True)
class Outcome:
    """Success flag plus a user-facing message."""

    success: bool
    message: str
    kind: Optional[ErrorKind] = None
    field: Optional[str] = None

    @classmethod
    def ok(cls, message: str) -> "Outcome":
        return cls(True, message)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str, field: Optional[str] = None) -> "Outcome":
        return cls(False, message, kind, field)

    @classmethod
    def from_field_error(cls, error: FieldError) -> "Outcome":
        return cls(False, error.message, error.kind, error.field)
