"""Domain errors raised by the query layer and upload validation."""

from __future__ import annotations


class SchoolDirectoryError(Exception):
    """Base class for errors that map onto an HTTP error envelope."""

    status_code: int = 500
    default_message: str = "Internal server error occurred. Please try again."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(SchoolDirectoryError):
    """Missing or malformed input."""

    status_code = 400
    default_message = "Invalid request"


class TooManyFilesError(ValidationError):
    """Raised when an upload batch exceeds the file count limit."""


class FileTooLargeError(ValidationError):
    """Raised when a single uploaded file exceeds the size limit."""


class UnsupportedTypeError(ValidationError):
    """Raised when an uploaded file declares a MIME type outside the allow-list."""


class NotFoundError(SchoolDirectoryError):
    status_code = 404
    default_message = "Resource not found"


class PersistenceError(SchoolDirectoryError):
    """Raised when the record store is unreachable or a statement fails."""

    status_code = 500
    default_message = "Database operation failed"


__all__ = [
    "SchoolDirectoryError",
    "ValidationError",
    "TooManyFilesError",
    "FileTooLargeError",
    "UnsupportedTypeError",
    "NotFoundError",
    "PersistenceError",
]
