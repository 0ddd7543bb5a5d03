"""
Error taxonomy for the library domain.

Every error carries the ``name`` reported to clients, the HTTP status it
maps to and a short ``message``. The API layer turns these into the
``{success, message, error}`` envelope; nothing here knows about HTTP
frameworks.
"""

from typing import Any, Dict, Optional


class LibraryError(Exception):
    """Base class for all domain errors."""

    name = "UnclassifiedInternalError"
    status_code = 500
    message = "Internal server error"

    def __init__(self, detail: Any = None, message: Optional[str] = None):
        self.detail = detail
        if message is not None:
            self.message = message
        super().__init__(self.message if detail is None else f"{self.message}: {detail}")

    def to_error(self) -> Dict[str, Any]:
        """Structured ``error`` field for the response body."""
        return {"name": self.name, "detail": self.detail}


class SchemaValidationError(LibraryError):
    """A field is missing, has the wrong type or violates a constraint."""

    name = "ValidationError"
    status_code = 400
    message = "Validation failed"

    def __init__(self, errors: Dict[str, str], detail: Any = None):
        self.errors = errors
        super().__init__(detail or "; ".join(f"{k}: {v}" for k, v in errors.items()))

    def to_error(self) -> Dict[str, Any]:
        error = super().to_error()
        error["errors"] = self.errors
        return error


class DuplicateKeyError(LibraryError):
    name = "DuplicateKeyError"
    status_code = 400
    message = "Validation failed"


class InvalidIdentifierError(LibraryError):
    name = "InvalidIdentifier"
    status_code = 400
    message = "Invalid book ID format"


class MissingFieldsError(LibraryError):
    name = "MissingFields"
    status_code = 400
    message = "Missing required fields"


class NotFoundError(LibraryError):
    name = "NotFound"
    status_code = 404
    message = "Book not found"


class InsufficientCopiesError(LibraryError):
    """Requested quantity exceeds the copies currently on the shelf."""

    name = "InsufficientCopies"
    status_code = 400
    message = "Not enough copies available"

    def __init__(self, available: int, requested: int):
        self.available = available
        self.requested = requested
        super().__init__(f"Only {available} copies available, but {requested} requested")

    def to_error(self) -> Dict[str, Any]:
        error = super().to_error()
        error.update(available=self.available, requested=self.requested)
        return error


class StorageConnectionError(LibraryError):
    name = "StorageConnectionError"
    status_code = 500
    message = "Database connection failed"


class InternalError(LibraryError):
    """Catch-all for anything the API layer cannot classify."""
