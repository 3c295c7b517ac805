"""Exception hierarchy shared by the core services and the API layer."""

from __future__ import annotations


class ClassroomError(Exception):
    """Base class for every failure raised by the classroom core."""

    status_code: int = 400


class ClassroomValidationError(ClassroomError, ValueError):
    """Raised when user input is rejected before any state changes."""

    status_code = 422


class RoleMismatchError(ClassroomValidationError):
    """Raised when an email re-authenticates with a different role."""


class NotFoundError(ClassroomError, LookupError):
    """Raised when an entity or reference does not exist."""

    status_code = 404


class ClassNotFoundError(NotFoundError):
    """Raised when a class code does not match any classroom."""


class ConflictError(ClassroomError, RuntimeError):
    """Raised when an operation is not allowed in the current state."""

    status_code = 409


class ClassNotJoinedError(ConflictError):
    """Raised when a student without a classroom asks for class content."""


class DuplicateEntityError(ConflictError):
    """Raised when creating an entity whose key already exists."""


class StoreClosedError(ConflictError):
    """Raised when the entity store is used outside its open/close lifecycle."""


class GenerationError(ClassroomError):
    """Raised when the external text-generation service fails."""

    status_code = 502


class SearchUnavailableError(GenerationError):
    """Raised when the grounded search answer cannot be produced."""


class ConversionError(ClassroomError):
    """Raised when a document cannot be converted to text or HTML."""

    status_code = 422


class UnsupportedDocumentError(ConversionError):
    """Raised for MIME types the converter does not handle."""


class EntityDecodeError(ClassroomError, ValueError):
    """Raised when a stored blob cannot be decoded into entities."""
