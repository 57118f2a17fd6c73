from __future__ import annotations

from .enums import ErrorKind


class DomainError(Exception):
    """Base exception for business rule violations."""

    kind: ErrorKind = ErrorKind.INVALID_INPUT
    default_message = "Request rejected"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = ErrorKind.INVALID_INPUT
    default_message = "Invalid input"


class AuthenticationError(DomainError):
    """Raised when no verified caller identity is attached to the request."""

    kind = ErrorKind.UNAUTHENTICATED
    default_message = "Please sign in to continue"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    kind = ErrorKind.FORBIDDEN
    default_message = "You do not have permission for this action"


class CourseUnavailableError(DomainError):
    kind = ErrorKind.COURSE_UNAVAILABLE
    default_message = "Course does not exist or is closed"


class AlreadyEnrolledError(DomainError):
    kind = ErrorKind.ALREADY_ENROLLED
    default_message = "Already enrolled in this course"


class CapacityExceededError(DomainError):
    kind = ErrorKind.CAPACITY_EXCEEDED
    default_message = "Course is already full"


class NotEnrolledError(DomainError):
    kind = ErrorKind.NOT_ENROLLED
    default_message = "Not enrolled in this course"


class DuplicateCheckInError(DomainError):
    kind = ErrorKind.DUPLICATE_CHECK_IN
    default_message = "Already checked in for this course today"


class PersistenceError(DomainError):
    """Store unreachable, or a constraint violation not otherwise classified."""

    kind = ErrorKind.PERSISTENCE_FAILURE
    default_message = "Storage is temporarily unavailable"
