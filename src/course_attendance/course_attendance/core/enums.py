from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Caller roles resolved by the identity collaborator."""

    ADMIN = "admin"
    STAFF = "staff"
    TEACHER = "teacher"
    STUDENT = "student"


class CourseStatus(str, Enum):
    AVAILABLE = "available"
    CLOSED = "closed"


class EnrollmentStatus(str, Enum):
    """Selection status stored in course_selections.status."""

    ENROLLED = "enrolled"
    DROPPED = "dropped"


class CheckInStatus(str, Enum):
    """Self check-in is always recorded as present."""

    PRESENT = "present"


class ErrorKind(str, Enum):
    """Tag carried by every DomainError so callers never parse messages."""

    COURSE_UNAVAILABLE = "CourseUnavailable"
    ALREADY_ENROLLED = "AlreadyEnrolled"
    CAPACITY_EXCEEDED = "CapacityExceeded"
    NOT_ENROLLED = "NotEnrolled"
    DUPLICATE_CHECK_IN = "DuplicateCheckIn"
    PERSISTENCE_FAILURE = "PersistenceFailure"
    INVALID_INPUT = "InvalidInput"
    UNAUTHENTICATED = "Unauthenticated"
    FORBIDDEN = "Forbidden"
