from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import EnrollmentStatus
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class EnrollmentRecord:
    """Domain entity: one row of the enrollment ledger (course_selections).

    ``remaining_hours`` is None until the first check-in writes it; read it
    through ``effective_remaining`` so an unset value means the course total.
    """

    enrollment_id: int
    student_id: int
    course_id: int
    status: EnrollmentStatus
    remaining_hours: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not isinstance(self.status, EnrollmentStatus):
            raise ValidationError(f"Unknown enrollment status {self.status!r}")
        if self.remaining_hours is not None and self.remaining_hours < 0:
            raise ValidationError("Remaining hours cannot be negative")

    @property
    def is_enrolled(self) -> bool:
        return self.status == EnrollmentStatus.ENROLLED

    def effective_remaining(self, total_hours: float) -> float:
        if self.remaining_hours is None:
            return float(total_hours)
        return float(self.remaining_hours)

    def to_dict(self) -> dict:
        return {
            "id": self.enrollment_id,
            "studentId": self.student_id,
            "courseId": self.course_id,
            "status": self.status.value,
            "remainingHours": self.remaining_hours,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class RosterRow:
    """Read-model: an enrolled student as seen by the course's teacher."""

    student_id: int
    student_name: Optional[str]
    student_number: Optional[str]
    remaining_hours: Optional[float]
    enrolled_at: Optional[datetime]
