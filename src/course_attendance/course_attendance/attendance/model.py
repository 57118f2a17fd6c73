from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import CheckInStatus
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one journal entry, unique per (student, course, day)."""

    attendance_id: int
    student_id: int
    course_id: int
    check_date: date
    check_in_time: datetime
    status: CheckInStatus = CheckInStatus.PRESENT
    location: Optional[str] = None
    device_info: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.status, CheckInStatus):
            raise ValidationError(f"Unknown check-in status {self.status!r}")

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "studentId": self.student_id,
            "courseId": self.course_id,
            "date": self.check_date.strftime("%Y-%m-%d"),
            "checkInTime": self.check_in_time.isoformat(),
            "status": self.status.value,
            "location": self.location,
            "deviceInfo": self.device_info,
        }


@dataclass(frozen=True)
class CheckInOutcome:
    """Result of a check-in.

    ``hours_deducted`` is False when the journal entry was written but the
    remaining-hours update failed; ``remaining_hours`` is then unknown.
    """

    record: AttendanceRecord
    hours_deducted: bool
    remaining_hours: Optional[float] = None


@dataclass(frozen=True)
class HoursSummary:
    course_id: int
    name: str
    code: str
    total_hours: float
    remaining_hours: float

    def to_dict(self) -> dict:
        return {
            "id": self.course_id,
            "name": self.name,
            "code": self.code,
            "totalHours": self.total_hours,
            "remainingHours": self.remaining_hours,
        }
