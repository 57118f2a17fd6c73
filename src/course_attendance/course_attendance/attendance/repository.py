from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import CheckInStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    """Append-only attendance journal."""

    def get_for_date(self, student_id: int, course_id: int, check_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_checkin(
        self,
        *,
        student_id: int,
        course_id: int,
        check_date: date,
        check_in_time: datetime,
        status: CheckInStatus,
        location: Optional[str] = None,
        device_info: Optional[str] = None,
    ) -> AttendanceRecord:
        """Insert one entry.

        Must raise DuplicateCheckInError when the store already holds an entry
        for (student, course, date), even if a concurrent insert won the race.
        """

        raise NotImplementedError

    def list_for_student(
        self,
        student_id: int,
        *,
        course_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 200,
    ) -> Sequence[AttendanceRecord]:
        """Newest first."""

        raise NotImplementedError
