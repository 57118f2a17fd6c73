from __future__ import annotations

import logging
from datetime import date, datetime
from typing import List, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import optional_text
from ..core.constants import (
    DEFAULT_ATTENDANCE_LIMIT,
    HOURS_PER_CHECK_IN,
    MAX_ATTENDANCE_LIMIT,
    MAX_DEVICE_INFO_LENGTH,
    MAX_LOCATION_LENGTH,
)
from ..core.enums import CheckInStatus
from ..core.exceptions import DuplicateCheckInError, NotEnrolledError, ValidationError
from ..courses.repository import CourseRepository
from ..enrollment.model import EnrollmentRecord
from ..enrollment.repository import EnrollmentRepository
from .model import AttendanceRecord, CheckInOutcome, HoursSummary
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class CheckInService:
    """Use case: daily self check-in and remaining-hours bookkeeping.

    The journal insert is authoritative. The hours deduction that follows it
    is best-effort: a failure there is logged and the check-in still succeeds.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        enrollments: EnrollmentRepository,
        courses: CourseRepository,
        *,
        hours_per_check_in: float = HOURS_PER_CHECK_IN,
    ):
        self._attendance = attendance
        self._enrollments = enrollments
        self._courses = courses
        self._hours_per_check_in = float(hours_per_check_in)

    def check_in(
        self,
        student_id: int,
        course_id: int,
        *,
        check_date: date | None = None,
        location: str | None = None,
        device_info: str | None = None,
        now: datetime | None = None,
    ) -> CheckInOutcome:
        now = now or now_local()
        check_date = check_date or now.date()
        student_id = int(student_id)
        course_id = int(course_id)
        location = optional_text(location, "location", MAX_LOCATION_LENGTH)
        device_info = optional_text(device_info, "deviceInfo", MAX_DEVICE_INFO_LENGTH)

        enrollment = self._enrollments.get_active(student_id, course_id)
        if not enrollment:
            raise NotEnrolledError()

        if self._attendance.get_for_date(student_id, course_id, check_date):
            raise DuplicateCheckInError()

        # The unique key on (student, course, date) settles concurrent inserts.
        record = self._attendance.create_checkin(
            student_id=student_id,
            course_id=course_id,
            check_date=check_date,
            check_in_time=now,
            status=CheckInStatus.PRESENT,
            location=location,
            device_info=device_info,
        )

        remaining = self._deduct_hours_best_effort(enrollment, now=now)
        return CheckInOutcome(record=record, hours_deducted=remaining is not None, remaining_hours=remaining)

    def _deduct_hours_best_effort(self, enrollment: EnrollmentRecord, *, now: datetime) -> Optional[float]:
        try:
            default_hours = enrollment.remaining_hours
            if default_hours is None:
                course = self._courses.get_by_id(enrollment.course_id)
                if not course:
                    logger.warning(
                        "Skipping hours deduction: course=%s missing for enrollment=%s",
                        enrollment.course_id,
                        enrollment.enrollment_id,
                    )
                    return None
                default_hours = course.total_hours

            return self._enrollments.decrement_remaining_hours(
                enrollment.enrollment_id,
                default_hours=default_hours,
                step=self._hours_per_check_in,
                now=now,
            )
        except Exception:
            logger.warning(
                "Hours deduction failed after check-in student=%s course=%s enrollment=%s",
                enrollment.student_id,
                enrollment.course_id,
                enrollment.enrollment_id,
                exc_info=True,
            )
            return None

    def remaining_hours(self, student_id: int) -> List[HoursSummary]:
        records = self._enrollments.list_active_for_student(int(student_id))
        courses = self._courses.get_by_ids(r.course_id for r in records)

        out: List[HoursSummary] = []
        for r in records:
            course = courses.get(r.course_id)
            if not course:
                continue
            out.append(
                HoursSummary(
                    course_id=course.course_id,
                    name=course.name,
                    code=course.code,
                    total_hours=course.total_hours,
                    remaining_hours=r.effective_remaining(course.total_hours),
                )
            )
        return out

    def list_attendance(
        self,
        student_id: int,
        *,
        course_id: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        limit: int = DEFAULT_ATTENDANCE_LIMIT,
    ) -> Sequence[AttendanceRecord]:
        if start_date and end_date and start_date > end_date:
            raise ValidationError("startDate must not be after endDate")
        if not 0 < int(limit) <= MAX_ATTENDANCE_LIMIT:
            raise ValidationError(f"limit must be between 1 and {MAX_ATTENDANCE_LIMIT}")

        return self._attendance.list_for_student(
            int(student_id),
            course_id=int(course_id) if course_id is not None else None,
            start_date=start_date,
            end_date=end_date,
            limit=int(limit),
        )
