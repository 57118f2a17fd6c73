from __future__ import annotations

import logging
from datetime import datetime
from typing import List

from ..common.datetime_utils import now_local
from ..core.enums import Role
from ..core.exceptions import (
    AlreadyEnrolledError,
    AuthorizationError,
    CapacityExceededError,
    CourseUnavailableError,
    NotEnrolledError,
)
from ..courses.repository import CourseRepository
from .model import EnrollmentRecord
from .repository import EnrollmentRepository

logger = logging.getLogger(__name__)


class EnrollmentService:
    """Use case: admit students into courses under the capacity limit.

    Admission order:
      1. course must exist and be available
      2. the student must not hold an enrolled row already
      3. enrolled count must be below capacity
      4. insert the ledger row

    All four steps run inside one per-course transaction, against the
    course row as it is while locked.
    """

    def __init__(self, enrollments: EnrollmentRepository, courses: CourseRepository):
        self._enrollments = enrollments
        self._courses = courses

    def enroll(self, student_id: int, course_id: int, *, now: datetime | None = None) -> EnrollmentRecord:
        now = now or now_local()
        student_id = int(student_id)
        course_id = int(course_id)

        with self._enrollments.transaction(course_id) as tx:
            course = tx.course
            if not course.is_available:
                raise CourseUnavailableError()

            if tx.get_active(student_id):
                raise AlreadyEnrolledError()

            if tx.count_active() >= course.capacity:
                raise CapacityExceededError()

            # Re-enrolling after a drop resumes the hours left on the last row.
            remaining = course.total_hours
            previous = tx.get_latest(student_id)
            if previous and previous.remaining_hours is not None:
                remaining = min(previous.remaining_hours, course.total_hours)

            record = tx.insert(student_id=student_id, remaining_hours=remaining, now=now)

        logger.info(
            "Enrolled student=%s course=%s enrollment=%s remaining_hours=%s",
            student_id,
            course_id,
            record.enrollment_id,
            record.remaining_hours,
        )
        return record

    def drop(self, student_id: int, course_id: int, *, now: datetime | None = None) -> EnrollmentRecord:
        now = now or now_local()
        record = self._enrollments.mark_dropped(int(student_id), int(course_id), now=now)
        if not record:
            raise NotEnrolledError()

        logger.info("Dropped student=%s course=%s enrollment=%s", student_id, course_id, record.enrollment_id)
        return record

    def list_enrolled_courses(self, student_id: int) -> List[dict]:
        records = self._enrollments.list_active_for_student(int(student_id))
        courses = self._courses.get_by_ids(r.course_id for r in records)

        out: List[dict] = []
        for r in records:
            course = courses.get(r.course_id)
            if not course:
                continue
            out.append(
                {
                    "id": course.course_id,
                    "name": course.name,
                    "code": course.code,
                    "credit": course.credit,
                    "hours": course.total_hours,
                    "semester": course.semester,
                    "year": course.year,
                    "status": r.status.value,
                    "enrolledAt": r.created_at.isoformat() if r.created_at else None,
                    "remainingHours": r.effective_remaining(course.total_hours),
                }
            )
        return out

    def course_roster(self, *, current_role: Role, user_id: int, course_id: int) -> List[dict]:
        """Enrolled students of a course.

        Teachers only see their own courses; staff and admins see any course.
        """

        course = self._courses.get_by_id(int(course_id))
        if not course:
            raise CourseUnavailableError("Course does not exist")

        if current_role == Role.TEACHER:
            if course.teacher_id != int(user_id):
                raise AuthorizationError("You do not teach this course")
        elif current_role not in {Role.STAFF, Role.ADMIN}:
            raise AuthorizationError()

        return [
            {
                "studentId": row.student_id,
                "name": row.student_name,
                "studentNumber": row.student_number,
                "remainingHours": course.total_hours if row.remaining_hours is None else row.remaining_hours,
                "enrolledAt": row.enrolled_at.isoformat() if row.enrolled_at else None,
            }
            for row in self._enrollments.list_roster(course.course_id)
        ]
