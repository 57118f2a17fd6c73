from __future__ import annotations

from datetime import datetime
from typing import ContextManager, Optional, Protocol, Sequence

from ..courses.model import Course
from .model import EnrollmentRecord, RosterRow


class EnrollmentTransaction(Protocol):
    """Reads and the insert of one enrollment, isolated per course.

    While the transaction is open no other transaction can admit a student
    into the same course, so count-then-insert cannot oversubscribe it.
    ``course`` is read from the locked row, so its status and capacity are
    current for the whole transaction.
    """

    course: Course

    def get_active(self, student_id: int) -> Optional[EnrollmentRecord]:
        raise NotImplementedError

    def get_latest(self, student_id: int) -> Optional[EnrollmentRecord]:
        """Most recent row for the student in this course, any status."""

        raise NotImplementedError

    def count_active(self) -> int:
        raise NotImplementedError

    def insert(self, *, student_id: int, remaining_hours: Optional[float], now: datetime) -> EnrollmentRecord:
        raise NotImplementedError


class EnrollmentRepository(Protocol):
    """Interface of the enrollment ledger.

    Only EnrollmentService opens transactions and drops rows; only
    CheckInService decrements remaining hours.
    """

    def transaction(self, course_id: int) -> ContextManager[EnrollmentTransaction]:
        raise NotImplementedError

    def get_active(self, student_id: int, course_id: int) -> Optional[EnrollmentRecord]:
        raise NotImplementedError

    def mark_dropped(self, student_id: int, course_id: int, *, now: datetime) -> Optional[EnrollmentRecord]:
        """Flip the enrolled row to dropped; None when nothing was enrolled."""

        raise NotImplementedError

    def list_active_for_student(self, student_id: int) -> Sequence[EnrollmentRecord]:
        raise NotImplementedError

    def list_roster(self, course_id: int) -> Sequence[RosterRow]:
        raise NotImplementedError

    def decrement_remaining_hours(
        self,
        enrollment_id: int,
        *,
        default_hours: float,
        step: float,
        now: datetime,
    ) -> float:
        """Atomically set remaining = max(0, (remaining or default) - step).

        Returns the stored value after the update.
        """

        raise NotImplementedError
