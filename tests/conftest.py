from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from typing import Dict, Iterable, Optional

import pytest

from src.course_attendance.course_attendance.attendance.model import AttendanceRecord
from src.course_attendance.course_attendance.attendance.service import CheckInService
from src.course_attendance.course_attendance.container import build_services
from src.course_attendance.course_attendance.core.enums import CheckInStatus, CourseStatus, EnrollmentStatus, Role
from src.course_attendance.course_attendance.core.exceptions import (
    AlreadyEnrolledError,
    CourseUnavailableError,
    DuplicateCheckInError,
    PersistenceError,
)
from src.course_attendance.course_attendance.courses.model import Course, CourseAvailability
from src.course_attendance.course_attendance.enrollment.model import EnrollmentRecord, RosterRow
from src.course_attendance.course_attendance.enrollment.service import EnrollmentService


class InMemoryCourses:
    def __init__(self):
        self.courses: Dict[int, Course] = {}
        self.enrollments: Optional["InMemoryEnrollments"] = None

    def add(self, course: Course) -> Course:
        self.courses[course.course_id] = course
        return course

    def get_by_id(self, course_id: int) -> Optional[Course]:
        return self.courses.get(course_id)

    def get_by_ids(self, course_ids: Iterable[int]) -> Dict[int, Course]:
        return {i: self.courses[i] for i in course_ids if i in self.courses}

    def list_available(self):
        out = []
        for c in sorted(self.courses.values(), key=lambda c: c.code):
            if not c.is_available:
                continue
            enrolled = self.enrollments.count_active(c.course_id) if self.enrollments else 0
            out.append(CourseAvailability(course=c, enrolled=enrolled))
        return out


class _InMemoryTransaction:
    def __init__(self, repo: "InMemoryEnrollments", course: Course):
        self._repo = repo
        self.course = course
        self._course_id = course.course_id

    def get_active(self, student_id: int) -> Optional[EnrollmentRecord]:
        return self._repo.get_active(student_id, self._course_id)

    def get_latest(self, student_id: int) -> Optional[EnrollmentRecord]:
        rows = [r for r in self._repo.rows.values() if r.student_id == student_id and r.course_id == self._course_id]
        return max(rows, key=lambda r: r.enrollment_id) if rows else None

    def count_active(self) -> int:
        n = self._repo.count_active(self._course_id)
        # Widen the race window so unserialised callers would both pass.
        time.sleep(self._repo.tx_delay)
        return n

    def insert(self, *, student_id: int, remaining_hours: Optional[float], now: datetime) -> EnrollmentRecord:
        return self._repo.insert(
            student_id=student_id,
            course_id=self._course_id,
            remaining_hours=remaining_hours,
            now=now,
        )


class InMemoryEnrollments:
    """Fake ledger: a per-course lock stands in for the course row lock."""

    def __init__(self):
        self.rows: Dict[int, EnrollmentRecord] = {}
        self.catalog: Optional[InMemoryCourses] = None
        self.names: Dict[int, str] = {}
        self.tx_delay = 0.0
        self.fail_decrement = False
        self._next_id = 1
        self._lock = threading.Lock()
        self._course_locks: Dict[int, threading.Lock] = {}

    @contextmanager
    def transaction(self, course_id: int):
        with self._lock:
            course_lock = self._course_locks.setdefault(course_id, threading.Lock())
        with course_lock:
            course = self.catalog.get_by_id(course_id) if self.catalog else None
            if not course:
                raise CourseUnavailableError()
            yield _InMemoryTransaction(self, course)

    def insert(self, *, student_id: int, course_id: int, remaining_hours, now: datetime) -> EnrollmentRecord:
        with self._lock:
            if any(
                r.student_id == student_id and r.course_id == course_id and r.is_enrolled for r in self.rows.values()
            ):
                raise AlreadyEnrolledError()
            rec = EnrollmentRecord(
                enrollment_id=self._next_id,
                student_id=student_id,
                course_id=course_id,
                status=EnrollmentStatus.ENROLLED,
                remaining_hours=remaining_hours,
                created_at=now,
                updated_at=now,
            )
            self.rows[rec.enrollment_id] = rec
            self._next_id += 1
            return rec

    def count_active(self, course_id: int) -> int:
        return sum(1 for r in self.rows.values() if r.course_id == course_id and r.is_enrolled)

    def get_active(self, student_id: int, course_id: int) -> Optional[EnrollmentRecord]:
        for r in self.rows.values():
            if r.student_id == student_id and r.course_id == course_id and r.is_enrolled:
                return r
        return None

    def mark_dropped(self, student_id: int, course_id: int, *, now: datetime) -> Optional[EnrollmentRecord]:
        with self._lock:
            rec = self.get_active(student_id, course_id)
            if not rec:
                return None
            dropped = replace(rec, status=EnrollmentStatus.DROPPED, updated_at=now)
            self.rows[rec.enrollment_id] = dropped
            return dropped

    def list_active_for_student(self, student_id: int):
        return [r for r in self.rows.values() if r.student_id == student_id and r.is_enrolled]

    def list_roster(self, course_id: int):
        return [
            RosterRow(
                student_id=r.student_id,
                student_name=self.names.get(r.student_id),
                student_number=None,
                remaining_hours=r.remaining_hours,
                enrolled_at=r.created_at,
            )
            for r in self.rows.values()
            if r.course_id == course_id and r.is_enrolled
        ]

    def decrement_remaining_hours(self, enrollment_id: int, *, default_hours: float, step: float, now: datetime) -> float:
        if self.fail_decrement:
            raise PersistenceError("ledger write timed out")
        with self._lock:
            rec = self.rows[enrollment_id]
            current = rec.remaining_hours if rec.remaining_hours is not None else default_hours
            new = max(0.0, current - step)
            self.rows[enrollment_id] = replace(rec, remaining_hours=new, updated_at=now)
            return new


class InMemoryAttendance:
    """Fake journal: the dict key plays the (student, course, date) unique key."""

    def __init__(self):
        self.rows: Dict[tuple[int, int, date], AttendanceRecord] = {}
        self.fail_insert = False
        self._next_id = 1
        self._lock = threading.Lock()

    def get_for_date(self, student_id: int, course_id: int, check_date: date) -> Optional[AttendanceRecord]:
        return self.rows.get((student_id, course_id, check_date))

    def create_checkin(
        self,
        *,
        student_id: int,
        course_id: int,
        check_date: date,
        check_in_time: datetime,
        status: CheckInStatus,
        location=None,
        device_info=None,
    ) -> AttendanceRecord:
        if self.fail_insert:
            raise PersistenceError("journal unavailable")
        with self._lock:
            key = (student_id, course_id, check_date)
            if key in self.rows:
                raise DuplicateCheckInError()
            rec = AttendanceRecord(
                attendance_id=self._next_id,
                student_id=student_id,
                course_id=course_id,
                check_date=check_date,
                check_in_time=check_in_time,
                status=status,
                location=location,
                device_info=device_info,
            )
            self.rows[key] = rec
            self._next_id += 1
            return rec

    def list_for_student(self, student_id: int, *, course_id=None, start_date=None, end_date=None, limit: int = 200):
        items = [
            r
            for r in self.rows.values()
            if r.student_id == student_id
            and (course_id is None or r.course_id == course_id)
            and (start_date is None or r.check_date >= start_date)
            and (end_date is None or r.check_date <= end_date)
        ]
        items.sort(key=lambda r: (r.check_date, r.check_in_time), reverse=True)
        return items[:limit]


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 3, 1, 9, 0, 0)


@pytest.fixture
def enrollments_repo() -> InMemoryEnrollments:
    return InMemoryEnrollments()


@pytest.fixture
def courses_repo(enrollments_repo) -> InMemoryCourses:
    repo = InMemoryCourses()
    repo.enrollments = enrollments_repo
    enrollments_repo.catalog = repo
    return repo


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def make_course(courses_repo):
    def _make(course_id: int = 1, *, capacity: int = 30, total_hours: float = 10, status=CourseStatus.AVAILABLE, teacher_id=None):
        return courses_repo.add(
            Course(
                course_id=course_id,
                name=f"Course {course_id}",
                code=f"C{course_id:03d}",
                capacity=capacity,
                total_hours=total_hours,
                status=status,
                teacher_id=teacher_id,
            )
        )

    return _make


@pytest.fixture
def enrollment_service(enrollments_repo, courses_repo) -> EnrollmentService:
    return EnrollmentService(enrollments_repo, courses_repo)


@pytest.fixture
def check_in_service(attendance_repo, enrollments_repo, courses_repo) -> CheckInService:
    return CheckInService(attendance_repo, enrollments_repo, courses_repo)


@pytest.fixture
def app(monkeypatch, courses_repo, enrollments_repo, attendance_repo):
    from src.course_attendance.course_attendance.main import create_app

    monkeypatch.setenv("APP_ENV", "testing")
    container = build_services(
        courses_repo=courses_repo,
        enrollments_repo=enrollments_repo,
        attendance_repo=attendance_repo,
    )
    return create_app(container)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    def _login(user_id: int, role: Role = Role.STUDENT):
        with client.session_transaction() as sess:
            sess["user_id"] = user_id
            sess["role"] = role.value
        return client

    return _login
