from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, Iterator, Optional, Sequence

import mysql.connector

from ..core.enums import EnrollmentStatus
from ..core.exceptions import AlreadyEnrolledError, CourseUnavailableError, PersistenceError
from ..courses.model import Course
from ..courses.mysql_course_repository import COURSE_COLUMNS, row_to_course
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_hours, db_cursor, fetchall, fetchone, is_duplicate_key
from .model import EnrollmentRecord, RosterRow
from .repository import EnrollmentRepository, EnrollmentTransaction


_SELECTION_COLUMNS = "selection_id, student_id, course_id, status, remaining_hours, created_at, updated_at"


def row_to_enrollment(r: Dict[str, Any]) -> EnrollmentRecord:
    return EnrollmentRecord(
        enrollment_id=int(r["selection_id"]),
        student_id=int(r["student_id"]),
        course_id=int(r["course_id"]),
        status=EnrollmentStatus(r["status"]),
        remaining_hours=as_hours(r.get("remaining_hours")),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class _MySQLEnrollmentTransaction(EnrollmentTransaction):
    """Runs on the connection that holds the course row lock.

    All reads are locking reads so they see the latest committed rows rather
    than the transaction's snapshot.
    """

    def __init__(self, cur, course: Course):
        self._cur = cur
        self.course = course
        self._course_id = course.course_id

    def get_active(self, student_id: int) -> Optional[EnrollmentRecord]:
        self._cur.execute(
            f"""
            SELECT {_SELECTION_COLUMNS}
            FROM course_selections
            WHERE student_id=%s AND course_id=%s AND status=%s
            FOR UPDATE
            """,
            (int(student_id), self._course_id, EnrollmentStatus.ENROLLED.value),
        )
        r = fetchone(self._cur)
        return row_to_enrollment(r) if r else None

    def get_latest(self, student_id: int) -> Optional[EnrollmentRecord]:
        self._cur.execute(
            f"""
            SELECT {_SELECTION_COLUMNS}
            FROM course_selections
            WHERE student_id=%s AND course_id=%s
            ORDER BY selection_id DESC
            LIMIT 1
            FOR UPDATE
            """,
            (int(student_id), self._course_id),
        )
        r = fetchone(self._cur)
        return row_to_enrollment(r) if r else None

    def count_active(self) -> int:
        self._cur.execute(
            """
            SELECT COUNT(*) AS n
            FROM course_selections
            WHERE course_id=%s AND status=%s
            FOR UPDATE
            """,
            (self._course_id, EnrollmentStatus.ENROLLED.value),
        )
        r = fetchone(self._cur)
        return int(r["n"]) if r else 0

    def insert(self, *, student_id: int, remaining_hours: Optional[float], now: datetime) -> EnrollmentRecord:
        try:
            self._cur.execute(
                """
                INSERT INTO course_selections(student_id, course_id, status, remaining_hours, created_at, updated_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(student_id), self._course_id, EnrollmentStatus.ENROLLED.value, remaining_hours, now, now),
            )
        except mysql.connector.Error as e:
            if is_duplicate_key(e):
                raise AlreadyEnrolledError() from e
            raise PersistenceError("Enrollment could not be saved") from e

        return EnrollmentRecord(
            enrollment_id=int(self._cur.lastrowid),
            student_id=int(student_id),
            course_id=self._course_id,
            status=EnrollmentStatus.ENROLLED,
            remaining_hours=remaining_hours,
            created_at=now,
            updated_at=now,
        )


class MySQLEnrollmentRepository(EnrollmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @contextmanager
    def transaction(self, course_id: int) -> Iterator[EnrollmentTransaction]:
        with db_cursor(self._conn_factory) as (_, cur):
            # Row lock on the course serialises enrollments into it.
            cur.execute(
                f"SELECT {COURSE_COLUMNS} FROM courses c WHERE c.course_id=%s FOR UPDATE",
                (int(course_id),),
            )
            r = fetchone(cur)
            if not r:
                raise CourseUnavailableError()
            yield _MySQLEnrollmentTransaction(cur, row_to_course(r))

    def get_active(self, student_id: int, course_id: int) -> Optional[EnrollmentRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SELECTION_COLUMNS}
                FROM course_selections
                WHERE student_id=%s AND course_id=%s AND status=%s
                """,
                (int(student_id), int(course_id), EnrollmentStatus.ENROLLED.value),
            )
            r = fetchone(cur)
            return row_to_enrollment(r) if r else None

    def mark_dropped(self, student_id: int, course_id: int, *, now: datetime) -> Optional[EnrollmentRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SELECTION_COLUMNS}
                FROM course_selections
                WHERE student_id=%s AND course_id=%s AND status=%s
                FOR UPDATE
                """,
                (int(student_id), int(course_id), EnrollmentStatus.ENROLLED.value),
            )
            r = fetchone(cur)
            if not r:
                return None

            record = row_to_enrollment(r)
            cur.execute(
                """
                UPDATE course_selections
                SET status=%s, updated_at=%s
                WHERE selection_id=%s AND status=%s
                """,
                (EnrollmentStatus.DROPPED.value, now, record.enrollment_id, EnrollmentStatus.ENROLLED.value),
            )
            if cur.rowcount == 0:
                return None
            return replace(record, status=EnrollmentStatus.DROPPED, updated_at=now)

    def list_active_for_student(self, student_id: int) -> Sequence[EnrollmentRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SELECTION_COLUMNS}
                FROM course_selections
                WHERE student_id=%s AND status=%s
                ORDER BY created_at ASC, selection_id ASC
                """,
                (int(student_id), EnrollmentStatus.ENROLLED.value),
            )
            return [row_to_enrollment(r) for r in fetchall(cur)]

    def list_roster(self, course_id: int) -> Sequence[RosterRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT cs.student_id, up.name AS student_name, up.student_number,
                       cs.remaining_hours, cs.created_at
                FROM course_selections cs
                LEFT JOIN user_profiles up ON up.id = cs.student_id
                WHERE cs.course_id=%s AND cs.status=%s
                ORDER BY up.student_number ASC, cs.student_id ASC
                """,
                (int(course_id), EnrollmentStatus.ENROLLED.value),
            )
            return [
                RosterRow(
                    student_id=int(r["student_id"]),
                    student_name=r.get("student_name"),
                    student_number=r.get("student_number"),
                    remaining_hours=as_hours(r.get("remaining_hours")),
                    enrolled_at=r.get("created_at"),
                )
                for r in fetchall(cur)
            ]

    def decrement_remaining_hours(
        self,
        enrollment_id: int,
        *,
        default_hours: float,
        step: float,
        now: datetime,
    ) -> float:
        with db_cursor(self._conn_factory) as (_, cur):
            # Single-statement read-modify-write; concurrent check-ins cannot lose an update.
            cur.execute(
                """
                UPDATE course_selections
                SET remaining_hours = GREATEST(0, COALESCE(remaining_hours, %s) - %s),
                    updated_at=%s
                WHERE selection_id=%s
                """,
                (default_hours, step, now, int(enrollment_id)),
            )
            cur.execute(
                "SELECT remaining_hours FROM course_selections WHERE selection_id=%s",
                (int(enrollment_id),),
            )
            r = fetchone(cur)
            if not r:
                raise PersistenceError(f"Enrollment {enrollment_id} not found for hours update")
            return as_hours(r["remaining_hours"])
