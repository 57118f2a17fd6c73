from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence

import mysql.connector

from ..core.enums import CheckInStatus
from ..core.exceptions import DuplicateCheckInError, PersistenceError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceRecord
from .repository import AttendanceRepository


_CHECK_IN_COLUMNS = "check_in_id, student_id, course_id, check_date, check_in_time, status, location, device_info"


def row_to_attendance(r: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["check_in_id"]),
        student_id=int(r["student_id"]),
        course_id=int(r["course_id"]),
        check_date=r["check_date"],
        check_in_time=r["check_in_time"],
        status=CheckInStatus(r["status"]),
        location=r.get("location"),
        device_info=r.get("device_info"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_date(self, student_id: int, course_id: int, check_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_CHECK_IN_COLUMNS}
                FROM course_check_ins
                WHERE student_id=%s AND course_id=%s AND check_date=%s
                """,
                (int(student_id), int(course_id), check_date),
            )
            r = fetchone(cur)
            return row_to_attendance(r) if r else None

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
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO course_check_ins(student_id, course_id, check_date, check_in_time, status, location, device_info)
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (int(student_id), int(course_id), check_date, check_in_time, status.value, location, device_info),
                )
            except mysql.connector.Error as e:
                # uq_check_in_per_day is the only unique key besides the primary key.
                if is_duplicate_key(e):
                    raise DuplicateCheckInError() from e
                raise PersistenceError("Check-in could not be saved") from e

            return AttendanceRecord(
                attendance_id=int(cur.lastrowid),
                student_id=int(student_id),
                course_id=int(course_id),
                check_date=check_date,
                check_in_time=check_in_time,
                status=status,
                location=location,
                device_info=device_info,
            )

    def list_for_student(
        self,
        student_id: int,
        *,
        course_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 200,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["student_id=%s"]
        params: list[object] = [int(student_id)]

        if course_id is not None:
            clauses.append("course_id=%s")
            params.append(int(course_id))
        if start_date is not None:
            clauses.append("check_date >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("check_date <= %s")
            params.append(end_date)

        where = " AND ".join(clauses)
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_CHECK_IN_COLUMNS}
                FROM course_check_ins
                WHERE {where}
                ORDER BY check_date DESC, check_in_time DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [row_to_attendance(r) for r in fetchall(cur)]
