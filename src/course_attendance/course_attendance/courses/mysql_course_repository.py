from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Sequence

from ..core.enums import CourseStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_hours, db_cursor, fetchall, fetchone
from .model import Course, CourseAvailability
from .repository import CourseRepository


COURSE_COLUMNS = "c.course_id, c.name, c.code, c.capacity, c.hours, c.status, c.credit, c.semester, c.year, c.teacher_id"


def row_to_course(r: Dict[str, Any]) -> Course:
    return Course(
        course_id=int(r["course_id"]),
        name=r["name"],
        code=r["code"],
        capacity=int(r["capacity"]),
        total_hours=as_hours(r["hours"]),
        status=CourseStatus(r["status"]),
        credit=as_hours(r.get("credit")),
        semester=r.get("semester"),
        year=int(r["year"]) if r.get("year") is not None else None,
        teacher_id=int(r["teacher_id"]) if r.get("teacher_id") is not None else None,
    )


class MySQLCourseRepository(CourseRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, course_id: int) -> Optional[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {COURSE_COLUMNS} FROM courses c WHERE c.course_id=%s",
                (int(course_id),),
            )
            r = fetchone(cur)
            return row_to_course(r) if r else None

    def get_by_ids(self, course_ids: Iterable[int]) -> Dict[int, Course]:
        ids = sorted({int(i) for i in course_ids})
        if not ids:
            return {}

        placeholders = ",".join(["%s"] * len(ids))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {COURSE_COLUMNS} FROM courses c WHERE c.course_id IN ({placeholders})",
                tuple(ids),
            )
            return {int(r["course_id"]): row_to_course(r) for r in fetchall(cur)}

    def list_available(self) -> Sequence[CourseAvailability]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {COURSE_COLUMNS}, COUNT(cs.selection_id) AS enrolled
                FROM courses c
                LEFT JOIN course_selections cs
                    ON cs.course_id = c.course_id AND cs.status = 'enrolled'
                WHERE c.status = %s
                GROUP BY c.course_id
                ORDER BY c.code ASC
                """,
                (CourseStatus.AVAILABLE.value,),
            )
            return [
                CourseAvailability(course=row_to_course(r), enrolled=int(r["enrolled"] or 0))
                for r in fetchall(cur)
            ]
