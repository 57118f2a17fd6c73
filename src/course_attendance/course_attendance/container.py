from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import CheckInService
from .core.constants import HOURS_PER_CHECK_IN
from .courses.mysql_course_repository import MySQLCourseRepository
from .courses.repository import CourseRepository
from .courses.service import CatalogService
from .database.connection import DBConfig, DatabaseConnection
from .enrollment.mysql_enrollment_repository import MySQLEnrollmentRepository
from .enrollment.repository import EnrollmentRepository
from .enrollment.service import EnrollmentService


@dataclass(frozen=True)
class Container:
    courses_repo: CourseRepository
    enrollments_repo: EnrollmentRepository
    attendance_repo: AttendanceRepository

    catalog_service: CatalogService
    enrollment_service: EnrollmentService
    check_in_service: CheckInService

    conn: Optional[DatabaseConnection] = None


def build_services(
    *,
    courses_repo: CourseRepository,
    enrollments_repo: EnrollmentRepository,
    attendance_repo: AttendanceRepository,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    return Container(
        conn=conn,
        courses_repo=courses_repo,
        enrollments_repo=enrollments_repo,
        attendance_repo=attendance_repo,
        catalog_service=CatalogService(courses_repo),
        enrollment_service=EnrollmentService(enrollments_repo, courses_repo),
        check_in_service=CheckInService(
            attendance_repo,
            enrollments_repo,
            courses_repo,
            hours_per_check_in=HOURS_PER_CHECK_IN,
        ),
    )


def build_container(*, db_config: dict) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    return build_services(
        conn=conn,
        courses_repo=MySQLCourseRepository(conn),
        enrollments_repo=MySQLEnrollmentRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
    )
