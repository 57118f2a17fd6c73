from __future__ import annotations

from typing import List

from .repository import CourseRepository


class CatalogService:
    """Use case: read the course catalog (capacity, hours, availability)."""

    def __init__(self, courses: CourseRepository):
        self._courses = courses

    def list_available_courses(self) -> List[dict]:
        return [
            {
                "id": a.course.course_id,
                "name": a.course.name,
                "code": a.course.code,
                "credit": a.course.credit,
                "hours": a.course.total_hours,
                "semester": a.course.semester,
                "year": a.course.year,
                "capacity": a.course.capacity,
                "enrolled": a.enrolled,
                "seatsLeft": a.seats_left,
            }
            for a in self._courses.list_available()
        ]
