from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import CourseStatus
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class Course:
    """Domain entity: a course in the catalog.

    Capacity and total hours are validated at construction so the services
    never see a course with a zero or negative limit.
    """

    course_id: int
    name: str
    code: str
    capacity: int
    total_hours: float
    status: CourseStatus
    credit: Optional[float] = None
    semester: Optional[str] = None
    year: Optional[int] = None
    teacher_id: Optional[int] = None

    def __post_init__(self) -> None:
        if isinstance(self.capacity, bool) or not isinstance(self.capacity, int) or self.capacity <= 0:
            raise ValidationError(f"Course {self.course_id}: capacity must be a positive integer")
        if isinstance(self.total_hours, bool) or not isinstance(self.total_hours, (int, float)) or self.total_hours <= 0:
            raise ValidationError(f"Course {self.course_id}: total hours must be positive")
        if not isinstance(self.status, CourseStatus):
            raise ValidationError(f"Course {self.course_id}: unknown status {self.status!r}")

    @property
    def is_available(self) -> bool:
        return self.status == CourseStatus.AVAILABLE


@dataclass(frozen=True)
class CourseAvailability:
    """Read-model for the available-courses listing."""

    course: Course
    enrolled: int

    @property
    def seats_left(self) -> int:
        return max(0, self.course.capacity - self.enrolled)
