from __future__ import annotations

from typing import Dict, Iterable, Optional, Protocol, Sequence

from .model import Course, CourseAvailability


class CourseRepository(Protocol):
    """Read-only view of the course catalog."""

    def get_by_id(self, course_id: int) -> Optional[Course]:
        raise NotImplementedError

    def get_by_ids(self, course_ids: Iterable[int]) -> Dict[int, Course]:
        raise NotImplementedError

    def list_available(self) -> Sequence[CourseAvailability]:
        raise NotImplementedError
