from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..common.guards import current_role, current_user_id, roles_required, student_required
from ..common.responses import error_response, server_error_response
from ..common.validators import require_positive_int
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import DomainError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    def _course_id_from_body() -> int:
        data = request.get_json(silent=True) or {}
        return require_positive_int(data.get("courseId"), "courseId")

    @app.route("/api/student/courses/enroll", methods=["POST"], endpoint="enroll_course")
    @student_required
    def enroll_course():
        student_id = current_user_id()
        try:
            course_id = _course_id_from_body()
            record = container.enrollment_service.enroll(student_id, course_id)
            return jsonify({"success": True, "selection": record.to_dict()}), 200
        except DomainError as e:
            logger.info("Enroll rejected student=%s kind=%s", student_id, e.kind.value)
            return error_response(e)
        except Exception:
            logger.exception("Enroll failed student=%s", student_id)
            return server_error_response("Enrollment failed")

    @app.route("/api/student/courses/drop", methods=["POST"], endpoint="drop_course")
    @student_required
    def drop_course():
        student_id = current_user_id()
        try:
            course_id = _course_id_from_body()
            record = container.enrollment_service.drop(student_id, course_id)
            return jsonify({"success": True, "selection": record.to_dict()}), 200
        except DomainError as e:
            logger.info("Drop rejected student=%s kind=%s", student_id, e.kind.value)
            return error_response(e)
        except Exception:
            logger.exception("Drop failed student=%s", student_id)
            return server_error_response("Dropping the course failed")

    @app.route("/api/student/courses/enrolled", methods=["GET"], endpoint="enrolled_courses")
    @student_required
    def enrolled_courses():
        try:
            courses = container.enrollment_service.list_enrolled_courses(current_user_id())
            return jsonify({"courses": courses}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Listing enrolled courses failed")
            return server_error_response("Failed to load enrolled courses")

    @app.route("/api/courses/<int:course_id>/students", methods=["GET"], endpoint="course_students")
    @roles_required(Role.TEACHER, Role.STAFF, Role.ADMIN)
    def course_students(course_id: int):
        try:
            students = container.enrollment_service.course_roster(
                current_role=current_role(),
                user_id=current_user_id(),
                course_id=course_id,
            )
            return jsonify({"courseId": course_id, "students": students}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Loading roster failed course=%s", course_id)
            return server_error_response("Failed to load course students")
