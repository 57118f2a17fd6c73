from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_optional_date
from ..common.guards import current_user_id, student_required
from ..common.responses import error_response, server_error_response
from ..common.validators import require_positive_int
from ..container import Container
from ..core.constants import DEFAULT_ATTENDANCE_LIMIT
from ..core.exceptions import DomainError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    def _check_in_message(outcome) -> str:
        if not outcome.hours_deducted:
            return "Checked in successfully"
        return f"Checked in successfully, {outcome.remaining_hours:g} hours remaining"

    @app.route("/api/student/check-in", methods=["POST"], endpoint="student_check_in")
    @student_required
    def student_check_in():
        student_id = current_user_id()
        try:
            data = request.get_json(silent=True) or {}
            course_id = require_positive_int(data.get("courseId"), "courseId")

            outcome = container.check_in_service.check_in(
                student_id,
                course_id,
                location=data.get("location"),
                device_info=data.get("deviceInfo"),
            )

            check_in = outcome.record.to_dict()
            check_in["remainingHours"] = outcome.remaining_hours
            return jsonify({"success": True, "message": _check_in_message(outcome), "checkIn": check_in}), 200
        except DomainError as e:
            logger.info("Check-in rejected student=%s kind=%s", student_id, e.kind.value)
            return error_response(e)
        except Exception:
            logger.exception("Check-in failed student=%s", student_id)
            return server_error_response("Check-in failed")

    @app.route("/api/student/hours", methods=["GET"], endpoint="student_hours")
    @student_required
    def student_hours():
        try:
            summaries = container.check_in_service.remaining_hours(current_user_id())
            return jsonify({"courses": [s.to_dict() for s in summaries]}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Loading remaining hours failed")
            return server_error_response("Failed to load remaining hours")

    @app.route("/api/student/attendance", methods=["GET"], endpoint="student_attendance")
    @student_required
    def student_attendance():
        try:
            course_id_s = (request.args.get("courseId") or "").strip()
            course_id = require_positive_int(course_id_s, "courseId") if course_id_s else None
            start = parse_optional_date(request.args.get("startDate"), "startDate")
            end = parse_optional_date(request.args.get("endDate"), "endDate")
            limit_s = (request.args.get("limit") or "").strip()
            limit = require_positive_int(limit_s, "limit") if limit_s else DEFAULT_ATTENDANCE_LIMIT

            records = container.check_in_service.list_attendance(
                current_user_id(),
                course_id=course_id,
                start_date=start,
                end_date=end,
                limit=limit,
            )
            # A full page means older records may exist before the last date.
            return jsonify({"records": [r.to_dict() for r in records], "limit": limit}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Loading attendance failed")
            return server_error_response("Failed to load attendance")
