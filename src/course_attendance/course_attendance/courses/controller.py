from __future__ import annotations

import logging

from flask import Flask, jsonify

from ..common.guards import student_required
from ..common.responses import error_response, server_error_response
from ..container import Container
from ..core.exceptions import DomainError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/student/courses/available", methods=["GET"], endpoint="available_courses")
    @student_required
    def available_courses():
        try:
            courses = container.catalog_service.list_available_courses()
            return jsonify({"courses": courses}), 200
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Listing available courses failed")
            return server_error_response("Failed to load course list")
