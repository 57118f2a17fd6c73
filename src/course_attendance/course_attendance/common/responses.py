from __future__ import annotations

from flask import jsonify

from ..core.enums import ErrorKind
from ..core.exceptions import DomainError


STATUS_BY_KIND = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.COURSE_UNAVAILABLE: 404,
    ErrorKind.NOT_ENROLLED: 404,
    ErrorKind.ALREADY_ENROLLED: 409,
    ErrorKind.CAPACITY_EXCEEDED: 409,
    ErrorKind.DUPLICATE_CHECK_IN: 409,
    ErrorKind.PERSISTENCE_FAILURE: 503,
}


def error_response(err: DomainError):
    """JSON body naming the failed precondition, with its HTTP status."""
    status = STATUS_BY_KIND.get(err.kind, 400)
    return jsonify({"success": False, "kind": err.kind.value, "message": err.message}), status


def server_error_response(message: str = "Internal server error"):
    return jsonify({"success": False, "kind": None, "message": message}), 500
