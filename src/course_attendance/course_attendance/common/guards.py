"""Request guards at the identity boundary.

The external auth collaborator stores the verified caller in the Flask
session (``user_id`` and ``role``). Handlers in this package only trust those
two keys; anything else is rejected before a service is called.
"""

from __future__ import annotations

from functools import wraps

from flask import session

from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError
from .responses import error_response


def current_user_id() -> int:
    return int(session["user_id"])


def current_role() -> Role | None:
    try:
        return Role(session.get("role"))
    except ValueError:
        return None


def roles_required(*roles: Role):
    allowed = frozenset(roles)

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                current_user_id()
            except (KeyError, TypeError, ValueError):
                return error_response(AuthenticationError())

            if current_role() not in allowed:
                return error_response(AuthorizationError())

            return view(*args, **kwargs)

        return wrapper

    return decorator


def student_required(view):
    return roles_required(Role.STUDENT)(view)
