"""JWT helpers and role guards shared by the controllers."""

from __future__ import annotations

from functools import wraps
from typing import Callable, Iterable, Set, TypeVar

from flask import jsonify
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from techtorio.core.auth.models import ADMIN_ROLE

F = TypeVar("F", bound=Callable)


def current_user_id() -> int:
    """Identity of the verified token; tokens are issued with ``str(user.id)``."""
    return int(get_jwt_identity())


def current_roles() -> Set[str]:
    claims = get_jwt() or {}
    return {str(role).lower() for role in claims.get("roles") or []}


def require_roles(allowed_roles: Iterable[str]):
    """
    Allow the request when the token carries any of ``allowed_roles``.
    Admins pass every role check.
    """
    allowed = {role.lower() for role in allowed_roles}

    def decorator(fn: F) -> F:
        @wraps(fn)
        def wrapper(*args, **kwargs):  # type: ignore[misc]
            try:
                verify_jwt_in_request()
            except (JWTExtendedException, PyJWTError):
                return jsonify({"ok": False, "error": "unauthorized"}), 401
            roles = current_roles()
            if ADMIN_ROLE in roles or roles & allowed:
                return fn(*args, **kwargs)
            return jsonify({"ok": False, "error": "forbidden"}), 403

        return wrapper  # type: ignore[return-value]

    return decorator
