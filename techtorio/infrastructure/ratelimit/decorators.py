"""View decorator enforcing the database-backed API rate limit."""

from __future__ import annotations

from functools import wraps
from typing import Callable, Optional, TypeVar

from flask import current_app, jsonify

from techtorio.extensions import client_identifier
from techtorio.infrastructure.ratelimit import api_limits

F = TypeVar("F", bound=Callable)


def rate_limited(
    endpoint: str,
    max_requests: int = 5,
    window_minutes: int = 5,
    max_requests_key: Optional[str] = None,
    window_minutes_key: Optional[str] = None,
    identifier_fn: Callable[[], str] = client_identifier,
):
    """
    Reject with 429 once the caller exceeds max_requests within window_minutes.
    Limits may be read from app config via the *_key arguments.
    """

    def decorator(fn: F) -> F:
        @wraps(fn)
        def wrapper(*args, **kwargs):  # type: ignore[misc]
            limit = max_requests
            window = window_minutes
            if max_requests_key:
                limit = int(current_app.config.get(max_requests_key, limit))
            if window_minutes_key:
                window = int(current_app.config.get(window_minutes_key, window))

            identifier = identifier_fn()
            if not api_limits.is_allowed(identifier, endpoint, limit, window):
                remaining = api_limits.get_remaining_requests(identifier, endpoint, limit, window)
                return jsonify({"ok": False, "error": "rate_limited", "remaining": remaining}), 429
            api_limits.record_request(identifier, endpoint)
            return fn(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator
