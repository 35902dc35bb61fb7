"""Auth HTTP controllers (API only)."""

from __future__ import annotations

from flask import Blueprint, jsonify

from techtorio.core.auth.auth_service import authenticate_user, issue_access_token
from techtorio.core.auth.schemas import LoginRequest
from techtorio.core.utils.validation import parse_body
from techtorio.extensions import limiter

auth_bp = Blueprint("auth_api", __name__)


@auth_bp.post("/login")
@limiter.limit("10/minute")
def login():
    data = parse_body(LoginRequest)
    user = authenticate_user(data.email, data.password)
    if not user:
        return jsonify({"ok": False, "error": "invalid_credentials"}), 401
    return jsonify(
        {
            "ok": True,
            "access_token": issue_access_token(user),
            "user": {"id": user.id, "email": user.email, "roles": user.role_codes},
        }
    )
