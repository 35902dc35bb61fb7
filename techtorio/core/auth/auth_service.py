"""Authentication service layer."""

from __future__ import annotations

from typing import Optional

from flask_jwt_extended import create_access_token

from techtorio.core.auth.password import verify_password
from techtorio.core.users.models import User


def authenticate_user(email: str, password: str) -> Optional[User]:
    """Return the user if credentials are valid."""
    user = User.query.filter_by(email=email).first()
    if not user or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def issue_access_token(user: User) -> str:
    return create_access_token(identity=str(user.id), additional_claims={"roles": user.role_codes})
