import sys
from pathlib import Path

import pytest
from flask_jwt_extended import create_access_token

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from techtorio import create_app
from techtorio.core.auth.models import ADMIN_ROLE, Role
from techtorio.core.auth.password import hash_password
from techtorio.core.users.models import User
from techtorio.domains.otp.services import otp_store
from techtorio.extensions import db


# ==================== Pytest Markers ====================
def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (database, API)")


@pytest.fixture()
def app():
    """
    Create a per-test app bound to a fresh in-memory database.

    Tables are created from model metadata and dropped after the test so
    committed rows never leak between tests.
    """
    app = create_app("testing")
    ctx = app.app_context()
    ctx.push()
    db.create_all()
    otp_store.clear()

    try:
        # Seed a default user for FK-dependent tests
        db.session.add(User(email="test@example.com", password_hash="test"))
        # Seed a default admin role so require_roles and admin fan-out can find it
        db.session.add(Role(name=ADMIN_ROLE, description="admin role for tests"))
        db.session.commit()

        yield app
    finally:
        db.session.remove()
        db.drop_all()
        otp_store.clear()
        ctx.pop()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def make_user(app):
    """Factory creating committed users, optionally with roles."""

    def _make(email: str, password: str = "secret123", roles=(), **fields) -> User:
        user = User(email=email, password_hash=hash_password(password), **fields)
        for name in roles:
            role = Role.query.filter_by(name=name).first()
            if role is None:
                role = Role(name=name, description=name)
                db.session.add(role)
            user.roles.append(role)
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture()
def auth_headers(app):
    """Build bearer headers for a user, carrying their role claims."""

    def _headers(user: User) -> dict:
        token = create_access_token(identity=str(user.id), additional_claims={"roles": user.role_codes})
        return {"Authorization": f"Bearer {token}"}

    return _headers
