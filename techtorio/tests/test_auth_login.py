from __future__ import annotations

import pytest
from flask_jwt_extended import decode_token

pytestmark = pytest.mark.integration

from techtorio.core.auth.models import ADMIN_ROLE


def test_login_returns_token_with_roles(app, client, make_user):
    user = make_user("admin-login@example.com", password="demo12345", roles=[ADMIN_ROLE])

    resp = client.post("/api/auth/login", json={"email": "admin-login@example.com", "password": "demo12345"})

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["ok"] is True
    assert body["user"]["roles"] == [ADMIN_ROLE]
    with app.app_context():
        claims = decode_token(body["access_token"])
    assert claims["sub"] == str(user.id)
    assert claims["roles"] == [ADMIN_ROLE]


def test_login_rejects_bad_password(client, make_user):
    make_user("buyer-login@example.com", password="demo12345")

    resp = client.post("/api/auth/login", json={"email": "buyer-login@example.com", "password": "wrong-pass"})

    assert resp.status_code == 401
    assert resp.get_json()["error"] == "invalid_credentials"


def test_login_rejects_inactive_user(client, make_user):
    make_user("gone@example.com", password="demo12345", is_active=False)

    resp = client.post("/api/auth/login", json={"email": "gone@example.com", "password": "demo12345"})

    assert resp.status_code == 401


def test_login_validates_body(client):
    resp = client.post("/api/auth/login", json={"email": "nope"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "bad_request"


def test_admin_route_requires_token(client):
    resp = client.post("/api/admin/withdrawals/1/settle")
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "unauthorized"


def test_login_with_non_bcrypt_hash_is_rejected(client):
    # conftest seeds test@example.com with a placeholder hash
    resp = client.post("/api/auth/login", json={"email": "test@example.com", "password": "test"})
    assert resp.status_code == 401


def test_invalid_token_uses_json_envelope(client):
    resp = client.get("/api/notifications", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401
    assert resp.get_json()["ok"] is False
    assert resp.get_json()["error"] == "invalid_token"
