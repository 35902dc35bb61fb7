"""Tests for the notifications API."""

import pytest

pytestmark = pytest.mark.integration

from techtorio.core.notifications.models import Notification, NotificationStatus, NotificationType
from techtorio.core.notifications.services import create_notification
from techtorio.extensions import db


@pytest.fixture
def user(make_user):
    return make_user("inbox@example.com")


def _seed(user_id: int, count: int = 2) -> list[Notification]:
    rows = [
        create_notification(user_id, NotificationType.WALLET, f"Title {i}", f"Message {i}")
        for i in range(count)
    ]
    db.session.commit()
    return rows


def test_list_requires_auth(client):
    resp = client.get("/api/notifications")
    assert resp.status_code == 401


def test_list_returns_notifications_and_unread_count(app, client, user, auth_headers):
    with app.app_context():
        _seed(user.id, 3)

    resp = client.get("/api/notifications", headers=auth_headers(user))

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["ok"] is True
    assert body["unread_count"] == 3
    assert len(body["notifications"]) == 3
    first = body["notifications"][0]
    assert first["type"] == "wallet"
    assert first["priority"] == "medium"
    assert first["status"] == "unread"


def test_mark_read_only_touches_own_notification(app, client, user, make_user, auth_headers):
    other = make_user("other@example.com")
    with app.app_context():
        mine = _seed(user.id, 1)[0]
        theirs = _seed(other.id, 1)[0]

    resp = client.post(f"/api/notifications/{mine.id}/read", headers=auth_headers(user))
    assert resp.status_code == 200
    assert resp.get_json()["notification"]["status"] == "read"

    resp = client.post(f"/api/notifications/{theirs.id}/read", headers=auth_headers(user))
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "not_found"

    with app.app_context():
        assert db.session.get(Notification, theirs.id).status is NotificationStatus.UNREAD


def test_mark_all_read(app, client, user, auth_headers):
    with app.app_context():
        _seed(user.id, 2)

    resp = client.post("/api/notifications/read-all", headers=auth_headers(user))
    assert resp.status_code == 200
    assert resp.get_json()["updated"] == 2

    resp = client.get("/api/notifications?unread=1", headers=auth_headers(user))
    body = resp.get_json()
    assert body["notifications"] == []
    assert body["unread_count"] == 0
