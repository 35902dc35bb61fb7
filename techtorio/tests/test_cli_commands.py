import json

import pytest

pytestmark = pytest.mark.integration

from techtorio.core.auth.models import ADMIN_ROLE, Role
from techtorio.core.notifications.models import Notification
from techtorio.core.users.models import User
from techtorio.extensions import db
from techtorio.infrastructure.outbox.models import OutboxMessage
from techtorio.scripts.seed_admin import BASE_ROLES, seed_admin_user


def test_seed_admin_is_idempotent(app):
    with app.app_context():
        first = seed_admin_user("Owner@Example.com", "secret123")
        second = seed_admin_user("owner@example.com", "other-pass")

        assert first.id == second.id
        assert first.email == "owner@example.com"
        assert ADMIN_ROLE in second.role_codes
        assert {r.name for r in Role.query.all()} == set(BASE_ROLES)
        assert User.query.filter_by(email="owner@example.com").count() == 1


def test_seed_admin_command(app):
    result = app.test_cli_runner().invoke(args=["seed-admin", "--email", "ops@example.com", "--password", "pw123456"])

    assert result.exit_code == 0, result.output
    assert "ops@example.com" in result.output


def test_outbox_dispatch_once(app):
    user = User.query.filter_by(email="test@example.com").one()
    db.session.add(
        OutboxMessage(
            type="WithdrawalSettled",
            payload=json.dumps({"UserId": user.id, "Amount": "750", "Currency": "PKR", "Channel": "Easypaisa"}),
        )
    )
    db.session.commit()

    result = app.test_cli_runner().invoke(args=["outbox-dispatch", "--once"])

    assert result.exit_code == 0, result.output
    assert "Processed 1 outbox message(s)" in result.output
    with app.app_context():
        assert OutboxMessage.query.one().processed is True
        notification = Notification.query.filter_by(user_id=user.id).one()
        assert notification.message == (
            "Your withdrawal of PKR 750 via Easypaisa has been approved and settled."
        )
