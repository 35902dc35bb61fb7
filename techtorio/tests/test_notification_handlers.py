from __future__ import annotations

import json
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

pytestmark = pytest.mark.integration

from techtorio.core.notifications.models import (
    Notification,
    NotificationPriority,
    NotificationStatus,
    NotificationType,
)
from techtorio.core.users.models import User
from techtorio.extensions import db
from techtorio.infrastructure.outbox.models import OutboxMessage
from techtorio.infrastructure.worker.config import DispatchConfig
from techtorio.infrastructure.worker.dispatcher import process_pending_batch
from techtorio.infrastructure.worker.handlers import (
    NotificationPayload,
    OutboxPayloadError,
    SmsPayload,
    build_default_handlers,
    format_amount,
    handle_notification,
    make_sms_handler,
    parse_payload,
    render_notification,
)


def _outbox(message_type: str, payload: dict) -> OutboxMessage:
    msg = OutboxMessage(type=message_type, payload=json.dumps(payload))
    db.session.add(msg)
    db.session.commit()
    return msg


def _user_id() -> int:
    return User.query.filter_by(email="test@example.com").one().id


def test_format_amount_uses_thousands_separators():
    assert format_amount(Decimal("1500")) == "1,500"
    assert format_amount(Decimal("2500000.00")) == "2,500,000"
    assert format_amount(Decimal("0")) == "0"


def test_parse_payload_matches_keys_case_insensitively():
    payload = parse_payload(
        json.dumps({"UserId": 7, "WithdrawalId": 3, "Amount": "1500.00", "Currency": "PKR", "Channel": "JazzCash"}),
        NotificationPayload,
    )

    assert payload.user_id == 7
    assert payload.withdrawal_id == 3
    assert payload.amount == Decimal("1500.00")
    assert payload.channel == "JazzCash"


def test_parse_payload_rejects_invalid_json():
    with pytest.raises(OutboxPayloadError):
        parse_payload("{not json", SmsPayload)
    with pytest.raises(OutboxPayloadError):
        parse_payload("[1, 2]", SmsPayload)


@pytest.mark.parametrize(
    "message_type, title, expected_type",
    [
        ("WithdrawalInitiated", "Withdrawal Initiated", NotificationType.WALLET),
        ("WithdrawalPendingApproval", "Withdrawal Approval Required", NotificationType.SYSTEM),
        ("WithdrawalSettled", "Withdrawal Approved", NotificationType.WALLET),
        ("WithdrawalFailed", "Withdrawal Failed", NotificationType.WALLET),
        ("WithdrawalReversed", "Withdrawal Failed", NotificationType.WALLET),
        ("TopUpConfirmed", "Top-up Confirmed", NotificationType.WALLET),
    ],
)
def test_render_notification_titles(message_type, title, expected_type):
    payload = NotificationPayload(user_id=1, amount=Decimal("1500"), currency="PKR", channel="JazzCash")

    rendered_title, body, notification_type = render_notification(message_type, payload)

    assert rendered_title == title
    assert notification_type is expected_type
    assert "PKR 1,500" in body
    assert "JazzCash" in body


def test_pending_approval_message_names_requester():
    payload = NotificationPayload(
        user_id=1, amount=Decimal("25000"), currency="PKR", channel="BankTransfer", requester_name="Ali Khan"
    )

    _, body, _ = render_notification("withdrawalpendingapproval", payload)

    assert body == "New withdrawal request from Ali Khan: PKR 25,000 via BankTransfer"


def test_handle_notification_creates_unread_row(app):
    with app.app_context():
        user_id = _user_id()
        msg = _outbox(
            "WithdrawalInitiated",
            {"UserId": user_id, "WithdrawalId": 9, "Amount": "1500.00", "Currency": "PKR", "Channel": "JazzCash"},
        )

        handle_notification(msg)
        db.session.commit()

        notification = Notification.query.filter_by(user_id=user_id).one()
        assert notification.title == "Withdrawal Initiated"
        assert notification.message == (
            "Your withdrawal request of PKR 1,500 via JazzCash has been initiated."
        )
        assert notification.type is NotificationType.WALLET
        assert notification.priority is NotificationPriority.MEDIUM
        assert notification.status is NotificationStatus.UNREAD
        assert json.loads(notification.metadata_json)["WithdrawalId"] == 9


def test_handle_notification_requires_user_id(app):
    with app.app_context():
        msg = _outbox("WithdrawalSettled", {"Amount": "10"})

        with pytest.raises(OutboxPayloadError, match="user_id is required"):
            handle_notification(msg)


def test_sms_handler_rejects_missing_code(app):
    with app.app_context():
        sender = MagicMock()
        msg = _outbox("sms", {"To": "03001234567", "Code": ""})

        with pytest.raises(OutboxPayloadError, match="missing required OTP code"):
            make_sms_handler(sender)(msg)
        sender.send_otp.assert_not_called()


def test_sms_handler_passes_payload_to_sender(app):
    with app.app_context():
        sender = MagicMock()
        msg = _outbox("sms", {"To": "03001234567", "Code": "123456", "Template": "otp"})

        make_sms_handler(sender)(msg)

        sender.send_otp.assert_called_once_with("03001234567", "123456", "otp")


def test_default_handlers_route_notifications_through_dispatcher(app):
    with app.app_context():
        user_id = _user_id()
        _outbox("TopUpConfirmed", {"UserId": user_id, "Amount": "2000", "Currency": "PKR", "Channel": "Easypaisa"})
        bad = _outbox("WithdrawalFailed", {"Amount": "10"})

        handlers = build_default_handlers(MagicMock())
        process_pending_batch(handlers, DispatchConfig(interval_seconds=0))

        notification = Notification.query.filter_by(user_id=user_id).one()
        assert notification.title == "Top-up Confirmed"
        db.session.refresh(bad)
        assert bad.processed is False
        assert bad.retry_count == 1
        assert "user_id is required" in bad.error
