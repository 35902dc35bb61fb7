from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

pytestmark = pytest.mark.unit

from techtorio.infrastructure.sms import (
    AndroidSmsSender,
    CompositeSmsSender,
    DeviceRegistry,
    MacroDroidSmsSender,
    SmsDeliveryError,
    build_sms_sender,
    normalize_macrodroid_phone,
    normalize_pakistani_phone,
)
from techtorio.infrastructure.sms.senders import compute_signature


def _ok_session() -> MagicMock:
    session = MagicMock()
    session.get.return_value = MagicMock(ok=True, status_code=200, reason="OK", text="sent")
    return session


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("03001234567", "923001234567"),
        ("+92 300 1234567", "923001234567"),
        ("923001234567", "923001234567"),
        ("3001234567", "923001234567"),
        ("0092-300-1234567", "923001234567"),
        ("12345", None),
        (None, None),
    ],
)
def test_normalize_pakistani_phone(raw, expected):
    assert normalize_pakistani_phone(raw) == expected


def test_normalize_macrodroid_phone():
    assert normalize_macrodroid_phone("0300-1234567") == "923001234567"
    assert normalize_macrodroid_phone("1234") is None


def test_android_sender_calls_send_otp_endpoint():
    session = _ok_session()
    sender = AndroidSmsSender("http://relay.local:8080/", session=session, timeout_seconds=15)

    sender.send_otp("03001234567", "123456")

    session.get.assert_called_once()
    args, kwargs = session.get.call_args
    assert args[0] == "http://relay.local:8080/send-otp"
    assert kwargs["params"] == {"otp": "123456", "to": "923001234567"}
    assert kwargs["timeout"] == 15
    assert kwargs["headers"] == {}


def test_android_sender_signs_requests_when_hmac_enabled():
    session = _ok_session()
    sender = AndroidSmsSender("http://relay.local", secret_key="s3cret", use_hmac=True, session=session)

    sender.send_otp("03001234567", "654321")

    headers = session.get.call_args.kwargs["headers"]
    assert headers["X-Webhook-Secret"] == "s3cret"
    assert headers["X-Signature"] == compute_signature("otp=654321&to=923001234567", "s3cret")
    assert len(headers["X-Signature"]) == 64


def test_android_sender_rejects_invalid_phone():
    session = _ok_session()
    sender = AndroidSmsSender("http://relay.local", session=session)

    with pytest.raises(SmsDeliveryError, match="Invalid recipient phone"):
        sender.send_otp("12-34", "123456")
    session.get.assert_not_called()


def test_android_sender_requires_code():
    with pytest.raises(ValueError):
        AndroidSmsSender("http://relay.local", session=_ok_session()).send_otp("03001234567", " ")


def test_android_sender_wraps_timeouts_and_http_errors():
    session = MagicMock()
    session.get.side_effect = requests.Timeout("slow")
    sender = AndroidSmsSender("http://relay.local", session=session, timeout_seconds=30)
    with pytest.raises(SmsDeliveryError, match="timed out after 30 seconds"):
        sender.send_otp("03001234567", "123456")

    session.get.side_effect = None
    session.get.return_value = MagicMock(ok=False, status_code=500, reason="Server Error", text="boom")
    with pytest.raises(SmsDeliveryError, match="500 Server Error"):
        sender.send_otp("03001234567", "123456")


def test_macrodroid_sender_builds_trigger_url():
    session = _ok_session()
    sender = MacroDroidSmsSender("https://trigger.macrodroid.com", key="abc", session=session)

    sender.send_otp("0300 1234567", "111222")

    args, kwargs = session.get.call_args
    assert args[0] == "https://trigger.macrodroid.com/abc/send-otp"
    assert kwargs["params"] == {"otp": "111222", "to": "923001234567"}


def test_macrodroid_sender_disabled_skips_http():
    session = _ok_session()
    MacroDroidSmsSender("https://trigger.macrodroid.com", key="abc", enabled=False, session=session).send_otp(
        "03001234567", "111222"
    )
    session.get.assert_not_called()


def test_composite_prefers_push_to_connected_device():
    registry = DeviceRegistry()
    registry.register_connection("relay-1", "conn-1", "923009999999")
    push = MagicMock()
    push.try_push_otp.return_value = True
    fallback = MagicMock()

    CompositeSmsSender(push, registry, fallback).send_otp("03001234567", "123456", "otp")

    push.try_push_otp.assert_called_once_with("relay-1", "923001234567", "123456", "otp")
    fallback.send_otp.assert_not_called()


def test_composite_falls_back_when_push_fails_or_no_device():
    registry = DeviceRegistry()
    push = MagicMock()
    fallback = MagicMock()
    sender = CompositeSmsSender(push, registry, fallback)

    sender.send_otp("03001234567", "123456")
    push.try_push_otp.assert_not_called()
    fallback.send_otp.assert_called_once_with("03001234567", "123456", None)

    registry.register_connection("relay-1", "conn-1")
    push.try_push_otp.side_effect = RuntimeError("socket closed")
    sender.send_otp("03001234567", "123456")
    assert fallback.send_otp.call_count == 2


def test_registry_connection_lifecycle():
    registry = DeviceRegistry()
    registry.register("relay-1", "923001234567")
    registry.register_connection("relay-1", "conn-1")

    assert registry.find_device_id_by_phone("923001234567") == "relay-1"
    assert registry.find_connection_id("relay-1") == "conn-1"

    registry.unregister_connection("conn-1")
    assert registry.find_connection_id("relay-1") is None
    assert registry.any_connected_device_id() is None

    registry.unregister("relay-1")
    assert registry.find_device_id_by_phone("923001234567") is None


def test_build_sms_sender_selects_provider():
    assert isinstance(build_sms_sender({"SMS_PROVIDER": "android"}), AndroidSmsSender)
    assert isinstance(build_sms_sender({"SMS_PROVIDER": "MacroDroid"}), MacroDroidSmsSender)
    assert isinstance(build_sms_sender({"SMS_PROVIDER": "composite"}), CompositeSmsSender)
    with pytest.raises(ValueError):
        build_sms_sender({"SMS_PROVIDER": "carrier-pigeon"})
