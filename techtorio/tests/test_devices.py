import pytest

pytestmark = pytest.mark.integration

from techtorio.core.devices.models import UserDevice
from techtorio.core.devices.services import (
    generate_fingerprint,
    get_user_device,
    parse_user_agent,
    register_device,
    touch_device,
    verify_device,
)
from techtorio.core.users.models import User
from techtorio.extensions import db

CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)
CHROME_ANDROID = (
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Mobile Safari/537.36"
)
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
EDGE_WINDOWS = CHROME_WINDOWS + " Edg/120.0.0.0"
FIREFOX_LINUX = "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"


def test_fingerprint_is_stable_base64_sha256():
    first = generate_fingerprint(CHROME_WINDOWS)
    assert first == generate_fingerprint(CHROME_WINDOWS)
    assert first != generate_fingerprint(CHROME_WINDOWS, "10.0.0.1")
    assert len(first) == 44 and first.endswith("=")


@pytest.mark.parametrize(
    "ua, expected",
    [
        (CHROME_WINDOWS, ("Desktop", "Chrome", "Windows")),
        (CHROME_ANDROID, ("Mobile", "Chrome", "Android")),
        (SAFARI_IPHONE, ("Mobile", "Safari", "iOS")),
        (EDGE_WINDOWS, ("Desktop", "Edge", "Windows")),
        (FIREFOX_LINUX, ("Desktop", "Firefox", "Linux")),
        ("", ("Unknown", "Unknown", "Unknown")),
    ],
)
def test_parse_user_agent(ua, expected):
    assert tuple(parse_user_agent(ua)) == expected


def test_register_verify_and_touch_device(app):
    with app.app_context():
        user = User.query.filter_by(email="test@example.com").one()
        device = register_device(user.id, CHROME_ANDROID, "10.0.0.5", device_name="Pixel")

        assert device.is_verified is False
        assert device.is_trusted is False
        assert device.operating_system == "Android"
        assert get_user_device(user.id, generate_fingerprint(CHROME_ANDROID)).id == device.id
        assert get_user_device(user.id, generate_fingerprint(CHROME_WINDOWS)) is None

        verified = verify_device(device.id)
        assert verified.is_verified is True
        assert verified.is_trusted is True

        first_seen = device.last_seen_at
        touched = touch_device(device.id)
        assert touched.last_seen_at >= first_seen


def test_verify_unknown_device_returns_none(app):
    with app.app_context():
        assert verify_device(9999) is None
        assert touch_device(9999) is None


def test_inactive_device_is_not_recognised(app):
    with app.app_context():
        user = User.query.filter_by(email="test@example.com").one()
        device = register_device(user.id, CHROME_WINDOWS, "10.0.0.5")
        device.is_active = False
        db.session.commit()

        assert get_user_device(user.id, device.device_fingerprint) is None
        assert UserDevice.query.count() == 1
