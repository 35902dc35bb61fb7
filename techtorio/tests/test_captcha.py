from unittest.mock import MagicMock, patch

import pytest
import requests

pytestmark = pytest.mark.integration

from techtorio.core.captcha.service import VERIFY_URL, verify_captcha


def _response(payload: dict) -> MagicMock:
    resp = MagicMock()
    resp.json.return_value = payload
    resp.raise_for_status.return_value = None
    return resp


@pytest.fixture
def captcha_app(app):
    app.config["CAPTCHA_SECRET_KEY"] = "recaptcha-secret"
    app.config["CAPTCHA_MIN_SCORE"] = 0.5
    return app


def test_skips_verification_without_secret(app):
    with app.app_context(), patch("techtorio.core.captcha.service.requests.post") as post:
        assert verify_captcha(None) is True
        post.assert_not_called()


def test_missing_token_is_rejected(captcha_app):
    with captcha_app.app_context():
        assert verify_captcha("") is False


def test_successful_verification_posts_secret_and_ip(captcha_app):
    with captcha_app.app_context(), patch("techtorio.core.captcha.service.requests.post") as post:
        post.return_value = _response({"success": True, "score": 0.9})

        assert verify_captcha("token-1", "10.0.0.1") is True

        post.assert_called_once_with(
            VERIFY_URL,
            data={"secret": "recaptcha-secret", "response": "token-1", "remoteip": "10.0.0.1"},
            timeout=10,
        )


@pytest.mark.parametrize(
    "payload",
    [
        {"success": False, "error-codes": ["invalid-input-response"]},
        {"success": True, "score": 0.2},
    ],
)
def test_rejected_tokens(captcha_app, payload):
    with captcha_app.app_context(), patch("techtorio.core.captcha.service.requests.post") as post:
        post.return_value = _response(payload)
        assert verify_captcha("token-1") is False


def test_network_error_fails_closed(captcha_app):
    with captcha_app.app_context(), patch("techtorio.core.captcha.service.requests.post") as post:
        post.side_effect = requests.ConnectionError("down")
        assert verify_captcha("token-1") is False
