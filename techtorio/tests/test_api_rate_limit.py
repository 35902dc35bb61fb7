from __future__ import annotations

import logging
from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
from flask import Blueprint
from sqlalchemy.exc import OperationalError

pytestmark = pytest.mark.integration

from techtorio.extensions import db
from techtorio.infrastructure.ratelimit import ApiRateLimit, api_limits, rate_limited

ENDPOINT = "/api/test/limited"
NOW = datetime(2025, 6, 1, 12, 0, 0)


def test_unknown_identifier_is_allowed(app):
    with app.app_context():
        assert api_limits.is_allowed("1.2.3.4", ENDPOINT, 5, 5, now=NOW) is True
        assert api_limits.get_remaining_requests("1.2.3.4", ENDPOINT, 5, 5, now=NOW) == 5


def test_limit_reached_within_window(app):
    with app.app_context():
        for _ in range(5):
            assert api_limits.is_allowed("1.2.3.4", ENDPOINT, 5, 5, now=NOW)
            api_limits.record_request("1.2.3.4", ENDPOINT, now=NOW)

        assert api_limits.is_allowed("1.2.3.4", ENDPOINT, 5, 5, now=NOW + timedelta(minutes=1)) is False
        assert api_limits.get_remaining_requests("1.2.3.4", ENDPOINT, 5, 5, now=NOW) == 0
        # Other callers are unaffected.
        assert api_limits.is_allowed("5.6.7.8", ENDPOINT, 5, 5, now=NOW) is True


def test_window_expiry_resets_counter(app):
    with app.app_context():
        for _ in range(5):
            api_limits.record_request("1.2.3.4", ENDPOINT, now=NOW)

        later = NOW + timedelta(minutes=5)
        assert api_limits.is_allowed("1.2.3.4", ENDPOINT, 5, 5, now=later) is True

        record = ApiRateLimit.query.filter_by(identifier="1.2.3.4", endpoint=ENDPOINT).one()
        assert record.request_count == 0
        assert record.window_start == later


def test_block_identifier_denies_until_expiry(app):
    with app.app_context():
        api_limits.block_identifier("9.9.9.9", ENDPOINT, timedelta(minutes=30), now=NOW)

        record = ApiRateLimit.query.filter_by(identifier="9.9.9.9").one()
        assert record.request_count == api_limits.BLOCKED_REQUEST_COUNT
        assert api_limits.is_allowed("9.9.9.9", ENDPOINT, 5, 5, now=NOW + timedelta(minutes=10)) is False
        assert api_limits.is_allowed("9.9.9.9", ENDPOINT, 5, 5, now=NOW + timedelta(minutes=31)) is True


def test_cleanup_removes_only_stale_unblocked_rows(app):
    with app.app_context():
        api_limits.record_request("old", ENDPOINT, now=NOW - timedelta(hours=25))
        api_limits.block_identifier("blocked", ENDPOINT, timedelta(days=3), now=NOW - timedelta(hours=25))
        api_limits.record_request("fresh", ENDPOINT, now=NOW)

        deleted = api_limits.cleanup_old_records(ENDPOINT, now=NOW)

        assert deleted == 1
        remaining = {r.identifier for r in ApiRateLimit.query.all()}
        assert remaining == {"blocked", "fresh"}


def test_storage_error_fails_open(app, caplog):
    with app.app_context():
        error = OperationalError("SELECT", {}, Exception("no such table"))
        with patch.object(api_limits, "_get", side_effect=error):
            with caplog.at_level(logging.ERROR, logger=api_limits.logger.name):
                assert api_limits.is_allowed("1.2.3.4", ENDPOINT, 1, 5, now=NOW) is True
                api_limits.record_request("1.2.3.4", ENDPOINT, now=NOW)

        assert "API rate limit check failed" in caplog.text
        assert "API rate limit record failed" in caplog.text


def test_decorator_returns_429_with_remaining(app):
    bp = Blueprint("limited_test", __name__)

    @bp.get("/limited")
    @rate_limited(ENDPOINT, max_requests=2, window_minutes=5)
    def limited():
        return {"ok": True}

    app.register_blueprint(bp, url_prefix="/api/test")
    client = app.test_client()
    headers = {"X-Forwarded-For": "10.0.0.1, 172.16.0.1"}

    assert client.get("/api/test/limited", headers=headers).status_code == 200
    assert client.get("/api/test/limited", headers=headers).status_code == 200
    resp = client.get("/api/test/limited", headers=headers)

    assert resp.status_code == 429
    assert resp.get_json() == {"ok": False, "error": "rate_limited", "remaining": 0}
    with app.app_context():
        assert ApiRateLimit.query.filter_by(identifier="10.0.0.1").one().request_count == 2
    # A different client IP still gets through.
    assert client.get("/api/test/limited", headers={"X-Forwarded-For": "10.0.0.2"}).status_code == 200
