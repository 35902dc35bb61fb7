from __future__ import annotations

from datetime import datetime, timedelta

import pytest

pytestmark = pytest.mark.integration

from techtorio.infrastructure.ratelimit import SmsRateLimit, sms_limits

DEVICE = "device-abc"
PHONE = "03001234567"
NOW = datetime(2025, 6, 1, 9, 0, 0)


def test_three_attempts_then_blocked(app):
    with app.app_context():
        for i in range(3):
            assert sms_limits.is_allowed(DEVICE, PHONE, now=NOW + timedelta(minutes=i))
            sms_limits.record_attempt(DEVICE, PHONE, now=NOW + timedelta(minutes=i))

        assert sms_limits.is_allowed(DEVICE, PHONE, now=NOW + timedelta(hours=1)) is False
        assert sms_limits.get_remaining_attempts(DEVICE, now=NOW + timedelta(hours=1)) == 0

        record = SmsRateLimit.query.filter_by(device_identifier=DEVICE).one()
        assert record.attempt_count == 3
        assert record.blocked_until == NOW + timedelta(hours=24)


def test_block_duration_counts_down(app):
    with app.app_context():
        for _ in range(3):
            sms_limits.record_attempt(DEVICE, PHONE, now=NOW)

        remaining = sms_limits.get_block_duration(DEVICE, now=NOW + timedelta(hours=20))

        assert remaining == timedelta(hours=4)
        assert sms_limits.get_block_duration(DEVICE, now=NOW + timedelta(hours=25)) is None


def test_window_rolls_over_after_a_day(app):
    with app.app_context():
        for _ in range(3):
            sms_limits.record_attempt(DEVICE, PHONE, now=NOW)

        next_day = NOW + timedelta(hours=24, minutes=1)
        assert sms_limits.is_allowed(DEVICE, PHONE, now=next_day) is True
        assert sms_limits.get_remaining_attempts(DEVICE, now=next_day) == 3

        record = sms_limits.record_attempt(DEVICE, PHONE, now=next_day)
        assert record.attempt_count == 1
        assert record.blocked_until is None


def test_limit_is_per_device_not_per_phone(app):
    with app.app_context():
        for _ in range(3):
            sms_limits.record_attempt(DEVICE, PHONE, now=NOW)

        assert sms_limits.is_allowed("another-device", PHONE, now=NOW) is True
        assert sms_limits.get_remaining_attempts("another-device", now=NOW) == 3


def test_cleanup_drops_records_older_than_two_days(app):
    with app.app_context():
        sms_limits.record_attempt("stale", PHONE, now=NOW - timedelta(days=3))
        sms_limits.record_attempt(DEVICE, PHONE, now=NOW)

        deleted = sms_limits.cleanup_old_records(now=NOW)

        assert deleted == 1
        assert [r.device_identifier for r in SmsRateLimit.query.all()] == [DEVICE]
