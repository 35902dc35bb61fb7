"""Per-device OTP SMS limiting: three sends per rolling day."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from techtorio.extensions import db
from techtorio.infrastructure.ratelimit.models import SmsRateLimit

MAX_ATTEMPTS_PER_DAY = 3
ATTEMPT_WINDOW = timedelta(hours=24)
RECORD_RETENTION = timedelta(days=2)


def _get(device_identifier: str) -> Optional[SmsRateLimit]:
    return SmsRateLimit.query.filter_by(device_identifier=device_identifier).first()


def cleanup_old_records(now: Optional[datetime] = None) -> int:
    cutoff = (now or datetime.utcnow()) - RECORD_RETENTION
    deleted = SmsRateLimit.query.filter(SmsRateLimit.created_at < cutoff).delete(synchronize_session=False)
    if deleted:
        db.session.commit()
    return deleted


def is_allowed(device_identifier: str, phone_number: str, now: Optional[datetime] = None) -> bool:
    now = now or datetime.utcnow()
    cleanup_old_records(now=now)
    record = _get(device_identifier)
    if record is None:
        return True
    if record.blocked_until and record.blocked_until > now:
        return False
    if now - record.first_attempt_at >= ATTEMPT_WINDOW:
        record.attempt_count = 0
        record.first_attempt_at = now
        record.blocked_until = None
        record.updated_at = now
        db.session.commit()
        return True
    return record.attempt_count < MAX_ATTEMPTS_PER_DAY


def record_attempt(device_identifier: str, phone_number: str, now: Optional[datetime] = None) -> SmsRateLimit:
    now = now or datetime.utcnow()
    record = _get(device_identifier)
    if record is None:
        record = SmsRateLimit(
            device_identifier=device_identifier,
            phone_number=phone_number,
            attempt_count=1,
            first_attempt_at=now,
            created_at=now,
            updated_at=now,
        )
        db.session.add(record)
    else:
        if now - record.first_attempt_at >= ATTEMPT_WINDOW:
            record.attempt_count = 1
            record.first_attempt_at = now
            record.blocked_until = None
        else:
            record.attempt_count += 1
            if record.attempt_count >= MAX_ATTEMPTS_PER_DAY:
                record.blocked_until = record.first_attempt_at + ATTEMPT_WINDOW
        record.phone_number = phone_number
        record.updated_at = now
    db.session.commit()
    return record


def get_remaining_attempts(device_identifier: str, now: Optional[datetime] = None) -> int:
    now = now or datetime.utcnow()
    record = _get(device_identifier)
    if record is None or now - record.first_attempt_at >= ATTEMPT_WINDOW:
        return MAX_ATTEMPTS_PER_DAY
    return max(0, MAX_ATTEMPTS_PER_DAY - record.attempt_count)


def get_block_duration(device_identifier: str, now: Optional[datetime] = None) -> Optional[timedelta]:
    """Time left on an active block, or None."""
    now = now or datetime.utcnow()
    record = _get(device_identifier)
    if record is None or record.blocked_until is None or record.blocked_until <= now:
        return None
    return record.blocked_until - now
