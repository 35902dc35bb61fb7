"""Per identifier and endpoint request limiting stored in the database.

Every operation fails open: a storage error is logged and rolled back, and the
request is treated as allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from techtorio.extensions import db
from techtorio.infrastructure.ratelimit.models import ApiRateLimit

logger = logging.getLogger(__name__)

RECORD_RETENTION = timedelta(hours=24)
BLOCKED_REQUEST_COUNT = 999


def _get(identifier: str, endpoint: str) -> Optional[ApiRateLimit]:
    return ApiRateLimit.query.filter_by(identifier=identifier, endpoint=endpoint).first()


def cleanup_old_records(endpoint: str, now: Optional[datetime] = None) -> int:
    """Delete stale, never-blocked rows for an endpoint."""
    cutoff = (now or datetime.utcnow()) - RECORD_RETENTION
    try:
        deleted = (
            ApiRateLimit.query.filter(
                ApiRateLimit.endpoint == endpoint,
                ApiRateLimit.created_at < cutoff,
                ApiRateLimit.blocked_until.is_(None),
            ).delete(synchronize_session=False)
        )
        if deleted:
            db.session.commit()
        return deleted
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("API rate limit cleanup failed for %s", endpoint)
        return 0


def is_allowed(
    identifier: str,
    endpoint: str,
    max_requests: int,
    window_minutes: int,
    now: Optional[datetime] = None,
) -> bool:
    now = now or datetime.utcnow()
    try:
        cleanup_old_records(endpoint, now=now)
        record = _get(identifier, endpoint)
        if record is None:
            return True
        if record.blocked_until and record.blocked_until > now:
            return False
        if now >= record.window_start + timedelta(minutes=window_minutes):
            record.request_count = 0
            record.window_start = now
            record.blocked_until = None
            db.session.commit()
            return True
        return record.request_count < max_requests
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("API rate limit check failed for %s and identifier %s", endpoint, identifier)
        return True


def record_request(identifier: str, endpoint: str, now: Optional[datetime] = None) -> None:
    now = now or datetime.utcnow()
    try:
        record = _get(identifier, endpoint)
        if record is None:
            db.session.add(
                ApiRateLimit(
                    identifier=identifier,
                    endpoint=endpoint,
                    request_count=1,
                    window_start=now,
                    created_at=now,
                    updated_at=now,
                )
            )
        else:
            record.request_count += 1
            record.updated_at = now
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("API rate limit record failed for %s and identifier %s", endpoint, identifier)


def get_remaining_requests(
    identifier: str,
    endpoint: str,
    max_requests: int,
    window_minutes: int,
    now: Optional[datetime] = None,
) -> int:
    now = now or datetime.utcnow()
    try:
        record = _get(identifier, endpoint)
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("API rate limit lookup failed for %s and identifier %s", endpoint, identifier)
        return max_requests
    if record is None or now >= record.window_start + timedelta(minutes=window_minutes):
        return max_requests
    return max(0, max_requests - record.request_count)


def block_identifier(
    identifier: str,
    endpoint: str,
    duration: timedelta,
    now: Optional[datetime] = None,
) -> None:
    now = now or datetime.utcnow()
    try:
        record = _get(identifier, endpoint)
        if record is None:
            db.session.add(
                ApiRateLimit(
                    identifier=identifier,
                    endpoint=endpoint,
                    request_count=BLOCKED_REQUEST_COUNT,
                    window_start=now,
                    blocked_until=now + duration,
                    created_at=now,
                    updated_at=now,
                )
            )
        else:
            record.blocked_until = now + duration
            record.updated_at = now
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("API rate limit block failed for %s and identifier %s", endpoint, identifier)
