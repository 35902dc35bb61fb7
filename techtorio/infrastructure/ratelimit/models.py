"""Database-backed rate limit counters."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from techtorio.core.users.models import TimestampMixin
from techtorio.extensions import db


class ApiRateLimit(db.Model, TimestampMixin):
    __tablename__ = "api_rate_limit"
    __table_args__ = (
        db.UniqueConstraint("identifier", "endpoint", name="uq_api_rate_limit_identifier_endpoint"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    identifier: Mapped[str] = mapped_column(db.String(255), nullable=False)
    endpoint: Mapped[str] = mapped_column(db.String(255), nullable=False, index=True)
    request_count: Mapped[int] = mapped_column(default=0, nullable=False)
    window_start: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)
    blocked_until: Mapped[datetime | None] = mapped_column(nullable=True)


class SmsRateLimit(db.Model, TimestampMixin):
    __tablename__ = "sms_rate_limit"

    id: Mapped[int] = mapped_column(primary_key=True)
    device_identifier: Mapped[str] = mapped_column(db.String(255), unique=True, nullable=False)
    phone_number: Mapped[str] = mapped_column(db.String(32), nullable=False)
    attempt_count: Mapped[int] = mapped_column(default=0, nullable=False)
    first_attempt_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)
    blocked_until: Mapped[datetime | None] = mapped_column(nullable=True)
