"""Known browser/device records per user."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from techtorio.core.users.models import TimestampMixin
from techtorio.extensions import db


class UserDevice(db.Model, TimestampMixin):
    __tablename__ = "user_device"
    __table_args__ = (
        db.Index("ix_user_device_user_fingerprint", "user_id", "device_fingerprint"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), nullable=False, index=True)
    device_fingerprint: Mapped[str] = mapped_column(db.String(128), nullable=False)
    user_agent: Mapped[str] = mapped_column(db.Text, default="")
    device_type: Mapped[str] = mapped_column(db.String(32), default="Unknown")
    browser: Mapped[str] = mapped_column(db.String(32), default="Unknown")
    operating_system: Mapped[str] = mapped_column(db.String(32), default="Unknown")
    ip_address: Mapped[str] = mapped_column(db.String(64), default="")
    device_name: Mapped[str | None] = mapped_column(db.String(128))
    is_verified: Mapped[bool] = mapped_column(default=False)
    is_trusted: Mapped[bool] = mapped_column(default=False)
    is_active: Mapped[bool] = mapped_column(default=True)
    first_seen_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    last_seen_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
