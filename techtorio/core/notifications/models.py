"""In-app notification model."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from techtorio.extensions import db


class NotificationType(enum.Enum):
    ORDER = "order"
    PAYMENT = "payment"
    ESCROW = "escrow"
    SYSTEM = "system"
    DISPUTE = "dispute"
    KYC = "kyc"
    WALLET = "wallet"


class NotificationPriority(enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class NotificationStatus(enum.Enum):
    UNREAD = "unread"
    READ = "read"


class Notification(db.Model):
    __tablename__ = "notification"
    __table_args__ = (
        db.Index("ix_notification_user_status", "user_id", "status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), index=True, nullable=False)
    type: Mapped[NotificationType] = mapped_column(
        db.Enum(NotificationType, native_enum=False, length=32), nullable=False
    )
    title: Mapped[str] = mapped_column(db.String(255), nullable=False)
    message: Mapped[str] = mapped_column(db.Text, nullable=False)
    priority: Mapped[NotificationPriority] = mapped_column(
        db.Enum(NotificationPriority, native_enum=False, length=16),
        default=NotificationPriority.MEDIUM,
        nullable=False,
    )
    status: Mapped[NotificationStatus] = mapped_column(
        db.Enum(NotificationStatus, native_enum=False, length=16),
        default=NotificationStatus.UNREAD,
        nullable=False,
    )
    metadata_json: Mapped[str | None] = mapped_column("metadata", db.Text)
    is_active: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, index=True)
    read_at: Mapped[datetime | None] = mapped_column(nullable=True)
