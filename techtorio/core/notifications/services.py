"""Notification service layer."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from techtorio.core.notifications.models import (
    Notification,
    NotificationPriority,
    NotificationStatus,
    NotificationType,
)
from techtorio.extensions import db


def create_notification(
    user_id: int,
    notification_type: NotificationType,
    title: str,
    message: str,
    priority: NotificationPriority = NotificationPriority.MEDIUM,
    metadata_json: Optional[str] = None,
) -> Notification:
    """Stage a notification row; the caller owns the commit."""
    notification = Notification(
        user_id=user_id,
        type=notification_type,
        title=title,
        message=message,
        priority=priority,
        status=NotificationStatus.UNREAD,
        metadata_json=metadata_json,
        is_active=True,
    )
    db.session.add(notification)
    return notification


def list_notifications(user_id: int, unread_only: bool = False, limit: int = 50) -> List[Notification]:
    query = Notification.query.filter_by(user_id=user_id, is_active=True)
    if unread_only:
        query = query.filter(Notification.status == NotificationStatus.UNREAD)
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()


def count_unread(user_id: int) -> int:
    return Notification.query.filter_by(
        user_id=user_id, is_active=True, status=NotificationStatus.UNREAD
    ).count()


def mark_as_read(user_id: int, notification_id: int) -> Optional[Notification]:
    notification = Notification.query.filter_by(id=notification_id, user_id=user_id).first()
    if not notification:
        return None
    if notification.status != NotificationStatus.READ:
        notification.status = NotificationStatus.READ
        notification.read_at = datetime.utcnow()
        db.session.commit()
    return notification


def mark_all_as_read(user_id: int) -> int:
    now = datetime.utcnow()
    updated = (
        Notification.query.filter_by(user_id=user_id, status=NotificationStatus.UNREAD)
        .update({"status": NotificationStatus.READ, "read_at": now}, synchronize_session=False)
    )
    db.session.commit()
    return updated
