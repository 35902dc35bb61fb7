"""Notification response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from techtorio.core.notifications.models import Notification


class NotificationResponse(BaseModel):
    id: int
    type: str
    title: str
    message: str
    priority: str
    status: str
    created_at: datetime
    read_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


def serialize_notification(notification: Notification) -> dict:
    return NotificationResponse(
        id=notification.id,
        type=notification.type.value,
        title=notification.title,
        message=notification.message,
        priority=notification.priority.value,
        status=notification.status.value,
        created_at=notification.created_at,
        read_at=notification.read_at,
    ).model_dump(mode="json")
