"""Handlers invoked by the dispatcher, keyed by lower-cased message type."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from techtorio.core.notifications.models import NotificationPriority, NotificationType
from techtorio.core.notifications.services import create_notification
from techtorio.infrastructure.outbox.models import OutboxMessage
from techtorio.infrastructure.sms.senders import SmsSender

logger = logging.getLogger(__name__)

Handler = Callable[[OutboxMessage], None]
P = TypeVar("P", bound=BaseModel)


class OutboxPayloadError(ValueError):
    """Raised when an outbox payload cannot be used by its handler."""


class SmsPayload(BaseModel):
    to: Optional[str] = None
    template: Optional[str] = None
    code: Optional[str] = None


class NotificationPayload(BaseModel):
    user_id: Optional[int] = None
    withdrawal_id: Optional[int] = None
    requester_name: Optional[str] = None
    amount: Decimal = Decimal("0")
    currency: Optional[str] = None
    channel: Optional[str] = None
    requested_at: Optional[datetime] = None
    notes: Optional[str] = None


def parse_payload(raw: str, model: Type[P]) -> P:
    """Decode a JSON payload, matching keys case-insensitively (``UserId`` == ``user_id``)."""
    try:
        data = json.loads(raw or "{}")
    except json.JSONDecodeError as exc:
        raise OutboxPayloadError(f"Invalid payload JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise OutboxPayloadError("Invalid payload: expected a JSON object")

    lookup = {name.replace("_", "").lower(): name for name in model.model_fields}
    normalized: Dict[str, Any] = {}
    for key, value in data.items():
        field = lookup.get(str(key).replace("_", "").lower())
        if field:
            normalized[field] = value
    try:
        return model.model_validate(normalized)
    except ValidationError as exc:
        raise OutboxPayloadError(f"Invalid payload: {exc}") from exc


def format_amount(amount: Decimal) -> str:
    """Thousands separators, no decimals."""
    return f"{amount:,.0f}"


# (title, message template, notification type)
NOTIFICATION_TEMPLATES: Dict[str, tuple[str, str, NotificationType]] = {
    "withdrawalinitiated": (
        "Withdrawal Initiated",
        "Your withdrawal request of {currency} {amount} via {channel} has been initiated.",
        NotificationType.WALLET,
    ),
    "withdrawalpendingapproval": (
        "Withdrawal Approval Required",
        "New withdrawal request from {requester}: {currency} {amount} via {channel}",
        NotificationType.SYSTEM,
    ),
    "withdrawalsettled": (
        "Withdrawal Approved",
        "Your withdrawal of {currency} {amount} via {channel} has been approved and settled.",
        NotificationType.WALLET,
    ),
    "withdrawalfailed": (
        "Withdrawal Failed",
        "Your withdrawal of {currency} {amount} via {channel} could not be processed. Please check and try again.",
        NotificationType.WALLET,
    ),
    "withdrawalreversed": (
        "Withdrawal Failed",
        "Your withdrawal of {currency} {amount} via {channel} could not be processed. Please check and try again.",
        NotificationType.WALLET,
    ),
    "topupconfirmed": (
        "Top-up Confirmed",
        "Your wallet top-up of {currency} {amount} via {channel} has been confirmed.",
        NotificationType.WALLET,
    ),
}


def render_notification(message_type: str, payload: NotificationPayload) -> tuple[str, str, NotificationType]:
    try:
        title, template, notification_type = NOTIFICATION_TEMPLATES[message_type.lower()]
    except KeyError as exc:
        raise OutboxPayloadError(f"No notification template for {message_type}") from exc
    body = template.format(
        currency=payload.currency or "",
        amount=format_amount(payload.amount),
        channel=payload.channel or "",
        requester=payload.requester_name or "",
    )
    return title, body, notification_type


def handle_notification(message: OutboxMessage) -> None:
    payload = parse_payload(message.payload, NotificationPayload)
    if payload.user_id is None:
        raise OutboxPayloadError("Invalid notification payload: user_id is required")

    title, body, notification_type = render_notification(message.type, payload)
    notification = create_notification(
        user_id=payload.user_id,
        notification_type=notification_type,
        title=title,
        message=body,
        priority=NotificationPriority.MEDIUM,
        metadata_json=message.payload,
    )
    logger.info("Notification staged for user %s: %s", payload.user_id, notification.title)


def make_sms_handler(sender: SmsSender) -> Handler:
    def handle_sms(message: OutboxMessage) -> None:
        payload = parse_payload(message.payload, SmsPayload)
        # The code was fixed at enqueue time; retries must resend the same one.
        if not (payload.code or "").strip():
            raise OutboxPayloadError("SMS payload missing required OTP code")
        sender.send_otp(payload.to or "", payload.code, payload.template)
        logger.info("SMS dispatched to %s", payload.to)

    return handle_sms


def build_default_handlers(sms_sender: SmsSender) -> Dict[str, Handler]:
    handlers: Dict[str, Handler] = {"sms": make_sms_handler(sms_sender)}
    for message_type in NOTIFICATION_TEMPLATES:
        handlers[message_type] = handle_notification
    return handlers
