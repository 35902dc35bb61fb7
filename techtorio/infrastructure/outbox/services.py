"""Outbox producer helpers."""

from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from techtorio.extensions import db
from techtorio.infrastructure.outbox.models import OutboxMessage

TYPE_SMS = "sms"
TYPE_WITHDRAWAL_INITIATED = "WithdrawalInitiated"
TYPE_WITHDRAWAL_PENDING_APPROVAL = "WithdrawalPendingApproval"
TYPE_WITHDRAWAL_SETTLED = "WithdrawalSettled"
TYPE_WITHDRAWAL_FAILED = "WithdrawalFailed"
TYPE_WITHDRAWAL_REVERSED = "WithdrawalReversed"
TYPE_TOPUP_CONFIRMED = "TopUpConfirmed"


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def serialize_payload(payload: Mapping[str, Any] | None) -> str:
    return json.dumps(dict(payload or {}), default=_json_default)


def enqueue(
    message_type: str,
    payload: Mapping[str, Any] | None,
    occurred_on: Optional[datetime] = None,
) -> OutboxMessage:
    """
    Stage a message in the outbox. Caller should commit alongside domain changes.
    """
    message = OutboxMessage(
        type=message_type,
        payload=serialize_payload(payload),
        occurred_on=occurred_on or datetime.utcnow(),
        processed=False,
        retry_count=0,
    )
    db.session.add(message)
    return message


def enqueue_sms(to: str, code: str, template: Optional[str] = None) -> OutboxMessage:
    """Stage an OTP SMS; the code is fixed here and reused by every retry."""
    return enqueue(TYPE_SMS, {"To": to, "Code": code, "Template": template})
