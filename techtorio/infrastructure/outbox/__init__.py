"""Transactional outbox model and producer helpers."""

from techtorio.infrastructure.outbox.models import OutboxMessage
from techtorio.infrastructure.outbox.services import (
    TYPE_SMS,
    TYPE_TOPUP_CONFIRMED,
    TYPE_WITHDRAWAL_FAILED,
    TYPE_WITHDRAWAL_INITIATED,
    TYPE_WITHDRAWAL_PENDING_APPROVAL,
    TYPE_WITHDRAWAL_REVERSED,
    TYPE_WITHDRAWAL_SETTLED,
    enqueue,
    enqueue_sms,
    serialize_payload,
)

__all__ = [
    "OutboxMessage",
    "enqueue",
    "enqueue_sms",
    "serialize_payload",
    "TYPE_SMS",
    "TYPE_TOPUP_CONFIRMED",
    "TYPE_WITHDRAWAL_FAILED",
    "TYPE_WITHDRAWAL_INITIATED",
    "TYPE_WITHDRAWAL_PENDING_APPROVAL",
    "TYPE_WITHDRAWAL_REVERSED",
    "TYPE_WITHDRAWAL_SETTLED",
]
