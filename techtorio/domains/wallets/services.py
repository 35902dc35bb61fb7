"""Wallet services; every balance change stages its outbox notifications in the same commit."""

from __future__ import annotations

import logging
import secrets
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from techtorio.core.auth.models import ADMIN_ROLE, Role
from techtorio.core.users.models import User
from techtorio.domains.wallets.models import (
    CHANNEL_BANK_TRANSFER,
    CHANNEL_EASYPAISA,
    CHANNEL_JAZZCASH,
    TOPUP_CONFIRMED,
    TOPUP_FAILED,
    TOPUP_PENDING,
    TXN_CREDIT,
    TXN_DEBIT,
    WITHDRAWAL_FAILED,
    WITHDRAWAL_PENDING,
    WITHDRAWAL_SETTLED,
    TopUp,
    Wallet,
    WalletTransaction,
    Withdrawal,
)
from techtorio.extensions import db
from techtorio.infrastructure.outbox import (
    TYPE_TOPUP_CONFIRMED,
    TYPE_WITHDRAWAL_FAILED,
    TYPE_WITHDRAWAL_INITIATED,
    TYPE_WITHDRAWAL_PENDING_APPROVAL,
    TYPE_WITHDRAWAL_SETTLED,
    enqueue,
)
from techtorio.infrastructure.payments import PaymentGateway

logger = logging.getLogger(__name__)


class WalletError(Exception):
    """Base error for wallet operations."""

    pass


class InsufficientFundsError(WalletError):
    pass


class InvalidStateError(WalletError):
    pass


class NotFoundError(WalletError):
    pass


_CHANNELS = {
    "bank_transfer": CHANNEL_BANK_TRANSFER,
    "banktransfer": CHANNEL_BANK_TRANSFER,
    "jazzcash": CHANNEL_JAZZCASH,
    "easypaisa": CHANNEL_EASYPAISA,
}


def map_channel(method: str) -> str:
    """Unknown payment methods fall back to bank transfer."""
    return _CHANNELS.get((method or "").strip().lower(), CHANNEL_BANK_TRANSFER)


def _positive(amount: Decimal) -> Decimal:
    value = Decimal(amount)
    if value <= 0:
        raise WalletError("Amount must be positive")
    return value


def get_wallet(user_id: int, for_update: bool = False) -> Optional[Wallet]:
    query = Wallet.query.filter_by(user_id=user_id)
    if for_update:
        # SELECT ... FOR UPDATE and overwrite whatever the session already holds
        query = query.with_for_update().populate_existing()
    return query.first()


def _locked(model, pk: int):
    return db.session.get(model, pk, with_for_update=True, populate_existing=True)


def get_or_create_wallet(user_id: int, currency: str = "PKR", for_update: bool = False) -> Wallet:
    wallet = get_wallet(user_id, for_update=for_update)
    if wallet is None:
        wallet = Wallet(user_id=user_id, balance=Decimal("0"), currency=currency, is_active=True)
        db.session.add(wallet)
        db.session.flush()
    return wallet


def credit_wallet(
    wallet: Wallet,
    amount: Decimal,
    reason: str,
    reference_id: Optional[int] = None,
    reference_type: Optional[str] = None,
) -> WalletTransaction:
    value = _positive(amount)
    wallet.balance = Decimal(wallet.balance or 0) + value
    txn = WalletTransaction(
        wallet_id=wallet.id,
        type=TXN_CREDIT,
        amount=value,
        balance_after=wallet.balance,
        reason=reason,
        reference_id=reference_id,
        reference_type=reference_type,
    )
    db.session.add(txn)
    return txn


def debit_wallet(
    wallet: Wallet,
    amount: Decimal,
    reason: str,
    reference_id: Optional[int] = None,
    reference_type: Optional[str] = None,
) -> WalletTransaction:
    value = _positive(amount)
    if Decimal(wallet.balance or 0) < value:
        raise InsufficientFundsError("Insufficient balance")
    wallet.balance = Decimal(wallet.balance) - value
    txn = WalletTransaction(
        wallet_id=wallet.id,
        type=TXN_DEBIT,
        amount=value,
        balance_after=wallet.balance,
        reason=reason,
        reference_id=reference_id,
        reference_type=reference_type,
    )
    db.session.add(txn)
    return txn


def initiate_topup(
    user_id: int,
    amount: Decimal,
    gateway: PaymentGateway,
    callback_url: str,
    currency: str = "PKR",
) -> TopUp:
    value = _positive(amount)
    wallet = get_or_create_wallet(user_id, currency)
    topup = TopUp(
        wallet_id=wallet.id,
        user_id=user_id,
        amount=value,
        currency=wallet.currency,
        channel=map_channel(gateway.name),
        status=TOPUP_PENDING,
    )
    db.session.add(topup)
    db.session.flush()
    try:
        topup.payment_url = gateway.create_payment_request(value, str(topup.id), callback_url)
    except Exception:
        db.session.rollback()
        raise
    db.session.commit()
    return topup


def confirm_topup(topup_id: int, external_reference: Optional[str] = None) -> TopUp:
    topup = _locked(TopUp, topup_id)
    if topup is None:
        raise NotFoundError("Top-up not found")
    if topup.status != TOPUP_PENDING:
        raise InvalidStateError(f"Top-up is {topup.status}")

    wallet = _locked(Wallet, topup.wallet_id)
    credit_wallet(wallet, topup.amount, f"Top-up {topup.id}", topup.id, "TopUp")
    topup.status = TOPUP_CONFIRMED
    topup.confirmed_at = datetime.utcnow()
    topup.external_reference = external_reference or topup.external_reference
    enqueue(
        TYPE_TOPUP_CONFIRMED,
        {
            "UserId": topup.user_id,
            "TopUpId": topup.id,
            "Amount": topup.amount,
            "Currency": topup.currency,
            "Channel": topup.channel,
        },
    )
    db.session.commit()
    logger.info("Top-up %s confirmed for user %s", topup.id, topup.user_id)
    return topup


def fail_topup(topup_id: int, reason: str) -> TopUp:
    topup = db.session.get(TopUp, topup_id)
    if topup is None:
        raise NotFoundError("Top-up not found")
    if topup.status != TOPUP_PENDING:
        raise InvalidStateError(f"Top-up is {topup.status}")
    topup.status = TOPUP_FAILED
    topup.failure_reason = reason
    db.session.commit()
    return topup


def _admin_users() -> List[User]:
    return User.query.join(User.roles).filter(Role.name == ADMIN_ROLE, User.is_active.is_(True)).all()


def _withdrawal_payload(withdrawal: Withdrawal, user_id: int) -> dict:
    return {
        "UserId": user_id,
        "WithdrawalId": withdrawal.id,
        "Amount": withdrawal.amount,
        "Currency": withdrawal.currency,
        "Channel": withdrawal.channel,
        "RequestedAt": withdrawal.requested_at,
    }


def request_withdrawal(
    user_id: int,
    amount: Decimal,
    payment_method: str,
    notes: Optional[str] = None,
    currency: str = "PKR",
) -> Withdrawal:
    """
    Debit the wallet, record a pending withdrawal and notify the seller and every admin.
    """
    value = _positive(amount)
    wallet = get_or_create_wallet(user_id, currency, for_update=True)
    if Decimal(wallet.balance or 0) < value:
        raise InsufficientFundsError("Insufficient balance for withdrawal")

    withdrawal = Withdrawal(
        wallet_id=wallet.id,
        user_id=user_id,
        amount=value,
        currency=wallet.currency,
        channel=map_channel(payment_method),
        status=WITHDRAWAL_PENDING,
        reference=f"WD-{secrets.token_hex(6).upper()}",
        notes=notes,
        requested_at=datetime.utcnow(),
    )
    db.session.add(withdrawal)
    db.session.flush()
    debit_wallet(wallet, value, f"Withdrawal request {withdrawal.reference}", withdrawal.id, "Withdrawal")

    enqueue(TYPE_WITHDRAWAL_INITIATED, _withdrawal_payload(withdrawal, user_id))
    requester = db.session.get(User, user_id)
    requester_name = requester.full_name if requester else ""
    for admin in _admin_users():
        payload = _withdrawal_payload(withdrawal, admin.id)
        payload.update({"RequesterName": requester_name or (requester.email if requester else ""), "Notes": notes})
        enqueue(TYPE_WITHDRAWAL_PENDING_APPROVAL, payload)

    db.session.commit()
    logger.info("Withdrawal %s requested by user %s", withdrawal.reference, user_id)
    return withdrawal


def _pending_withdrawal(withdrawal_id: int) -> Withdrawal:
    withdrawal = _locked(Withdrawal, withdrawal_id)
    if withdrawal is None:
        raise NotFoundError("Withdrawal not found")
    if withdrawal.status != WITHDRAWAL_PENDING:
        raise InvalidStateError(f"Withdrawal is {withdrawal.status}")
    return withdrawal


def settle_withdrawal(withdrawal_id: int) -> Withdrawal:
    withdrawal = _pending_withdrawal(withdrawal_id)
    withdrawal.status = WITHDRAWAL_SETTLED
    withdrawal.settled_at = datetime.utcnow()
    enqueue(TYPE_WITHDRAWAL_SETTLED, _withdrawal_payload(withdrawal, withdrawal.user_id))
    db.session.commit()
    return withdrawal


def fail_withdrawal(withdrawal_id: int, reason: str) -> Withdrawal:
    """Mark failed and return the held amount to the wallet."""
    withdrawal = _pending_withdrawal(withdrawal_id)
    wallet = _locked(Wallet, withdrawal.wallet_id)
    credit_wallet(wallet, withdrawal.amount, f"Withdrawal {withdrawal.reference} failed", withdrawal.id, "Withdrawal")
    withdrawal.status = WITHDRAWAL_FAILED
    withdrawal.failed_at = datetime.utcnow()
    withdrawal.failure_reason = reason
    enqueue(TYPE_WITHDRAWAL_FAILED, _withdrawal_payload(withdrawal, withdrawal.user_id))
    db.session.commit()
    return withdrawal
