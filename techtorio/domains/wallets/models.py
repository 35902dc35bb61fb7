"""Wallet ledger, top-ups and withdrawals."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Mapped, mapped_column, relationship

from techtorio.core.users.models import TimestampMixin
from techtorio.extensions import db

TXN_CREDIT = "credit"
TXN_DEBIT = "debit"

TOPUP_PENDING = "pending"
TOPUP_CONFIRMED = "confirmed"
TOPUP_FAILED = "failed"

WITHDRAWAL_PENDING = "pending"
WITHDRAWAL_SETTLED = "settled"
WITHDRAWAL_FAILED = "failed"

CHANNEL_BANK_TRANSFER = "BankTransfer"
CHANNEL_JAZZCASH = "JazzCash"
CHANNEL_EASYPAISA = "Easypaisa"


class Wallet(db.Model, TimestampMixin):
    __tablename__ = "wallet"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), unique=True, nullable=False)
    balance: Mapped[Decimal] = mapped_column(db.Numeric(18, 2), default=Decimal("0"), nullable=False)
    currency: Mapped[str] = mapped_column(db.String(3), default="PKR", nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True)

    transactions = relationship("WalletTransaction", backref="wallet", lazy="dynamic")


class WalletTransaction(db.Model):
    __tablename__ = "wallet_transaction"

    id: Mapped[int] = mapped_column(primary_key=True)
    wallet_id: Mapped[int] = mapped_column(db.ForeignKey("wallet.id"), nullable=False, index=True)
    type: Mapped[str] = mapped_column(db.String(16), nullable=False)
    amount: Mapped[Decimal] = mapped_column(db.Numeric(18, 2), nullable=False)
    balance_after: Mapped[Decimal] = mapped_column(db.Numeric(18, 2), nullable=False)
    reason: Mapped[str] = mapped_column(db.String(255), default="")
    reference_id: Mapped[int | None] = mapped_column(nullable=True)
    reference_type: Mapped[str | None] = mapped_column(db.String(32))
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)


class TopUp(db.Model):
    __tablename__ = "top_up"

    id: Mapped[int] = mapped_column(primary_key=True)
    wallet_id: Mapped[int] = mapped_column(db.ForeignKey("wallet.id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(db.Numeric(18, 2), nullable=False)
    currency: Mapped[str] = mapped_column(db.String(3), default="PKR")
    channel: Mapped[str] = mapped_column(db.String(32), nullable=False)
    status: Mapped[str] = mapped_column(db.String(16), default=TOPUP_PENDING, index=True)
    external_reference: Mapped[str | None] = mapped_column(db.String(128))
    payment_url: Mapped[str | None] = mapped_column(db.String(512))
    failure_reason: Mapped[str | None] = mapped_column(db.Text)
    requested_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    confirmed_at: Mapped[datetime | None] = mapped_column(nullable=True)


class Withdrawal(db.Model):
    __tablename__ = "withdrawal"

    id: Mapped[int] = mapped_column(primary_key=True)
    wallet_id: Mapped[int] = mapped_column(db.ForeignKey("wallet.id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(db.Numeric(18, 2), nullable=False)
    currency: Mapped[str] = mapped_column(db.String(3), default="PKR")
    channel: Mapped[str] = mapped_column(db.String(32), nullable=False)
    status: Mapped[str] = mapped_column(db.String(16), default=WITHDRAWAL_PENDING, index=True)
    reference: Mapped[str] = mapped_column(db.String(64), unique=True, nullable=False)
    notes: Mapped[str | None] = mapped_column(db.Text)
    failure_reason: Mapped[str | None] = mapped_column(db.Text)
    requested_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    settled_at: Mapped[datetime | None] = mapped_column(nullable=True)
    failed_at: Mapped[datetime | None] = mapped_column(nullable=True)
