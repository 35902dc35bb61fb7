"""Wallet request/response schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TopUpRequest(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=18, decimal_places=2)
    gateway: str = Field(min_length=1, max_length=32)
    callback_url: Optional[str] = None


class ConfirmTopUpRequest(BaseModel):
    transaction_id: Optional[str] = None
    signature: Optional[str] = None


class WithdrawalRequest(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=18, decimal_places=2)
    payment_method: str = Field(default="bank_transfer", max_length=32)
    notes: Optional[str] = Field(default=None, max_length=2000)


class FailWithdrawalRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=1000)


class WalletResponse(BaseModel):
    id: int
    balance: Decimal
    currency: str

    model_config = ConfigDict(from_attributes=True)


class TopUpResponse(BaseModel):
    id: int
    amount: Decimal
    currency: str
    channel: str
    status: str
    payment_url: Optional[str] = None
    requested_at: datetime
    confirmed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class WithdrawalResponse(BaseModel):
    id: int
    amount: Decimal
    currency: str
    channel: str
    status: str
    reference: str
    requested_at: datetime
    settled_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    failure_reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
