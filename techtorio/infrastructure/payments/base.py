"""Common interface for regional payment gateways."""

from __future__ import annotations

import abc
from decimal import Decimal
from typing import Any, Mapping, Union

SignaturePayload = Union[str, Mapping[str, Any]]


class PaymentGatewayError(Exception):
    """Raised when a gateway rejects a request or cannot be reached."""

    pass


class PaymentGateway(abc.ABC):
    """Operations every wallet top-up gateway must provide."""

    name: str = "gateway"

    @abc.abstractmethod
    def create_payment_request(self, amount: Decimal, customer_id: str, callback_url: str) -> str:
        """Start a payment and return the URL the customer is sent to."""

    @abc.abstractmethod
    def confirm_payment(self, transaction_id: str, signature: str) -> bool:
        ...

    @abc.abstractmethod
    def release_funds(self, transaction_id: str, amount: Decimal) -> bool:
        ...

    @abc.abstractmethod
    def refund_payment(self, transaction_id: str, amount: Decimal) -> bool:
        ...

    @abc.abstractmethod
    def verify_signature(self, payload: SignaturePayload, signature: str) -> bool:
        """Check a callback signature against the gateway secret."""
