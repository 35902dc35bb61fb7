"""Easypaisa REST gateway."""

from __future__ import annotations

import hashlib
import hmac
import logging
from decimal import Decimal
from typing import Any, Mapping, Optional

import requests

from techtorio.infrastructure.payments.base import PaymentGateway, PaymentGatewayError, SignaturePayload

logger = logging.getLogger(__name__)


def canonical_payload(payload: SignaturePayload) -> str:
    """Render a mapping as sorted ``key=value`` pairs joined by ``&``."""
    if isinstance(payload, str):
        return payload
    return "&".join(f"{key}={payload[key]}" for key in sorted(payload))


class EasypaisaGateway(PaymentGateway):
    name = "easypaisa"

    def __init__(
        self,
        merchant_id: str,
        api_key: str,
        secret: str,
        api_base_url: str,
        callback_url: str = "",
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.merchant_id = merchant_id
        self.api_key = api_key
        self.secret = secret
        self.api_base_url = api_base_url.rstrip("/")
        self.callback_url = callback_url
        self.timeout = timeout
        self.http = session or requests.Session()

    def _post(self, path: str, body: Mapping[str, Any]) -> requests.Response:
        url = f"{self.api_base_url}{path}"
        logger.info("Easypaisa request %s", path)
        try:
            resp = self.http.post(url, json=dict(body), timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("Easypaisa request to %s failed: %s", path, exc)
            raise PaymentGatewayError(f"Easypaisa request failed: {exc}") from exc
        logger.info("Easypaisa response %s: %s", path, resp.status_code)
        return resp

    def create_payment_request(self, amount: Decimal, customer_id: str, callback_url: str) -> str:
        resp = self._post(
            "/create-payment",
            {
                "MerchantId": self.merchant_id,
                "ApiKey": self.api_key,
                "Amount": str(amount),
                "CustomerId": customer_id,
                "CallbackUrl": callback_url or self.callback_url,
            },
        )
        if not resp.ok:
            raise PaymentGatewayError(f"Easypaisa create-payment failed: {resp.status_code}")
        data = resp.json() or {}
        return data.get("PaymentUrl") or data.get("paymentUrl") or ""

    def confirm_payment(self, transaction_id: str, signature: str) -> bool:
        resp = self._post("/confirm-payment", {"TransactionId": transaction_id, "Signature": signature})
        return resp.ok

    def release_funds(self, transaction_id: str, amount: Decimal) -> bool:
        resp = self._post("/release-funds", {"TransactionId": transaction_id, "Amount": str(amount)})
        return resp.ok

    def refund_payment(self, transaction_id: str, amount: Decimal) -> bool:
        resp = self._post("/refund-payment", {"TransactionId": transaction_id, "Amount": str(amount)})
        return resp.ok

    def sign(self, payload: SignaturePayload) -> str:
        return hmac.new(
            self.secret.encode("utf-8"), canonical_payload(payload).encode("utf-8"), hashlib.sha256
        ).hexdigest()

    def verify_signature(self, payload: SignaturePayload, signature: str) -> bool:
        if not self.secret or not signature:
            return False
        return hmac.compare_digest(self.sign(payload), signature.strip().lower())
