"""JazzCash mobile wallet gateway."""

from __future__ import annotations

import hashlib
import hmac
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

import requests

from techtorio.infrastructure.payments.base import PaymentGateway, PaymentGatewayError, SignaturePayload

logger = logging.getLogger(__name__)

SUCCESS_CODE = "000"
MERCHANT_FORM_PATH = "/CustomerPortal/transactionmanagement/merchantform"
INQUIRY_PATH = "/ApplicationAPI/API/2.0/Purchase/DoInquiryTransaction"
REFUND_PATH = "/ApplicationAPI/API/2.0/Purchase/DoRefund"


def format_amount(amount: Decimal) -> str:
    """JazzCash expects the amount in paisa with no decimal point."""
    return str(int(Decimal(amount) * 100))


def format_datetime(value: datetime) -> str:
    return value.strftime("%Y%m%d%H%M%S")


def generate_transaction_reference(now: Optional[datetime] = None) -> str:
    return "T" + format_datetime(now or datetime.now())


def compute_secure_hash(integrity_salt: str, fields: Mapping[str, Any]) -> str:
    """
    ``pp_SecureHash``: HMAC-SHA256 keyed by the integrity salt over the salt and
    the non-empty ``pp*`` values in key order, joined by ``&``. Upper-case hex.
    """
    values = [
        str(fields[key])
        for key in sorted(fields)
        if key.lower().startswith("pp") and key != "pp_SecureHash" and str(fields[key] or "") != ""
    ]
    message = "&".join([integrity_salt, *values])
    return hmac.new(integrity_salt.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest().upper()


class JazzCashGateway(PaymentGateway):
    name = "jazzcash"

    def __init__(
        self,
        merchant_id: str,
        password: str,
        integrity_salt: str,
        api_base_url: str,
        return_url: str = "",
        currency: str = "PKR",
        language: str = "EN",
        txn_expiry_hours: int = 48,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.merchant_id = merchant_id
        self.password = password
        self.integrity_salt = integrity_salt
        self.api_base_url = api_base_url.rstrip("/")
        self.return_url = return_url
        self.currency = currency
        self.language = language
        self.txn_expiry_hours = txn_expiry_hours
        self.timeout = timeout
        self.http = session or requests.Session()

    def _signed(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        fields["pp_SecureHash"] = compute_secure_hash(self.integrity_salt, fields)
        return fields

    def _post(self, path: str, body: Mapping[str, Any]) -> Dict[str, Any]:
        try:
            resp = self.http.post(f"{self.api_base_url}{path}", json=dict(body), timeout=self.timeout)
            resp.raise_for_status()
            return resp.json() or {}
        except requests.RequestException as exc:
            logger.error("JazzCash request to %s failed: %s", path, exc)
            raise PaymentGatewayError(f"JazzCash request failed: {exc}") from exc

    def build_payment_fields(
        self,
        amount: Decimal,
        customer_id: str,
        callback_url: str,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        now = now or datetime.now()
        fields: Dict[str, Any] = {
            "pp_Version": "1.1",
            "pp_TxnType": "MWALLET",
            "pp_Language": self.language,
            "pp_MerchantID": self.merchant_id,
            "pp_SubMerchantID": "",
            "pp_Password": self.password,
            "pp_BankID": "",
            "pp_ProductID": "",
            "pp_TxnRefNo": generate_transaction_reference(now),
            "pp_Amount": format_amount(amount),
            "pp_TxnCurrency": self.currency,
            "pp_TxnDateTime": format_datetime(now),
            "pp_BillReference": customer_id,
            "pp_Description": f"Payment for customer {customer_id}",
            "pp_TxnExpiryDateTime": format_datetime(now + timedelta(hours=self.txn_expiry_hours)),
            "pp_ReturnURL": callback_url or self.return_url,
            "ppmpf_1": "",
            "ppmpf_2": "",
            "ppmpf_3": "",
            "ppmpf_4": "",
            "ppmpf_5": "",
        }
        return self._signed(fields)

    def create_payment_request(self, amount: Decimal, customer_id: str, callback_url: str) -> str:
        fields = self.build_payment_fields(amount, customer_id, callback_url)
        logger.info("Sending JazzCash payment request %s", fields["pp_TxnRefNo"])
        result = self._post(MERCHANT_FORM_PATH, fields)
        if result.get("pp_ResponseCode") != SUCCESS_CODE:
            raise PaymentGatewayError(f"JazzCash payment failed: {result.get('pp_ResponseMessage')}")
        return f"{self.api_base_url}{MERCHANT_FORM_PATH}?pp_TxnRefNo={fields['pp_TxnRefNo']}"

    def get_transaction_status(self, transaction_id: str) -> Dict[str, Any]:
        fields = self._signed(
            {
                "pp_TxnRefNo": transaction_id,
                "pp_MerchantID": self.merchant_id,
                "pp_Password": self.password,
                "pp_Version": "1.1",
            }
        )
        return self._post(INQUIRY_PATH, fields)

    def confirm_payment(self, transaction_id: str, signature: str) -> bool:
        try:
            status = self.get_transaction_status(transaction_id)
        except PaymentGatewayError:
            logger.exception("JazzCash confirmation failed for %s", transaction_id)
            return False
        if status.get("pp_ResponseCode") != SUCCESS_CODE:
            logger.warning("JazzCash payment %s not successful: %s", transaction_id, status.get("pp_ResponseMessage"))
            return False
        return self.verify_signature(status, signature)

    def release_funds(self, transaction_id: str, amount: Decimal) -> bool:
        # Settled automatically once the wallet transaction succeeds.
        logger.info("JazzCash funds released automatically for %s", transaction_id)
        return True

    def refund_payment(self, transaction_id: str, amount: Decimal) -> bool:
        fields = self._signed(
            {
                "pp_TxnRefNo": transaction_id,
                "pp_Amount": format_amount(amount),
                "pp_TxnCurrency": self.currency,
                "pp_MerchantID": self.merchant_id,
                "pp_Password": self.password,
            }
        )
        try:
            result = self._post(REFUND_PATH, fields)
        except PaymentGatewayError:
            logger.exception("JazzCash refund failed for %s", transaction_id)
            return False
        return result.get("pp_ResponseCode") == SUCCESS_CODE

    def verify_signature(self, payload: SignaturePayload, signature: str) -> bool:
        if not signature:
            return False
        if isinstance(payload, str):
            message = f"{self.integrity_salt}&{payload}"
            expected = hmac.new(
                self.integrity_salt.encode("utf-8"), message.encode("utf-8"), hashlib.sha256
            ).hexdigest().upper()
        else:
            expected = compute_secure_hash(self.integrity_salt, payload)
        return hmac.compare_digest(expected, signature.strip().upper())
