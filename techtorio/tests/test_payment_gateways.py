from __future__ import annotations

import hashlib
import hmac
from datetime import datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

pytestmark = pytest.mark.unit

from techtorio.infrastructure.payments import (
    PaymentGateway,
    PaymentGatewayError,
    PaymentGatewayType,
    get_payment_gateway,
    parse_gateway_type,
    register_gateway,
)
from techtorio.infrastructure.payments.easypaisa import EasypaisaGateway, canonical_payload
from techtorio.infrastructure.payments.factory import _REGISTRY
from techtorio.infrastructure.payments.jazzcash import (
    JazzCashGateway,
    compute_secure_hash,
    format_amount,
    generate_transaction_reference,
)

CONFIG = {
    "JAZZCASH_MERCHANT_ID": "MC123",
    "JAZZCASH_PASSWORD": "pw",
    "JAZZCASH_INTEGRITY_SALT": "salt",
    "JAZZCASH_API_BASE_URL": "https://sandbox.jazzcash.com.pk",
    "EASYPAISA_MERCHANT_ID": "EP1",
    "EASYPAISA_API_KEY": "key",
    "EASYPAISA_SECRET": "ep-secret",
    "EASYPAISA_API_BASE_URL": "https://easypaisa.example/api",
}


def _response(ok: bool = True, payload: dict | None = None, status: int = 200) -> MagicMock:
    resp = MagicMock(ok=ok, status_code=status)
    resp.json.return_value = payload or {}
    if ok:
        resp.raise_for_status.return_value = None
    else:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return resp


def test_factory_builds_each_gateway_type():
    assert isinstance(get_payment_gateway("jazzcash", CONFIG), JazzCashGateway)
    assert isinstance(get_payment_gateway(" EasyPaisa ", CONFIG), EasypaisaGateway)
    assert isinstance(get_payment_gateway(PaymentGatewayType.JAZZCASH, CONFIG), JazzCashGateway)


def test_factory_rejects_unknown_type():
    with pytest.raises(ValueError, match="Unsupported payment gateway"):
        get_payment_gateway("paypal", CONFIG)
    with pytest.raises(ValueError):
        parse_gateway_type("")


def test_factory_uses_app_config_by_default(app):
    app.config["JAZZCASH_MERCHANT_ID"] = "FROM-APP"
    with app.app_context():
        gateway = get_payment_gateway("jazzcash")
    assert gateway.merchant_id == "FROM-APP"


def test_register_gateway_overrides_builder():
    original = _REGISTRY[PaymentGatewayType.EASYPAISA]
    fake = MagicMock(spec=PaymentGateway)
    try:
        register_gateway(PaymentGatewayType.EASYPAISA, lambda config: fake)
        assert get_payment_gateway("easypaisa", CONFIG) is fake
    finally:
        register_gateway(PaymentGatewayType.EASYPAISA, original)


def test_jazzcash_amount_and_reference_formats():
    assert format_amount(Decimal("1500.50")) == "150050"
    assert format_amount(Decimal("20")) == "2000"
    assert generate_transaction_reference(datetime(2025, 1, 2, 3, 4, 5)) == "T20250102030405"


def test_jazzcash_secure_hash_sorts_and_skips_empty_values():
    fields = {"pp_Amount": "1000", "pp_BankID": "", "pp_MerchantID": "MC1", "pp_SecureHash": "old", "other": "x"}

    expected = hmac.new(b"salt", b"salt&1000&MC1", hashlib.sha256).hexdigest().upper()

    assert compute_secure_hash("salt", fields) == expected


def test_jazzcash_payment_fields_are_signed():
    gateway = JazzCashGateway("MC123", "pw", "salt", "https://sandbox.jazzcash.com.pk", txn_expiry_hours=48)
    now = datetime(2025, 1, 2, 3, 4, 5)

    fields = gateway.build_payment_fields(Decimal("100"), "42", "https://app/cb", now=now)

    assert fields["pp_TxnType"] == "MWALLET"
    assert fields["pp_Amount"] == "10000"
    assert fields["pp_TxnRefNo"] == "T20250102030405"
    assert fields["pp_TxnExpiryDateTime"] == "20250104030405"
    assert fields["pp_BillReference"] == "42"
    assert gateway.verify_signature(fields, fields["pp_SecureHash"]) is True
    assert gateway.verify_signature(fields, "deadbeef") is False


def test_jazzcash_create_payment_request_returns_redirect_url():
    session = MagicMock()
    session.post.return_value = _response(payload={"pp_ResponseCode": "000"})
    gateway = JazzCashGateway("MC123", "pw", "salt", "https://sandbox.jazzcash.com.pk", session=session)

    url = gateway.create_payment_request(Decimal("100"), "42", "https://app/cb")

    assert url.startswith("https://sandbox.jazzcash.com.pk/CustomerPortal/transactionmanagement/merchantform")
    assert "pp_TxnRefNo=T" in url
    sent = session.post.call_args.kwargs["json"]
    assert sent["pp_ReturnURL"] == "https://app/cb"


def test_jazzcash_create_payment_request_raises_on_failure_code():
    session = MagicMock()
    session.post.return_value = _response(payload={"pp_ResponseCode": "124", "pp_ResponseMessage": "Declined"})
    gateway = JazzCashGateway("MC123", "pw", "salt", "https://sandbox.jazzcash.com.pk", session=session)

    with pytest.raises(PaymentGatewayError, match="Declined"):
        gateway.create_payment_request(Decimal("100"), "42", "")


def test_jazzcash_confirm_payment_checks_status_and_signature():
    status = {"pp_ResponseCode": "000", "pp_TxnRefNo": "T1", "pp_Amount": "10000"}
    session = MagicMock()
    session.post.return_value = _response(payload=status)
    gateway = JazzCashGateway("MC123", "pw", "salt", "https://sandbox.jazzcash.com.pk", session=session)

    assert gateway.confirm_payment("T1", compute_secure_hash("salt", status)) is True
    assert gateway.confirm_payment("T1", "bad") is False

    session.post.return_value = _response(ok=False, status=503)
    assert gateway.confirm_payment("T1", compute_secure_hash("salt", status)) is False


def test_jazzcash_release_and_refund():
    session = MagicMock()
    session.post.return_value = _response(payload={"pp_ResponseCode": "000"})
    gateway = JazzCashGateway("MC123", "pw", "salt", "https://sandbox.jazzcash.com.pk", session=session)

    assert gateway.release_funds("T1", Decimal("10")) is True
    session.post.assert_not_called()
    assert gateway.refund_payment("T1", Decimal("10")) is True
    assert session.post.call_args.kwargs["json"]["pp_Amount"] == "1000"


def test_easypaisa_create_payment_request():
    session = MagicMock()
    session.post.return_value = _response(payload={"PaymentUrl": "https://pay.easypaisa/abc"})
    gateway = EasypaisaGateway("EP1", "key", "secret", "https://easypaisa.example/api/", session=session)

    url = gateway.create_payment_request(Decimal("250.00"), "7", "https://app/cb")

    assert url == "https://pay.easypaisa/abc"
    args, kwargs = session.post.call_args
    assert args[0] == "https://easypaisa.example/api/create-payment"
    assert kwargs["json"]["Amount"] == "250.00"
    assert kwargs["json"]["CustomerId"] == "7"


def test_easypaisa_errors_are_wrapped():
    session = MagicMock()
    session.post.side_effect = requests.ConnectionError("down")
    gateway = EasypaisaGateway("EP1", "key", "secret", "https://easypaisa.example/api", session=session)

    with pytest.raises(PaymentGatewayError):
        gateway.create_payment_request(Decimal("1"), "7", "")

    session.post.side_effect = None
    session.post.return_value = _response(ok=False, status=400)
    with pytest.raises(PaymentGatewayError, match="400"):
        gateway.create_payment_request(Decimal("1"), "7", "")
    assert gateway.refund_payment("tx", Decimal("1")) is False


def test_easypaisa_signature_verification():
    gateway = EasypaisaGateway("EP1", "key", "secret", "https://easypaisa.example/api", session=MagicMock())
    payload = {"b": "2", "a": "1"}

    assert canonical_payload(payload) == "a=1&b=2"
    signature = gateway.sign(payload)
    assert gateway.verify_signature(payload, signature) is True
    assert gateway.verify_signature(payload, signature.upper()) is True
    assert gateway.verify_signature("a=1&b=2", signature) is True
    assert gateway.verify_signature(payload, "0" * 64) is False

    unsigned = EasypaisaGateway("EP1", "key", "", "https://easypaisa.example/api", session=MagicMock())
    assert unsigned.verify_signature(payload, signature) is False
