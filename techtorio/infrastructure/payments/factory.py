"""Resolve a configured payment gateway by type."""

from __future__ import annotations

import enum
from typing import Any, Callable, Dict, Mapping, Optional

from flask import current_app

from techtorio.infrastructure.payments.base import PaymentGateway
from techtorio.infrastructure.payments.easypaisa import EasypaisaGateway
from techtorio.infrastructure.payments.jazzcash import JazzCashGateway


class PaymentGatewayType(enum.Enum):
    JAZZCASH = "jazzcash"
    EASYPAISA = "easypaisa"


GatewayBuilder = Callable[[Mapping[str, Any]], PaymentGateway]


def _build_jazzcash(config: Mapping[str, Any]) -> PaymentGateway:
    return JazzCashGateway(
        merchant_id=config.get("JAZZCASH_MERCHANT_ID", ""),
        password=config.get("JAZZCASH_PASSWORD", ""),
        integrity_salt=config.get("JAZZCASH_INTEGRITY_SALT", ""),
        api_base_url=config.get("JAZZCASH_API_BASE_URL", ""),
        return_url=config.get("JAZZCASH_RETURN_URL", ""),
        currency=config.get("DEFAULT_CURRENCY", "PKR"),
        txn_expiry_hours=int(config.get("JAZZCASH_TXN_EXPIRY_HOURS", 48)),
    )


def _build_easypaisa(config: Mapping[str, Any]) -> PaymentGateway:
    return EasypaisaGateway(
        merchant_id=config.get("EASYPAISA_MERCHANT_ID", ""),
        api_key=config.get("EASYPAISA_API_KEY", ""),
        secret=config.get("EASYPAISA_SECRET", ""),
        api_base_url=config.get("EASYPAISA_API_BASE_URL", ""),
        callback_url=config.get("EASYPAISA_CALLBACK_URL", ""),
    )


_REGISTRY: Dict[PaymentGatewayType, GatewayBuilder] = {
    PaymentGatewayType.JAZZCASH: _build_jazzcash,
    PaymentGatewayType.EASYPAISA: _build_easypaisa,
}


def register_gateway(gateway_type: PaymentGatewayType, builder: GatewayBuilder) -> None:
    _REGISTRY[gateway_type] = builder


def parse_gateway_type(value: "str | PaymentGatewayType") -> PaymentGatewayType:
    if isinstance(value, PaymentGatewayType):
        return value
    try:
        return PaymentGatewayType(str(value).strip().lower())
    except ValueError as exc:
        raise ValueError(f"Unsupported payment gateway: {value}") from exc


def get_payment_gateway(
    gateway_type: "str | PaymentGatewayType",
    config: Optional[Mapping[str, Any]] = None,
) -> PaymentGateway:
    """Build the gateway for ``gateway_type`` from config (defaults to the app config)."""
    resolved = parse_gateway_type(gateway_type)
    builder = _REGISTRY.get(resolved)
    if builder is None:
        raise ValueError(f"Unsupported payment gateway: {resolved.value}")
    return builder(config if config is not None else current_app.config)
