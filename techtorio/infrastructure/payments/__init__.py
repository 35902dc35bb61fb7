"""Payment gateway integrations (JazzCash, Easypaisa)."""

from techtorio.infrastructure.payments.base import PaymentGateway, PaymentGatewayError
from techtorio.infrastructure.payments.factory import (
    PaymentGatewayType,
    get_payment_gateway,
    parse_gateway_type,
    register_gateway,
)

__all__ = [
    "PaymentGateway",
    "PaymentGatewayError",
    "PaymentGatewayType",
    "get_payment_gateway",
    "parse_gateway_type",
    "register_gateway",
]
