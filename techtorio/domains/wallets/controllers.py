"""Wallet controllers (API)."""

from __future__ import annotations

from decimal import Decimal

from flask import Blueprint, current_app, jsonify
from flask_jwt_extended import jwt_required

from techtorio.core.auth.models import ADMIN_ROLE
from techtorio.core.utils.decorators import current_user_id, require_roles
from techtorio.core.utils.validation import parse_body
from techtorio.domains.wallets.models import TopUp
from techtorio.domains.wallets.schemas import (
    ConfirmTopUpRequest,
    FailWithdrawalRequest,
    TopUpRequest,
    TopUpResponse,
    WalletResponse,
    WithdrawalRequest,
    WithdrawalResponse,
)
from techtorio.domains.wallets.services import (
    InsufficientFundsError,
    InvalidStateError,
    NotFoundError,
    WalletError,
    confirm_topup,
    fail_withdrawal,
    get_wallet,
    initiate_topup,
    request_withdrawal,
    settle_withdrawal,
)
from techtorio.extensions import db
from techtorio.infrastructure.payments import PaymentGatewayError, get_payment_gateway

wallets_bp = Blueprint("wallets_api", __name__)
admin_withdrawals_bp = Blueprint("admin_withdrawals_api", __name__)


def _error_response(exc: WalletError):
    if isinstance(exc, NotFoundError):
        return jsonify({"ok": False, "error": "not_found"}), 404
    if isinstance(exc, InsufficientFundsError):
        return jsonify({"ok": False, "error": "insufficient_funds"}), 400
    if isinstance(exc, InvalidStateError):
        return jsonify({"ok": False, "error": "invalid_state", "detail": str(exc)}), 409
    return jsonify({"ok": False, "error": str(exc)}), 400


def _dump(schema, obj) -> dict:
    return schema.model_validate(obj).model_dump(mode="json")


@wallets_bp.get("/me")
@jwt_required()
def api_my_wallet():
    wallet = get_wallet(current_user_id())
    if wallet is None:
        empty = {"id": None, "balance": "0.00", "currency": current_app.config["DEFAULT_CURRENCY"]}
        return jsonify({"ok": True, "wallet": empty})
    return jsonify({"ok": True, "wallet": _dump(WalletResponse, wallet)})


@wallets_bp.post("/topups")
@jwt_required()
def api_create_topup():
    data = parse_body(TopUpRequest)
    try:
        gateway = get_payment_gateway(data.gateway)
    except ValueError:
        return jsonify({"ok": False, "error": "unsupported_gateway"}), 400

    callback_url = data.callback_url or f"{current_app.config['APP_BASE_URL']}/wallet/topups/callback"
    try:
        topup = initiate_topup(
            current_user_id(),
            data.amount,
            gateway,
            callback_url,
            currency=current_app.config["DEFAULT_CURRENCY"],
        )
    except PaymentGatewayError as exc:
        current_app.logger.warning("Top-up initiation failed: %s", exc)
        return jsonify({"ok": False, "error": "gateway_error"}), 502
    except WalletError as exc:
        return _error_response(exc)
    return jsonify({"ok": True, "topup": _dump(TopUpResponse, topup)}), 201


@wallets_bp.post("/topups/<int:topup_id>/confirm")
@jwt_required()
def api_confirm_topup(topup_id: int):
    data = parse_body(ConfirmTopUpRequest)
    topup = db.session.get(TopUp, topup_id)
    if topup is None or topup.user_id != current_user_id():
        return jsonify({"ok": False, "error": "not_found"}), 404

    if data.transaction_id:
        try:
            gateway = get_payment_gateway(topup.channel)
        except ValueError:
            return jsonify({"ok": False, "error": "unsupported_gateway"}), 400
        if not gateway.confirm_payment(data.transaction_id, data.signature or ""):
            return jsonify({"ok": False, "error": "payment_not_confirmed"}), 402
    try:
        topup = confirm_topup(topup_id, external_reference=data.transaction_id)
    except WalletError as exc:
        return _error_response(exc)
    return jsonify({"ok": True, "topup": _dump(TopUpResponse, topup)})


@wallets_bp.post("/withdrawals")
@jwt_required()
def api_request_withdrawal():
    data = parse_body(WithdrawalRequest)
    try:
        withdrawal = request_withdrawal(
            current_user_id(),
            Decimal(data.amount),
            data.payment_method,
            notes=data.notes,
            currency=current_app.config["DEFAULT_CURRENCY"],
        )
    except WalletError as exc:
        return _error_response(exc)
    return jsonify({"ok": True, "withdrawal": _dump(WithdrawalResponse, withdrawal)}), 201


@admin_withdrawals_bp.post("/<int:withdrawal_id>/settle")
@require_roles([ADMIN_ROLE])
def api_settle_withdrawal(withdrawal_id: int):
    try:
        withdrawal = settle_withdrawal(withdrawal_id)
    except WalletError as exc:
        return _error_response(exc)
    return jsonify({"ok": True, "withdrawal": _dump(WithdrawalResponse, withdrawal)})


@admin_withdrawals_bp.post("/<int:withdrawal_id>/fail")
@require_roles([ADMIN_ROLE])
def api_fail_withdrawal(withdrawal_id: int):
    data = parse_body(FailWithdrawalRequest)
    try:
        withdrawal = fail_withdrawal(withdrawal_id, data.reason)
    except WalletError as exc:
        return _error_response(exc)
    return jsonify({"ok": True, "withdrawal": _dump(WithdrawalResponse, withdrawal)})
