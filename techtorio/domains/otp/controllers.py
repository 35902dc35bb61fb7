"""OTP controllers (API)."""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import func

from techtorio.core.captcha.service import verify_captcha
from techtorio.core.devices.services import generate_fingerprint
from techtorio.core.email.service import EmailDeliveryError, send_otp_email
from techtorio.core.users.models import User
from techtorio.core.utils.validation import parse_body
from techtorio.domains.otp.schemas import (
    EmailOtpSendRequest,
    EmailOtpVerifyRequest,
    SmsOtpSendRequest,
    SmsOtpVerifyRequest,
)
from techtorio.domains.otp.services import email_key, get_otp_store, sms_key
from techtorio.extensions import client_identifier, db
from techtorio.infrastructure.outbox import enqueue_sms
from techtorio.infrastructure.ratelimit import rate_limited, sms_limits

logger = logging.getLogger(__name__)

otp_bp = Blueprint("otp_api", __name__)


def _device_identifier(explicit: str | None) -> str:
    if explicit:
        return explicit
    header = request.headers.get("X-Device-Id")
    if header:
        return header
    return generate_fingerprint(request.headers.get("User-Agent", ""), client_identifier())


@otp_bp.post("/sms/send")
def api_send_sms_otp():
    data = parse_body(SmsOtpSendRequest)
    if not verify_captcha(data.captcha_token, client_identifier()):
        return jsonify({"ok": False, "error": "captcha_failed"}), 400

    device_id = _device_identifier(data.device_id)
    if not sms_limits.is_allowed(device_id, data.phone_number):
        blocked_for = sms_limits.get_block_duration(device_id)
        return (
            jsonify(
                {
                    "ok": False,
                    "error": "sms_rate_limited",
                    "retry_after_seconds": int(blocked_for.total_seconds()) if blocked_for else None,
                }
            ),
            429,
        )

    config = current_app.config
    code = get_otp_store().generate_otp(
        sms_key(data.phone_number),
        length=config["OTP_LENGTH"],
        expiry_seconds=config["OTP_EXPIRY_SECONDS"],
    )
    enqueue_sms(data.phone_number, code, template="otp")
    # record_attempt commits, which also persists the staged outbox row.
    sms_limits.record_attempt(device_id, data.phone_number)
    logger.info("OTP SMS queued for %s", data.phone_number)
    return jsonify(
        {
            "ok": True,
            "expires_in": config["OTP_EXPIRY_SECONDS"],
            "remaining_attempts": sms_limits.get_remaining_attempts(device_id),
        }
    ), 202


@otp_bp.post("/sms/verify")
def api_verify_sms_otp():
    data = parse_body(SmsOtpVerifyRequest)
    if not get_otp_store().validate_otp(sms_key(data.phone_number), data.code):
        return jsonify({"ok": False, "error": "invalid_or_expired_otp"}), 400
    return jsonify({"ok": True})


@otp_bp.post("/email/send")
@rate_limited(
    "/api/otp/email/send",
    max_requests_key="OTP_EMAIL_MAX_REQUESTS",
    window_minutes_key="OTP_EMAIL_WINDOW_MINUTES",
)
def api_send_email_otp():
    data = parse_body(EmailOtpSendRequest)
    config = current_app.config
    key = email_key(data.email, data.purpose)
    if get_otp_store().is_rate_limited(
        key,
        max_attempts=config["OTP_EMAIL_MAX_REQUESTS"],
        window_seconds=config["OTP_EMAIL_WINDOW_MINUTES"] * 60,
    ):
        return jsonify({"ok": False, "error": "too_many_requests"}), 429

    code = get_otp_store().generate_otp(key, length=config["OTP_LENGTH"], expiry_seconds=config["OTP_EXPIRY_SECONDS"])
    try:
        send_otp_email(data.email, code, expiry_minutes=max(1, config["OTP_EXPIRY_SECONDS"] // 60))
    except EmailDeliveryError:
        get_otp_store().invalidate_otp(key)
        return jsonify({"ok": False, "error": "email_delivery_failed"}), 502
    return jsonify({"ok": True})


@otp_bp.post("/email/verify")
def api_verify_email_otp():
    data = parse_body(EmailOtpVerifyRequest)
    if not get_otp_store().validate_otp(email_key(data.email, data.purpose), data.code):
        return jsonify({"ok": False, "error": "invalid_or_expired_otp"}), 400

    user = User.query.filter(func.lower(User.email) == data.email.lower()).first()
    if user and not user.email_confirmed:
        user.email_confirmed = True
        db.session.commit()
    return jsonify({"ok": True, "email_confirmed": bool(user and user.email_confirmed)})
