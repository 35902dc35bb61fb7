"""SMS senders used to deliver OTP codes."""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Any, Mapping, Optional, Protocol

import requests

from techtorio.infrastructure.sms.phone import normalize_macrodroid_phone, normalize_pakistani_phone
from techtorio.infrastructure.sms.registry import DevicePushService, DeviceRegistry

logger = logging.getLogger(__name__)


class SmsDeliveryError(Exception):
    """Raised when an SMS could not be handed to the relay."""

    pass


class SmsSender(Protocol):
    def send_otp(self, phone_number: str, otp: str, template: Optional[str] = None) -> None:
        ...


def compute_signature(data: str, secret: str) -> str:
    """Lower-case hex HMAC-SHA256 of ``data``."""
    return hmac.new(secret.encode("utf-8"), data.encode("utf-8"), hashlib.sha256).hexdigest()


def _require(phone_number: str, otp: str) -> None:
    if not (phone_number or "").strip():
        raise ValueError("Phone number is required")
    if not (otp or "").strip():
        raise ValueError("OTP is required")


class AndroidSmsSender:
    """Calls the ``/send-otp`` endpoint exposed by the Android relay app."""

    def __init__(
        self,
        base_url: str,
        secret_key: str = "",
        use_hmac: bool = False,
        timeout_seconds: int = 30,
        otp_param: str = "otp",
        receiver_param: str = "to",
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.secret_key = secret_key
        self.use_hmac = use_hmac
        self.timeout_seconds = timeout_seconds
        self.otp_param = otp_param
        self.receiver_param = receiver_param
        self.http = session or requests.Session()

    def build_headers(self, otp: str, normalized: str) -> dict:
        headers = {}
        if self.secret_key:
            headers["X-Webhook-Secret"] = self.secret_key
            if self.use_hmac:
                headers["X-Signature"] = compute_signature(f"otp={otp}&to={normalized}", self.secret_key)
        return headers

    def send_otp(self, phone_number: str, otp: str, template: Optional[str] = None) -> None:
        _require(phone_number, otp)
        normalized = normalize_pakistani_phone(phone_number)
        if not normalized:
            raise SmsDeliveryError(f"Invalid recipient phone provided: '{phone_number}'")

        url = f"{self.base_url}/send-otp"
        params = {self.otp_param: otp, self.receiver_param: normalized}
        try:
            resp = self.http.get(
                url,
                params=params,
                headers=self.build_headers(otp, normalized),
                timeout=self.timeout_seconds,
            )
        except requests.Timeout as exc:
            logger.error("Android SMS service timed out after %ss", self.timeout_seconds)
            raise SmsDeliveryError(
                f"Android SMS service request timed out after {self.timeout_seconds} seconds."
            ) from exc
        except requests.RequestException as exc:
            logger.error("Failed to connect to Android SMS service at %s: %s", self.base_url, exc)
            raise SmsDeliveryError(
                f"Failed to connect to Android SMS service at {self.base_url}. "
                "Ensure the Android app is running and accessible."
            ) from exc

        if not resp.ok:
            logger.error("Android SMS service failed: %s %s. Body=%s", resp.status_code, resp.reason, resp.text)
            raise SmsDeliveryError(
                f"Android SMS service failed: {resp.status_code} {resp.reason}. Body={resp.text}"
            )
        logger.info("SMS sent via Android relay to %s", normalized)


class MacroDroidSmsSender:
    """Triggers a MacroDroid webhook macro that sends the SMS from a handset."""

    def __init__(
        self,
        base_url: str,
        key: str,
        action: str = "send-otp",
        otp_param: str = "otp",
        receiver_param: str = "to",
        enabled: bool = True,
        timeout_seconds: int = 30,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.key = key
        self.action = action
        self.otp_param = otp_param
        self.receiver_param = receiver_param
        self.enabled = enabled
        self.timeout_seconds = timeout_seconds
        self.http = session or requests.Session()

    def send_otp(self, phone_number: str, otp: str, template: Optional[str] = None) -> None:
        _require(phone_number, otp)
        normalized = normalize_macrodroid_phone(phone_number)
        if not normalized:
            raise SmsDeliveryError(f"Invalid recipient phone provided: '{phone_number}'")

        if not self.enabled:
            logger.info("MacroDroid disabled; would send OTP to %s", normalized)
            return

        url = f"{self.base_url}/{self.key}/{self.action}"
        params = {self.otp_param: otp, self.receiver_param: normalized}
        try:
            resp = self.http.get(url, params=params, timeout=self.timeout_seconds)
        except requests.RequestException as exc:
            raise SmsDeliveryError(f"MacroDroid request failed: {exc}") from exc
        if not resp.ok:
            raise SmsDeliveryError(f"MacroDroid send failed: {resp.status_code} {resp.reason}. Body={resp.text}")
        logger.info("SMS sent via MacroDroid to %s", normalized)


class CompositeSmsSender:
    """Push to any connected relay device first, otherwise call the Android HTTP sender."""

    def __init__(
        self,
        push_service: Optional[DevicePushService],
        registry: DeviceRegistry,
        fallback: AndroidSmsSender,
    ) -> None:
        self.push_service = push_service
        self.registry = registry
        self.fallback = fallback

    def send_otp(self, phone_number: str, otp: str, template: Optional[str] = None) -> None:
        _require(phone_number, otp)
        normalized = normalize_pakistani_phone(phone_number) or phone_number

        try:
            device_id = self.registry.any_connected_device_id()
            if device_id and self.push_service is not None:
                if self.push_service.try_push_otp(device_id, normalized, otp, template):
                    logger.info("OTP pushed to device %s for %s", device_id, normalized)
                    return
                logger.warning("Device %s not reachable for push; falling back to HTTP relay", device_id)
            else:
                logger.info("No connected relay devices; falling back to HTTP relay")
        except Exception:
            logger.exception("Push delivery failed for %s; falling back to HTTP relay", normalized)

        self.fallback.send_otp(phone_number, otp, template)


def build_sms_sender(
    config: Mapping[str, Any],
    registry: Optional[DeviceRegistry] = None,
    push_service: Optional[DevicePushService] = None,
) -> SmsSender:
    """Select the configured sender from a Flask-style config mapping."""
    provider = (config.get("SMS_PROVIDER") or "android").lower()
    android = AndroidSmsSender(
        base_url=config.get("ANDROID_SMS_BASE_URL", "http://localhost:8080"),
        secret_key=config.get("ANDROID_SMS_SECRET_KEY", ""),
        use_hmac=bool(config.get("ANDROID_SMS_USE_HMAC", False)),
        timeout_seconds=int(config.get("ANDROID_SMS_TIMEOUT_SECONDS", 30)),
        otp_param=config.get("ANDROID_SMS_OTP_PARAM", "otp"),
        receiver_param=config.get("ANDROID_SMS_RECEIVER_PARAM", "to"),
    )
    if provider == "android":
        return android
    if provider == "macrodroid":
        return MacroDroidSmsSender(
            base_url=config.get("MACRODROID_BASE_URL", "https://trigger.macrodroid.com"),
            key=config.get("MACRODROID_KEY", ""),
            action=config.get("MACRODROID_ACTION", "send-otp"),
            otp_param=config.get("MACRODROID_OTP_PARAM", "otp"),
            receiver_param=config.get("MACRODROID_RECEIVER_PARAM", "to"),
            enabled=bool(config.get("MACRODROID_ENABLED", True)),
        )
    if provider == "composite":
        return CompositeSmsSender(push_service, registry or DeviceRegistry(), android)
    raise ValueError(f"Unknown SMS provider: {provider}")
