"""OTP SMS delivery."""

from techtorio.infrastructure.sms.phone import normalize_macrodroid_phone, normalize_pakistani_phone
from techtorio.infrastructure.sms.registry import DevicePushService, DeviceRegistry
from techtorio.infrastructure.sms.senders import (
    AndroidSmsSender,
    CompositeSmsSender,
    MacroDroidSmsSender,
    SmsDeliveryError,
    SmsSender,
    build_sms_sender,
)

__all__ = [
    "AndroidSmsSender",
    "CompositeSmsSender",
    "DevicePushService",
    "DeviceRegistry",
    "MacroDroidSmsSender",
    "SmsDeliveryError",
    "SmsSender",
    "build_sms_sender",
    "normalize_macrodroid_phone",
    "normalize_pakistani_phone",
]
