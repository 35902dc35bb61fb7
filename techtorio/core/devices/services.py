"""Device fingerprinting and recognition."""

from __future__ import annotations

import base64
import hashlib
from datetime import datetime
from typing import NamedTuple, Optional

from techtorio.core.devices.models import UserDevice
from techtorio.extensions import db

UNKNOWN = "Unknown"


class UserAgentInfo(NamedTuple):
    device_type: str
    browser: str
    operating_system: str


def generate_fingerprint(user_agent: str, additional_info: Optional[str] = None) -> str:
    data = f"{user_agent}|{additional_info or ''}"
    return base64.b64encode(hashlib.sha256(data.encode("utf-8")).digest()).decode("ascii")


def parse_user_agent(user_agent: Optional[str]) -> UserAgentInfo:
    if not user_agent:
        return UserAgentInfo(UNKNOWN, UNKNOWN, UNKNOWN)
    ua = user_agent.lower()

    if "mobile" in ua or "android" in ua or "iphone" in ua:
        device_type = "Mobile"
    elif "tablet" in ua or "ipad" in ua:
        device_type = "Tablet"
    else:
        device_type = "Desktop"

    browser = UNKNOWN
    if "edg/" in ua:
        browser = "Edge"
    elif "chrome/" in ua:
        browser = "Chrome"
    elif "firefox/" in ua:
        browser = "Firefox"
    elif "safari/" in ua and "chrome" not in ua:
        browser = "Safari"
    elif "opera" in ua or "opr/" in ua:
        browser = "Opera"

    # Android UAs also say "linux" and iOS UAs say "like mac os x".
    operating_system = UNKNOWN
    if "windows" in ua:
        operating_system = "Windows"
    elif "android" in ua:
        operating_system = "Android"
    elif "iphone" in ua or "ipad" in ua or "ios" in ua:
        operating_system = "iOS"
    elif "mac os" in ua:
        operating_system = "macOS"
    elif "linux" in ua:
        operating_system = "Linux"

    return UserAgentInfo(device_type, browser, operating_system)


def get_user_device(user_id: int, fingerprint: str) -> Optional[UserDevice]:
    return UserDevice.query.filter_by(user_id=user_id, device_fingerprint=fingerprint, is_active=True).first()


def register_device(user_id: int, user_agent: str, ip_address: str, device_name: Optional[str] = None) -> UserDevice:
    info = parse_user_agent(user_agent)
    now = datetime.utcnow()
    device = UserDevice(
        user_id=user_id,
        device_fingerprint=generate_fingerprint(user_agent),
        user_agent=user_agent or "",
        device_type=info.device_type,
        browser=info.browser,
        operating_system=info.operating_system,
        ip_address=ip_address or "",
        device_name=device_name,
        is_verified=False,
        is_trusted=False,
        is_active=True,
        first_seen_at=now,
        last_seen_at=now,
    )
    db.session.add(device)
    db.session.commit()
    return device


def verify_device(device_id: int) -> Optional[UserDevice]:
    """Mark a device verified; verification also makes it trusted."""
    device = db.session.get(UserDevice, device_id)
    if device is None:
        return None
    device.is_verified = True
    device.is_trusted = True
    db.session.commit()
    return device


def touch_device(device_id: int) -> Optional[UserDevice]:
    device = db.session.get(UserDevice, device_id)
    if device is None:
        return None
    device.last_seen_at = datetime.utcnow()
    db.session.commit()
    return device
