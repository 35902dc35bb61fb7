"""Pakistani mobile number normalization."""

from __future__ import annotations

from typing import Optional


def _digits(value: Optional[str]) -> str:
    return "".join(ch for ch in (value or "") if ch.isdigit())


def normalize_pakistani_phone(value: Optional[str]) -> Optional[str]:
    """
    Normalize a phone number to the ``92XXXXXXXXXX`` form used by the SMS relay.

    Returns None when fewer than 10 digits are present.
    """
    digits = _digits(value)
    if len(digits) < 10:
        return None

    last10 = digits[-10:]
    if last10.startswith("0"):
        return f"92{last10[1:]}"
    if digits.startswith("92") and len(digits) >= 12:
        return digits[:12]
    return f"92{last10}"


def normalize_macrodroid_phone(value: Optional[str]) -> Optional[str]:
    """MacroDroid expects ``923`` followed by the last nine digits."""
    digits = _digits(value)
    if len(digits) < 9:
        return None
    return f"923{digits[-9:]}"
