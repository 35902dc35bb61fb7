"""Google reCAPTCHA verification."""

from __future__ import annotations

import logging
from typing import Optional

import requests
from flask import current_app

logger = logging.getLogger(__name__)

VERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"


def verify_captcha(token: Optional[str], remote_ip: Optional[str] = None) -> bool:
    """
    Verify a reCAPTCHA token.

    Returns True when no secret is configured (local development). v3 responses
    carrying a score below CAPTCHA_MIN_SCORE are rejected.
    """
    config = current_app.config
    secret = config.get("CAPTCHA_SECRET_KEY")
    if not secret:
        logger.warning("CAPTCHA_SECRET_KEY not configured; skipping captcha verification")
        return True
    if not token:
        return False

    payload = {"secret": secret, "response": token}
    if remote_ip:
        payload["remoteip"] = remote_ip
    try:
        resp = requests.post(VERIFY_URL, data=payload, timeout=10)
        resp.raise_for_status()
        result = resp.json()
    except (requests.RequestException, ValueError) as exc:
        logger.error("Captcha verification request failed: %s", exc)
        return False

    if not result.get("success"):
        logger.info("Captcha rejected: %s", result.get("error-codes"))
        return False
    score = result.get("score")
    min_score = float(config.get("CAPTCHA_MIN_SCORE", 0.5))
    if score is not None and float(score) < min_score:
        logger.info("Captcha score %s below threshold %s", score, min_score)
        return False
    return True
