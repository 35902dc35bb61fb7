"""One-time password generation, validation and send throttling."""

from __future__ import annotations

import hmac
import logging
import secrets
import threading
import time
from typing import Callable, Dict, Optional, Tuple, Union

import redis
from flask import Flask, current_app
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

OTP_PREFIX = "otp:"
RATE_PREFIX = "otp:rate:"


def _new_code(length: int) -> str:
    return "".join(secrets.choice("0123456789") for _ in range(length))


class OtpStore:
    """
    Process-local OTP and rate-limit counters with expiry.

    Codes are single use: a successful validation removes the code. Only
    suitable for a single process; multi-worker deployments use RedisOtpStore.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._codes: Dict[str, Tuple[str, float]] = {}
        self._rates: Dict[str, Tuple[int, float]] = {}

    def _prune(self, now: float) -> None:
        # caller holds self._lock
        for key in [k for k, (_, expires_at) in self._codes.items() if expires_at < now]:
            del self._codes[key]
        for key in [k for k, (_, window_end) in self._rates.items() if window_end < now]:
            del self._rates[key]

    def generate_otp(self, key: str, length: int = 6, expiry_seconds: int = 300) -> str:
        code = _new_code(length)
        with self._lock:
            now = self._clock()
            self._prune(now)
            self._codes[key] = (code, now + expiry_seconds)
        return code

    def validate_otp(self, key: str, code: str) -> bool:
        with self._lock:
            entry = self._codes.get(key)
            if entry is None:
                return False
            stored, expires_at = entry
            if self._clock() > expires_at:
                del self._codes[key]
                return False
            if not hmac.compare_digest(stored, (code or "").strip()):
                return False
            del self._codes[key]
            return True

    def invalidate_otp(self, key: str) -> None:
        with self._lock:
            self._codes.pop(key, None)

    def is_rate_limited(self, key: str, max_attempts: int, window_seconds: int) -> bool:
        """Count one attempt for key and report whether the window allowance is exceeded."""
        with self._lock:
            now = self._clock()
            self._prune(now)
            count, window_end = self._rates.get(key, (0, now + window_seconds))
            count += 1
            self._rates[key] = (count, window_end)
            return count > max_attempts

    def pending_keys(self) -> int:
        with self._lock:
            return len(self._codes) + len(self._rates)

    def clear(self) -> None:
        with self._lock:
            self._codes.clear()
            self._rates.clear()


class RedisOtpStore:
    """
    OTP store shared by every worker process.

    Codes are kept with SETEX under ``otp:<key>``; send counters use INCR and
    get their EXPIRE on the first hit of a window. Redis failures are logged
    and served from the in-memory fallback.
    """

    def __init__(self, client: "redis.Redis", fallback: Optional[OtpStore] = None) -> None:
        self.client = client
        self.fallback = fallback or OtpStore()

    @classmethod
    def from_url(cls, url: str, fallback: Optional[OtpStore] = None, timeout_seconds: float = 1.5) -> "RedisOtpStore":
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=timeout_seconds,
            socket_connect_timeout=timeout_seconds,
        )
        return cls(client, fallback=fallback)

    def generate_otp(self, key: str, length: int = 6, expiry_seconds: int = 300) -> str:
        code = _new_code(length)
        try:
            self.client.setex(OTP_PREFIX + key, expiry_seconds, code)
            return code
        except RedisError as exc:
            logger.warning("Redis unavailable storing OTP, using memory store: %s", exc)
        return self.fallback.generate_otp(key, length=length, expiry_seconds=expiry_seconds)

    def validate_otp(self, key: str, code: str) -> bool:
        try:
            stored = self.client.get(OTP_PREFIX + key)
        except RedisError as exc:
            logger.warning("Redis unavailable validating OTP, using memory store: %s", exc)
            return self.fallback.validate_otp(key, code)
        if stored is None:
            return self.fallback.validate_otp(key, code)
        if not hmac.compare_digest(str(stored), (code or "").strip()):
            return False
        try:
            # DEL returns 0 when a concurrent verify already consumed it
            return bool(self.client.delete(OTP_PREFIX + key))
        except RedisError as exc:
            logger.warning("Redis delete failed for consumed OTP %s: %s", key, exc)
            return True

    def invalidate_otp(self, key: str) -> None:
        self.fallback.invalidate_otp(key)
        try:
            self.client.delete(OTP_PREFIX + key)
        except RedisError as exc:
            logger.warning("Redis delete failed for OTP %s: %s", key, exc)

    def is_rate_limited(self, key: str, max_attempts: int, window_seconds: int) -> bool:
        rate_key = RATE_PREFIX + key
        try:
            attempts = int(self.client.incr(rate_key))
            if attempts == 1:
                self.client.expire(rate_key, window_seconds)
            return attempts > max_attempts
        except RedisError as exc:
            logger.warning("Redis unavailable for OTP rate limit, using memory store: %s", exc)
        return self.fallback.is_rate_limited(key, max_attempts, window_seconds)

    def clear(self) -> None:
        self.fallback.clear()


OtpBackend = Union[OtpStore, RedisOtpStore]

# Used directly when REDIS_URL is unset, and as the Redis fallback otherwise.
otp_store = OtpStore()


def init_otp_store(app: Flask) -> OtpBackend:
    url = app.config.get("REDIS_URL")
    store: OtpBackend = RedisOtpStore.from_url(url, fallback=otp_store) if url else otp_store
    if not url:
        logger.info("REDIS_URL not set; OTPs are kept in process memory")
    app.extensions["otp_store"] = store
    return store


def get_otp_store() -> OtpBackend:
    return current_app.extensions.get("otp_store") or otp_store


def sms_key(phone_number: str) -> str:
    return f"sms:{phone_number.strip()}"


def email_key(email: str, purpose: str) -> str:
    return f"email:{purpose}:{email.strip().lower()}"
