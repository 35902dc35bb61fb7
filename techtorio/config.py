"""Application configuration for TechTorio."""

from __future__ import annotations

import os
from datetime import timedelta
from typing import Dict, Type

from dotenv import load_dotenv
from sqlalchemy.engine.url import make_url

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


def _engine_options_from_uri(uri: str) -> dict:
    url = make_url(uri)
    # Always keep pool_pre_ping, vary connect_args by dialect.
    if url.get_backend_name() == "sqlite":
        return {"pool_pre_ping": True, "connect_args": {"timeout": 30}}
    if url.get_backend_name() in {"postgresql", "postgres"}:
        timeout = int(os.environ.get("DB_CONNECT_TIMEOUT_SECONDS", "10"))
        return {"pool_pre_ping": True, "connect_args": {"connect_timeout": timeout}}
    return {"pool_pre_ping": True}


class BaseConfig:
    """Base configuration loaded for all environments."""

    SECRET_KEY = os.environ.get("SECRET_KEY", "change-me")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///instance/techtorio.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = _engine_options_from_uri(SQLALCHEMY_DATABASE_URI)

    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", SECRET_KEY)
    JWT_TOKEN_LOCATION = ["headers"]
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=int(os.environ.get("JWT_ACCESS_MINUTES", "30")))

    RATELIMIT_DEFAULT = "200/hour"
    REDIS_URL = os.environ.get("REDIS_URL") or None
    RATELIMIT_STORAGE_URI = os.environ.get("REDIS_URL", "memory://")
    RATELIMIT_ENABLED = _env_flag("RATELIMIT_ENABLED", "true")

    # Per-endpoint database-backed limits
    OTP_EMAIL_MAX_REQUESTS = int(os.environ.get("OTP_EMAIL_MAX_REQUESTS", "5"))
    OTP_EMAIL_WINDOW_MINUTES = int(os.environ.get("OTP_EMAIL_WINDOW_MINUTES", "5"))
    OTP_LENGTH = int(os.environ.get("OTP_LENGTH", "6"))
    OTP_EXPIRY_SECONDS = int(os.environ.get("OTP_EXPIRY_SECONDS", "300"))

    # SMS delivery: android | macrodroid | composite
    SMS_PROVIDER = os.environ.get("SMS_PROVIDER", "android")
    ANDROID_SMS_BASE_URL = os.environ.get("ANDROID_SMS_BASE_URL", "http://localhost:8080")
    ANDROID_SMS_SECRET_KEY = os.environ.get("ANDROID_SMS_SECRET_KEY", "")
    ANDROID_SMS_USE_HMAC = _env_flag("ANDROID_SMS_USE_HMAC")
    ANDROID_SMS_TIMEOUT_SECONDS = int(os.environ.get("ANDROID_SMS_TIMEOUT_SECONDS", "30"))
    ANDROID_SMS_OTP_PARAM = os.environ.get("ANDROID_SMS_OTP_PARAM", "otp")
    ANDROID_SMS_RECEIVER_PARAM = os.environ.get("ANDROID_SMS_RECEIVER_PARAM", "to")
    MACRODROID_ENABLED = _env_flag("MACRODROID_ENABLED", "true")
    MACRODROID_BASE_URL = os.environ.get("MACRODROID_BASE_URL", "https://trigger.macrodroid.com")
    MACRODROID_KEY = os.environ.get("MACRODROID_KEY", "")
    MACRODROID_ACTION = os.environ.get("MACRODROID_ACTION", "send-otp")
    MACRODROID_OTP_PARAM = os.environ.get("MACRODROID_OTP_PARAM", "otp")
    MACRODROID_RECEIVER_PARAM = os.environ.get("MACRODROID_RECEIVER_PARAM", "to")

    # SMTP
    SMTP_SERVER = os.environ.get("SMTP_SERVER", "localhost")
    SMTP_PORT = int(os.environ.get("SMTP_PORT", "587"))
    SMTP_USERNAME = os.environ.get("SMTP_USERNAME", "")
    SMTP_PASSWORD = os.environ.get("SMTP_PASSWORD", "")
    SMTP_USE_TLS = _env_flag("SMTP_USE_TLS", "true")
    EMAIL_SENDER_ADDRESS = os.environ.get("EMAIL_SENDER_ADDRESS", "no-reply@techtorio.local")
    EMAIL_SENDER_NAME = os.environ.get("EMAIL_SENDER_NAME", "TechTorio")

    # Google reCAPTCHA
    CAPTCHA_SECRET_KEY = os.environ.get("CAPTCHA_SECRET_KEY", "")
    CAPTCHA_MIN_SCORE = float(os.environ.get("CAPTCHA_MIN_SCORE", "0.5"))

    # Payment gateways
    EASYPAISA_MERCHANT_ID = os.environ.get("EASYPAISA_MERCHANT_ID", "")
    EASYPAISA_API_KEY = os.environ.get("EASYPAISA_API_KEY", "")
    EASYPAISA_SECRET = os.environ.get("EASYPAISA_SECRET", "")
    EASYPAISA_API_BASE_URL = os.environ.get("EASYPAISA_API_BASE_URL", "")
    EASYPAISA_CALLBACK_URL = os.environ.get("EASYPAISA_CALLBACK_URL", "")
    JAZZCASH_MERCHANT_ID = os.environ.get("JAZZCASH_MERCHANT_ID", "")
    JAZZCASH_PASSWORD = os.environ.get("JAZZCASH_PASSWORD", "")
    JAZZCASH_INTEGRITY_SALT = os.environ.get("JAZZCASH_INTEGRITY_SALT", "")
    JAZZCASH_API_BASE_URL = os.environ.get("JAZZCASH_API_BASE_URL", "https://sandbox.jazzcash.com.pk")
    JAZZCASH_RETURN_URL = os.environ.get("JAZZCASH_RETURN_URL", "")
    JAZZCASH_TXN_EXPIRY_HOURS = int(os.environ.get("JAZZCASH_TXN_EXPIRY_HOURS", "48"))
    DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "PKR")

    APP_BASE_URL = os.environ.get("APP_BASE_URL", "http://localhost:5173")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    ENV = "development"


class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.environ.get("TEST_DATABASE_URL", "sqlite://")
    SQLALCHEMY_ENGINE_OPTIONS = _engine_options_from_uri(SQLALCHEMY_DATABASE_URI)
    RATELIMIT_ENABLED = False
    REDIS_URL = None
    RATELIMIT_STORAGE_URI = "memory://"
    JWT_SECRET_KEY = "testing-secret-key-with-enough-length-for-hs256"
    BCRYPT_LOG_ROUNDS = 4
    CAPTCHA_SECRET_KEY = ""
    SMS_PROVIDER = "android"
    MACRODROID_ENABLED = False


class ProductionConfig(BaseConfig):
    ENV = "production"


config_by_name: Dict[str, Type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    # CI pipelines set APP_ENV=ci; map to testing defaults.
    "ci": TestingConfig,
}
