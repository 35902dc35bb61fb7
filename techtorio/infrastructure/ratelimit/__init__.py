"""Database-backed rate limiting for API endpoints and OTP SMS."""

from techtorio.infrastructure.ratelimit.decorators import rate_limited
from techtorio.infrastructure.ratelimit.models import ApiRateLimit, SmsRateLimit

__all__ = ["ApiRateLimit", "SmsRateLimit", "rate_limited"]
