"""OTP request schemas."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class SmsOtpSendRequest(BaseModel):
    phone_number: str = Field(min_length=9, max_length=32)
    device_id: Optional[str] = Field(default=None, max_length=255)
    captcha_token: Optional[str] = None

    @field_validator("phone_number")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()


class SmsOtpVerifyRequest(BaseModel):
    phone_number: str = Field(min_length=9, max_length=32)
    code: str = Field(min_length=4, max_length=10)


class EmailOtpSendRequest(BaseModel):
    email: EmailStr
    purpose: str = Field(default="registration", max_length=64)


class EmailOtpVerifyRequest(BaseModel):
    email: EmailStr
    code: str = Field(min_length=4, max_length=10)
    purpose: str = Field(default="registration", max_length=64)
