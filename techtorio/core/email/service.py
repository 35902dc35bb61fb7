"""SMTP email delivery with Jinja-rendered HTML bodies."""

from __future__ import annotations

import logging
import smtplib
from decimal import Decimal
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional

from flask import current_app, render_template

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when the SMTP server refuses or cannot be reached."""

    pass


def send_email(to_email: str, subject: str, html_body: str, plain_text_body: Optional[str] = None) -> None:
    config = current_app.config
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = formataddr((config["EMAIL_SENDER_NAME"], config["EMAIL_SENDER_ADDRESS"]))
    message["To"] = to_email
    message.set_content(plain_text_body or "This message requires an HTML capable email client.")
    message.add_alternative(html_body, subtype="html")

    try:
        with smtplib.SMTP(config["SMTP_SERVER"], config["SMTP_PORT"], timeout=30) as smtp:
            if config.get("SMTP_USE_TLS"):
                smtp.starttls()
            if config.get("SMTP_USERNAME"):
                smtp.login(config["SMTP_USERNAME"], config["SMTP_PASSWORD"])
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:
        logger.error("Failed to send email to %s with subject %r: %s", to_email, subject, exc)
        raise EmailDeliveryError(f"Failed to send email: {exc}") from exc
    logger.info("Email sent to %s with subject %r", to_email, subject)


def send_password_reset_email(to_email: str, reset_link: str, user_name: str) -> None:
    html = render_template("email/password_reset.html", user_name=user_name, reset_link=reset_link)
    text = (
        f"Hello {user_name},\n\nReset your TechTorio password here: {reset_link}\n\n"
        "This link expires in 1 hour. If you did not request a reset, ignore this email."
    )
    send_email(to_email, "Reset Your TechTorio Password", html, text)


def send_email_verification(to_email: str, verification_link: str, user_name: str) -> None:
    html = render_template("email/verify_email.html", user_name=user_name, verification_link=verification_link)
    text = f"Hello {user_name},\n\nVerify your TechTorio email address: {verification_link}"
    send_email(to_email, "Verify Your TechTorio Email Address", html, text)


def send_welcome_email(to_email: str, user_name: str) -> None:
    html = render_template("email/welcome.html", user_name=user_name, app_url=current_app.config["APP_BASE_URL"])
    send_email(to_email, "Welcome to TechTorio!", html)


def send_order_confirmation_email(to_email: str, user_name: str, order_id: str, amount: Decimal) -> None:
    html = render_template("email/order_confirmation.html", user_name=user_name, order_id=order_id, amount=amount)
    send_email(to_email, f"Order Confirmation - #{order_id}", html)


def send_payment_received_email(to_email: str, user_name: str, amount: Decimal, transaction_id: str) -> None:
    html = render_template(
        "email/payment_received.html", user_name=user_name, amount=amount, transaction_id=transaction_id
    )
    send_email(to_email, "Payment Received - TechTorio", html)


def send_otp_email(to_email: str, code: str, expiry_minutes: int) -> None:
    html = render_template("email/otp.html", code=code, expiry_minutes=expiry_minutes)
    text = f"Your TechTorio verification code is {code}. It expires in {expiry_minutes} minutes."
    send_email(to_email, "Your TechTorio Verification Code", html, text)
