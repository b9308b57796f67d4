"""Send transactional emails (verification codes) through the Resend API."""

import logging

import requests

from core.config import settings

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"
# Avoid blocking the request forever if the provider is slow or unreachable
REQUEST_TIMEOUT_SECONDS = 15


class EmailDeliveryError(Exception):
    pass


def send_email(to: str, subject: str, text: str, html: str | None = None) -> None:
    """Deliver an email, or log it when no RESEND_API_KEY is configured (local dev)."""
    if not settings.RESEND_API_KEY:
        logger.warning("RESEND_API_KEY not set; not sending email to %s:\n%s", to, text)
        return

    payload = {"from": settings.EMAIL_FROM, "to": [to], "subject": subject, "text": text}
    if html:
        payload["html"] = html
    try:
        response = requests.post(
            RESEND_API_URL,
            json=payload,
            headers={"Authorization": f"Bearer {settings.RESEND_API_KEY}"},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        raise EmailDeliveryError(f"Could not reach email provider: {e}") from e
    if response.status_code >= 300:
        logger.error("Email provider rejected message (%s): %s", response.status_code, response.text)
        raise EmailDeliveryError(f"Email provider returned {response.status_code}")


def send_signup_email(to: str, verify_url: str, otp: str, expire_minutes: int) -> None:
    text = (
        "Welcome to Community Hub!\n\n"
        f"Your verification code is: {otp}\n\n"
        f"Or open this link to verify your email address:\n{verify_url}\n\n"
        f"The code expires in {expire_minutes} minutes.\n\n"
        "If you didn't request this, you can ignore this email."
    )
    send_email(to, "Welcome to Community Hub!", text)


def send_password_reset_email(to: str, verify_url: str, otp: str, expire_minutes: int) -> None:
    text = (
        "Someone asked to reset the password of your Community Hub account.\n\n"
        f"Your verification code is: {otp}\n\n"
        f"Or open this link:\n{verify_url}\n\n"
        f"The code expires in {expire_minutes} minutes.\n\n"
        "If you didn't request this, you can ignore this email."
    )
    send_email(to, "Community Hub password reset", text)
