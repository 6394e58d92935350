from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional

from .config import MailSettings
from .errors import DeliveryError
from .models import MailContent

LOGGER = logging.getLogger(__name__)

TEST_SUBJECT = "Test Email"
TEST_BODY = "This is a simple test email from the system."


def _smtp_connection(settings: MailSettings) -> smtplib.SMTP:
    server = smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout)
    try:
        if settings.smtp_use_tls:
            server.starttls()
        if settings.smtp_username and settings.smtp_password:
            server.login(settings.smtp_username, settings.smtp_password)
    except Exception:
        server.quit()
        raise
    return server


def build_message(content: MailContent) -> EmailMessage:
    email = EmailMessage()
    email["Subject"] = content.subject
    email["From"] = formataddr((content.sender_name, content.sender_email))
    email["To"] = formataddr((content.recipient_name, content.recipient_email))
    email.set_content(content.body)
    return email


def send_email(content: MailContent, settings: Optional[MailSettings] = None) -> None:
    """Send ``content`` over SMTP, raising ``DeliveryError`` on any failure."""
    settings = settings or MailSettings.from_env()
    if not settings.smtp_host:
        raise DeliveryError("SMTP host is not configured")

    try:
        email = build_message(content)
        with _smtp_connection(settings) as server:
            server.send_message(email)
    except (smtplib.SMTPException, OSError, ValueError) as exc:
        LOGGER.exception("Failed to send email '%s' to %s", content.subject, content.recipient_email)
        raise DeliveryError(exc) from exc
    LOGGER.info("Sent email '%s' to %s", content.subject, content.recipient_email)


def send_test_email(recipient_email: str, settings: Optional[MailSettings] = None) -> None:
    """Send the fixed connectivity-check message to ``recipient_email``."""
    settings = settings or MailSettings.from_env()
    content = MailContent(
        subject=TEST_SUBJECT,
        body=TEST_BODY,
        recipient_email=recipient_email,
        recipient_name="",
        sender_email=settings.sender_email,
        sender_name=settings.sender_name,
    )
    send_email(content, settings)
