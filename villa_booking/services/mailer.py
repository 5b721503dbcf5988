from __future__ import annotations

import smtplib
from email.message import EmailMessage

from villa_booking.core.config import get_settings


class MailerNotConfigured(RuntimeError):
    pass


def send_email(to_email: str, subject: str, body: str) -> None:
    """Send a plain-text email via SMTP.

    For development, you can use MailHog (docker-compose) on localhost:1025.
    """
    settings = get_settings()
    if not settings.smtp_host:
        raise MailerNotConfigured("SMTP host is not configured")

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.email_from
    msg["To"] = to_email
    msg.set_content(body)

    if settings.smtp_use_tls:
        server = smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout_seconds)
    else:
        server = smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout_seconds)

    try:
        if settings.smtp_username:
            server.login(settings.smtp_username, settings.smtp_password)
        server.send_message(msg)
    finally:
        try:
            server.quit()
        except (smtplib.SMTPException, OSError):
            pass
