"""
Outbound email transports.

``Mailer.send`` either returns or raises ``DeliveryError``; callers decide
whether a failed delivery is fatal. SMTP goes through aiosmtplib with
STARTTLS. The console mailer only logs and is the default outside production.
"""
from __future__ import annotations

import logging
from email.message import EmailMessage
from typing import Protocol

import aiosmtplib

from app.config import Settings

logger = logging.getLogger(__name__)


class DeliveryError(Exception):
    """The message could not be handed to the mail transport."""


class Mailer(Protocol):
    async def send(self, to: str, subject: str, body: str) -> None: ...


class SmtpMailer:
    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    async def send(self, to: str, subject: str, body: str) -> None:
        s = self._settings
        msg = EmailMessage()
        msg["From"] = f"{s.smtp_from_name} <{s.smtp_from_email}>"
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body)

        try:
            await aiosmtplib.send(
                msg,
                hostname=s.smtp_host,
                port=s.smtp_port,
                username=s.smtp_username or None,
                password=s.smtp_password or None,
                start_tls=s.smtp_start_tls,
                timeout=s.smtp_timeout_seconds,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.error("SMTP delivery failed (%s → %s): %s", s.smtp_host, to, exc)
            raise DeliveryError(str(exc)) from exc


class ConsoleMailer:
    async def send(self, to: str, subject: str, body: str) -> None:
        logger.info("Email to=%s subject=%r\n%s", to, subject, body)


def build_mailer(settings: Settings) -> Mailer:
    backend = settings.email_backend or (
        "smtp" if settings.env_name == "production" else "console"
    )
    if backend == "smtp":
        return SmtpMailer(settings)
    if settings.env_name == "production":
        logger.warning("Console mailer active in production; one-time codes will be logged")
    return ConsoleMailer()
