"""Outgoing email over SMTP.

Delivery is blocking (smtplib) and runs in a worker thread.  With no
``EMAIL_HOST`` configured, messages are logged instead of sent.
"""

from __future__ import annotations

import asyncio
import smtplib
from email.message import EmailMessage

from userdeck.core.config import Settings, get_settings
from userdeck.core.logging import get_logger

logger = get_logger(__name__)


class Mailer:
    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()

    async def send(self, to: str, subject: str, html: str) -> None:
        if not self._settings.email_host:
            logger.info("Email delivery disabled — message not sent", to=to, subject=subject)
            return
        message = EmailMessage()
        message["From"] = self._settings.email_from
        message["To"] = to
        message["Subject"] = subject
        message.set_content(html, subtype="html")
        await asyncio.to_thread(self._deliver, message)
        logger.info("Email sent", to=to, subject=subject)

    def _deliver(self, message: EmailMessage) -> None:
        s = self._settings
        with smtplib.SMTP(host=s.email_host, port=s.email_port, timeout=30) as conn:
            if s.email_secure:
                conn.starttls()
            if s.email_user:
                conn.login(s.email_user, s.email_password)
            conn.send_message(message)

    async def send_confirmation_email(self, email: str, name: str, token: str) -> None:
        link = f"{self._settings.frontend_url}/confirm-email/{token}"
        html = (
            f"<p>Hello {name},</p>"
            f"<p>Welcome to userdeck! Please confirm your email address:</p>"
            f'<p><a href="{link}">Confirm email</a></p>'
        )
        await self.send(email, f"Confirm your email, {name}", html)

    async def send_reset_password_email(self, email: str, name: str, token: str) -> None:
        link = f"{self._settings.frontend_url}/reset-password/{token}"
        html = (
            f"<p>Hello {name},</p>"
            f"<p>Use the link below to choose a new password:</p>"
            f'<p><a href="{link}">Reset password</a></p>'
            f"<p>If you did not ask for this, ignore this email.</p>"
        )
        await self.send(email, f"Reset your password, {name}", html)
