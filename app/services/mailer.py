"""Outbound mail transport: SMTP, or a log line when SMTP is not configured."""

import asyncio
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from app.core.config import Settings

logger = logging.getLogger(__name__)


class Mailer:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    async def send(self, to: str, subject: str, html: str) -> None:
        """Deliver one HTML message. Raises on transport failure."""
        if not self.settings.smtp_host:
            logger.info("SMTP not configured; would send %r to %s", subject, to)
            return
        await asyncio.to_thread(self._send_sync, to, subject, html)
        logger.info("Email %r sent to %s", subject, to)

    def _send_sync(self, to: str, subject: str, html: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.settings.mail_from
        msg["To"] = to
        msg.attach(MIMEText(html, "html", "utf-8"))

        with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port, timeout=30) as server:
            if self.settings.smtp_use_tls:
                server.starttls(context=ssl.create_default_context())
            if self.settings.smtp_username:
                server.login(self.settings.smtp_username, self.settings.smtp_password)
            server.sendmail(self.settings.mail_from, [to], msg.as_string())
