"""Outgoing email over SMTP."""

import asyncio
import smtplib
from email.message import EmailMessage
from typing import Optional

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from . import config
from .logger import logger


class MailNotConfigured(Exception):
    pass


class Mailer:
    def __init__(
        self,
        host: str = config.SMTP_HOST,
        port: int = config.SMTP_PORT,
        user: str = config.SMTP_USER,
        password: str = config.SMTP_PASS,
        from_email: str = config.MAIL_FROM,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_email = from_email

    @property
    def configured(self) -> bool:
        return bool(self.host)

    def build_message(self, to: str, subject: str, body: str, from_email: Optional[str] = None) -> EmailMessage:
        msg = EmailMessage()
        msg.set_content(body)
        msg["Subject"] = subject
        msg["From"] = from_email or self.from_email
        msg["To"] = to
        return msg

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        retry=retry_if_exception_type((smtplib.SMTPServerDisconnected, smtplib.SMTPConnectError, OSError)),
        reraise=True,
    )
    def _deliver(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=10) as server:
            server.starttls()
            if self.user:
                server.login(self.user, self.password)
            server.send_message(msg)

    def send(self, to: str, subject: str, body: str, from_email: Optional[str] = None) -> None:
        if not self.configured:
            raise MailNotConfigured("Mail service not configured")
        self._deliver(self.build_message(to, subject, body, from_email))
        logger.info(f"Email sent to {to}: {subject}")

    async def send_async(self, to: str, subject: str, body: str, from_email: Optional[str] = None) -> None:
        # smtplib blocks, keep it off the event loop
        await asyncio.to_thread(self.send, to, subject, body, from_email)
