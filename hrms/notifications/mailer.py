"""Outbound e-mail over SMTP.

``smtplib`` is blocking, so sends are pushed to the thread pool.
"""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from starlette.concurrency import run_in_threadpool

from hrms.common.exceptions import ExternalServiceError
from hrms.config import settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(ExternalServiceError):
    def __init__(self, detail: str) -> None:
        super().__init__("smtp", detail)


class Mailer:
    """Thin SMTP client; one connection per message."""

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        sender: str = "",
        timeout: float = 30.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.sender = sender
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> "Mailer":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            use_tls=settings.SMTP_USE_TLS,
            sender=settings.SMTP_FROM,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )

    @property
    def configured(self) -> bool:
        return bool(self.host)

    def _build(self, to: str, subject: str, body: str, from_name: Optional[str]) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = f"{from_name} <{self.sender}>" if from_name else self.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body)
        return msg

    def _send_sync(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls()
            if self.username:
                server.login(self.username, self.password)
            server.send_message(msg)

    async def send(
        self,
        to: str,
        subject: str,
        body: str,
        *,
        from_name: Optional[str] = None,
    ) -> None:
        """Send a plain-text e-mail. Raises ``EmailDeliveryError`` on failure."""
        if not self.configured:
            raise EmailDeliveryError("SMTP server is not configured.")
        msg = self._build(to, subject, body, from_name or settings.APP_NAME)
        try:
            await run_in_threadpool(self._send_sync, msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise EmailDeliveryError(f"Failed to send e-mail to {to}: {exc}") from exc
        logger.info("E-mail sent to %s: %s", to, subject)


def get_mailer() -> Mailer:
    """FastAPI dependency returning the configured mailer."""
    return Mailer.from_settings()


async def send_quietly(mailer: Mailer, to: Optional[str], subject: str, body: str) -> bool:
    """Send an e-mail whose failure must not fail the caller. Returns success."""
    if not to:
        return False
    try:
        await mailer.send(to, subject, body)
    except EmailDeliveryError as exc:
        logger.warning("E-mail to %s not delivered: %s", to, exc.detail)
        return False
    return True
