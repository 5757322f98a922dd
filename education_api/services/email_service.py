"""
Email sending service (SMTP)
"""

import asyncio
import smtplib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

import structlog

from education_api.core.logging import mask_email

logger = structlog.get_logger(__name__)


@dataclass
class EmailMessage:
    recipient_name: str
    recipient_email: str
    subject: str
    html_body: str


class EmailSender(ABC):
    """Delivers a rendered email. Returns False instead of raising on delivery failure."""

    @abstractmethod
    async def send(self, message: EmailMessage) -> bool:
        pass


class SmtpEmailSender(EmailSender):
    """SMTP delivery; STARTTLS on 587, implicit TLS on 465."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        sender_email: str,
        sender_name: str = "",
        use_tls: bool = True,
        timeout: int = 20,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender_email = sender_email
        self.sender_name = sender_name
        self.use_tls = use_tls
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings) -> "SmtpEmailSender":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            sender_email=settings.EMAIL_FROM,
            sender_name=settings.EMAIL_FROM_NAME,
            use_tls=settings.SMTP_USE_TLS,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.username and self.password)

    def build_mime(self, message: EmailMessage) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = message.subject
        msg["From"] = formataddr((self.sender_name, self.sender_email))
        msg["To"] = formataddr((message.recipient_name, message.recipient_email))
        msg.attach(MIMEText(message.html_body, "html", "utf-8"))
        return msg

    def _send_sync(self, message: EmailMessage) -> None:
        msg = self.build_mime(message)

        if self.port == 465:
            server = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
            if self.use_tls:
                server.ehlo()
                server.starttls()
                server.ehlo()

        with server:
            server.login(self.username, self.password)
            server.sendmail(self.sender_email, [message.recipient_email], msg.as_string())

    async def send(self, message: EmailMessage) -> bool:
        if not self.is_configured:
            logger.warning("email_not_configured", recipient=mask_email(message.recipient_email))
            return False

        try:
            await asyncio.to_thread(self._send_sync, message)
        except (smtplib.SMTPException, OSError) as e:
            # Exception text can echo server credentials; log the type only
            logger.error(
                "email_send_failed",
                recipient=mask_email(message.recipient_email),
                error=type(e).__name__,
            )
            return False

        logger.info("email_sent", recipient=mask_email(message.recipient_email), subject=message.subject)
        return True
