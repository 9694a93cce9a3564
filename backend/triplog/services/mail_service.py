"""
Transactional email for OTP codes and password reset links.
"""
import logging
import smtplib
from email.message import EmailMessage

from triplog.core.config import settings

logger = logging.getLogger(__name__)


class Mailer:
    """Interface for sending a plain-text email."""

    def send(self, to: str, subject: str, body: str) -> None:
        raise NotImplementedError


class SMTPMailer(Mailer):
    """Sends mail through the configured SMTP account."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str = "",
        password: str = "",
        sender: str = "",
        use_tls: bool = True
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender or username
        self.use_tls = use_tls

    def send(self, to: str, subject: str, body: str) -> None:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)

        with smtplib.SMTP(self.host, self.port, timeout=30) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password)
            smtp.send_message(message)
        logger.info(f"Sent '{subject}' email to {to}")


def get_mailer() -> Mailer:
    """Dependency returning the SMTP mailer."""
    return SMTPMailer(
        host=settings.MAIL_HOST,
        port=settings.MAIL_PORT,
        username=settings.MAIL_USERNAME,
        password=settings.MAIL_PASSWORD,
        sender=settings.MAIL_FROM,
        use_tls=settings.MAIL_USE_TLS
    )
