"""Outgoing email delivery over SMTP."""

import logging
from email.message import EmailMessage

import aiosmtplib

from reddit_clone.config import get_settings
from reddit_clone.services.errors import MailError

logger = logging.getLogger(__name__)


class Mailer:
    """Sends HTML email through the configured SMTP server.

    When no SMTP host is configured the message is logged instead, which is
    enough to follow password reset links during development.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool | None = None,
        sender: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the mailer.

        Args:
            host: SMTP host. If not provided, uses settings.
            port: SMTP port. If not provided, uses settings.
            username: SMTP login. If not provided, uses settings.
            password: SMTP password. If not provided, uses settings.
            use_tls: Whether to STARTTLS. If not provided, uses settings.
            sender: From header. If not provided, uses settings.
            timeout: Connection timeout in seconds.
        """
        settings = get_settings()
        self.host = host if host is not None else settings.smtp_host
        self.port = port or settings.smtp_port
        self.username = username if username is not None else settings.smtp_username
        self.password = password if password is not None else settings.smtp_password
        self.use_tls = settings.smtp_use_tls if use_tls is None else use_tls
        self.sender = sender or settings.mail_from
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        """Whether messages will actually leave the process."""
        return bool(self.host)

    def _build_message(self, to: str, subject: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable email client.")
        message.add_alternative(html, subtype="html")
        return message

    async def send(self, to: str, subject: str, html: str) -> None:
        """Send an HTML email.

        Raises:
            MailError: If the SMTP conversation fails.
        """
        if not self.is_configured:
            logger.info("SMTP not configured, email to %s not sent: %s", to, subject)
            logger.info("Email body: %s", html)
            return

        message = self._build_message(to, subject, html)
        try:
            await aiosmtplib.send(
                message,
                hostname=self.host,
                port=self.port,
                username=self.username or None,
                password=self.password if self.username else None,
                start_tls=self.use_tls,
                timeout=self.timeout,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            raise MailError(f"Failed to send email: {e}") from e

        logger.info("Sent email to %s: %s", to, subject)


async def get_mailer() -> Mailer:
    """Factory function to create a mailer.

    Can be used as a FastAPI dependency.
    """
    return Mailer()
