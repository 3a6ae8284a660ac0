"""
Email Utility

Senders used to deliver password reset codes.

The auth service only knows the ``NotificationSender`` interface; which
implementation is used is decided by the EMAIL_BACKEND setting:
- "smtp": deliver through the configured SMTP server
- "console": write the message to the log (local development)
"""

import asyncio
import smtplib
from abc import ABC, abstractmethod
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional
import logging

from social_auth.core.config import settings
from social_auth.core.exceptions import NotificationError

logger = logging.getLogger(__name__)


class NotificationSender(ABC):
    """Delivers a message to a user."""

    @abstractmethod
    async def send(self, destination: str, subject: str, body: str) -> None:
        """
        Send a message.

        Raises:
            NotificationError: If the message could not be delivered
        """
        pass


class SmtpEmailSender(NotificationSender):
    """
    Sends plain-text email over SMTP with STARTTLS.

    smtplib is blocking, so delivery runs in a worker thread.
    """

    def __init__(
        self,
        server: Optional[str],
        port: Optional[int],
        sender: Optional[str],
        password: Optional[str] = None,
        timeout: float = 30.0,
    ):
        self.server = server
        self.port = port or 587
        self.sender = sender
        self.password = password
        self.timeout = timeout

    async def send(self, destination: str, subject: str, body: str) -> None:
        if not self.server or not self.sender:
            logger.error("SMTP settings not configured. Email not sent.")
            raise NotificationError("There was an error sending the email. Try again later!")

        try:
            await asyncio.to_thread(self._deliver, destination, subject, body)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email: {str(e)}")
            raise NotificationError("There was an error sending the email. Try again later!") from e

        logger.info("Email sent (subject=%r)", subject)

    def _deliver(self, destination: str, subject: str, body: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = destination
        msg.attach(MIMEText(body, "plain"))

        with smtplib.SMTP(self.server, self.port, timeout=self.timeout) as server:
            server.starttls()
            if self.password:
                server.login(self.sender, self.password)
            server.send_message(msg)


class LoggingEmailSender(NotificationSender):
    """Writes messages to the log instead of sending them."""

    async def send(self, destination: str, subject: str, body: str) -> None:
        logger.warning(
            "Console email backend: To=%s, Subject=%s\n%s", destination, subject, body
        )


def build_reset_code_message(code: str, expires_in_seconds: int) -> tuple[str, str]:
    """
    Build the subject and body of a password reset email.

    Returns:
        (subject, body)
    """
    minutes = max(1, expires_in_seconds // 60)
    subject = f"Your password reset code (valid for {minutes} min)"
    body = (
        f"Forgot your password? Use the following code to reset it: {code}\n"
        f"The code expires in {minutes} minutes.\n"
        "If you didn't forget your password, please ignore this email!"
    )
    return subject, body


def get_notification_sender() -> NotificationSender:
    """Return the sender selected by EMAIL_BACKEND."""
    if settings.EMAIL_BACKEND == "console":
        return LoggingEmailSender()

    return SmtpEmailSender(
        server=settings.SMTP_SERVER,
        port=settings.SMTP_PORT,
        sender=settings.SMTP_EMAIL,
        password=settings.SMTP_PASSWORD,
    )
