"""Transactional email (welcome, password reset).

Messages are built with ``email.message.EmailMessage`` and delivered over
SMTP in a worker thread. When no SMTP host is configured the message is
only logged, which is what local development and tests rely on.
"""

import asyncio
import html
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage

from pokerboard.config import Settings, get_settings
from pokerboard.logging_config import get_logger
from pokerboard.utils.errors import ErrorCode, PokerboardError

logger = get_logger(__name__)

_HTML_WRAPPER = (
    '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
    "{body}"
    "</div>"
)


class EmailError(PokerboardError):
    """Email delivery failure."""

    def __init__(self, message: str = "Failed to send email"):
        super().__init__(ErrorCode.EMAIL_SEND_FAILED, message)


@dataclass
class EmailContent:
    subject: str
    text: str
    html: str


def password_reset_email(reset_link: str, expire_minutes: int = 60) -> EmailContent:
    """Reset-link email."""
    lifetime = "1 hour" if expire_minutes == 60 else f"{expire_minutes} minutes"
    link = html.escape(reset_link, quote=True)
    return EmailContent(
        subject="Reset Your Password",
        text=(
            f"Click the following link to reset your password: {reset_link}\n\n"
            f"This link will expire in {lifetime}."
        ),
        html=_HTML_WRAPPER.format(
            body=(
                "<h2>Reset Your Password</h2>"
                "<p>Click the following link to reset your password:</p>"
                f'<p><a href="{link}" style="display: inline-block; padding: 10px 20px; '
                "background-color: #4F46E5; color: white; text-decoration: none; "
                'border-radius: 5px;">Reset Password</a></p>'
                f'<p style="color: #666;">This link will expire in {lifetime}.</p>'
                '<p style="color: #666;">If you didn\'t request this password reset, '
                "please ignore this email.</p>"
            )
        ),
    )


def welcome_email(name: str) -> EmailContent:
    safe_name = html.escape(name)
    return EmailContent(
        subject="Welcome to Pokerboard!",
        text=(
            f"Welcome to Pokerboard, {name}!\n\n"
            "Thank you for joining us. We're excited to have you on board."
        ),
        html=_HTML_WRAPPER.format(
            body=(
                "<h2>Welcome to Pokerboard!</h2>"
                f"<p>Hi {safe_name},</p>"
                "<p>Thank you for joining us. We're excited to have you on board.</p>"
                "<p>Get started by creating your first game session.</p>"
            )
        ),
    )


class EmailService:
    """SMTP email sender.

    Usage:
        service = EmailService()
        await service.send_password_reset("ali@example.com", "https://.../reset?token=...")
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.smtp_host)

    def _build_message(self, to: str, content: EmailContent) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.settings.email_from
        message["To"] = to
        message["Subject"] = content.subject
        message.set_content(content.text)
        message.add_alternative(content.html, subtype="html")
        return message

    def _deliver(self, message: EmailMessage) -> None:
        s = self.settings
        with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=s.smtp_timeout) as smtp:
            if s.smtp_use_tls:
                smtp.starttls()
            if s.smtp_user:
                smtp.login(s.smtp_user, s.smtp_password or "")
            smtp.send_message(message)

    async def send(self, to: str, content: EmailContent) -> None:
        """Send one email.

        Raises:
            EmailError: If the SMTP exchange fails
        """
        if not self.is_configured:
            logger.info("email_not_sent_smtp_disabled", to=to, subject=content.subject)
            return

        message = self._build_message(to, content)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("email_send_failed", to=to, subject=content.subject, error=str(e))
            raise EmailError() from e

        logger.info("email_sent", to=to, subject=content.subject)

    async def send_password_reset(self, to: str, reset_link: str) -> None:
        await self.send(
            to,
            password_reset_email(reset_link, self.settings.reset_token_expire_minutes),
        )

    async def send_welcome(self, to: str, name: str) -> None:
        await self.send(to, welcome_email(name))


def get_email_service() -> EmailService:
    """FastAPI dependency returning the email sender."""
    return EmailService()
