"""Tests for EmailService and the email templates."""

import smtplib
from unittest.mock import MagicMock, patch

import pytest

from pokerboard.config import Settings
from pokerboard.services.email import (
    EmailError,
    EmailService,
    password_reset_email,
    welcome_email,
)


def make_settings(**overrides) -> Settings:
    values = {
        "smtp_host": "smtp.example.com",
        "smtp_port": 587,
        "smtp_user": "mailer",
        "smtp_password": "hunter22",
        "smtp_use_tls": True,
    }
    values.update(overrides)
    return Settings(**values)


class TestTemplates:
    def test_password_reset_email(self):
        content = password_reset_email("https://poker.example.com/auth/reset-password?token=abc")

        assert content.subject == "Reset Your Password"
        assert "token=abc" in content.text
        assert "1 hour" in content.text
        assert 'href="https://poker.example.com/auth/reset-password?token=abc"' in content.html

    def test_password_reset_email_custom_lifetime(self):
        content = password_reset_email("https://x/reset", expire_minutes=30)

        assert "30 minutes" in content.text

    def test_welcome_email_escapes_name(self):
        content = welcome_email("<b>Ali</b>")

        assert content.subject == "Welcome to Pokerboard!"
        assert "&lt;b&gt;Ali&lt;/b&gt;" in content.html
        assert "<b>Ali</b>" in content.text


class TestEmailService:
    @pytest.mark.asyncio
    async def test_without_smtp_host_only_logs(self):
        service = EmailService(make_settings(smtp_host=None))

        with patch("pokerboard.services.email.smtplib.SMTP") as smtp_cls:
            await service.send_welcome("ali@example.com", "Ali")

        assert service.is_configured is False
        smtp_cls.assert_not_called()

    @pytest.mark.asyncio
    async def test_without_smtp_host_never_logs_reset_link(self):
        service = EmailService(make_settings(smtp_host=None))
        link = "https://poker.example.com/auth/reset-password?token=live-token-123"

        with patch("pokerboard.services.email.logger") as logger:
            await service.send_password_reset("ali@example.com", link)

        logger.info.assert_called_once()
        logged = repr(logger.info.call_args)
        assert "live-token-123" not in logged
        assert "ali@example.com" in logged

    @pytest.mark.asyncio
    async def test_sends_over_smtp(self):
        service = EmailService(make_settings())
        smtp = MagicMock()

        with patch("pokerboard.services.email.smtplib.SMTP") as smtp_cls:
            smtp_cls.return_value.__enter__.return_value = smtp
            await service.send_password_reset("ali@example.com", "https://x/reset?token=abc")

        smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=service.settings.smtp_timeout)
        smtp.starttls.assert_called_once()
        smtp.login.assert_called_once_with("mailer", "hunter22")
        message = smtp.send_message.call_args.args[0]
        assert message["To"] == "ali@example.com"
        assert message["Subject"] == "Reset Your Password"

    @pytest.mark.asyncio
    async def test_smtp_failure_raises_email_error(self):
        service = EmailService(make_settings(smtp_use_tls=False, smtp_user=None))
        smtp = MagicMock()
        smtp.send_message.side_effect = smtplib.SMTPException("boom")

        with patch("pokerboard.services.email.smtplib.SMTP") as smtp_cls:
            smtp_cls.return_value.__enter__.return_value = smtp
            with pytest.raises(EmailError) as exc_info:
                await service.send_welcome("ali@example.com", "Ali")

        assert exc_info.value.code == "EMAIL_SEND_FAILED"
        smtp.starttls.assert_not_called()
        smtp.login.assert_not_called()
