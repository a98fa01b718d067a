"""Tests for EmailService rendering and provider fallback."""

import pytest
from unittest.mock import AsyncMock, patch

from tripmates.services.email.email_service import EmailService


@pytest.fixture
def console_service():
    return EmailService(mode="console", app_url="https://tripmates.test/")


class TestEmailService:

    def test_missing_provider_credentials_fall_back_to_console(self, monkeypatch):
        monkeypatch.delenv("RESEND_API_KEY", raising=False)
        monkeypatch.delenv("SMTP_HOST", raising=False)

        assert EmailService(mode="resend").mode == "console"
        assert EmailService(mode="smtp").mode == "console"

    @pytest.mark.asyncio
    async def test_verification_link_and_language(self, console_service):
        with patch.object(console_service, "_send", new=AsyncMock(return_value={"success": True})) as send:
            await console_service.send_verification_email("maya@example.com", "raw-token", "Maya", language="fr")

        kwargs = send.call_args.kwargs
        assert kwargs["to"] == "maya@example.com"
        assert "https://tripmates.test/verify-email?token=raw-token" in kwargs["text"]
        assert "Maya" in kwargs["text"]
        assert kwargs["subject"] != "Confirm your Tripmates account"

    @pytest.mark.asyncio
    async def test_unknown_language_uses_english(self, console_service):
        with patch.object(console_service, "_send", new=AsyncMock(return_value={"success": True})) as send:
            await console_service.send_password_reset_email("maya@example.com", "raw-token", language="xx")

        assert send.call_args.kwargs["subject"] == "Reset your Tripmates password"
        assert "/reset-password?token=raw-token" in send.call_args.kwargs["html"]

    @pytest.mark.asyncio
    async def test_console_mode_reports_success(self, console_service):
        result = await console_service.send_verification_email("maya@example.com", "raw-token")

        assert result["success"] is True
        assert result["mode"] == "console"

    @pytest.mark.asyncio
    async def test_smtp_failure_is_returned_not_raised(self):
        service = EmailService(mode="smtp", smtp_host="smtp.example.com", smtp_port=587)

        with patch("aiosmtplib.send", new=AsyncMock(side_effect=OSError("connection refused"))):
            result = await service.send_verification_email("maya@example.com", "raw-token")

        assert result == {"success": False, "error": "connection refused"}
