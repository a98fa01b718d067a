"""
Email service for sending transactional emails.

Supports SMTP, Resend API, and console logging modes.
Supports i18n via JSON locale files.
"""

import json
import os
import logging
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from pathlib import Path
from typing import Optional

import httpx
import aiosmtplib

from config.email_config import (
    RESEND_API_URL,
    RESEND_TIMEOUT_SECONDS,
    EMAIL_LANGUAGES,
    EMAIL_DEFAULTS,
)

logger = logging.getLogger(__name__)

# Load locale files
LOCALES_DIR = Path(__file__).parent / "locales"
_translations_cache: dict = {}


class EmailService:
    """
    Email service with multi-mode support.

    Modes:
        - console: Log emails to console (development)
        - smtp: Send via SMTP
        - resend: Send via Resend HTTP API

    Sending never raises; failures are logged and returned as
    {"success": False, "error": ...}.
    """

    def __init__(
        self,
        mode: Optional[str] = None,
        resend_api_key: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
        team_name: Optional[str] = None,
        app_url: Optional[str] = None,
        smtp_host: Optional[str] = None,
        smtp_port: Optional[int] = None,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
    ):
        """
        Initialize email service.

        Args:
            mode: "console", "smtp", or "resend" (default from EMAIL_MODE env var)
            resend_api_key: Resend API key (default from RESEND_API_KEY env var)
            from_email: Sender email address
            from_name: Sender display name
            team_name: Team name for email signatures
            app_url: Base URL for frontend links in emails
            smtp_host: SMTP server host
            smtp_port: SMTP server port
            smtp_user: SMTP username
            smtp_password: SMTP password
        """
        self._mode = mode or os.environ.get("EMAIL_MODE", EMAIL_DEFAULTS["mode"])
        self._from_email = from_email or os.environ.get("SMTP_FROM_EMAIL", "noreply@tripmates.app")
        self._from_name = from_name or os.environ.get("SMTP_FROM_NAME", EMAIL_DEFAULTS["from_name"])
        self._team_name = team_name or os.environ.get("EMAIL_TEAM_NAME", EMAIL_DEFAULTS["team_name"])
        self._app_url = (app_url or os.environ.get("FRONTEND_URL", "http://localhost:3000")).rstrip("/")

        self._resend_api_key = resend_api_key or os.environ.get("RESEND_API_KEY")

        self._smtp_host = smtp_host or os.environ.get("SMTP_HOST")
        self._smtp_port = smtp_port or int(os.environ.get("SMTP_PORT", "465"))
        self._smtp_user = smtp_user or os.environ.get("SMTP_USER")
        self._smtp_password = smtp_password or os.environ.get("SMTP_PASSWORD")

        if self._mode == "resend" and not self._resend_api_key:
            logger.warning("Resend API key not configured, falling back to console mode")
            self._mode = "console"
        elif self._mode == "smtp" and not self._smtp_host:
            logger.warning("SMTP host not configured, falling back to console mode")
            self._mode = "console"

        logger.info(f"Email service initialized in {self._mode} mode")

    @property
    def mode(self) -> str:
        return self._mode

    def _get_translations(
        self,
        lang: str,
        email_type: str,
        variables: dict
    ) -> dict:
        """
        Load translations from JSON file and replace placeholders.

        Args:
            lang: Language code ("en" or "fr")
            email_type: Email type key ("verification" or "password_reset")
            variables: Dict of placeholder values to substitute

        Returns:
            dict with all translated strings for the email type
        """
        if lang not in EMAIL_LANGUAGES:
            lang = "en"

        if lang not in _translations_cache:
            locale_file = LOCALES_DIR / f"{lang}.json"
            try:
                with open(locale_file, "r", encoding="utf-8") as f:
                    _translations_cache[lang] = json.load(f)
            except FileNotFoundError:
                logger.warning(f"Locale file not found: {locale_file}, falling back to English")
                lang = "en"
                with open(LOCALES_DIR / "en.json", "r", encoding="utf-8") as f:
                    _translations_cache[lang] = json.load(f)

        translations = _translations_cache.get(lang, {}).get(email_type, {})

        result = {}
        for key, value in translations.items():
            if isinstance(value, str):
                for var_name, var_value in variables.items():
                    value = value.replace(f"{{{{{var_name}}}}}", str(var_value))
            result[key] = value

        return result

    def _render(self, t: dict, link: str) -> tuple:
        """Build the (html, text) bodies of a single-button email."""
        html_content = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="margin: 0; padding: 0; background-color: #f4f7f6; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Arial, sans-serif; line-height: 1.6; color: #333333;">
    <table role="presentation" width="100%" cellpadding="0" cellspacing="0" style="background-color: #f4f7f6;">
        <tr>
            <td align="center" style="padding: 20px 0;">
                <table role="presentation" width="600" cellpadding="0" cellspacing="0" style="background-color: #ffffff; max-width: 600px;">
                    <tr>
                        <td align="center" bgcolor="#1F6F8B" style="background-color: #1F6F8B; padding: 40px 20px;">
                            <h1 style="margin: 0; font-size: 28px; color: #ffffff; font-weight: 600;">{t.get("header", "")}</h1>
                        </td>
                    </tr>
                    <tr>
                        <td style="padding: 40px 30px;">
                            <p style="margin: 0 0 16px 0; font-size: 16px;">{t.get("greeting", "")}</p>
                            <p style="margin: 0 0 24px 0; font-size: 16px;">{t.get("body", "")}</p>
                            <table role="presentation" cellpadding="0" cellspacing="0" style="margin: 24px auto;">
                                <tr>
                                    <td align="center" bgcolor="#1F6F8B" style="background-color: #1F6F8B; border-radius: 8px;">
                                        <a href="{link}" target="_blank" style="display: inline-block; padding: 14px 28px; font-size: 16px; font-weight: 600; color: #ffffff; text-decoration: none;">{t.get("button", "")}</a>
                                    </td>
                                </tr>
                            </table>
                            <p style="margin: 24px 0 8px 0; font-size: 14px; color: #666666;">{t.get("link_fallback", "")}</p>
                            <p style="margin: 0 0 24px 0; font-size: 14px; color: #1F6F8B; word-break: break-all;">{link}</p>
                            <p style="margin: 0; font-size: 14px; color: #666666;">{t.get("expiry_notice", "")}</p>
                            <p style="margin: 16px 0 0 0; font-size: 16px;">{t.get("ignore_notice", "")}</p>
                        </td>
                    </tr>
                    <tr>
                        <td style="padding: 20px 30px; border-top: 1px solid #eeeeee;">
                            <p style="margin: 0; font-size: 14px; color: #666666; text-align: center;">{t.get("sign_off", "")}<br>{self._team_name}</p>
                        </td>
                    </tr>
                </table>
            </td>
        </tr>
    </table>
</body>
</html>
"""

        text_content = f"""
{t.get("header", "")}

{t.get("greeting", "")}

{t.get("body", "")}

{link}

{t.get("expiry_notice", "")}

{t.get("ignore_notice", "")}

{t.get("sign_off", "")}
{self._team_name}
"""
        return html_content, text_content

    async def send_verification_email(
        self,
        to_email: str,
        token: str,
        user_name: Optional[str] = None,
        language: str = "en",
    ) -> dict:
        """
        Send the email address verification link.

        Args:
            to_email: Recipient email address
            token: Raw verification token
            user_name: User's first name (optional)
            language: Language code ("en" or "fr")

        Returns:
            dict with success status and message
        """
        link = f"{self._app_url}/verify-email?token={token}"
        t = self._get_translations(language, "verification", {"name": user_name or ""})
        html, text = self._render(t, link)

        return await self._send(
            to=to_email,
            subject=t.get("subject", "Verify your email address"),
            html=html,
            text=text,
        )

    async def send_password_reset_email(
        self,
        to_email: str,
        token: str,
        user_name: Optional[str] = None,
        language: str = "en",
    ) -> dict:
        """
        Send the password reset link.

        Args:
            to_email: Recipient email address
            token: Raw reset token
            user_name: User's first name (optional)
            language: Language code ("en" or "fr")

        Returns:
            dict with success status and message
        """
        link = f"{self._app_url}/reset-password?token={token}"
        t = self._get_translations(language, "password_reset", {"name": user_name or ""})
        html, text = self._render(t, link)

        return await self._send(
            to=to_email,
            subject=t.get("subject", "Reset your password"),
            html=html,
            text=text,
        )

    async def _send(
        self,
        to: str,
        subject: str,
        html: str,
        text: str,
    ) -> dict:
        """
        Send email via configured provider.

        Returns:
            dict with success status and details
        """
        if self._mode == "console":
            return self._send_console(to, subject, html, text)
        elif self._mode == "smtp":
            return await self._send_smtp(to, subject, html, text)
        elif self._mode == "resend":
            return await self._send_resend(to, subject, html, text)
        else:
            logger.error(f"Unknown email mode: {self._mode}")
            return {"success": False, "error": f"Unknown email mode: {self._mode}"}

    def _send_console(
        self,
        to: str,
        subject: str,
        html: str,
        text: str,
    ) -> dict:
        """Log email to console (development mode)."""
        logger.info("=" * 60)
        logger.info("EMAIL (console mode)")
        logger.info(f"To: {to}")
        logger.info(f"Subject: {subject}")
        logger.info("-" * 60)
        logger.info(text)
        logger.info("=" * 60)

        return {
            "success": True,
            "mode": "console",
            "message": "Email logged to console",
        }

    async def _send_smtp(
        self,
        to: str,
        subject: str,
        html: str,
        text: str,
    ) -> dict:
        """Send email via SMTP."""
        try:
            message = MIMEMultipart("alternative")
            message["Subject"] = subject
            message["From"] = f"{self._from_name} <{self._from_email}>"
            message["To"] = to
            message.attach(MIMEText(text, "plain"))
            message.attach(MIMEText(html, "html"))

            # Port 465 is implicit TLS, anything else upgrades with STARTTLS
            use_tls = self._smtp_port == 465

            await aiosmtplib.send(
                message,
                hostname=self._smtp_host,
                port=self._smtp_port,
                username=self._smtp_user,
                password=self._smtp_password,
                use_tls=use_tls,
                start_tls=not use_tls,
            )

            logger.info(f"Email sent via SMTP to {to}")
            return {
                "success": True,
                "mode": "smtp",
                "message": "Email sent via SMTP",
            }

        except Exception as e:
            logger.error(f"Failed to send email via SMTP: {e}")
            return {
                "success": False,
                "error": str(e),
            }

    async def _send_resend(
        self,
        to: str,
        subject: str,
        html: str,
        text: str,
    ) -> dict:
        """Send email via Resend API."""
        async with httpx.AsyncClient(timeout=RESEND_TIMEOUT_SECONDS) as client:
            try:
                response = await client.post(
                    RESEND_API_URL,
                    headers={
                        "Authorization": f"Bearer {self._resend_api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "from": f"{self._from_name} <{self._from_email}>",
                        "to": [to],
                        "subject": subject,
                        "html": html,
                        "text": text,
                    },
                )

                if response.status_code == 200:
                    data = response.json()
                    return {
                        "success": True,
                        "mode": "resend",
                        "messageId": data.get("id"),
                    }
                else:
                    error_msg = response.json().get("message", "Unknown error")
                    logger.error(f"Resend API error: {error_msg}")
                    return {
                        "success": False,
                        "error": error_msg,
                    }

            except Exception as e:
                logger.error(f"Failed to send email via Resend: {e}")
                return {
                    "success": False,
                    "error": str(e),
                }
