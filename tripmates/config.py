"""
Tripmates application settings.

Extends the base settings with Tripmates-specific configuration.
"""

from typing import Optional
from common.config import BaseAppSettings


class Settings(BaseAppSettings):
    """Tripmates-specific settings."""

    # ==========================================================================
    # Registration
    # ==========================================================================
    MIN_USER_AGE: int = 16

    # ==========================================================================
    # One-time tokens
    # ==========================================================================
    EMAIL_VERIFICATION_EXPIRE_HOURS: int = 1
    PASSWORD_RESET_EXPIRE_HOURS: int = 1

    # ==========================================================================
    # Moderation
    # ==========================================================================
    # Ban length for the first and second verified report.
    # The third verified report bans permanently and deletes the account.
    FIRST_BAN_HOURS: int = 24
    SECOND_BAN_DAYS: int = 7
    PERMANENT_BAN_REPORT_COUNT: int = 3

    # ==========================================================================
    # Email Settings (verification and password reset)
    # ==========================================================================
    EMAIL_MODE: str = "console"  # console, smtp, resend
    RESEND_API_KEY: Optional[str] = None
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 465
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_FROM_EMAIL: str = "noreply@tripmates.app"
    SMTP_FROM_NAME: str = "Tripmates"

    # ==========================================================================
    # URLs (for email links)
    # ==========================================================================
    FRONTEND_URL: str = "http://localhost:3000"


# Global settings instance
settings = Settings()
