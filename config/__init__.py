"""
Configuration module - Fixed, environment-independent constants.
"""

from config.email_config import (
    RESEND_API_URL,
    RESEND_TIMEOUT_SECONDS,
    EMAIL_LANGUAGES,
    EMAIL_DEFAULTS,
)

__all__ = ["RESEND_API_URL", "RESEND_TIMEOUT_SECONDS", "EMAIL_LANGUAGES", "EMAIL_DEFAULTS"]
