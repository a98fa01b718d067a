"""
Email service configuration constants.

These are fixed values that don't change per environment.
Environment-specific values (API keys, URLs) are loaded from settings.
"""

# Resend API endpoint
RESEND_API_URL = "https://api.resend.com/emails"

# Request timeout for the Resend API, in seconds
RESEND_TIMEOUT_SECONDS = 10.0

# Languages with email templates
EMAIL_LANGUAGES = ("en", "fr")

# Default values (can be overridden by settings)
EMAIL_DEFAULTS = {
    "mode": "console",
    "from_name": "Tripmates",
    "team_name": "The Tripmates Team",
}
