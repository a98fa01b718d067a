"""
Tripmates Middleware.

All middleware components are imported here.
"""

from tripmates.middleware.auth import AuthMiddleware
from tripmates.middleware.i18n import I18nMiddleware

__all__ = [
    "AuthMiddleware",
    "I18nMiddleware",
]
