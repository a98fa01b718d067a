"""
Common library for reusable infrastructure components.

- database: Async MongoDB connection with Motor, ObjectId helpers
- auth: JWT tokens and bcrypt password hashing
- i18n: Internationalization service and localized text records
- utils: Standard responses, exceptions, password validation, cascades
- config: Base settings class
"""

from common.database import MongoDB
from common.auth import JWTAuth
from common.i18n import I18nService, LocalizedText
from common.utils import (
    success_response,
    error_response,
    APIException,
    UnauthorizedException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
    validate_password,
    Cascade,
)
from common.config import BaseAppSettings

__all__ = [
    # Database
    "MongoDB",
    # Auth
    "JWTAuth",
    # i18n
    "I18nService",
    "LocalizedText",
    # Utils
    "success_response",
    "error_response",
    "APIException",
    "UnauthorizedException",
    "ForbiddenException",
    "NotFoundException",
    "ValidationException",
    "validate_password",
    "Cascade",
    # Config
    "BaseAppSettings",
]
