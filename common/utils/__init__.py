"""
Utilities module - Common helpers for API responses, exceptions, and validation.
"""

from common.utils.responses import (
    success_response,
    error_response,
    paginated_response,
    list_response,
)
from common.utils.exceptions import (
    APIException,
    BadRequestException,
    UnauthorizedException,
    ForbiddenException,
    NotFoundException,
    ConflictException,
    ValidationException,
    InternalServerException,
)
from common.utils.password import validate_password
from common.utils.cascade import Cascade, CascadeResult
from common.utils.serialization import to_json_safe, without_fields

__all__ = [
    "success_response",
    "error_response",
    "paginated_response",
    "list_response",
    "APIException",
    "BadRequestException",
    "UnauthorizedException",
    "ForbiddenException",
    "NotFoundException",
    "ConflictException",
    "ValidationException",
    "InternalServerException",
    "validate_password",
    "Cascade",
    "CascadeResult",
    "to_json_safe",
    "without_fields",
]
