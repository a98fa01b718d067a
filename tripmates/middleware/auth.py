"""
Authentication middleware for protected routes.

Validates bearer access tokens and attaches the user to requests.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Request

from common.auth import JWTAuth, TokenError
from common.utils.exceptions import UnauthorizedException, ForbiddenException
from tripmates.moderation.services.ban_policy import evaluate_ban
from tripmates.users.services.user_service import UserService

logger = logging.getLogger(__name__)


class AuthMiddleware:
    """
    Validates the access token and attaches the user to the request.
    """

    def __init__(self, jwt_auth: JWTAuth, user_service: UserService):
        """
        Initialize AuthMiddleware.

        Args:
            jwt_auth: For access token validation
            user_service: For loading the token's user
        """
        self._jwt_auth = jwt_auth
        self._user_service = user_service

    async def require_auth(self, request: Request) -> dict:
        """
        Validate request is authenticated.

        Returns:
            User document attached to request.state.user

        Raises:
            UnauthorizedException: No header, invalid or expired token, unknown user
            ForbiddenException: User has a running ban
        """
        token = self._extract_token(request)

        if not token:
            raise UnauthorizedException(
                message="Authentication required",
                code="AUTH_REQUIRED"
            )

        try:
            claims = self._jwt_auth.verify_access_token(token)
        except TokenError as e:
            logger.debug(f"Access token rejected: {e}")
            raise UnauthorizedException(
                message="Access token expired" if e.expired else "Invalid access token",
                code="TOKEN_EXPIRED" if e.expired else "INVALID_TOKEN"
            )

        user = await self._user_service.get_user_by_id_or_none(claims.get("sub"))
        if not user:
            raise UnauthorizedException(
                message="Invalid access token",
                code="INVALID_TOKEN"
            )

        ban = evaluate_ban(user, datetime.now(timezone.utc))
        if ban.blocks_access:
            logger.info(f"Banned user {user['_id']} refused access")
            raise ForbiddenException(
                message="Account banned",
                code="ACCOUNT_BANNED",
                details={"banUntil": ban.ban_until.isoformat() if ban.ban_until else None},
            )

        request.state.user = user
        return user

    def _extract_token(self, request: Request) -> Optional[str]:
        """
        Extract bearer token from Authorization header.

        Expected format: "Authorization: Bearer <token>"
        """
        auth_header = request.headers.get("Authorization")

        if not auth_header:
            return None

        parts = auth_header.split()

        if len(parts) != 2:
            return None

        scheme, token = parts

        if scheme.lower() != "bearer":
            return None

        return token
