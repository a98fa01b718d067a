"""
Auth system pipeline functions.

Stateless orchestration logic for authentication flows.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, TYPE_CHECKING

from common.auth import JWTAuth, TokenError
from common.utils.exceptions import (
    UnauthorizedException,
    ForbiddenException,
)
from tripmates.moderation.services.ban_policy import (
    evaluate_ban,
    BAN_EXPIRED,
    BAN_TEMPORARY,
    BAN_PERMANENT,
)
from tripmates.services.email.email_service import EmailService

if TYPE_CHECKING:
    from tripmates.users.services.user_service import UserService

logger = logging.getLogger(__name__)


async def registration_pipeline(
    user_service: "UserService",
    email_service: EmailService,
    data: dict,
    language: str = "en",
) -> dict:
    """
    Orchestrates the user registration flow.

    Args:
        user_service: Creates the user record
        email_service: Sends the verification email
        data: Registration fields (snake_case keyword arguments of create_user)
        language: Language of the verification email

    Returns:
        dict with the created user and whether the email went out

    Raises:
        ConflictException: Email already registered
        BadRequestException: Passwords differ or unknown catalog ids
        ValidationException: Weak password or user too young
    """
    user, verification_token = await user_service.create_user(**data)

    email_result = await email_service.send_verification_email(
        to_email=user["email"],
        token=verification_token,
        user_name=user.get("firstName"),
        language=language,
    )
    if not email_result.get("success"):
        logger.warning(f"Verification email not sent to user {user['_id']}: {email_result.get('error')}")

    logger.info(f"User registered: {user['_id']}")

    return {
        "user": user_service.format_user(user),
        "verificationEmailSent": bool(email_result.get("success")),
    }


async def check_ban_pipeline(
    user_service: "UserService",
    user: dict,
    now: Optional[datetime] = None,
) -> dict:
    """
    Refuse banned users and lift bans that have expired.

    Returns:
        The user, with ban fields cleared when an expired ban was lifted

    Raises:
        ForbiddenException: Temporary or permanent ban still running
    """
    now = now or datetime.now(timezone.utc)
    status = evaluate_ban(user, now)

    if status.state == BAN_EXPIRED:
        await user_service.lift_ban(user["_id"])
        return {**user, "isBanned": False, "banTimeLapse": None}

    if status.state == BAN_TEMPORARY:
        raise ForbiddenException(
            message="Account temporarily banned",
            code="ACCOUNT_BANNED_TEMPORARILY",
            details={"banUntil": status.ban_until.isoformat()},
        )

    if status.state == BAN_PERMANENT:
        raise ForbiddenException(
            message="Account permanently banned",
            code="ACCOUNT_BANNED_PERMANENTLY",
        )

    return user


async def login_pipeline(
    jwt_auth: JWTAuth,
    user_service: "UserService",
    email: str,
    password: str,
) -> dict:
    """
    Orchestrates the user login flow.

    Args:
        jwt_auth: Password check and token issuing
        user_service: User lookup and refresh token storage
        email: Login email
        password: Plain password

    Returns:
        dict with user, accessToken and refreshToken

    Raises:
        UnauthorizedException: Unknown email or wrong password
        ForbiddenException: Email not verified or user banned
    """
    user = await user_service.get_user_by_email(email)

    if not user or not jwt_auth.verify_password(password, user.get("passwordHash")):
        raise UnauthorizedException(
            message="Invalid email or password",
            code="INVALID_CREDENTIALS"
        )

    if not user.get("emailVerified"):
        raise ForbiddenException(
            message="Email address not verified",
            code="EMAIL_NOT_VERIFIED"
        )

    user = await check_ban_pipeline(user_service, user)

    access_token, refresh_token = jwt_auth.create_token_pair(str(user["_id"]))
    await user_service.set_refresh_token(user["_id"], refresh_token)

    logger.info(f"User logged in: {user['_id']}")

    return {
        "user": user_service.format_user(user),
        "accessToken": access_token,
        "refreshToken": refresh_token,
    }


async def refresh_pipeline(
    jwt_auth: JWTAuth,
    user_service: "UserService",
    refresh_token: str,
) -> dict:
    """
    Exchange the stored refresh token for a new access token.

    Raises:
        UnauthorizedException: Token invalid, expired, revoked or not the stored one
    """
    try:
        claims = jwt_auth.verify_refresh_token(refresh_token)
    except TokenError as e:
        logger.debug(f"Refresh token rejected: {e}")
        raise UnauthorizedException(
            message="Invalid refresh token",
            code="INVALID_REFRESH_TOKEN"
        )

    user = await user_service.get_user_by_id_or_none(claims.get("sub"))
    if not user or user.get("refreshToken") != refresh_token:
        raise UnauthorizedException(
            message="Invalid refresh token",
            code="INVALID_REFRESH_TOKEN"
        )

    await check_ban_pipeline(user_service, user)

    return {"accessToken": jwt_auth.create_access_token(str(user["_id"]))}


async def logout_pipeline(
    user_service: "UserService",
    user_id: str,
) -> dict:
    """Forget the stored refresh token."""
    await user_service.set_refresh_token(user_id, None)

    logger.info(f"User logged out: {user_id}")

    return {"message": "Logged out successfully"}


async def verify_email_pipeline(
    user_service: "UserService",
    token: str,
) -> dict:
    """
    Confirm an email address from its one-time token.

    Raises:
        BadRequestException: Unknown or expired token
    """
    user = await user_service.verify_email(token)
    return {"user": user_service.format_user(user)}


async def forgot_password_pipeline(
    user_service: "UserService",
    email_service: EmailService,
    email: str,
    language: str = "en",
) -> dict:
    """
    Send a password reset link.

    Answers the same way whether or not the email is registered.
    """
    user = await user_service.get_user_by_email(email)

    if user:
        token = await user_service.create_password_reset(user)
        email_result = await email_service.send_password_reset_email(
            to_email=user["email"],
            token=token,
            user_name=user.get("firstName"),
            language=language,
        )
        if not email_result.get("success"):
            logger.warning(f"Reset email not sent to user {user['_id']}: {email_result.get('error')}")
    else:
        logger.debug("Password reset requested for an unknown email")

    return {"message": "If the email is registered, a reset link has been sent"}


async def reset_password_pipeline(
    user_service: "UserService",
    token: str,
    password: str,
    confirm_password: str,
) -> dict:
    """
    Set a new password from a reset token.

    Raises:
        BadRequestException: Unknown or expired token, or passwords differ
        ValidationException: Weak password
    """
    await user_service.reset_password(token, password, confirm_password)
    return {"message": "Password has been reset"}
