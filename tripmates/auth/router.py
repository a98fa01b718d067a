"""
FastAPI router for Auth endpoints.

Registration, login, token refresh, logout and email/password recovery.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from common.auth import JWTAuth
from common.utils import success_response
from tripmates.auth import pipelines
from tripmates.dependencies import (
    require_auth,
    get_jwt_auth,
    get_user_service,
    get_email_service,
    get_language,
)
from tripmates.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    RefreshRequest,
    VerifyEmailRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
)
from tripmates.services.email.email_service import EmailService
from tripmates.users.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=201)
async def register(
    body: RegisterRequest,
    user_service: Annotated[UserService, Depends(get_user_service)],
    email_service: Annotated[EmailService, Depends(get_email_service)],
    language: Annotated[str, Depends(get_language)],
):
    """
    Register a new user account.

    The account must be verified through the emailed link before login.
    """
    result = await pipelines.registration_pipeline(
        user_service=user_service,
        email_service=email_service,
        data={
            "first_name": body.firstName,
            "last_name": body.lastName,
            "email": body.email,
            "password": body.password,
            "confirm_password": body.passwordConfirm,
            "birth_date": body.birthDate,
            "languages": body.languages,
            "interests": body.interests,
            "description": body.description,
            "profile_picture_url": body.profilePictureUrl,
        },
        language=language,
    )
    return success_response(result)


@router.post("/login")
async def login(
    body: LoginRequest,
    jwt_auth: Annotated[JWTAuth, Depends(get_jwt_auth)],
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    """Log in with email and password."""
    result = await pipelines.login_pipeline(
        jwt_auth=jwt_auth,
        user_service=user_service,
        email=body.email,
        password=body.password,
    )
    return success_response(result)


@router.post("/refresh")
async def refresh(
    body: RefreshRequest,
    jwt_auth: Annotated[JWTAuth, Depends(get_jwt_auth)],
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    """Get a new access token from the current refresh token."""
    result = await pipelines.refresh_pipeline(
        jwt_auth=jwt_auth,
        user_service=user_service,
        refresh_token=body.refreshToken,
    )
    return success_response(result)


@router.post("/logout")
async def logout(
    user: Annotated[dict, Depends(require_auth)],
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    """Log out and revoke the refresh token."""
    result = await pipelines.logout_pipeline(user_service, str(user["_id"]))
    return success_response(result)


@router.post("/verify-email")
async def verify_email(
    body: VerifyEmailRequest,
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    """Confirm an email address."""
    result = await pipelines.verify_email_pipeline(user_service, body.token)
    return success_response(result)


@router.post("/forgot-password")
async def forgot_password(
    body: ForgotPasswordRequest,
    user_service: Annotated[UserService, Depends(get_user_service)],
    email_service: Annotated[EmailService, Depends(get_email_service)],
    language: Annotated[str, Depends(get_language)],
):
    """Request a password reset link."""
    result = await pipelines.forgot_password_pipeline(
        user_service=user_service,
        email_service=email_service,
        email=body.email,
        language=language,
    )
    return success_response(result)


@router.post("/reset-password")
async def reset_password(
    body: ResetPasswordRequest,
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    """Set a new password from a reset link."""
    result = await pipelines.reset_password_pipeline(
        user_service=user_service,
        token=body.token,
        password=body.password,
        confirm_password=body.passwordConfirm,
    )
    return success_response(result)
