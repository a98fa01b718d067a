"""
FastAPI router for user profile endpoints.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from common.utils import success_response
from tripmates.dependencies import (
    require_auth,
    get_user_service,
    get_membership_service,
    get_account_deletion_service,
)
from tripmates.groups.services.membership_service import MembershipService
from tripmates.schemas.users import UpdateProfileRequest, ChangePasswordRequest
from tripmates.users import pipelines
from tripmates.users.services.account_deletion import AccountDeletionService
from tripmates.users.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me")
async def get_me(
    user: Annotated[dict, Depends(require_auth)],
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    """Get the caller's own account."""
    return success_response({"user": user_service.format_user(user)})


@router.patch("/me")
async def update_me(
    body: UpdateProfileRequest,
    user: Annotated[dict, Depends(require_auth)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Edit the caller's profile."""
    result = await pipelines.update_profile_pipeline(
        user_service=user_service,
        membership_service=membership_service,
        user_id=str(user["_id"]),
        updates=body.model_dump(exclude_none=True),
    )
    return success_response(result)


@router.post("/me/password")
async def change_password(
    body: ChangePasswordRequest,
    user: Annotated[dict, Depends(require_auth)],
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    """Change the caller's password. Other sessions must log in again."""
    await user_service.change_password(
        user["_id"],
        current_password=body.currentPassword,
        new_password=body.newPassword,
        confirm_password=body.newPasswordConfirm,
    )
    return success_response(message="Password changed")


@router.delete("/me")
async def delete_me(
    user: Annotated[dict, Depends(require_auth)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    account_deletion_service: Annotated[AccountDeletionService, Depends(get_account_deletion_service)],
):
    """Delete the caller's account."""
    result = await pipelines.delete_account_pipeline(
        user_service=user_service,
        account_deletion_service=account_deletion_service,
        user_id=str(user["_id"]),
    )
    return success_response(result)


@router.get("/{user_id}")
async def get_public_profile(
    user_id: str,
    user: Annotated[dict, Depends(require_auth)],
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    """Public profile of another user."""
    return success_response({"user": await user_service.get_public_profile(user_id)})
