"""
User pipeline functions.

Stateless orchestration across the user, group and deletion services.
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tripmates.groups.services.membership_service import MembershipService
    from tripmates.users.services.account_deletion import AccountDeletionService
    from tripmates.users.services.user_service import UserService

logger = logging.getLogger(__name__)


async def update_profile_pipeline(
    user_service: "UserService",
    membership_service: "MembershipService",
    user_id: str,
    updates: dict,
) -> dict:
    """
    Update a profile and keep group languages in step with it.

    Args:
        user_service: Applies the profile changes
        membership_service: Recomputes languages of the user's groups
        user_id: Profile owner
        updates: camelCase profile fields

    Returns:
        dict with the user and the number of groups refreshed
    """
    user, languages_changed = await user_service.update_profile(user_id, updates)

    groups_refreshed = 0
    if languages_changed:
        groups_refreshed = await membership_service.refresh_languages_for_user(user["_id"])
        logger.info(f"Languages of user {user_id} changed; {groups_refreshed} groups refreshed")

    return {
        "user": user_service.format_user(user),
        "groupsRefreshed": groups_refreshed,
    }


async def delete_account_pipeline(
    user_service: "UserService",
    account_deletion_service: "AccountDeletionService",
    user_id: str,
) -> dict:
    """
    Delete the caller's account and everything attached to it.

    Raises:
        NotFoundException: User missing
        InternalServerException: Account removed but cleanup incomplete
    """
    user = await user_service.get_user(user_id)
    outcome = await account_deletion_service.delete_account(user["_id"])

    logger.info(f"Account {user_id} deleted by its owner")

    return {"message": "Account deleted", "cleanup": outcome}
