"""
Account deletion cascade.

Deleting a user touches groups, trips, conversations, messages, join
requests, blocks and reports. There is no transaction around those
collections, so the deletion runs as a best-effort cascade: every step is
attempted, failures are logged and reported, completed steps stay done.
"""

import logging
from typing import Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.database import to_object_id
from common.utils.cascade import Cascade, CascadeResult
from common.utils.exceptions import NotFoundException, InternalServerException
from tripmates.groups.services.membership_service import MembershipService
from tripmates.messaging.services.private_message_service import PrivateMessageService
from tripmates.messaging.services.group_message_service import GroupMessageService

logger = logging.getLogger(__name__)


class AccountDeletionService:
    """
    Deletes a user and cleans up everything that references them.
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        membership_service: MembershipService,
        private_message_service: PrivateMessageService,
        group_message_service: GroupMessageService,
    ):
        """
        Initialize AccountDeletionService.

        Args:
            db: MongoDB database connection
            membership_service: Group membership cleanup
            private_message_service: Private conversation cleanup
            group_message_service: Group conversation cleanup
        """
        self._membership_service = membership_service
        self._private_message_service = private_message_service
        self._group_message_service = group_message_service
        self._users_collection = db["users"]
        self._private_messages_collection = db["privateMessages"]
        self._join_requests_collection = db["groupJoinRequests"]
        self._blocked_users_collection = db["blockedUsers"]
        self._reported_users_collection = db["reportedUsers"]
        self._administrators_collection = db["administrators"]

    def build_cascade(self, user_id) -> Cascade:
        """The ordered cleanup steps for a deleted user."""
        user_oid = to_object_id(user_id, "userId")

        async def delete_many(collection, query) -> int:
            result = await collection.delete_many(query)
            return result.deleted_count

        cascade = Cascade(f"delete user {user_oid}")
        cascade.add("groups", lambda: self._membership_service.on_user_deleted(user_oid))
        cascade.add("privateConversations", lambda: self._private_message_service.remove_user(user_oid))
        cascade.add("groupConversations", lambda: self._group_message_service.remove_user(user_oid))
        cascade.add("privateMessages", lambda: delete_many(
            self._private_messages_collection, {"senderId": user_oid}
        ))
        cascade.add("joinRequests", lambda: delete_many(
            self._join_requests_collection, {"userId": user_oid}
        ))
        cascade.add("blocks", lambda: delete_many(
            self._blocked_users_collection, {"blockingUserId": user_oid}
        ))
        cascade.add("reports", lambda: delete_many(
            self._reported_users_collection, {"reportedUserId": user_oid}
        ))
        cascade.add("moderatorRole", lambda: delete_many(
            self._administrators_collection, {"userId": user_oid}
        ))
        return cascade

    async def delete_account(self, user_id) -> Dict[str, Any]:
        """
        Delete a user account and run the cleanup cascade.

        Returns:
            Cascade summary (completed and failed steps)

        Raises:
            NotFoundException: User missing
            InternalServerException: The user is gone but some cleanup steps failed
        """
        user_oid = to_object_id(user_id, "userId")

        result = await self._users_collection.delete_one({"_id": user_oid})
        if result.deleted_count == 0:
            raise NotFoundException(message="User not found", code="USER_NOT_FOUND")

        logger.info(f"User document {user_oid} deleted, running cleanup")
        outcome: CascadeResult = await self.build_cascade(user_oid).run()

        if not outcome.ok:
            raise InternalServerException(
                message="Account deleted but some cleanup steps failed",
                code="ACCOUNT_DELETION_INCOMPLETE",
                details=outcome.to_dict(),
            )

        return outcome.to_dict()
