"""
User blocking service.
"""

import logging
from datetime import datetime, timezone
from typing import List, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.database import to_object_id
from common.utils.exceptions import (
    NotFoundException,
    ConflictException,
    BadRequestException,
)

logger = logging.getLogger(__name__)


class BlockService:
    """
    Manages blocks between users.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self._blocked_users_collection = db["blockedUsers"]
        self._users_collection = db["users"]

    async def block_user(self, blocking_user_id, blocked_user_id) -> Dict[str, Any]:
        """
        Block a user.

        Raises:
            BadRequestException: Blocking oneself
            NotFoundException: Blocked user missing
            ConflictException: Already blocked
        """
        blocking_oid = to_object_id(blocking_user_id, "blockingUserId")
        blocked_oid = to_object_id(blocked_user_id, "blockedUserId")

        if blocking_oid == blocked_oid:
            raise BadRequestException(message="You cannot block yourself", code="CANNOT_BLOCK_SELF")

        if not await self._users_collection.find_one({"_id": blocked_oid}, {"_id": 1}):
            raise NotFoundException(message="User not found", code="USER_NOT_FOUND")

        existing = await self._blocked_users_collection.find_one({
            "blockingUserId": blocking_oid,
            "blockedUserId": blocked_oid,
        })
        if existing:
            raise ConflictException(message="User is already blocked", code="USER_ALREADY_BLOCKED")

        block_doc = {
            "blockingUserId": blocking_oid,
            "blockedUserId": blocked_oid,
            "createdAt": datetime.now(timezone.utc),
        }
        result = await self._blocked_users_collection.insert_one(block_doc)
        block_doc["_id"] = result.inserted_id

        logger.info(f"User {blocking_user_id} blocked {blocked_user_id}")
        return block_doc

    async def unblock_user(self, blocking_user_id, blocked_user_id) -> None:
        result = await self._blocked_users_collection.delete_one({
            "blockingUserId": to_object_id(blocking_user_id, "blockingUserId"),
            "blockedUserId": to_object_id(blocked_user_id, "blockedUserId"),
        })
        if result.deleted_count == 0:
            raise NotFoundException(message="Block not found", code="BLOCK_NOT_FOUND")

        logger.info(f"User {blocking_user_id} unblocked {blocked_user_id}")

    async def get_blocked_users(self, user_id) -> List[Dict[str, Any]]:
        """Blocks created by the user, newest first."""
        cursor = self._blocked_users_collection.find(
            {"blockingUserId": to_object_id(user_id, "userId")}
        ).sort("createdAt", -1)
        return await cursor.to_list(length=None)

    async def is_blocked_between(self, user_a, user_b) -> bool:
        """True if either user blocked the other."""
        a = to_object_id(user_a, "userId")
        b = to_object_id(user_b, "userId")
        block = await self._blocked_users_collection.find_one({
            "$or": [
                {"blockingUserId": a, "blockedUserId": b},
                {"blockingUserId": b, "blockedUserId": a},
            ]
        })
        return block is not None
