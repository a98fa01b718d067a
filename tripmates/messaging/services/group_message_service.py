"""
Group messaging service.

Each group has one conversation document mirroring its members as
participants and caching the newest message.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.database import to_object_id
from common.utils.exceptions import (
    NotFoundException,
    ForbiddenException,
    BadRequestException,
)
from tripmates.groups.services.membership_service import MembershipService
from tripmates.messaging.services.conversation_cache import (
    message_summary,
    is_cached,
    latest_message,
)

logger = logging.getLogger(__name__)


class GroupMessageService:
    """
    Manages messages posted in travel groups.
    """

    MAX_CONTENT_LENGTH = 5000

    def __init__(self, db: AsyncIOMotorDatabase, membership_service: MembershipService):
        """
        Initialize GroupMessageService.

        Args:
            db: MongoDB database connection
            membership_service: For group membership checks
        """
        self._db = db
        self._membership_service = membership_service
        self._messages_collection = db["groupMessages"]
        self._conversations_collection = db["groupConversations"]

    async def get_messages(
        self,
        group_id,
        user_id,
        limit: int = 50,
        before: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        """Messages of a group, oldest first. Members only."""
        group = await self._membership_service.get_group(group_id)
        self._membership_service.require_member(group, user_id)

        query: Dict[str, Any] = {"groupId": group["_id"]}
        if before is not None:
            query["timestamp"] = {"$lt": before}

        newest = await self._messages_collection.find(query).sort("timestamp", -1).limit(limit).to_list(length=limit)
        return list(reversed(newest))

    async def get_conversation(self, group_id, user_id) -> Dict[str, Any]:
        """The group's conversation summary. Members only."""
        group = await self._membership_service.get_group(group_id)
        self._membership_service.require_member(group, user_id)

        conversation = await self._conversations_collection.find_one(
            {"groupId": group["_id"]},
            {"messages": 0},
        )
        if not conversation:
            raise NotFoundException(message="Conversation not found", code="CONVERSATION_NOT_FOUND")
        return conversation

    async def send_message(self, group_id, sender_id, content: str) -> Dict[str, Any]:
        """
        Post a message in a group.

        Raises:
            BadRequestException: Empty content
            ForbiddenException: Sender is not a member
        """
        content = (content or "").strip()
        if not content:
            raise BadRequestException(message="Message content is required", code="MESSAGE_REQUIRED")
        if len(content) > self.MAX_CONTENT_LENGTH:
            raise BadRequestException(
                message=f"Message is longer than {self.MAX_CONTENT_LENGTH} characters",
                code="MESSAGE_TOO_LONG",
            )

        group = await self._membership_service.get_group(group_id)
        self._membership_service.require_member(group, sender_id)
        sender_oid = to_object_id(sender_id, "senderId")

        now = datetime.now(timezone.utc)
        message_doc = {
            "groupId": group["_id"],
            "senderId": sender_oid,
            "content": content,
            "timestamp": now,
            "readBy": [sender_oid],
        }
        result = await self._messages_collection.insert_one(message_doc)
        message_doc["_id"] = result.inserted_id

        await self._conversations_collection.update_one(
            {"groupId": group["_id"]},
            {
                "$push": {"messages": message_doc["_id"]},
                "$set": {"lastMessage": message_summary(message_doc), "updatedAt": now},
                "$setOnInsert": {"participants": group.get("members", []), "createdAt": now},
            },
            upsert=True,
        )

        logger.debug(f"Group message {message_doc['_id']} sent in group {group['_id']}")
        return message_doc

    async def _get_message(self, message_id) -> Dict[str, Any]:
        message = await self._messages_collection.find_one({"_id": to_object_id(message_id, "messageId")})
        if not message:
            raise NotFoundException(message="Message not found", code="MESSAGE_NOT_FOUND")
        return message

    async def update_message(self, message_id, user_id, content: str) -> Dict[str, Any]:
        """Edit a group message. Sender only."""
        content = (content or "").strip()
        if not content:
            raise BadRequestException(message="Message content is required", code="MESSAGE_REQUIRED")

        message = await self._get_message(message_id)
        if message["senderId"] != to_object_id(user_id, "userId"):
            raise ForbiddenException(
                message="Only the sender can change this message",
                code="NOT_MESSAGE_SENDER",
            )

        now = datetime.now(timezone.utc)
        await self._messages_collection.update_one(
            {"_id": message["_id"]},
            {"$set": {"content": content, "editedAt": now}}
        )
        await self._conversations_collection.update_one(
            {"groupId": message["groupId"], "lastMessage.messageId": message["_id"]},
            {"$set": {"lastMessage.content": content}}
        )
        return {**message, "content": content, "editedAt": now}

    async def delete_message(self, message_id, user_id) -> None:
        """Delete a group message. Sender or group administrator."""
        message = await self._get_message(message_id)

        if message["senderId"] != to_object_id(user_id, "userId"):
            group = await self._membership_service.get_group(message["groupId"])
            if not self._membership_service.is_administrator(group, user_id):
                raise ForbiddenException(
                    message="Only the sender or a group administrator can delete this message",
                    code="NOT_MESSAGE_SENDER_OR_ADMIN",
                )

        await self._messages_collection.delete_one({"_id": message["_id"]})
        await self._conversations_collection.update_one(
            {"groupId": message["groupId"]},
            {"$pull": {"messages": message["_id"]}}
        )

        conversation = await self._conversations_collection.find_one({"groupId": message["groupId"]})
        if conversation and is_cached(conversation, message["_id"]):
            await self._refresh_last_message(message["groupId"])

    async def _refresh_last_message(self, group_oid: ObjectId) -> Optional[dict]:
        remaining = await self._messages_collection.find({"groupId": group_oid}).to_list(length=None)
        last = message_summary(latest_message(remaining))

        await self._conversations_collection.update_one(
            {"groupId": group_oid},
            {"$set": {"lastMessage": last}}
        )
        return last

    async def remove_user(self, user_id) -> Dict[str, int]:
        """
        Remove a deleted user's group messages and conversation presence.

        Returns:
            dict with messagesDeleted and conversationsUpdated counts
        """
        user_oid = to_object_id(user_id, "userId")

        authored = await self._messages_collection.find(
            {"senderId": user_oid},
            {"_id": 1, "groupId": 1},
        ).to_list(length=None)
        authored_ids = [message["_id"] for message in authored]
        touched_groups = {message["groupId"] for message in authored}

        result = await self._messages_collection.delete_many({"senderId": user_oid})

        conversations = await self._conversations_collection.find({
            "$or": [
                {"participants": user_oid},
                {"groupId": {"$in": list(touched_groups)}},
            ]
        }).to_list(length=None)

        for conversation in conversations:
            await self._conversations_collection.update_one(
                {"_id": conversation["_id"]},
                {"$pull": {
                    "participants": user_oid,
                    "messages": {"$in": authored_ids},
                }}
            )
            last = conversation.get("lastMessage") or {}
            if last.get("senderId") == user_oid:
                await self._refresh_last_message(conversation["groupId"])

        return {"messagesDeleted": result.deleted_count, "conversationsUpdated": len(conversations)}
