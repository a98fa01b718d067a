"""
Private (one-to-one) messaging service.

Conversations hold the ordered ids of their messages and a lastMessage
cache. The cache is refreshed on send, edit and delete, and when a
participant's account is deleted.
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
from tripmates.moderation.services.block_service import BlockService
from tripmates.messaging.services.conversation_cache import (
    message_summary,
    is_cached,
    latest_message,
)

logger = logging.getLogger(__name__)


class PrivateMessageService:
    """
    Manages private conversations and their messages.
    """

    MAX_CONTENT_LENGTH = 5000

    def __init__(self, db: AsyncIOMotorDatabase, block_service: BlockService):
        """
        Initialize PrivateMessageService.

        Args:
            db: MongoDB database connection
            block_service: Refuses messages between blocked users
        """
        self._db = db
        self._block_service = block_service
        self._conversations_collection = db["privateConversations"]
        self._messages_collection = db["privateMessages"]
        self._users_collection = db["users"]

    def _clean_content(self, content: Optional[str]) -> str:
        content = (content or "").strip()
        if not content:
            raise BadRequestException(message="Message content is required", code="MESSAGE_REQUIRED")
        if len(content) > self.MAX_CONTENT_LENGTH:
            raise BadRequestException(
                message=f"Message is longer than {self.MAX_CONTENT_LENGTH} characters",
                code="MESSAGE_TOO_LONG",
            )
        return content

    async def get_conversation(self, conversation_id, user_id) -> Dict[str, Any]:
        """
        Get a conversation the user takes part in.

        Raises:
            NotFoundException: Conversation missing
            ForbiddenException: User is not a participant
        """
        conversation = await self._conversations_collection.find_one(
            {"_id": to_object_id(conversation_id, "conversationId")}
        )
        if not conversation:
            raise NotFoundException(message="Conversation not found", code="CONVERSATION_NOT_FOUND")
        if to_object_id(user_id, "userId") not in conversation.get("participants", []):
            raise ForbiddenException(
                message="You are not part of this conversation",
                code="NOT_CONVERSATION_PARTICIPANT",
            )
        return conversation

    async def get_conversations(self, user_id) -> List[Dict[str, Any]]:
        """The user's conversations, most recently active first."""
        cursor = self._conversations_collection.find(
            {"participants": to_object_id(user_id, "userId")},
            {"messages": 0},
        ).sort("updatedAt", -1)
        return await cursor.to_list(length=None)

    async def get_messages(
        self,
        conversation_id,
        user_id,
        limit: int = 50,
        before: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        """
        Messages of a conversation, oldest first.

        Args:
            limit: Maximum messages returned
            before: Only messages strictly older than this instant
        """
        conversation = await self.get_conversation(conversation_id, user_id)

        query: Dict[str, Any] = {"conversationId": conversation["_id"]}
        if before is not None:
            query["timestamp"] = {"$lt": before}

        newest = await self._messages_collection.find(query).sort("timestamp", -1).limit(limit).to_list(length=limit)
        return list(reversed(newest))

    async def send_message(self, sender_id, recipient_id, content: str) -> Dict[str, Any]:
        """
        Send a private message, creating the conversation on first contact.

        Raises:
            BadRequestException: Empty content or messaging oneself
            NotFoundException: Recipient missing
            ForbiddenException: One of the users blocked the other
        """
        content = self._clean_content(content)
        sender_oid = to_object_id(sender_id, "senderId")
        recipient_oid = to_object_id(recipient_id, "recipientId")

        if sender_oid == recipient_oid:
            raise BadRequestException(message="You cannot message yourself", code="CANNOT_MESSAGE_SELF")

        if not await self._users_collection.find_one({"_id": recipient_oid}, {"_id": 1}):
            raise NotFoundException(message="User not found", code="USER_NOT_FOUND")

        if await self._block_service.is_blocked_between(sender_oid, recipient_oid):
            raise ForbiddenException(
                message="Messaging is not possible between these users",
                code="USER_BLOCKED",
            )

        now = datetime.now(timezone.utc)
        conversation = await self._conversations_collection.find_one({
            "participants": {"$all": [sender_oid, recipient_oid]}
        })
        if not conversation:
            conversation = {
                "participants": [sender_oid, recipient_oid],
                "messages": [],
                "lastMessage": None,
                "createdAt": now,
                "updatedAt": now,
            }
            result = await self._conversations_collection.insert_one(conversation)
            conversation["_id"] = result.inserted_id
            logger.info(f"Private conversation created: {result.inserted_id}")

        message_doc = {
            "conversationId": conversation["_id"],
            "senderId": sender_oid,
            "recipientId": recipient_oid,
            "content": content,
            "timestamp": now,
            "readBy": [sender_oid],
        }
        result = await self._messages_collection.insert_one(message_doc)
        message_doc["_id"] = result.inserted_id

        await self._conversations_collection.update_one(
            {"_id": conversation["_id"]},
            {
                "$push": {"messages": message_doc["_id"]},
                "$set": {"lastMessage": message_summary(message_doc), "updatedAt": now},
            }
        )

        logger.debug(f"Private message {message_doc['_id']} sent in {conversation['_id']}")
        return message_doc

    async def _get_own_message(self, message_id, user_id) -> Dict[str, Any]:
        message = await self._messages_collection.find_one({"_id": to_object_id(message_id, "messageId")})
        if not message:
            raise NotFoundException(message="Message not found", code="MESSAGE_NOT_FOUND")
        if message["senderId"] != to_object_id(user_id, "userId"):
            raise ForbiddenException(
                message="Only the sender can change this message",
                code="NOT_MESSAGE_SENDER",
            )
        return message

    async def update_message(self, message_id, user_id, content: str) -> Dict[str, Any]:
        """Edit a message; the cached lastMessage follows if it is this one."""
        content = self._clean_content(content)
        message = await self._get_own_message(message_id, user_id)
        now = datetime.now(timezone.utc)

        await self._messages_collection.update_one(
            {"_id": message["_id"]},
            {"$set": {"content": content, "editedAt": now}}
        )
        await self._conversations_collection.update_one(
            {"_id": message["conversationId"], "lastMessage.messageId": message["_id"]},
            {"$set": {"lastMessage.content": content}}
        )

        return {**message, "content": content, "editedAt": now}

    async def delete_message(self, message_id, user_id) -> Dict[str, Any]:
        """
        Delete a message.

        The conversation is deleted when it has no message left; otherwise
        lastMessage is recomputed when it pointed at the deleted message.

        Returns:
            dict with conversationDeleted
        """
        message = await self._get_own_message(message_id, user_id)
        await self._messages_collection.delete_one({"_id": message["_id"]})

        await self._conversations_collection.update_one(
            {"_id": message["conversationId"]},
            {"$pull": {"messages": message["_id"]}}
        )
        conversation = await self._conversations_collection.find_one({"_id": message["conversationId"]})
        if not conversation:
            return {"conversationDeleted": True}

        if not conversation.get("messages"):
            await self._conversations_collection.delete_one({"_id": conversation["_id"]})
            await self._messages_collection.delete_many({"conversationId": conversation["_id"]})
            logger.info(f"Private conversation {conversation['_id']} deleted (no messages left)")
            return {"conversationDeleted": True}

        if is_cached(conversation, message["_id"]):
            await self._refresh_last_message(conversation["_id"])

        return {"conversationDeleted": False}

    async def _refresh_last_message(
        self,
        conversation_id: ObjectId,
        exclude_sender: Optional[ObjectId] = None,
    ) -> Optional[dict]:
        """Recompute lastMessage from the messages still stored."""
        remaining = await self._messages_collection.find(
            {"conversationId": conversation_id}
        ).to_list(length=None)
        last = message_summary(latest_message(remaining, exclude_sender=exclude_sender))

        await self._conversations_collection.update_one(
            {"_id": conversation_id},
            {"$set": {"lastMessage": last}}
        )
        return last

    async def mark_read(self, conversation_id, user_id) -> int:
        """Mark every message of a conversation as read by the user."""
        conversation = await self.get_conversation(conversation_id, user_id)
        user_oid = to_object_id(user_id, "userId")

        result = await self._messages_collection.update_many(
            {"conversationId": conversation["_id"], "readBy": {"$ne": user_oid}},
            {"$addToSet": {"readBy": user_oid}}
        )
        return result.modified_count

    async def remove_user(self, user_id) -> Dict[str, int]:
        """
        Detach a deleted user from their private conversations.

        The user's messages are stripped, lastMessage is recomputed from
        the newest message by another author, and the user leaves the
        participants. A conversation with no participant or no message left
        is deleted; one remaining participant keeps their history.

        Returns:
            dict with conversationsUpdated and conversationsDeleted counts
        """
        user_oid = to_object_id(user_id, "userId")
        conversations = await self._conversations_collection.find(
            {"participants": user_oid}
        ).to_list(length=None)
        summary = {"conversationsUpdated": 0, "conversationsDeleted": 0}

        for conversation in conversations:
            authored = await self._messages_collection.find(
                {"conversationId": conversation["_id"], "senderId": user_oid},
                {"_id": 1},
            ).to_list(length=None)
            authored_ids = {message["_id"] for message in authored}

            remaining_ids = [mid for mid in conversation.get("messages", []) if mid not in authored_ids]
            participants = [pid for pid in conversation.get("participants", []) if pid != user_oid]

            if not participants or not remaining_ids:
                await self._conversations_collection.delete_one({"_id": conversation["_id"]})
                await self._messages_collection.delete_many({"conversationId": conversation["_id"]})
                summary["conversationsDeleted"] += 1
                continue

            await self._messages_collection.delete_many(
                {"conversationId": conversation["_id"], "senderId": user_oid}
            )
            await self._conversations_collection.update_one(
                {"_id": conversation["_id"]},
                {"$set": {
                    "messages": remaining_ids,
                    "participants": participants,
                    "updatedAt": datetime.now(timezone.utc),
                }}
            )
            last = conversation.get("lastMessage") or {}
            if last.get("senderId") == user_oid or last.get("messageId") in authored_ids:
                await self._refresh_last_message(conversation["_id"], exclude_sender=user_oid)
            summary["conversationsUpdated"] += 1

        logger.info(
            f"Private conversations of deleted user {user_id}: "
            f"{summary['conversationsUpdated']} updated, {summary['conversationsDeleted']} deleted"
        )
        return summary
