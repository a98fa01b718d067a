"""
Group membership service.

Keeps a group's members, administrators and derived language set
consistent as users join, leave, get promoted or get deleted, and carries
the structural consequences over to the group's trip.

Invariants after every mutation completes:
    - languages == union of the languages of every current member
    - administrators is a non-empty subset of members
    - trip.userId == administrators[0]
A group whose last member leaves is deleted together with its trip.
"""

import logging
from datetime import datetime, timezone
from typing import List, Dict, Any

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from common.database import to_object_id
from common.utils.cascade import Cascade
from common.utils.exceptions import (
    NotFoundException,
    ForbiddenException,
    ConflictException,
    InternalServerException,
)
from tripmates.messaging.services.conversation_cache import message_summary, latest_message

logger = logging.getLogger(__name__)


class MembershipService:
    """
    Membership consistency engine for travel groups.
    """

    MEMBER_SUMMARY_FIELDS = {
        "firstName": 1,
        "lastName": 1,
        "profilePictureUrl": 1,
        "languages": 1,
    }

    def __init__(self, db: AsyncIOMotorDatabase):
        """
        Initialize MembershipService.

        Args:
            db: MongoDB database connection
        """
        self._db = db
        self._groups_collection = db["groups"]
        self._users_collection = db["users"]
        self._trips_collection = db["trips"]
        self._join_requests_collection = db["groupJoinRequests"]
        self._group_messages_collection = db["groupMessages"]
        self._group_conversations_collection = db["groupConversations"]

    # ─────────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────────

    async def get_group(self, group_id) -> Dict[str, Any]:
        """Get group by ID."""
        group = await self._groups_collection.find_one({"_id": to_object_id(group_id, "groupId")})
        if not group:
            raise NotFoundException(message="Group not found", code="GROUP_NOT_FOUND")
        return group

    async def get_groups_for_user(self, user_id) -> List[Dict[str, Any]]:
        """Get all groups the user is a member of."""
        cursor = self._groups_collection.find({"members": to_object_id(user_id, "userId")})
        return await cursor.to_list(length=None)

    async def get_members(self, group_id) -> List[Dict[str, Any]]:
        """Get public summaries of a group's members, in membership order."""
        group = await self.get_group(group_id)
        members = group.get("members", [])

        users = await self._users_collection.find(
            {"_id": {"$in": members}},
            self.MEMBER_SUMMARY_FIELDS,
        ).to_list(length=None)
        by_id = {user["_id"]: user for user in users}
        administrators = set(group.get("administrators", []))

        return [
            {**by_id[member_id], "isAdministrator": member_id in administrators}
            for member_id in members
            if member_id in by_id
        ]

    @staticmethod
    def is_member(group: dict, user_id) -> bool:
        return to_object_id(user_id, "userId") in group.get("members", [])

    @staticmethod
    def is_administrator(group: dict, user_id) -> bool:
        return to_object_id(user_id, "userId") in group.get("administrators", [])

    def require_administrator(self, group: dict, user_id) -> None:
        """
        Raises:
            ForbiddenException: The user does not administer the group
        """
        if not self.is_administrator(group, user_id):
            raise ForbiddenException(
                message="Only a group administrator can do this",
                code="NOT_GROUP_ADMIN",
            )

    def require_member(self, group: dict, user_id) -> None:
        """
        Raises:
            ForbiddenException: The user is not a member of the group
        """
        if not self.is_member(group, user_id):
            raise ForbiddenException(
                message="Only group members can do this",
                code="NOT_GROUP_MEMBER",
            )

    # ─────────────────────────────────────────────────────────────────
    # Derived state
    # ─────────────────────────────────────────────────────────────────

    async def compute_languages(self, member_ids: List[ObjectId]) -> List[ObjectId]:
        """
        Deduplicated union of the members' spoken languages.

        Members are fetched fresh from the users collection. The result keeps
        membership order, then each member's own language order.
        """
        if not member_ids:
            return []

        users = await self._users_collection.find(
            {"_id": {"$in": list(member_ids)}},
            {"languages": 1},
        ).to_list(length=None)
        by_id = {user["_id"]: user for user in users}

        languages: List[ObjectId] = []
        for member_id in member_ids:
            for language_id in by_id.get(member_id, {}).get("languages", []) or []:
                if language_id not in languages:
                    languages.append(language_id)
        return languages

    async def refresh_languages(self, group_id) -> List[ObjectId]:
        """Recompute and store a group's languages from its current members."""
        group = await self.get_group(group_id)
        languages = await self.compute_languages(group.get("members", []))

        await self._groups_collection.update_one(
            {"_id": group["_id"]},
            {"$set": {"languages": languages, "updatedAt": datetime.now(timezone.utc)}}
        )
        return languages

    async def refresh_languages_for_user(self, user_id) -> int:
        """
        Recompute languages of every group the user belongs to.

        Called after the user edits the languages they speak.

        Returns:
            Number of groups refreshed
        """
        groups = await self.get_groups_for_user(user_id)
        for group in groups:
            await self.refresh_languages(group["_id"])

        logger.debug(f"Refreshed languages of {len(groups)} groups for user {user_id}")
        return len(groups)

    async def _sync_trip_owner(self, group: dict) -> None:
        """Point the group's trip at its primary administrator."""
        administrators = group.get("administrators", [])
        if not administrators:
            return

        await self._trips_collection.update_one(
            {"groupId": group["_id"]},
            {"$set": {"userId": administrators[0], "updatedAt": datetime.now(timezone.utc)}}
        )

    # ─────────────────────────────────────────────────────────────────
    # Creation
    # ─────────────────────────────────────────────────────────────────

    async def create_group(self, name: str, owner_id) -> Dict[str, Any]:
        """
        Create a group owned by a single member.

        Args:
            name: Group name (the trip title)
            owner_id: Creating user, first member and administrator

        Returns:
            Created group document
        """
        owner_oid = to_object_id(owner_id, "userId")
        now = datetime.now(timezone.utc)

        group_doc = {
            "name": name,
            "members": [owner_oid],
            "administrators": [owner_oid],
            "languages": await self.compute_languages([owner_oid]),
            "tripId": None,
            "createdAt": now,
            "updatedAt": now,
        }

        result = await self._groups_collection.insert_one(group_doc)
        group_doc["_id"] = result.inserted_id

        await self._group_conversations_collection.insert_one({
            "groupId": result.inserted_id,
            "participants": [owner_oid],
            "messages": [],
            "lastMessage": None,
            "createdAt": now,
            "updatedAt": now,
        })

        logger.info(f"Group created: {result.inserted_id} by {owner_id}")
        return group_doc

    # ─────────────────────────────────────────────────────────────────
    # Membership changes
    # ─────────────────────────────────────────────────────────────────

    async def add_member(self, group_id, user_id, exists_ok: bool = False) -> Dict[str, Any]:
        """
        Add a user to a group and union their languages in.

        Args:
            group_id: Group to join
            user_id: User to add
            exists_ok: Return the group unchanged when the user is already a member

        Raises:
            NotFoundException: Group or user missing
            ConflictException: User already a member and exists_ok is False
        """
        group = await self.get_group(group_id)
        user_oid = to_object_id(user_id, "userId")

        if user_oid in group.get("members", []):
            if exists_ok:
                return group
            raise ConflictException(
                message="User is already a member of this group",
                code="ALREADY_MEMBER",
            )

        user = await self._users_collection.find_one({"_id": user_oid}, {"languages": 1})
        if not user:
            raise NotFoundException(message="User not found", code="USER_NOT_FOUND")

        await self._groups_collection.update_one(
            {"_id": group["_id"]},
            {
                "$addToSet": {
                    "members": user_oid,
                    "languages": {"$each": user.get("languages") or []},
                },
                "$set": {"updatedAt": datetime.now(timezone.utc)},
            }
        )
        await self._group_conversations_collection.update_one(
            {"groupId": group["_id"]},
            {"$addToSet": {"participants": user_oid}}
        )
        # Another member may have left between the read and the write
        await self.refresh_languages(group["_id"])

        logger.info(f"User {user_id} added to group {group['_id']}")
        return await self.get_group(group["_id"])

    async def remove_member(
        self,
        group_id,
        user_id,
        actor_id=None,
    ) -> Dict[str, Any]:
        """
        Remove a user from a group.

        A member may remove themselves; otherwise the actor must be an
        administrator. Removing the last member deletes the group and trip.
        Removing the last administrator promotes the first remaining member.

        Args:
            group_id: Group to leave
            user_id: Member to remove
            actor_id: User performing the removal (None for system cascades)

        Returns:
            dict with groupDeleted, promotedAdministrator and the group

        Raises:
            NotFoundException: Group missing or user not a member
            ForbiddenException: Actor may not remove this member
        """
        group = await self.get_group(group_id)
        user_oid = to_object_id(user_id, "userId")

        if actor_id is not None and to_object_id(actor_id, "actorId") != user_oid:
            self.require_administrator(group, actor_id)

        members = group.get("members", [])
        if user_oid not in members:
            raise NotFoundException(
                message="User is not a member of this group",
                code="USER_NOT_IN_GROUP",
            )

        remaining = [member for member in members if member != user_oid]
        if not remaining:
            await self.delete_group(group)
            logger.info(f"Last member {user_id} left group {group['_id']}; group deleted")
            return {"groupDeleted": True, "promotedAdministrator": None, "group": None}

        previous_administrators = group.get("administrators", [])
        administrators = [
            admin for admin in previous_administrators
            if admin != user_oid and admin in remaining
        ]
        promoted = None
        if not administrators:
            promoted = remaining[0]
            administrators = [promoted]

        await self._groups_collection.update_one(
            {"_id": group["_id"]},
            {
                "$pull": {"members": user_oid},
                "$set": {
                    "administrators": administrators,
                    "updatedAt": datetime.now(timezone.utc),
                },
            }
        )
        await self._leave_conversation(group["_id"], user_oid, remaining)
        await self.refresh_languages(group["_id"])

        updated = await self.get_group(group["_id"])
        if not previous_administrators or previous_administrators[0] != administrators[0]:
            await self._sync_trip_owner(updated)

        if promoted is not None:
            logger.info(f"User {promoted} promoted to administrator of group {group['_id']}")
        logger.info(f"User {user_id} removed from group {group['_id']}")

        return {"groupDeleted": False, "promotedAdministrator": promoted, "group": updated}

    async def _leave_conversation(
        self,
        group_oid: ObjectId,
        user_oid: ObjectId,
        remaining: List[ObjectId],
    ) -> None:
        """Drop a participant and re-point lastMessage if they authored it."""
        conversation = await self._group_conversations_collection.find_one_and_update(
            {"groupId": group_oid},
            {"$pull": {"participants": user_oid}},
            return_document=ReturnDocument.AFTER,
        )
        if not conversation:
            return

        last = conversation.get("lastMessage") or {}
        if last.get("senderId") != user_oid:
            return

        messages = await self._group_messages_collection.find(
            {"groupId": group_oid, "senderId": {"$in": remaining}}
        ).to_list(length=None)
        await self._group_conversations_collection.update_one(
            {"_id": conversation["_id"]},
            {"$set": {"lastMessage": message_summary(latest_message(messages))}}
        )

    async def add_administrator(self, group_id, actor_id, user_id) -> Dict[str, Any]:
        """
        Promote an existing member to administrator.

        Raises:
            ForbiddenException: Actor is not an administrator
            NotFoundException: Target is not a member
        """
        group = await self.get_group(group_id)
        self.require_administrator(group, actor_id)

        user_oid = to_object_id(user_id, "userId")
        if user_oid not in group.get("members", []):
            raise NotFoundException(
                message="User is not a member of this group",
                code="USER_NOT_IN_GROUP",
            )

        await self._groups_collection.update_one(
            {"_id": group["_id"]},
            {
                "$addToSet": {"administrators": user_oid},
                "$set": {"updatedAt": datetime.now(timezone.utc)},
            }
        )

        logger.info(f"User {user_id} made administrator of group {group['_id']} by {actor_id}")
        return await self.get_group(group["_id"])

    async def dissolve_group(self, group_id, actor_id) -> Dict[str, Any]:
        """
        Reset a group to just the acting administrator.

        Deletes group messages and pending join requests, clears the group
        conversation and resets members, administrators and languages.
        The group and its trip are kept.

        Raises:
            ForbiddenException: Actor is not an administrator
            InternalServerException: A cleanup step failed
        """
        group = await self.get_group(group_id)
        self.require_administrator(group, actor_id)

        admin_oid = to_object_id(actor_id, "actorId")
        group_oid = group["_id"]

        async def delete_messages():
            result = await self._group_messages_collection.delete_many({"groupId": group_oid})
            return result.deleted_count

        async def delete_join_requests():
            result = await self._join_requests_collection.delete_many({"groupId": group_oid})
            return result.deleted_count

        async def reset_conversation():
            await self._group_conversations_collection.update_one(
                {"groupId": group_oid},
                {"$set": {
                    "participants": [admin_oid],
                    "messages": [],
                    "lastMessage": None,
                    "updatedAt": datetime.now(timezone.utc),
                }}
            )

        async def reset_members():
            await self._groups_collection.update_one(
                {"_id": group_oid},
                {"$set": {
                    "members": [admin_oid],
                    "administrators": [admin_oid],
                    "languages": await self.compute_languages([admin_oid]),
                    "updatedAt": datetime.now(timezone.utc),
                }}
            )
            await self._sync_trip_owner({"_id": group_oid, "administrators": [admin_oid]})

        cascade = Cascade(f"dissolve group {group_oid}")
        cascade.add("groupMessages", delete_messages)
        cascade.add("joinRequests", delete_join_requests)
        cascade.add("groupConversation", reset_conversation)
        cascade.add("members", reset_members)
        result = await cascade.run()

        if not result.ok:
            raise InternalServerException(
                message="Group dissolution did not complete",
                code="GROUP_DISSOLUTION_INCOMPLETE",
                details=result.to_dict(),
            )

        logger.info(f"Group {group_oid} dissolved by {actor_id}")
        return await self.get_group(group_oid)

    async def delete_group(self, group) -> Dict[str, Any]:
        """
        Delete a group with its trip, join requests, messages and conversation.

        Args:
            group: Group document or group ID

        Raises:
            InternalServerException: A deletion step failed
        """
        if not isinstance(group, dict):
            group = await self.get_group(group)
        group_oid = group["_id"]

        async def delete_trip():
            result = await self._trips_collection.delete_many({"groupId": group_oid})
            return result.deleted_count

        async def delete_join_requests():
            result = await self._join_requests_collection.delete_many({"groupId": group_oid})
            return result.deleted_count

        async def delete_messages():
            result = await self._group_messages_collection.delete_many({"groupId": group_oid})
            return result.deleted_count

        async def delete_conversation():
            result = await self._group_conversations_collection.delete_many({"groupId": group_oid})
            return result.deleted_count

        async def delete_group_document():
            result = await self._groups_collection.delete_one({"_id": group_oid})
            return result.deleted_count

        cascade = Cascade(f"delete group {group_oid}")
        cascade.add("trip", delete_trip)
        cascade.add("joinRequests", delete_join_requests)
        cascade.add("groupMessages", delete_messages)
        cascade.add("groupConversation", delete_conversation)
        cascade.add("group", delete_group_document)
        result = await cascade.run()

        if not result.ok:
            raise InternalServerException(
                message="Group deletion did not complete",
                code="GROUP_DELETION_INCOMPLETE",
                details=result.to_dict(),
            )

        logger.info(f"Group {group_oid} deleted")
        return result.to_dict()

    async def on_user_deleted(self, user_id) -> Dict[str, Any]:
        """
        Remove a deleted user from every group they belonged to.

        Each group is handled independently; a failure in one group does not
        stop the others.

        Returns:
            dict with groupsLeft and groupsDeleted counts

        Raises:
            InternalServerException: At least one group could not be updated
        """
        groups = await self.get_groups_for_user(user_id)
        summary: Dict[str, Any] = {"groupsLeft": 0, "groupsDeleted": 0, "errors": {}}

        for group in groups:
            try:
                outcome = await self.remove_member(group["_id"], user_id)
                if outcome["groupDeleted"]:
                    summary["groupsDeleted"] += 1
                else:
                    summary["groupsLeft"] += 1
            except Exception as e:
                logger.error(f"Failed to remove deleted user {user_id} from group {group['_id']}: {e}")
                summary["errors"][str(group["_id"])] = str(e)

        if summary["errors"]:
            raise InternalServerException(
                message="Some groups could not be updated",
                code="GROUP_CLEANUP_INCOMPLETE",
                details=summary,
            )

        return summary
