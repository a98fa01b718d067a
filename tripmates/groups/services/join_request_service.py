"""
Group join request workflow.

A request is pending while its document exists. Approval grants membership
and deletes the request; rejection and withdrawal both delete it.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.database import to_object_id
from common.utils.exceptions import (
    NotFoundException,
    ForbiddenException,
    ConflictException,
)
from tripmates.groups.services.membership_service import MembershipService

logger = logging.getLogger(__name__)


class JoinRequestService:
    """
    Handles join requests for travel groups.
    """

    def __init__(self, db: AsyncIOMotorDatabase, membership_service: MembershipService):
        """
        Initialize JoinRequestService.

        Args:
            db: MongoDB database connection
            membership_service: For group lookups and language refresh
        """
        self._db = db
        self._membership_service = membership_service
        self._join_requests_collection = db["groupJoinRequests"]
        self._groups_collection = db["groups"]

    async def get_request(self, request_id) -> Dict[str, Any]:
        """Get join request by ID."""
        request = await self._join_requests_collection.find_one(
            {"_id": to_object_id(request_id, "requestId")}
        )
        if not request:
            raise NotFoundException(message="Join request not found", code="JOIN_REQUEST_NOT_FOUND")
        return request

    async def ask_join(
        self,
        group_id,
        user_id,
        message: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create a pending join request.

        The group's primary administrator at this moment is recorded as
        adminId and never re-resolved.

        Raises:
            NotFoundException: Group missing
            ConflictException: Already a member, or a request is already pending
        """
        group = await self._membership_service.get_group(group_id)
        user_oid = to_object_id(user_id, "userId")

        if user_oid in group.get("members", []):
            raise ConflictException(
                message="User is already a member of this group",
                code="ALREADY_MEMBER",
            )

        existing = await self._join_requests_collection.find_one({
            "groupId": group["_id"],
            "userId": user_oid,
        })
        if existing:
            raise ConflictException(
                message="A join request is already pending for this group",
                code="JOIN_REQUEST_ALREADY_EXISTS",
            )

        administrators = group.get("administrators", [])
        request_doc = {
            "groupId": group["_id"],
            "userId": user_oid,
            "adminId": administrators[0] if administrators else None,
            "message": message,
            "createdAt": datetime.now(timezone.utc),
        }

        result = await self._join_requests_collection.insert_one(request_doc)
        request_doc["_id"] = result.inserted_id

        logger.info(f"Join request {result.inserted_id}: user {user_id} -> group {group['_id']}")
        return request_doc

    async def approve(self, request_id, actor_id) -> Dict[str, Any]:
        """
        Approve a join request.

        Membership is granted through MembershipService.add_member, so
        approving a user who is already a member changes nothing.

        Returns:
            The updated group

        Raises:
            NotFoundException: Request, group or user missing
            ForbiddenException: Actor is not a group administrator
        """
        request = await self.get_request(request_id)
        group = await self._membership_service.get_group(request["groupId"])
        self._membership_service.require_administrator(group, actor_id)

        try:
            updated = await self._membership_service.add_member(
                group["_id"], request["userId"], exists_ok=True
            )
        except NotFoundException:
            # Requester deleted their account meanwhile
            await self._join_requests_collection.delete_one({"_id": request["_id"]})
            raise

        await self._join_requests_collection.delete_one({"_id": request["_id"]})

        logger.info(f"Join request {request['_id']} approved by {actor_id}")
        return updated

    async def delete_request(self, request_id, actor_id) -> None:
        """
        Reject or withdraw a join request.

        Raises:
            ForbiddenException: Actor is neither a group administrator nor the author
        """
        request = await self.get_request(request_id)
        actor_oid = to_object_id(actor_id, "actorId")

        if actor_oid != request["userId"]:
            group = await self._groups_collection.find_one({"_id": request["groupId"]})
            if not group or actor_oid not in group.get("administrators", []):
                raise ForbiddenException(
                    message="Only a group administrator or the requester can delete this request",
                    code="NOT_REQUEST_OWNER_OR_ADMIN",
                )

        await self._join_requests_collection.delete_one({"_id": request["_id"]})
        logger.info(f"Join request {request['_id']} deleted by {actor_id}")

    async def get_requests_for_group(self, group_id, actor_id) -> List[Dict[str, Any]]:
        """Pending requests of a group, visible to its administrators."""
        group = await self._membership_service.get_group(group_id)
        self._membership_service.require_administrator(group, actor_id)

        cursor = self._join_requests_collection.find({"groupId": group["_id"]}).sort("createdAt", 1)
        return await cursor.to_list(length=None)

    async def get_requests_for_user(self, user_id) -> List[Dict[str, Any]]:
        """Pending requests authored by a user."""
        cursor = self._join_requests_collection.find(
            {"userId": to_object_id(user_id, "userId")}
        ).sort("createdAt", -1)
        return await cursor.to_list(length=None)
