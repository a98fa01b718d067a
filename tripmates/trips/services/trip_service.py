"""
Trip service.

Every trip owns exactly one travel group. Creating a trip creates its group
with the creator as sole member and administrator; deleting a trip deletes
the group with everything attached to it.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.database import to_object_id, to_object_ids
from common.utils.exceptions import (
    NotFoundException,
    BadRequestException,
    ForbiddenException,
)
from tripmates.catalog.services.catalog_service import CatalogService
from tripmates.groups.services.membership_service import MembershipService

logger = logging.getLogger(__name__)


DATE_OPTIONS = ("exact", "range", "start", "end")


def parse_budget(budget: Optional[str]) -> Optional[Dict[str, float]]:
    """
    Parse a "min,max" budget filter.

    Either side may be empty: "500," means at least 500, ",800" at most 800.
    """
    if not budget:
        return None

    parts = [part.strip() for part in budget.split(",")]
    bounds: List[Optional[float]] = []
    for part in parts[:2]:
        try:
            bounds.append(float(part) if part else None)
        except ValueError:
            bounds.append(None)
    while len(bounds) < 2:
        bounds.append(None)

    minimum, maximum = bounds
    condition: Dict[str, float] = {}
    if minimum is not None:
        condition["$gte"] = minimum
    if maximum is not None:
        condition["$lte"] = maximum
    return condition or None


def build_trip_filter(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    date_option: Optional[str] = None,
    budget: Optional[str] = None,
    transport: Optional[List[str]] = None,
    destination: Optional[str] = None,
    trip_type: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build the MongoDB filter for a trip search.

    With both dates, date_option selects the match:
        exact  - same start and end date
        range  - trip within the window, or covering it entirely
        start  - same start date
        end    - same end date
    With one date only, it is an open bound (start on/after, end on/before).
    """
    query: Dict[str, Any] = {}

    if start_date and end_date:
        if end_date < start_date:
            raise BadRequestException(message="endDate is before startDate", code="INVALID_DATE_RANGE")
        if date_option not in DATE_OPTIONS:
            raise BadRequestException(
                message="dateOption must be one of exact, range, start, end",
                code="INVALID_DATE_OPTION",
            )

        if date_option == "exact":
            query["startDate"] = start_date
            query["endDate"] = end_date
        elif date_option == "range":
            query["$or"] = [
                {
                    "startDate": {"$gte": start_date, "$lte": end_date},
                    "endDate": {"$gte": start_date, "$lte": end_date},
                },
                {
                    "startDate": {"$lte": start_date},
                    "endDate": {"$gte": end_date},
                },
            ]
        elif date_option == "start":
            query["startDate"] = start_date
        else:
            query["endDate"] = end_date
    elif start_date:
        query["startDate"] = {"$gte": start_date}
    elif end_date:
        query["endDate"] = {"$lte": end_date}

    budget_condition = parse_budget(budget)
    if budget_condition:
        query["budget"] = budget_condition

    if transport:
        query["transport"] = {"$in": to_object_ids(transport, "transport")}

    if destination:
        query["destination"] = to_object_id(destination, "destination")

    if trip_type:
        query["tripType"] = to_object_id(trip_type, "tripType")

    return query


class TripService:
    """
    Manages trips and the groups they own.
    """

    EDITABLE_FIELDS = ("title", "startDate", "endDate", "budget", "transport", "destination", "tripType")

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        membership_service: MembershipService,
        catalog_service: CatalogService,
    ):
        """
        Initialize TripService.

        Args:
            db: MongoDB database connection
            membership_service: Creates and deletes trip groups
            catalog_service: Validates transport, destination and trip type ids
        """
        self._db = db
        self._membership_service = membership_service
        self._catalog_service = catalog_service
        self._trips_collection = db["trips"]
        self._groups_collection = db["groups"]
        self._users_collection = db["users"]

    async def _validate_references(self, data: dict) -> dict:
        """Resolve catalog references in trip data to ObjectIds."""
        resolved = dict(data)
        if "transport" in data:
            resolved["transport"] = await self._catalog_service.ensure_exists(
                "transports", data["transport"] or [], "transport"
            )
        if data.get("destination") is not None:
            resolved["destination"] = (await self._catalog_service.ensure_exists(
                "countries", [data["destination"]], "destination"
            ))[0]
        if data.get("tripType") is not None:
            resolved["tripType"] = (await self._catalog_service.ensure_exists(
                "tripTypes", [data["tripType"]], "tripType"
            ))[0]
        return resolved

    async def get_trip(self, trip_id) -> Dict[str, Any]:
        """Get trip by ID."""
        trip = await self._trips_collection.find_one({"_id": to_object_id(trip_id, "tripId")})
        if not trip:
            raise NotFoundException(message="Trip not found", code="TRIP_NOT_FOUND")
        return trip

    async def get_trip_details(self, trip_id) -> Dict[str, Any]:
        """Get a trip with its group and member summaries."""
        trip = await self.get_trip(trip_id)
        group = None
        members: List[Dict[str, Any]] = []

        if trip.get("groupId"):
            group = await self._groups_collection.find_one({"_id": trip["groupId"]})
            if group:
                members = await self._membership_service.get_members(group["_id"])

        return {**trip, "group": group, "members": members}

    async def get_trips_for_user(self, user_id) -> List[Dict[str, Any]]:
        """Trips whose group the user belongs to."""
        groups = await self._membership_service.get_groups_for_user(user_id)
        group_ids = [group["_id"] for group in groups]
        if not group_ids:
            return []

        cursor = self._trips_collection.find({"groupId": {"$in": group_ids}}).sort("startDate", 1)
        return await cursor.to_list(length=None)

    async def create_trip(self, user_id, data: dict) -> Dict[str, Any]:
        """
        Create a trip and its group.

        Args:
            user_id: Creator, becomes the group's administrator
            data: title, startDate, endDate, budget, transport, destination, tripType

        Raises:
            NotFoundException: Creator missing
            BadRequestException: Invalid dates or unknown references
        """
        owner = await self._users_collection.find_one({"_id": to_object_id(user_id, "userId")}, {"_id": 1})
        if not owner:
            raise NotFoundException(message="User not found", code="USER_NOT_FOUND")

        if data["endDate"] < data["startDate"]:
            raise BadRequestException(message="endDate is before startDate", code="INVALID_DATE_RANGE")

        resolved = await self._validate_references(data)
        group = await self._membership_service.create_group(data["title"], owner["_id"])

        now = datetime.now(timezone.utc)
        trip_doc = {
            "title": data["title"],
            "startDate": data["startDate"],
            "endDate": data["endDate"],
            "budget": data["budget"],
            "userId": owner["_id"],
            "transport": resolved.get("transport", []),
            "destination": resolved.get("destination"),
            "tripType": resolved.get("tripType"),
            "groupId": group["_id"],
            "createdAt": now,
            "updatedAt": now,
        }
        result = await self._trips_collection.insert_one(trip_doc)
        trip_doc["_id"] = result.inserted_id

        await self._groups_collection.update_one(
            {"_id": group["_id"]},
            {"$set": {"tripId": result.inserted_id, "updatedAt": now}}
        )

        logger.info(f"Trip created: {result.inserted_id} with group {group['_id']}")
        return trip_doc

    async def update_trip(self, trip_id, actor_id, updates: dict) -> Dict[str, Any]:
        """
        Update a trip. A title change renames the group.

        Raises:
            ForbiddenException: Actor is not a group administrator
        """
        trip = await self.get_trip(trip_id)
        group = await self._membership_service.get_group(trip["groupId"])
        self._membership_service.require_administrator(group, actor_id)

        changes = {key: value for key, value in updates.items() if key in self.EDITABLE_FIELDS}
        if not changes:
            return trip

        start = changes.get("startDate", trip["startDate"])
        end = changes.get("endDate", trip["endDate"])
        if end < start:
            raise BadRequestException(message="endDate is before startDate", code="INVALID_DATE_RANGE")

        changes = await self._validate_references(changes)
        now = datetime.now(timezone.utc)
        changes["updatedAt"] = now

        await self._trips_collection.update_one({"_id": trip["_id"]}, {"$set": changes})

        if "title" in changes and changes["title"] != trip["title"]:
            await self._groups_collection.update_one(
                {"_id": group["_id"]},
                {"$set": {"name": changes["title"], "updatedAt": now}}
            )

        logger.info(f"Trip {trip['_id']} updated by {actor_id}")
        return await self.get_trip(trip["_id"])

    async def delete_trip(self, trip_id, actor_id) -> None:
        """
        Delete a trip together with its group.

        Raises:
            ForbiddenException: Actor is not a group administrator
        """
        trip = await self.get_trip(trip_id)
        group = await self._groups_collection.find_one({"_id": trip.get("groupId")})

        if group is None:
            # Orphan trip: only its owner may remove it
            if to_object_id(actor_id, "actorId") != trip["userId"]:
                raise ForbiddenException(message="Only the trip owner can do this", code="NOT_TRIP_OWNER")
            await self._trips_collection.delete_one({"_id": trip["_id"]})
        else:
            self._membership_service.require_administrator(group, actor_id)
            await self._membership_service.delete_group(group)

        logger.info(f"Trip {trip['_id']} deleted by {actor_id}")

    async def search_trips(
        self,
        filters: dict,
        languages: Optional[List[str]] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Search trips.

        Args:
            filters: Keyword arguments for build_trip_filter
            languages: Language ids; only trips whose group speaks one of them
            page: 1-indexed page
            limit: Page size

        Returns:
            (trips on the page, total matching)
        """
        query = build_trip_filter(**filters)

        if languages:
            groups = await self._groups_collection.find(
                {"languages": {"$in": to_object_ids(languages, "languages")}},
                {"_id": 1},
            ).to_list(length=None)
            query["groupId"] = {"$in": [group["_id"] for group in groups]}

        total = await self._trips_collection.count_documents(query)
        cursor = (
            self._trips_collection.find(query)
            .sort("startDate", 1)
            .skip((page - 1) * limit)
            .limit(limit)
        )
        trips = await cursor.to_list(length=limit)
        return trips, total
