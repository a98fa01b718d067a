"""
Site moderator registry.

Site moderators are listed in the "administrators" collection. They are
unrelated to group administrators.
"""

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.database import to_object_id


class ModeratorService:

    def __init__(self, db: AsyncIOMotorDatabase):
        self._administrators_collection = db["administrators"]

    async def is_moderator(self, user_id) -> bool:
        entry = await self._administrators_collection.find_one(
            {"userId": to_object_id(user_id, "userId")},
            {"_id": 1},
        )
        return entry is not None
