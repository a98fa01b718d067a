"""
Reference data catalog.

Languages, interests, countries, transports, trip types and report reasons
share one shape: a localized name record plus an optional code. Names are
returned resolved for the request language.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Iterable

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.database import to_object_id, to_object_ids
from common.i18n import LocalizedText
from common.utils.exceptions import (
    NotFoundException,
    ConflictException,
    BadRequestException,
)

logger = logging.getLogger(__name__)


# kind (as used in URLs) -> collection name
CATALOG_KINDS: Dict[str, str] = {
    "languages": "languages",
    "interests": "interests",
    "countries": "countries",
    "transports": "transports",
    "tripTypes": "tripTypes",
    "reportReasons": "reportReasons",
}


class CatalogService:
    """
    CRUD over the localized reference collections.
    """

    def __init__(self, db: AsyncIOMotorDatabase, default_language: str = "en"):
        """
        Initialize CatalogService.

        Args:
            db: MongoDB database connection
            default_language: Locale used when a name lacks the requested one
        """
        self._db = db
        self._default_language = default_language

    def _collection(self, kind: str):
        if kind not in CATALOG_KINDS:
            raise NotFoundException(
                message=f"Unknown catalog: {kind}",
                code="CATALOG_NOT_FOUND",
                details={"kind": kind, "available": list(CATALOG_KINDS)},
            )
        return self._db[CATALOG_KINDS[kind]]

    def localize(self, entry: dict, language: Optional[str]) -> Dict[str, Any]:
        """Replace the name record by its text for the language."""
        name = LocalizedText.from_document(entry.get("name"), fallback=self._default_language)
        return {
            "_id": entry["_id"],
            "code": entry.get("code"),
            "name": name.resolve(language),
        }

    async def list_entries(self, kind: str, language: Optional[str] = None) -> List[Dict[str, Any]]:
        """List a catalog sorted by localized name."""
        entries = await self._collection(kind).find({}).to_list(length=None)
        localized = [self.localize(entry, language) for entry in entries]
        return sorted(localized, key=lambda entry: (entry["name"] or "").casefold())

    async def get_entry(self, kind: str, entry_id, language: Optional[str] = None, raw: bool = False) -> Dict[str, Any]:
        """Get one catalog entry, localized unless raw is set."""
        entry = await self._collection(kind).find_one({"_id": to_object_id(entry_id, "id")})
        if not entry:
            raise NotFoundException(message="Catalog entry not found", code="CATALOG_ENTRY_NOT_FOUND")
        return entry if raw else self.localize(entry, language)

    async def create_entry(self, kind: str, name: Dict[str, str], code: Optional[str] = None) -> Dict[str, Any]:
        """
        Create a catalog entry.

        Raises:
            BadRequestException: Empty name record
            ConflictException: Code already used in this catalog
        """
        text = LocalizedText(name, fallback=self._default_language)
        if not text:
            raise BadRequestException(message="A name is required", code="CATALOG_NAME_REQUIRED")

        collection = self._collection(kind)
        if code and await collection.find_one({"code": code}):
            raise ConflictException(message="Code already exists", code="CATALOG_CODE_EXISTS")

        now = datetime.now(timezone.utc)
        entry = {"name": text.to_dict(), "code": code, "createdAt": now, "updatedAt": now}
        result = await collection.insert_one(entry)
        entry["_id"] = result.inserted_id

        logger.info(f"Catalog entry created in {kind}: {result.inserted_id}")
        return entry

    async def update_entry(
        self,
        kind: str,
        entry_id,
        name: Optional[Dict[str, str]] = None,
        code: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Merge name translations and/or change the code."""
        entry = await self.get_entry(kind, entry_id, raw=True)
        updates: Dict[str, Any] = {"updatedAt": datetime.now(timezone.utc)}

        if name:
            current = LocalizedText.from_document(entry.get("name"), fallback=self._default_language)
            updates["name"] = current.merge(name).to_dict()
        if code is not None:
            updates["code"] = code

        await self._collection(kind).update_one({"_id": entry["_id"]}, {"$set": updates})
        return await self.get_entry(kind, entry["_id"], raw=True)

    async def delete_entry(self, kind: str, entry_id) -> None:
        entry = await self.get_entry(kind, entry_id, raw=True)
        await self._collection(kind).delete_one({"_id": entry["_id"]})
        logger.info(f"Catalog entry deleted from {kind}: {entry['_id']}")

    async def ensure_exists(self, kind: str, ids: Iterable, field: Optional[str] = None) -> list:
        """
        Check that every id refers to an entry of the catalog.

        Returns:
            The ids as ObjectIds

        Raises:
            BadRequestException: Some ids are unknown
        """
        field = field or kind
        oids = to_object_ids(ids, field)
        if not oids:
            return []

        found = await self._collection(kind).find({"_id": {"$in": oids}}, {"_id": 1}).to_list(length=None)
        found_ids = {entry["_id"] for entry in found}
        missing = [str(oid) for oid in oids if oid not in found_ids]
        if missing:
            raise BadRequestException(
                message=f"Unknown {field}",
                code="UNKNOWN_REFERENCE",
                details={"field": field, "ids": missing},
            )
        return oids
