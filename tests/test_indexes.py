"""Tests for collection index definitions and MongoDB.ensure_indexes()."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from common.database import MongoDB
from tripmates.catalog.services.catalog_service import CATALOG_KINDS
from tripmates.database import COLLECTION_INDEXES


def _index(collection, keys):
    for model in COLLECTION_INDEXES[collection]:
        if list(model.document["key"].items()) == keys:
            return model.document
    return None


def test_unique_pairs():
    assert _index("users", [("email", 1)])["unique"] is True
    assert _index("reportedUsers", [("reportingUserId", 1), ("reportedUserId", 1)])["unique"] is True
    assert _index("blockedUsers", [("blockingUserId", 1), ("blockedUserId", 1)])["unique"] is True


def test_every_catalog_has_partial_code_index():
    for collection in CATALOG_KINDS.values():
        index = _index(collection, [("code", 1)])
        assert index["unique"] is True
        assert index["partialFilterExpression"] == {"code": {"$type": "string"}}


@pytest.mark.asyncio
async def test_ensure_indexes_creates_per_collection():
    db = MongoDB()
    db._client = MagicMock()
    db._database_name = "tripmates_test"
    collection = db._client.__getitem__.return_value.__getitem__.return_value
    collection.create_indexes = AsyncMock(side_effect=lambda models: [f"index_{n}" for n in range(len(models))])

    applied = await db.ensure_indexes({"users": COLLECTION_INDEXES["users"], "empty": []})

    assert applied == len(COLLECTION_INDEXES["users"])
    collection.create_indexes.assert_awaited_once()


@pytest.mark.asyncio
async def test_ensure_indexes_requires_connection():
    with pytest.raises(RuntimeError):
        await MongoDB().ensure_indexes({"users": COLLECTION_INDEXES["users"]})
