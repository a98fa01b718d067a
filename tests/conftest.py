"""Shared test fixtures for Tripmates backend tests."""

import copy
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId


# ─────────────────────────────────────────────────────────────────
# In-memory stand-in for a Motor database
#
# Supports the query and update operators the services use. Documents
# are deep-copied on the way in and out, like a real round trip.
# ─────────────────────────────────────────────────────────────────

_MISSING = object()


def _resolve(doc, path):
    current = doc
    for part in path.split("."):
        if isinstance(current, dict) and part in current:
            current = current[part]
        else:
            return _MISSING
    return current


def _compare(value, operand, op):
    candidates = value if isinstance(value, list) else [value]
    for candidate in candidates:
        if candidate is _MISSING or candidate is None:
            continue
        if op == "$lt" and candidate < operand:
            return True
        if op == "$lte" and candidate <= operand:
            return True
        if op == "$gt" and candidate > operand:
            return True
        if op == "$gte" and candidate >= operand:
            return True
    return False


def _equals(value, operand):
    if value is _MISSING:
        value = None
    if isinstance(value, list) and not isinstance(operand, list):
        return operand in value
    return value == operand


def _match_value(value, condition):
    if isinstance(condition, dict) and condition and all(key.startswith("$") for key in condition):
        for op, operand in condition.items():
            if op == "$eq" and not _equals(value, operand):
                return False
            if op == "$ne" and _equals(value, operand):
                return False
            if op == "$in" and not any(_equals(value, item) for item in operand):
                return False
            if op == "$nin" and any(_equals(value, item) for item in operand):
                return False
            if op == "$all" and not (isinstance(value, list) and all(item in value for item in operand)):
                return False
            if op == "$exists" and (value is not _MISSING) != bool(operand):
                return False
            if op in ("$lt", "$lte", "$gt", "$gte") and not _compare(value, operand, op):
                return False
        return True
    return _equals(value, condition)


def matches(doc, query):
    for key, condition in (query or {}).items():
        if key == "$or":
            if not any(matches(doc, sub) for sub in condition):
                return False
        elif key == "$and":
            if not all(matches(doc, sub) for sub in condition):
                return False
        elif not _match_value(_resolve(doc, key), condition):
            return False
    return True


def _set_path(doc, path, value):
    parts = path.split(".")
    current = doc
    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            current[part] = {}
        current = current[part]
    current[parts[-1]] = value


def _unset_path(doc, path):
    parts = path.split(".")
    current = doc
    for part in parts[:-1]:
        current = current.get(part)
        if not isinstance(current, dict):
            return
    current.pop(parts[-1], None)


def apply_update(doc, update, inserting=False):
    for op, fields in update.items():
        for path, value in fields.items():
            if op == "$set":
                _set_path(doc, path, copy.deepcopy(value))
            elif op == "$setOnInsert":
                if inserting:
                    _set_path(doc, path, copy.deepcopy(value))
            elif op == "$unset":
                _unset_path(doc, path)
            elif op == "$inc":
                current = _resolve(doc, path)
                _set_path(doc, path, (0 if current in (_MISSING, None) else current) + value)
            elif op in ("$addToSet", "$push"):
                current = _resolve(doc, path)
                items = list(current) if isinstance(current, list) else []
                values = value["$each"] if isinstance(value, dict) and "$each" in value else [value]
                for item in values:
                    if op == "$push" or item not in items:
                        items.append(copy.deepcopy(item))
                _set_path(doc, path, items)
            elif op == "$pull":
                current = _resolve(doc, path)
                if not isinstance(current, list):
                    continue
                if isinstance(value, dict) and "$in" in value:
                    kept = [item for item in current if item not in value["$in"]]
                else:
                    kept = [item for item in current if item != value]
                _set_path(doc, path, kept)
            else:
                raise NotImplementedError(op)


def _project(doc, projection):
    doc = copy.deepcopy(doc)
    if not projection:
        return doc
    including = any(value for key, value in projection.items() if key != "_id")
    if including:
        kept = {key: doc[key] for key, value in projection.items() if value and key in doc}
        if projection.get("_id", 1) and "_id" in doc:
            kept["_id"] = doc["_id"]
        return kept
    if projection.get("_id", 1) and len(projection) == 1 and "_id" in projection:
        return {"_id": doc.get("_id")}
    return {key: value for key, value in doc.items() if projection.get(key, 1)}


def _sort_key(value):
    if value is _MISSING or value is None:
        return (0, 0)
    return (1, value)


class FakeCursor:

    def __init__(self, docs):
        self._docs = docs
        self._skip = 0
        self._limit = None

    def sort(self, key, direction=1):
        keys = key if isinstance(key, list) else [(key, direction)]
        for field, order in reversed(keys):
            self._docs.sort(key=lambda doc: _sort_key(_resolve(doc, field)), reverse=order < 0)
        return self

    def skip(self, count):
        self._skip = count
        return self

    def limit(self, count):
        self._limit = count
        return self

    async def to_list(self, length=None):
        docs = self._docs[self._skip:]
        if self._limit:
            docs = docs[:self._limit]
        if length:
            docs = docs[:length]
        return docs


class FakeCollection:

    def __init__(self, name):
        self.name = name
        self.docs = []
        self._failing = set()

    def fail(self, *methods):
        """Make the named methods raise, to exercise partial failures."""
        self._failing.update(methods)

    def _check(self, method):
        if method in self._failing:
            raise RuntimeError(f"{self.name}.{method} failed")

    def _matching(self, query):
        return [doc for doc in self.docs if matches(doc, query)]

    async def insert_one(self, document):
        self._check("insert_one")
        document.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(document))
        return SimpleNamespace(inserted_id=document["_id"])

    async def find_one(self, query=None, projection=None):
        self._check("find_one")
        found = self._matching(query)
        return _project(found[0], projection) if found else None

    def find(self, query=None, projection=None):
        self._check("find")
        return FakeCursor([_project(doc, projection) for doc in self._matching(query)])

    async def count_documents(self, query):
        return len(self._matching(query))

    async def _update(self, query, update, upsert, many):
        found = self._matching(query)
        if not many:
            found = found[:1]

        modified = 0
        for doc in found:
            before = copy.deepcopy(doc)
            apply_update(doc, update)
            if doc != before:
                modified += 1

        upserted_id = None
        if not found and upsert:
            doc = {
                key: copy.deepcopy(value) for key, value in query.items()
                if not key.startswith("$") and not isinstance(value, dict)
            }
            apply_update(doc, update, inserting=True)
            doc.setdefault("_id", ObjectId())
            self.docs.append(doc)
            upserted_id = doc["_id"]

        return SimpleNamespace(matched_count=len(found), modified_count=modified, upserted_id=upserted_id)

    async def update_one(self, query, update, upsert=False):
        self._check("update_one")
        return await self._update(query, update, upsert, many=False)

    async def update_many(self, query, update, upsert=False):
        self._check("update_many")
        return await self._update(query, update, upsert, many=True)

    async def find_one_and_update(self, query, update, return_document=False, upsert=False):
        self._check("find_one_and_update")
        found = self._matching(query)
        if not found:
            return None
        before = copy.deepcopy(found[0])
        apply_update(found[0], update)
        return copy.deepcopy(found[0]) if return_document else before

    async def delete_one(self, query):
        self._check("delete_one")
        found = self._matching(query)[:1]
        for doc in found:
            self.docs.remove(doc)
        return SimpleNamespace(deleted_count=len(found))

    async def delete_many(self, query):
        self._check("delete_many")
        found = self._matching(query)
        for doc in found:
            self.docs.remove(doc)
        return SimpleNamespace(deleted_count=len(found))


class FakeDatabase:

    def __init__(self):
        self._collections = {}

    def __getitem__(self, name):
        if name not in self._collections:
            self._collections[name] = FakeCollection(name)
        return self._collections[name]


# ─────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def sample_user_id():
    return str(ObjectId())


@pytest.fixture
def mock_collection():
    collection = AsyncMock()
    # Motor's find() returns a cursor synchronously (not a coroutine),
    # so use MagicMock for it. Async methods like find_one, insert_one,
    # count_documents etc. stay as AsyncMock.
    collection.find = MagicMock()
    return collection


@pytest.fixture
def mock_db(mock_collection):
    db = MagicMock()
    db.__getitem__ = MagicMock(return_value=mock_collection)
    return db


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def now():
    return datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def catalog_ids():
    """Language, interest and report reason ids shared by the user factory."""
    return SimpleNamespace(
        english=ObjectId(),
        french=ObjectId(),
        spanish=ObjectId(),
        german=ObjectId(),
        hiking=ObjectId(),
        spam=ObjectId(),
    )


@pytest.fixture
def seed_catalog(fake_db, catalog_ids):
    fake_db["languages"].docs.extend([
        {"_id": catalog_ids.english, "code": "en", "name": {"en": "English", "fr": "Anglais"}},
        {"_id": catalog_ids.french, "code": "fr", "name": {"en": "French", "fr": "Français"}},
        {"_id": catalog_ids.spanish, "code": "es", "name": {"en": "Spanish", "fr": "Espagnol"}},
        {"_id": catalog_ids.german, "code": "de", "name": {"en": "German"}},
    ])
    fake_db["interests"].docs.append({"_id": catalog_ids.hiking, "code": None, "name": {"en": "Hiking"}})
    fake_db["reportReasons"].docs.append({"_id": catalog_ids.spam, "code": "spam", "name": {"en": "Spam"}})
    return catalog_ids


@pytest.fixture
def make_user(fake_db):
    """Insert a user document and return its id."""

    def _make_user(languages=None, **fields):
        user_id = ObjectId()
        doc = {
            "_id": user_id,
            "firstName": fields.pop("firstName", "Test"),
            "lastName": fields.pop("lastName", "User"),
            "email": fields.pop("email", f"{user_id}@example.com"),
            "languages": list(languages or []),
            "interests": [],
            "emailVerified": True,
            "isBanned": False,
            "banTimeLapse": None,
            "reportCount": 0,
            "refreshToken": None,
            "createdAt": datetime.now(timezone.utc) - timedelta(days=30),
        }
        doc.update(fields)
        fake_db["users"].docs.append(doc)
        return user_id

    return _make_user
