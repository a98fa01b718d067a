"""
JSON-safe conversion of MongoDB documents.
"""

from datetime import datetime
from typing import Any, Iterable, Optional

from bson import ObjectId


def to_json_safe(value: Any) -> Any:
    """
    Recursively convert a Mongo document into JSON-safe data.

    ObjectId becomes str, datetime becomes ISO 8601, and a top-level or
    nested "_id" key is exposed as "id".
    """
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            out_key = "id" if key == "_id" else key
            result[out_key] = to_json_safe(item)
        return result
    if isinstance(value, (list, tuple, set)):
        return [to_json_safe(item) for item in value]
    return value


def without_fields(document: Optional[dict], fields: Iterable[str]) -> Optional[dict]:
    """Return a shallow copy of the document without the given fields."""
    if document is None:
        return None
    hidden = set(fields)
    return {key: value for key, value in document.items() if key not in hidden}
