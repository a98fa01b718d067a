"""
ObjectId coercion helpers.

Route parameters and request bodies carry ids as strings; services store
them as ObjectId. Malformed ids become a 400 instead of a bson error.
"""

from typing import Iterable, List, Union

from bson import ObjectId

from common.utils.exceptions import BadRequestException


def to_object_id(value: Union[str, ObjectId], field: str = "id") -> ObjectId:
    """
    Convert a string id to ObjectId.

    Raises:
        BadRequestException: If the value is not a valid ObjectId
    """
    if isinstance(value, ObjectId):
        return value
    if not value or not ObjectId.is_valid(value):
        raise BadRequestException(
            message=f"Invalid {field}",
            code="INVALID_ID",
            details={"field": field, "value": str(value)},
        )
    return ObjectId(value)


def to_object_ids(values: Iterable[Union[str, ObjectId]], field: str = "ids") -> List[ObjectId]:
    """Convert a list of string ids, preserving order and dropping duplicates."""
    result: List[ObjectId] = []
    for value in values or []:
        oid = to_object_id(value, field)
        if oid not in result:
            result.append(oid)
    return result
