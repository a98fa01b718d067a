"""
Standard API response helpers.

Provides consistent response formatting for success and error cases.
Data passed in is made JSON safe (ObjectId to str, "_id" to "id").

Example:
    from common.utils import success_response

    @router.get("/trips/{trip_id}")
    async def get_trip(trip_id: str):
        trip = await trip_service.get_trip(trip_id)
        return success_response(trip)
"""

from typing import Any, Optional, Dict

from common.utils.serialization import to_json_safe


def success_response(
    data: Any = None,
    message: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create a standard success response.

    Args:
        data: The response data (documents are serialized)
        message: Optional success message

    Returns:
        Dictionary with success=True and optional data/message
    """
    response: Dict[str, Any] = {"success": True}

    if data is not None:
        response["data"] = to_json_safe(data)

    if message:
        response["message"] = message

    return response


def error_response(
    message: str,
    code: Optional[str] = None,
    details: Optional[Any] = None,
    errors: Optional[list] = None,
) -> Dict[str, Any]:
    """
    Create a standard error response.

    Args:
        message: Human-readable error message
        code: Machine-readable error code (e.g., "GROUP_NOT_FOUND")
        details: Additional error details
        errors: List of specific errors (for validation errors)

    Returns:
        Dictionary with success=False and error info
    """
    error: Dict[str, Any] = {"message": message}

    if code:
        error["code"] = code

    if details is not None:
        error["details"] = to_json_safe(details)

    if errors:
        error["errors"] = to_json_safe(errors)

    return {"success": False, "error": error}


def paginated_response(
    items: list,
    total: int,
    page: int = 1,
    limit: int = 20,
) -> Dict[str, Any]:
    """
    Create a paginated success response.

    Args:
        items: List of items for current page
        total: Total number of items across all pages
        page: Current page number (1-indexed)
        limit: Items per page
    """
    total_pages = (total + limit - 1) // limit if limit > 0 else 0

    return {
        "success": True,
        "data": to_json_safe(items),
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": total_pages,
            "hasNextPage": page < total_pages,
            "hasPreviousPage": page > 1,
        },
    }


def list_response(items: list) -> Dict[str, Any]:
    """Create a simple list response with a count."""
    return {
        "success": True,
        "data": to_json_safe(items),
        "count": len(items),
    }
