"""
FastAPI router for trip endpoints.
"""

import logging
from datetime import datetime
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from common.utils import success_response, list_response, paginated_response
from common.utils.dates import ensure_utc
from tripmates.dependencies import require_auth, get_trip_service
from tripmates.schemas.trips import TripCreateRequest, TripUpdateRequest
from tripmates.trips.services.trip_service import TripService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trips", tags=["trips"])


def _split(value: Optional[str]) -> Optional[list]:
    """Comma-separated query value to a list."""
    if not value:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


@router.get("")
async def search_trips(
    user: Annotated[dict, Depends(require_auth)],
    trip_service: Annotated[TripService, Depends(get_trip_service)],
    startDate: Optional[datetime] = None,
    endDate: Optional[datetime] = None,
    dateOption: Optional[str] = Query(None, description="exact | range | start | end"),
    budget: Optional[str] = Query(None, description='"min,max", either side optional'),
    transport: Optional[str] = Query(None, description="Comma-separated transport ids"),
    destination: Optional[str] = None,
    tripType: Optional[str] = None,
    languages: Optional[str] = Query(None, description="Comma-separated language ids"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """Search trips."""
    trips, total = await trip_service.search_trips(
        filters={
            "start_date": ensure_utc(startDate),
            "end_date": ensure_utc(endDate),
            "date_option": dateOption,
            "budget": budget,
            "transport": _split(transport),
            "destination": destination,
            "trip_type": tripType,
        },
        languages=_split(languages),
        page=page,
        limit=limit,
    )
    return paginated_response(trips, total, page=page, limit=limit)


@router.get("/mine")
async def get_my_trips(
    user: Annotated[dict, Depends(require_auth)],
    trip_service: Annotated[TripService, Depends(get_trip_service)],
):
    """Trips whose group the caller belongs to."""
    return list_response(await trip_service.get_trips_for_user(user["_id"]))


@router.get("/{trip_id}")
async def get_trip(
    trip_id: str,
    user: Annotated[dict, Depends(require_auth)],
    trip_service: Annotated[TripService, Depends(get_trip_service)],
):
    """Get a trip with its group and members."""
    return success_response({"trip": await trip_service.get_trip_details(trip_id)})


@router.post("", status_code=201)
async def create_trip(
    body: TripCreateRequest,
    user: Annotated[dict, Depends(require_auth)],
    trip_service: Annotated[TripService, Depends(get_trip_service)],
):
    """Create a trip; the caller becomes its group's administrator."""
    trip = await trip_service.create_trip(user["_id"], body.model_dump())
    return success_response({"trip": trip})


@router.patch("/{trip_id}")
async def update_trip(
    trip_id: str,
    body: TripUpdateRequest,
    user: Annotated[dict, Depends(require_auth)],
    trip_service: Annotated[TripService, Depends(get_trip_service)],
):
    """Edit a trip. Group administrators only."""
    trip = await trip_service.update_trip(trip_id, user["_id"], body.model_dump(exclude_none=True))
    return success_response({"trip": trip})


@router.delete("/{trip_id}")
async def delete_trip(
    trip_id: str,
    user: Annotated[dict, Depends(require_auth)],
    trip_service: Annotated[TripService, Depends(get_trip_service)],
):
    """Delete a trip and its group. Group administrators only."""
    await trip_service.delete_trip(trip_id, user["_id"])
    return success_response(message="Trip deleted")
