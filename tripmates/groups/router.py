"""
FastAPI routers for travel groups and join requests.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from common.utils import success_response, list_response
from tripmates.dependencies import (
    require_auth,
    get_membership_service,
    get_join_request_service,
)
from tripmates.groups.services.membership_service import MembershipService
from tripmates.groups.services.join_request_service import JoinRequestService
from tripmates.schemas.groups import AddAdministratorRequest, JoinRequestCreate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/groups", tags=["groups"])
join_router = APIRouter(prefix="/group-join", tags=["group-join"])


# =============================================================================
# Groups
# =============================================================================

@router.get("/mine")
async def get_my_groups(
    user: Annotated[dict, Depends(require_auth)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Groups the caller belongs to."""
    return list_response(await membership_service.get_groups_for_user(user["_id"]))


@router.get("/{group_id}")
async def get_group(
    group_id: str,
    user: Annotated[dict, Depends(require_auth)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Get group by ID."""
    return success_response({"group": await membership_service.get_group(group_id)})


@router.get("/{group_id}/members")
async def get_members(
    group_id: str,
    user: Annotated[dict, Depends(require_auth)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Members of a group, with their administrator flag."""
    return list_response(await membership_service.get_members(group_id))


@router.post("/{group_id}/leave")
async def leave_group(
    group_id: str,
    user: Annotated[dict, Depends(require_auth)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Leave a group. The last member leaving deletes the group and its trip."""
    result = await membership_service.remove_member(group_id, user["_id"], actor_id=user["_id"])
    return success_response(result)


@router.delete("/{group_id}/members/{member_id}")
async def remove_member(
    group_id: str,
    member_id: str,
    user: Annotated[dict, Depends(require_auth)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Remove a member. Administrators only, unless removing oneself."""
    result = await membership_service.remove_member(group_id, member_id, actor_id=user["_id"])
    return success_response(result)


@router.post("/{group_id}/administrators")
async def add_administrator(
    group_id: str,
    body: AddAdministratorRequest,
    user: Annotated[dict, Depends(require_auth)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Promote a member to administrator."""
    group = await membership_service.add_administrator(group_id, user["_id"], body.userId)
    return success_response({"group": group})


@router.post("/{group_id}/dissolve")
async def dissolve_group(
    group_id: str,
    user: Annotated[dict, Depends(require_auth)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Reset the group to the calling administrator alone."""
    result = await membership_service.dissolve_group(group_id, user["_id"])
    return success_response(result)


# =============================================================================
# Join requests
# =============================================================================

@join_router.post("", status_code=201)
async def ask_join(
    body: JoinRequestCreate,
    user: Annotated[dict, Depends(require_auth)],
    join_request_service: Annotated[JoinRequestService, Depends(get_join_request_service)],
):
    """Ask to join a group."""
    request = await join_request_service.ask_join(body.groupId, user["_id"], body.message)
    return success_response({"request": request})


@join_router.get("/mine")
async def get_my_requests(
    user: Annotated[dict, Depends(require_auth)],
    join_request_service: Annotated[JoinRequestService, Depends(get_join_request_service)],
):
    """Join requests the caller sent."""
    return list_response(await join_request_service.get_requests_for_user(user["_id"]))


@join_router.get("/group/{group_id}")
async def get_group_requests(
    group_id: str,
    user: Annotated[dict, Depends(require_auth)],
    join_request_service: Annotated[JoinRequestService, Depends(get_join_request_service)],
):
    """Pending requests of a group. Administrators only."""
    return list_response(await join_request_service.get_requests_for_group(group_id, user["_id"]))


@join_router.post("/{request_id}/approve")
async def approve_request(
    request_id: str,
    user: Annotated[dict, Depends(require_auth)],
    join_request_service: Annotated[JoinRequestService, Depends(get_join_request_service)],
):
    """Approve a join request."""
    group = await join_request_service.approve(request_id, user["_id"])
    return success_response({"group": group})


@join_router.delete("/{request_id}")
async def delete_request(
    request_id: str,
    user: Annotated[dict, Depends(require_auth)],
    join_request_service: Annotated[JoinRequestService, Depends(get_join_request_service)],
):
    """Reject (administrator) or withdraw (author) a join request."""
    await join_request_service.delete_request(request_id, user["_id"])
    return success_response(message="Join request deleted")
