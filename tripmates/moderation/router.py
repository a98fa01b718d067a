"""
FastAPI routers for user reports and blocks.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from common.utils import success_response, list_response
from tripmates.dependencies import (
    require_auth,
    require_moderator,
    get_report_service,
    get_block_service,
)
from tripmates.moderation.services.block_service import BlockService
from tripmates.moderation.services.report_service import ReportService
from tripmates.schemas.moderation import ReportCreate, BlockCreate

logger = logging.getLogger(__name__)

report_router = APIRouter(prefix="/reported-users", tags=["reported-users"])
block_router = APIRouter(prefix="/blocked-users", tags=["blocked-users"])


# =============================================================================
# Reports
# =============================================================================

@report_router.post("", status_code=201)
async def create_report(
    body: ReportCreate,
    user: Annotated[dict, Depends(require_auth)],
    report_service: Annotated[ReportService, Depends(get_report_service)],
):
    """Report another user."""
    report = await report_service.create_report(
        reporting_user_id=user["_id"],
        reported_user_id=body.reportedUserId,
        reason_id=body.reasonId,
        description=body.description,
        evidence=body.evidence,
    )
    return success_response({"report": report})


@report_router.get("")
async def get_reports(
    moderator: Annotated[dict, Depends(require_moderator)],
    report_service: Annotated[ReportService, Depends(get_report_service)],
    unverified: bool = False,
):
    """All reports, or only those awaiting verification. Moderators only."""
    return list_response(await report_service.get_reports(unverified_only=unverified))


@report_router.post("/{report_id}/verify")
async def verify_report(
    report_id: str,
    moderator: Annotated[dict, Depends(require_moderator)],
    report_service: Annotated[ReportService, Depends(get_report_service)],
):
    """Verify a report and ban the reported user. Moderators only."""
    result = await report_service.verify_report(report_id, moderator["_id"])
    return success_response(result)


@report_router.delete("/{report_id}")
async def delete_report(
    report_id: str,
    moderator: Annotated[dict, Depends(require_moderator)],
    report_service: Annotated[ReportService, Depends(get_report_service)],
):
    """Delete a report. Moderators only."""
    await report_service.delete_report(report_id)
    return success_response(message="Report deleted")


# =============================================================================
# Blocks
# =============================================================================

@block_router.get("")
async def get_blocked_users(
    user: Annotated[dict, Depends(require_auth)],
    block_service: Annotated[BlockService, Depends(get_block_service)],
):
    """Users the caller blocked."""
    return list_response(await block_service.get_blocked_users(user["_id"]))


@block_router.post("", status_code=201)
async def block_user(
    body: BlockCreate,
    user: Annotated[dict, Depends(require_auth)],
    block_service: Annotated[BlockService, Depends(get_block_service)],
):
    """Block a user."""
    block = await block_service.block_user(user["_id"], body.blockedUserId)
    return success_response({"block": block})


@block_router.delete("/{blocked_user_id}")
async def unblock_user(
    blocked_user_id: str,
    user: Annotated[dict, Depends(require_auth)],
    block_service: Annotated[BlockService, Depends(get_block_service)],
):
    """Unblock a user."""
    await block_service.unblock_user(user["_id"], blocked_user_id)
    return success_response(message="User unblocked")
