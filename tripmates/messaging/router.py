"""
FastAPI routers for private and group messaging.
"""

import logging
from datetime import datetime
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from common.utils import success_response, list_response
from common.utils.dates import ensure_utc
from tripmates.dependencies import (
    require_auth,
    get_private_message_service,
    get_group_message_service,
)
from tripmates.messaging.services.private_message_service import PrivateMessageService
from tripmates.messaging.services.group_message_service import GroupMessageService
from tripmates.schemas.messaging import (
    PrivateMessageCreate,
    GroupMessageCreate,
    MessageUpdate,
)

logger = logging.getLogger(__name__)

private_router = APIRouter(prefix="/private-messages", tags=["private-messages"])
group_router = APIRouter(prefix="/group-messages", tags=["group-messages"])


# =============================================================================
# Private messages
# =============================================================================

@private_router.get("/conversations")
async def get_conversations(
    user: Annotated[dict, Depends(require_auth)],
    service: Annotated[PrivateMessageService, Depends(get_private_message_service)],
):
    """The caller's conversations, most recently active first."""
    return list_response(await service.get_conversations(user["_id"]))


@private_router.get("/conversations/{conversation_id}")
async def get_conversation_messages(
    conversation_id: str,
    user: Annotated[dict, Depends(require_auth)],
    service: Annotated[PrivateMessageService, Depends(get_private_message_service)],
    limit: int = Query(50, ge=1, le=200),
    before: Optional[datetime] = None,
):
    """Messages of a conversation, oldest first."""
    messages = await service.get_messages(conversation_id, user["_id"], limit=limit, before=ensure_utc(before))
    return list_response(messages)


@private_router.post("/conversations/{conversation_id}/read")
async def mark_read(
    conversation_id: str,
    user: Annotated[dict, Depends(require_auth)],
    service: Annotated[PrivateMessageService, Depends(get_private_message_service)],
):
    """Mark every message of a conversation as read."""
    updated = await service.mark_read(conversation_id, user["_id"])
    return success_response({"updated": updated})


@private_router.post("", status_code=201)
async def send_private_message(
    body: PrivateMessageCreate,
    user: Annotated[dict, Depends(require_auth)],
    service: Annotated[PrivateMessageService, Depends(get_private_message_service)],
):
    """Send a private message."""
    message = await service.send_message(user["_id"], body.recipientId, body.content)
    return success_response({"message": message})


@private_router.patch("/{message_id}")
async def update_private_message(
    message_id: str,
    body: MessageUpdate,
    user: Annotated[dict, Depends(require_auth)],
    service: Annotated[PrivateMessageService, Depends(get_private_message_service)],
):
    """Edit one of the caller's messages."""
    message = await service.update_message(message_id, user["_id"], body.content)
    return success_response({"message": message})


@private_router.delete("/{message_id}")
async def delete_private_message(
    message_id: str,
    user: Annotated[dict, Depends(require_auth)],
    service: Annotated[PrivateMessageService, Depends(get_private_message_service)],
):
    """Delete one of the caller's messages."""
    return success_response(await service.delete_message(message_id, user["_id"]))


# =============================================================================
# Group messages
# =============================================================================

@group_router.get("/{group_id}/conversation")
async def get_group_conversation(
    group_id: str,
    user: Annotated[dict, Depends(require_auth)],
    service: Annotated[GroupMessageService, Depends(get_group_message_service)],
):
    """The group's conversation with its cached last message."""
    conversation = await service.get_conversation(group_id, user["_id"])
    return success_response({"conversation": conversation})


@group_router.get("/{group_id}")
async def get_group_messages(
    group_id: str,
    user: Annotated[dict, Depends(require_auth)],
    service: Annotated[GroupMessageService, Depends(get_group_message_service)],
    limit: int = Query(50, ge=1, le=200),
    before: Optional[datetime] = None,
):
    """Messages of a group, oldest first. Members only."""
    messages = await service.get_messages(group_id, user["_id"], limit=limit, before=ensure_utc(before))
    return list_response(messages)


@group_router.post("/{group_id}", status_code=201)
async def send_group_message(
    group_id: str,
    body: GroupMessageCreate,
    user: Annotated[dict, Depends(require_auth)],
    service: Annotated[GroupMessageService, Depends(get_group_message_service)],
):
    """Post a message in a group."""
    message = await service.send_message(group_id, user["_id"], body.content)
    return success_response({"message": message})


@group_router.patch("/messages/{message_id}")
async def update_group_message(
    message_id: str,
    body: MessageUpdate,
    user: Annotated[dict, Depends(require_auth)],
    service: Annotated[GroupMessageService, Depends(get_group_message_service)],
):
    """Edit one of the caller's group messages."""
    message = await service.update_message(message_id, user["_id"], body.content)
    return success_response({"message": message})


@group_router.delete("/messages/{message_id}")
async def delete_group_message(
    message_id: str,
    user: Annotated[dict, Depends(require_auth)],
    service: Annotated[GroupMessageService, Depends(get_group_message_service)],
):
    """Delete a group message. Sender or group administrator."""
    await service.delete_message(message_id, user["_id"])
    return success_response(message="Message deleted")
