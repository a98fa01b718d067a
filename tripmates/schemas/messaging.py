"""
Pydantic models for private and group messages.
"""

from pydantic import BaseModel, Field


class PrivateMessageCreate(BaseModel):
    """Send a private message."""
    recipientId: str
    content: str = Field(..., min_length=1, max_length=5000)


class GroupMessageCreate(BaseModel):
    """Post a message in a group."""
    content: str = Field(..., min_length=1, max_length=5000)


class MessageUpdate(BaseModel):
    """Edit a message."""
    content: str = Field(..., min_length=1, max_length=5000)
