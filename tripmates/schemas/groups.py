"""
Pydantic models for groups and join requests.
"""

from typing import Optional
from pydantic import BaseModel, Field


class AddAdministratorRequest(BaseModel):
    """Promote an existing member to group administrator."""
    userId: str = Field(..., description="Member to promote")


class JoinRequestCreate(BaseModel):
    """Ask to join a group."""
    groupId: str
    message: Optional[str] = Field(None, max_length=500)
