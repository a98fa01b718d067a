"""
Pydantic models for reports and blocks.
"""

from typing import Optional, List
from pydantic import BaseModel, Field


class ReportCreate(BaseModel):
    """Report another user."""
    reportedUserId: str
    reasonId: str = Field(..., description="Report reason id")
    description: Optional[str] = Field(None, max_length=2000)
    evidence: List[str] = Field(default_factory=list, description="Evidence URLs")


class BlockCreate(BaseModel):
    """Block another user."""
    blockedUserId: str
