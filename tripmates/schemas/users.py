"""
Pydantic models for user profile requests.
"""

from datetime import date
from typing import Optional, List
from pydantic import BaseModel, Field


class UpdateProfileRequest(BaseModel):
    """Request body for editing one's profile. Omitted fields are unchanged."""
    firstName: Optional[str] = Field(None, min_length=1, max_length=50)
    lastName: Optional[str] = Field(None, min_length=1, max_length=50)
    birthDate: Optional[date] = None
    profilePictureUrl: Optional[str] = None
    description: Optional[str] = Field(None, max_length=1000)
    languages: Optional[List[str]] = Field(None, description="Language ids")
    interests: Optional[List[str]] = Field(None, description="Interest ids")


class ChangePasswordRequest(BaseModel):
    """Request body for a password change."""
    currentPassword: str = Field(..., min_length=1)
    newPassword: str = Field(..., min_length=1, max_length=128)
    newPasswordConfirm: str = Field(..., min_length=1, max_length=128)
