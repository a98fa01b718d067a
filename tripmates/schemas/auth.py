"""
Pydantic models for Auth request validation.

Defines schemas for registration, login, tokens and password recovery.
"""

from datetime import date
from typing import Optional, List
from pydantic import BaseModel, Field, EmailStr


class RegisterRequest(BaseModel):
    """Request body for user registration."""
    firstName: str = Field(..., min_length=1, max_length=50)
    lastName: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    passwordConfirm: str = Field(..., min_length=1, max_length=128)
    birthDate: date
    languages: List[str] = Field(default_factory=list, description="Language ids")
    interests: List[str] = Field(default_factory=list, description="Interest ids")
    description: Optional[str] = Field(None, max_length=1000)
    profilePictureUrl: Optional[str] = None


class LoginRequest(BaseModel):
    """Request body for user login."""
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshRequest(BaseModel):
    """Request body for access token refresh."""
    refreshToken: str = Field(..., min_length=1)


class VerifyEmailRequest(BaseModel):
    """Request body for email verification."""
    token: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    """Request body for a password reset link."""
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    """Request body for setting a new password from a reset token."""
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1, max_length=128)
    passwordConfirm: str = Field(..., min_length=1, max_length=128)
