"""
Pydantic models for trip requests.

Incoming datetimes are normalized to aware UTC.
"""

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator, model_validator

from common.utils.dates import ensure_utc


class TripCreateRequest(BaseModel):
    """Request body for creating a trip (and its group)."""
    title: str = Field(..., min_length=1, max_length=120)
    startDate: datetime
    endDate: datetime
    budget: Optional[float] = Field(None, ge=0)
    transport: List[str] = Field(default_factory=list, description="Transport ids")
    destination: Optional[str] = Field(None, description="Country id")
    tripType: Optional[str] = Field(None, description="Trip type id")

    @field_validator("startDate", "endDate")
    @classmethod
    def to_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @model_validator(mode="after")
    def check_dates(self):
        if self.endDate < self.startDate:
            raise ValueError("endDate must not be before startDate")
        return self


class TripUpdateRequest(BaseModel):
    """Request body for editing a trip. Omitted fields are unchanged."""
    title: Optional[str] = Field(None, min_length=1, max_length=120)
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None
    budget: Optional[float] = Field(None, ge=0)
    transport: Optional[List[str]] = None
    destination: Optional[str] = None
    tripType: Optional[str] = None

    @field_validator("startDate", "endDate")
    @classmethod
    def to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)
