"""
Pydantic models for catalog entries.

Names are localized records: {"en": "French", "fr": "Français"}.
"""

from typing import Optional, Dict
from pydantic import BaseModel, Field


class CatalogEntryCreate(BaseModel):
    """Create a catalog entry."""
    name: Dict[str, str] = Field(..., description="Locale code -> label")
    code: Optional[str] = Field(None, max_length=20)


class CatalogEntryUpdate(BaseModel):
    """Edit a catalog entry. Given locales are merged into the stored name."""
    name: Optional[Dict[str, str]] = None
    code: Optional[str] = Field(None, max_length=20)
