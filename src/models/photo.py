"""Listing photo model."""

from typing import Optional
from pydantic import BaseModel, Field


class ListingPhoto(BaseModel):
    """Photo metadata row from `listing_photos`."""
    id: Optional[str] = None
    listing_id: str = Field(..., description="Listing ID (FK)")
    storage_path: str = Field(..., description="Path inside the photo bucket")
    sort_order: int = Field(default=0, description="Display sequence, ascending")
    created_at: Optional[str] = None
