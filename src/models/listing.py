"""Listing models and canonical enumerations."""

from enum import Enum
from typing import Optional, Any
from datetime import date, datetime
from pydantic import BaseModel, Field, field_validator, model_validator

from src.services.periods import parse_timestamp, parse_date


class ListingType(str, Enum):
    """Listing type values."""
    RENT = "rent"
    SALE = "sale"


class ListingStatus(str, Enum):
    """Canonical listing status values (Title Case, as stored)."""
    NEW = "New"
    AVAILABLE = "Available"
    FOLLOW_UP = "Follow-up"
    VIEWING = "Viewing"
    NEGOTIATING = "Negotiating"
    BOOKED = "Booked"
    CLOSED = "Closed"
    INACTIVE = "Inactive"


class Furnish(str, Enum):
    """Furnishing levels shown in tenant text."""
    FULLY = "Fully"
    PARTIAL = "Partial"


# Keys are lowercase; lookups lowercase the incoming label first.
LEGACY_STATUS_MAP: dict[str, ListingStatus] = {
    "new": ListingStatus.NEW,
    "available": ListingStatus.AVAILABLE,
    "follow-up": ListingStatus.FOLLOW_UP,
    "follow_up": ListingStatus.FOLLOW_UP,
    "follow up": ListingStatus.FOLLOW_UP,
    "followup": ListingStatus.FOLLOW_UP,
    "pending": ListingStatus.FOLLOW_UP,
    "viewing": ListingStatus.VIEWING,
    "negotiating": ListingStatus.NEGOTIATING,
    "negotiation": ListingStatus.NEGOTIATING,
    "booked": ListingStatus.BOOKED,
    "closed": ListingStatus.CLOSED,
    "inactive": ListingStatus.INACTIVE,
}

LEGACY_TYPE_MAP: dict[str, ListingType] = {
    "rent": ListingType.RENT,
    "lease": ListingType.RENT,
    "sale": ListingType.SALE,
    "sell": ListingType.SALE,
}

LEGACY_FURNISH_MAP: dict[str, Furnish] = {
    "fully": Furnish.FULLY,
    "full": Furnish.FULLY,
    "fully furnished": Furnish.FULLY,
    "partial": Furnish.PARTIAL,
    "partially": Furnish.PARTIAL,
    "partly": Furnish.PARTIAL,
    "semi": Furnish.PARTIAL,
    "partial furnished": Furnish.PARTIAL,
    "partially furnished": Furnish.PARTIAL,
}


def normalize_status(value: Any) -> ListingStatus:
    """Map a stored status label (current or legacy spelling) to the canonical value."""
    if isinstance(value, ListingStatus):
        return value
    status = LEGACY_STATUS_MAP.get(str(value or "").strip().lower())
    if status is None:
        raise ValueError(f"Unknown listing status: {value!r}")
    return status


def normalize_type(value: Any) -> ListingType:
    """Map a stored listing type to rent/sale."""
    if isinstance(value, ListingType):
        return value
    listing_type = LEGACY_TYPE_MAP.get(str(value or "").strip().lower())
    if listing_type is None:
        raise ValueError(f"Unknown listing type: {value!r}")
    return listing_type


def normalize_furnish(value: Any) -> Optional[Furnish]:
    """Map a furnishing label to Fully/Partial; anything else is unfurnished/unknown."""
    if isinstance(value, Furnish):
        return value
    if value is None:
        return None
    return LEGACY_FURNISH_MAP.get(str(value).strip().lower())


class Listing(BaseModel):
    """Property listing as read from `listings` or the `listings_work` view."""
    id: Optional[str] = Field(None, description="Listing ID")
    user_id: Optional[str] = Field(None, description="Owning agent (auth user ID)")
    type: ListingType = Field(default=ListingType.RENT, description="rent or sale")
    status: ListingStatus = Field(default=ListingStatus.NEW, description="Workflow status")
    condo_name: str = Field(default="", description="Building / project name")
    area: Optional[str] = Field(None, description="Area or neighbourhood")
    price: Optional[float] = Field(None, description="Asking rent or sale price")
    sqft: Optional[int] = Field(None, description="Floor area in square feet")
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    carparks: Optional[int] = None
    furnish: Optional[Furnish] = None
    inbox: bool = Field(default=False, description="Awaiting triage")
    priority: int = Field(default=2, description="Lower is more urgent")
    next_follow_up: Optional[datetime] = None
    last_update: Optional[datetime] = Field(None, description="Last time the listing was touched")
    available_from: Optional[date] = Field(None, description="Only meaningful when Available")
    aging_days: Optional[int] = Field(None, description="Computed by the listings_work view")
    raw_text: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> ListingStatus:
        return normalize_status(value)

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> ListingType:
        return normalize_type(value)

    @field_validator("furnish", mode="before")
    @classmethod
    def _normalize_furnish(cls, value: Any) -> Optional[Furnish]:
        return normalize_furnish(value)

    @field_validator("priority", mode="before")
    @classmethod
    def _default_priority(cls, value: Any) -> Any:
        return 2 if value is None else value

    @field_validator("inbox", mode="before")
    @classmethod
    def _default_inbox(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("condo_name", mode="before")
    @classmethod
    def _default_name(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("next_follow_up", "last_update", "created_at", "updated_at", mode="before")
    @classmethod
    def _local_timestamp(cls, value: Any) -> Optional[datetime]:
        return parse_timestamp(value)

    @field_validator("available_from", mode="before")
    @classmethod
    def _calendar_date(cls, value: Any) -> Optional[date]:
        return parse_date(value)

    @model_validator(mode="after")
    def _clear_available_from(self) -> "Listing":
        if self.status != ListingStatus.AVAILABLE:
            self.available_from = None
        return self
