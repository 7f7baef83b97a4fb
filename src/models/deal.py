"""Deal (commission income) model."""

from typing import Optional, Any
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from src.services.money import numeric, clamp_percent, commission_amount, net_amount
from src.services.periods import parse_timestamp


class Deal(BaseModel):
    """Current deal for a listing; upserted keyed by listing_id."""
    listing_id: str = Field(..., description="Listing ID (FK)")
    user_id: Optional[str] = None
    gross: float = Field(default=0.0, description="Gross rent/sale amount")
    commission_rate: float = Field(default=0.0, ge=0, le=100, description="Commission percent")
    deductions: float = Field(default=0.0, ge=0, description="Amount deducted from commission")
    notes: Optional[str] = None
    # Stored columns are a display cache only; never authoritative.
    commission_amount: Optional[float] = None
    net: Optional[float] = None
    updated_at: Optional[datetime] = None

    @field_validator("gross", mode="before")
    @classmethod
    def _coerce_gross(cls, value: Any) -> float:
        return numeric(value)

    @field_validator("commission_rate", mode="before")
    @classmethod
    def _clamp_rate(cls, value: Any) -> float:
        return clamp_percent(value)

    @field_validator("deductions", mode="before")
    @classmethod
    def _clamp_deductions(cls, value: Any) -> float:
        return max(0.0, numeric(value))

    @field_validator("updated_at", mode="before")
    @classmethod
    def _local_timestamp(cls, value: Any) -> Optional[datetime]:
        return parse_timestamp(value)

    @property
    def computed_commission(self) -> float:
        return commission_amount(self.gross, self.commission_rate)

    @property
    def computed_net(self) -> float:
        return net_amount(self.gross, self.commission_rate, self.deductions)

    def to_upsert_row(self) -> dict:
        """Row for `deals` upsert, with cache columns refreshed from the recomputed values."""
        row = {
            "listing_id": self.listing_id,
            "gross": self.gross,
            "commission_rate": self.commission_rate,
            "deductions": self.deductions,
            "notes": self.notes,
            "commission_amount": self.computed_commission,
            "net": self.computed_net,
        }
        if self.user_id:
            row["user_id"] = self.user_id
        return row
