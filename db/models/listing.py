from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, field_validator


class PendingVehicle(BaseModel):
    """A marketplace listing with a plate that has no resolved provenance yet."""

    listing_id: int
    regnr: str

    # Vehicle
    make: Optional[str] = None
    model: Optional[str] = None
    model_year: Optional[int] = None
    price: Optional[int] = None

    # Seller as declared on the listing ("private" / "dealer")
    seller_name: Optional[str] = None
    seller_kind: str = "private"

    # Location
    region: Optional[str] = None
    city: Optional[str] = None
    published_at: Optional[datetime] = None

    @field_validator("regnr", mode="before")
    @classmethod
    def normalize_regnr(cls, v):
        return "".join(str(v or "").split()).upper()

    model_config = ConfigDict(from_attributes=True)

    @property
    def description(self) -> str:
        parts = [self.make, self.model, str(self.model_year) if self.model_year else None]
        return " ".join(p for p in parts if p)
