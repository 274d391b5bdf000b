from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, field_validator


class DealerContact(BaseModel):
    """Contact details learned for a dealer from its Biluppgifter profile."""

    address: Optional[str] = None
    postal_code: Optional[str] = None
    postal_city: Optional[str] = None
    phone: Optional[str] = None


class KnownDealer(BaseModel):
    """Known dealer model matching the known_dealers table.

    `name` is the seller name as shown on Blocket (primary key for upserts),
    `aliases` are normalized names the dealer has been seen under as a
    registered owner.
    """

    id: Optional[int] = None
    name: str
    aliases: List[str] = []

    # Contact
    address: Optional[str] = None
    postal_code: Optional[str] = None
    postal_city: Optional[str] = None
    phone: Optional[str] = None

    # Stock size seen on the owner profile
    vehicle_count: Optional[int] = None

    # Metadata
    source: Optional[str] = None
    ad_count: int = 0
    updated_at: Optional[datetime] = None

    @field_validator("aliases", mode="before")
    @classmethod
    def aliases_none_to_list(cls, v):
        """Handle NULL array from database."""
        return list(v) if v else []

    @property
    def contact(self) -> DealerContact:
        return DealerContact(
            address=self.address,
            postal_code=self.postal_code,
            postal_city=self.postal_city,
            phone=self.phone,
        )

    model_config = ConfigDict(from_attributes=True)
