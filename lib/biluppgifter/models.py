"""Response models for the Biluppgifter ownership/profile API."""

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class OwnerClass(str, Enum):
    PERSON = "person"
    COMPANY = "company"
    UNKNOWN = "unknown"


def parse_date(value: Any) -> Optional[date]:
    """Parse the provider's date strings ("2023-04-12", ISO timestamps). None if unparseable."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def days_between(start: Optional[date], end: Optional[date]) -> Optional[int]:
    """Absolute number of days between two dates, None if either is missing."""
    if start is None or end is None:
        return None
    return abs((end - start).days)


class OwnershipRecord(BaseModel):
    """One entry of a vehicle's ownership history (index 0 = current holder)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = ""
    owner_class: OwnerClass = OwnerClass.UNKNOWN
    profile_id: Optional[str] = None
    since: Optional[date] = Field(default=None, alias="date")

    @field_validator("name", mode="before")
    @classmethod
    def name_none_to_empty(cls, v):
        return str(v).strip() if v else ""

    @field_validator("owner_class", mode="before")
    @classmethod
    def unknown_owner_class(cls, v):
        """Anything the API doesn't label person/company (e.g. "Okänd") is unknown."""
        if isinstance(v, OwnerClass):
            return v
        v = (v or "").lower()
        return v if v in ("person", "company") else OwnerClass.UNKNOWN

    @field_validator("profile_id", mode="before")
    @classmethod
    def profile_id_to_str(cls, v):
        if v is None or v == "":
            return None
        return str(v)

    @field_validator("since", mode="before")
    @classmethod
    def since_to_date(cls, v):
        return parse_date(v)


class OwnedVehicle(BaseModel):
    """A vehicle listed on an owner profile."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    regnr: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    ownership_time: Optional[str] = None
    status: Optional[str] = None
    vehicle_type: Optional[str] = None

    @field_validator("year", mode="before")
    @classmethod
    def year_to_int(cls, v):
        try:
            return int(v) if v not in (None, "") else None
        except (TypeError, ValueError):
            return None


class OwnerProfile(BaseModel):
    """Owner profile page: contact details plus vehicles."""

    # Postal codes and phone numbers sometimes come back as JSON numbers
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: Optional[str] = None
    age: Optional[int] = None
    city: Optional[str] = None
    address: Optional[str] = None
    postal_code: Optional[str] = None
    postal_city: Optional[str] = None
    phone: Optional[str] = None
    vehicles: list[OwnedVehicle] = []
    address_vehicles: list[OwnedVehicle] = []

    @field_validator("vehicles", "address_vehicles", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return v or []

    @field_validator("age", mode="before")
    @classmethod
    def age_to_int(cls, v):
        try:
            return int(v) if v not in (None, "") else None
        except (TypeError, ValueError):
            return None

    @property
    def vehicle_count(self) -> int:
        return len(self.vehicles)


class OwnerLookup(BaseModel):
    """Merged result of the owner endpoint, the vehicle endpoint fallback and
    any profile fetched for a chain entry."""

    regnr: str
    owner_history: list[OwnershipRecord] = []
    owner_profile: Optional[OwnerProfile] = None
    # Chain index the fetched profile belongs to (0 unless it came from the fallback)
    profile_owner_index: int = 0
    mileage_history: list[dict] = []
    from_vehicle_endpoint: bool = False

    @property
    def has_data(self) -> bool:
        return self.owner_profile is not None or len(self.owner_history) > 0

    @classmethod
    def from_owner_response(cls, regnr: str, data: dict) -> "OwnerLookup":
        """Build from /api/owner/{regnr}."""
        profile = data.get("owner_profile")
        owner_profile = None
        if profile:
            try:
                owner_profile = OwnerProfile(**profile)
            except ValidationError as e:
                # Keep the ownership history; the profile alone is unusable
                logger.warning(f"  Unreadable owner profile for {regnr}: {e.error_count()} errors")
        return cls(
            regnr=regnr,
            owner_history=data.get("owner_history") or [],
            owner_profile=owner_profile,
            mileage_history=data.get("mileage_history") or [],
        )

    @classmethod
    def from_vehicle_response(cls, regnr: str, data: dict) -> "OwnerLookup":
        """Build from /api/vehicle/{regnr}, where history lives under owner.history."""
        owner = data.get("owner") or {}
        return cls(
            regnr=regnr,
            owner_history=owner.get("history") or [],
            mileage_history=data.get("mileage_history") or [],
            from_vehicle_endpoint=True,
        )
