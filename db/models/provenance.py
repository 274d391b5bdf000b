from datetime import date, datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict


class VehicleProvenance(BaseModel):
    """Resolved owner data for one vehicle, matching the vehicle_provenance table.

    Keyed by regnr. Re-enriching a vehicle overwrites the whole row.
    """

    regnr: str
    listing_id: Optional[int] = None

    # private / company / dealer / broker / no_data
    owner_type: str

    # Resolved holder
    owner_name: Optional[str] = None
    owner_age: Optional[int] = None
    owner_city: Optional[str] = None
    owner_address: Optional[str] = None
    owner_postal_code: Optional[str] = None
    owner_postal_city: Optional[str] = None
    owner_phone: Optional[str] = None
    owner_vehicles: List[Dict[str, Any]] = []
    address_vehicles: List[Dict[str, Any]] = []

    # Raw provider data
    mileage_history: List[Dict[str, Any]] = []
    owner_history: List[Dict[str, Any]] = []

    # Dealer chain
    is_dealer: bool = False
    dealer_since: Optional[date] = None
    previous_owner: Optional[Dict[str, Any]] = None

    fetched_at: datetime

    model_config = ConfigDict(from_attributes=True)
