from db.models.dealer import KnownDealer, DealerContact
from db.models.listing import PendingVehicle
from db.models.provenance import VehicleProvenance
from db.models.lead import LeadRecord

__all__ = [
    "KnownDealer",
    "DealerContact",
    "PendingVehicle",
    "VehicleProvenance",
    "LeadRecord",
]
