"""Enrichment Repository - Database operations for vehicle provenance."""

import json
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from db.client import queries, get_conn
from db.models.listing import PendingVehicle
from db.models.provenance import VehicleProvenance

NO_DATA = "no_data"


def _json(value: Any) -> Optional[str]:
    return json.dumps(value, default=str) if value is not None else None


class IEnrichmentRepo(ABC):
    """Interface for enrichment persistence."""

    @abstractmethod
    async def get_vehicles_pending(
        self, limit: int = 5, seller_kind: Optional[str] = None
    ) -> List[PendingVehicle]:
        """Active listings with a plate and no provenance yet."""
        pass

    @abstractmethod
    async def upsert_provenance(self, provenance: VehicleProvenance) -> None:
        """Insert or fully overwrite the provenance row for a plate."""
        pass

    @abstractmethod
    async def mark_no_data(self, regnr: str, listing_id: Optional[int] = None) -> None:
        """Record that the provider had nothing for this plate."""
        pass

    @abstractmethod
    async def get_provenance_stats(self) -> Dict[str, int]:
        pass

    @abstractmethod
    async def insert_run_log(self, level: str, message: str, details: Dict[str, Any]) -> None:
        pass


class EnrichmentRepo(IEnrichmentRepo):
    """Postgres implementation of the enrichment repository."""

    async def get_vehicles_pending(
        self, limit: int = 5, seller_kind: Optional[str] = None
    ) -> List[PendingVehicle]:
        async with get_conn() as conn:
            rows = await queries.get_vehicles_pending(conn, limit=limit, seller_kind=seller_kind)
            return [PendingVehicle.model_validate(dict(r)) for r in rows]

    async def upsert_provenance(self, provenance: VehicleProvenance) -> None:
        async with get_conn() as conn:
            await queries.upsert_vehicle_provenance(
                conn,
                regnr=provenance.regnr,
                listing_id=provenance.listing_id,
                owner_type=provenance.owner_type,
                owner_name=provenance.owner_name,
                owner_age=provenance.owner_age,
                owner_city=provenance.owner_city,
                owner_address=provenance.owner_address,
                owner_postal_code=provenance.owner_postal_code,
                owner_postal_city=provenance.owner_postal_city,
                owner_phone=provenance.owner_phone,
                owner_vehicles=_json(provenance.owner_vehicles),
                address_vehicles=_json(provenance.address_vehicles),
                mileage_history=_json(provenance.mileage_history),
                owner_history=_json(provenance.owner_history),
                is_dealer=provenance.is_dealer,
                dealer_since=provenance.dealer_since,
                previous_owner=_json(provenance.previous_owner),
                fetched_at=provenance.fetched_at,
            )

    async def mark_no_data(self, regnr: str, listing_id: Optional[int] = None) -> None:
        await self.upsert_provenance(VehicleProvenance(
            regnr=regnr,
            listing_id=listing_id,
            owner_type=NO_DATA,
            fetched_at=datetime.now(timezone.utc),
        ))

    async def get_provenance_stats(self) -> Dict[str, int]:
        async with get_conn() as conn:
            result = await queries.get_provenance_stats(conn)
            if result:
                return dict(result)
            return {
                "total": 0, "private": 0, "company": 0, "dealer": 0,
                "broker": 0, "no_data": 0, "with_lead": 0,
            }

    async def insert_run_log(self, level: str, message: str, details: Dict[str, Any]) -> None:
        async with get_conn() as conn:
            await queries.insert_enrichment_log(
                conn, level=level, message=message, details=_json(details),
            )
