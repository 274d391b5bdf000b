"""Dealer Repository - Database operations for the known dealer registry."""

from abc import ABC, abstractmethod
from typing import Optional, List

from db.client import queries, get_conn
from db.models.dealer import KnownDealer
from db.models.listing import PendingVehicle


class IDealerRepo(ABC):
    """Interface for known dealer persistence."""

    @abstractmethod
    async def get_known_dealers(self) -> List[KnownDealer]:
        """Load every known dealer with its learned aliases."""
        pass

    @abstractmethod
    async def upsert_known_dealer(self, dealer: KnownDealer) -> None:
        """Insert or merge a dealer (aliases unioned, NULL contact fields kept)."""
        pass

    @abstractmethod
    async def get_dealers_without_alias(self, limit: int = 100) -> List[KnownDealer]:
        """Dealers never matched to a registered owner name."""
        pass

    @abstractmethod
    async def get_sample_listing_for_seller(self, seller_name: str) -> Optional[PendingVehicle]:
        """Latest active listing with a plate from this seller."""
        pass

    @abstractmethod
    async def count_known_dealers(self) -> int:
        pass


class DealerRepo(IDealerRepo):
    """Postgres implementation of the dealer repository."""

    async def get_known_dealers(self) -> List[KnownDealer]:
        async with get_conn() as conn:
            rows = await queries.get_known_dealers(conn)
            return [KnownDealer.model_validate(dict(r)) for r in rows]

    async def upsert_known_dealer(self, dealer: KnownDealer) -> None:
        async with get_conn() as conn:
            await queries.upsert_known_dealer(
                conn,
                name=dealer.name,
                aliases=dealer.aliases,
                address=dealer.address,
                postal_code=dealer.postal_code,
                postal_city=dealer.postal_city,
                phone=dealer.phone,
                vehicle_count=dealer.vehicle_count,
                source=dealer.source or "enrichment",
            )

    async def get_dealers_without_alias(self, limit: int = 100) -> List[KnownDealer]:
        async with get_conn() as conn:
            rows = await queries.get_dealers_without_alias(conn, limit=limit)
            return [KnownDealer.model_validate(dict(r)) for r in rows]

    async def get_sample_listing_for_seller(self, seller_name: str) -> Optional[PendingVehicle]:
        async with get_conn() as conn:
            row = await queries.get_sample_listing_for_seller(conn, seller_name=seller_name)
            return PendingVehicle.model_validate(dict(row)) if row else None

    async def count_known_dealers(self) -> int:
        async with get_conn() as conn:
            result = await queries.count_known_dealers(conn)
            return result or 0
