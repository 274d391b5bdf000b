"""Enrichment Service - Resolve who is behind listed vehicles.

Looks each pending listing up on Biluppgifter, walks the ownership chain and
saves the resolved provenance. Lookups are strictly sequential with
randomized pacing, exponential backoff and a circuit breaker
(see services.enrichment.pacing): the provider must see steady,
human-like traffic, so nothing here runs concurrently.
"""

import asyncio
import random
import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from loguru import logger

from db.models.listing import PendingVehicle
from db.models.provenance import VehicleProvenance
from lib.biluppgifter.client import BiluppgifterClient, ProviderError, RateLimitedError
from lib.biluppgifter.models import OwnedVehicle, OwnerLookup, OwnerProfile, days_between
from lib.vehicle_type import classify_vehicle_type
from services.dealers.registry import DealerRegistry
from services.dealers.repo import IDealerRepo, DealerRepo
from services.enrichment.config import EnrichmentConfig
from services.enrichment.pacing import EnrichmentState, profile_delay_ms
from services.enrichment.repo import IEnrichmentRepo, EnrichmentRepo
from services.provenance.models import ListingAssertion, OwnerKind, ResolvedProvenance
from services.provenance.walker import ChainWalker


class ItemStatus(str, Enum):
    SAVED = "saved"
    NO_DATA = "no_data"
    FAILED = "failed"
    RATE_LIMITED = "rate_limited"
    SKIPPED = "skipped"


@dataclass
class ItemResult:
    """Outcome for one vehicle."""
    regnr: str
    status: ItemStatus
    owner_kind: Optional[OwnerKind] = None
    has_lead: bool = False
    persist_failed: bool = False
    error: Optional[str] = None


@dataclass
class EnrichRunResult:
    """Summary of one batch run."""
    total: int
    saved: int = 0
    no_data: int = 0
    failed: int = 0
    rate_limited: int = 0
    skipped: int = 0
    persist_failures: int = 0
    leads_found: int = 0
    owner_kinds: Dict[str, int] = field(default_factory=dict)
    aborted: bool = False
    circuit_opened: bool = False
    error: Optional[str] = None
    duration_s: float = 0.0
    items: List[ItemResult] = field(default_factory=list)

    def add(self, item: ItemResult) -> None:
        self.items.append(item)
        if item.status == ItemStatus.SAVED:
            self.saved += 1
        elif item.status == ItemStatus.NO_DATA:
            self.no_data += 1
        elif item.status == ItemStatus.FAILED:
            self.failed += 1
        elif item.status == ItemStatus.RATE_LIMITED:
            self.rate_limited += 1
        elif item.status == ItemStatus.SKIPPED:
            self.skipped += 1
        if item.persist_failed:
            self.persist_failures += 1
        if item.owner_kind is not None and item.status == ItemStatus.SAVED:
            kind = item.owner_kind.value
            self.owner_kinds[kind] = self.owner_kinds.get(kind, 0) + 1
        if item.has_lead:
            self.leads_found += 1

    def summary(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "saved": self.saved,
            "no_data": self.no_data,
            "failed": self.failed,
            "rate_limited": self.rate_limited,
            "skipped": self.skipped,
            "persist_failures": self.persist_failures,
            "leads_found": self.leads_found,
            "owner_kinds": self.owner_kinds,
            "aborted": self.aborted,
            "circuit_opened": self.circuit_opened,
            "duration_s": round(self.duration_s, 1),
        }


def tag_vehicles(vehicles: List[OwnedVehicle]) -> List[Dict[str, Any]]:
    """Vehicles as stored, each labelled with its vehicle type."""
    return [
        v.model_copy(update={"vehicle_type": classify_vehicle_type(v.model).value}).model_dump()
        for v in vehicles
    ]


def build_previous_owner(
    resolved: ResolvedProvenance,
    profile: Optional[OwnerProfile],
) -> Optional[Dict[str, Any]]:
    """The lead found behind a dealer, with contact details when its profile was read."""
    lead = resolved.lead
    if lead is None:
        return None
    record = lead.record
    previous = {
        "name": record.name,
        "profile_id": record.profile_id,
        "purchase_date": record.since.isoformat() if record.since else None,
        "lead_type": lead.lead_type.value,
        "chain_index": lead.chain_index,
        "days_owned": days_between(record.since, resolved.dealer_since),
    }
    if profile is not None:
        previous.update(
            name=profile.name or record.name,
            age=profile.age,
            city=profile.city,
            address=profile.address,
            postal_code=profile.postal_code,
            postal_city=profile.postal_city,
            phone=profile.phone,
            vehicles=tag_vehicles(profile.vehicles),
            address_vehicles=tag_vehicles(profile.address_vehicles),
        )
    return previous


def build_provenance(
    vehicle: PendingVehicle,
    lookup: OwnerLookup,
    resolved: ResolvedProvenance,
    previous_owner: Optional[Dict[str, Any]] = None,
) -> VehicleProvenance:
    """Row to persist for a resolved vehicle.

    A dealer's own vehicles are its stock, not lead material, so they are
    dropped for dealer-held vehicles.
    """
    profile = lookup.owner_profile if lookup.profile_owner_index == resolved.holder_index else None
    keep_vehicles = profile is not None and resolved.owner_kind != OwnerKind.DEALER
    return VehicleProvenance(
        regnr=vehicle.regnr,
        listing_id=vehicle.listing_id,
        owner_type=resolved.owner_kind.value,
        owner_name=resolved.holder_name or None,
        owner_age=profile.age if profile else None,
        owner_city=profile.city if profile else None,
        owner_address=profile.address if profile else None,
        owner_postal_code=profile.postal_code if profile else None,
        owner_postal_city=profile.postal_city if profile else None,
        owner_phone=profile.phone if profile else None,
        owner_vehicles=tag_vehicles(profile.vehicles) if keep_vehicles else [],
        address_vehicles=tag_vehicles(profile.address_vehicles) if keep_vehicles else [],
        mileage_history=lookup.mileage_history,
        owner_history=[r.model_dump(mode="json", by_alias=True) for r in lookup.owner_history],
        is_dealer=resolved.is_dealer_like,
        dealer_since=resolved.dealer_since,
        previous_owner=previous_owner,
        fetched_at=datetime.now(timezone.utc),
    )


class IService(ABC):
    """Enrichment Service Interface."""

    @abstractmethod
    async def run_batch(self, vehicles: List[PendingVehicle]) -> EnrichRunResult:
        """Enrich the given vehicles in order."""
        pass

    @abstractmethod
    async def enrich_pending(
        self, limit: Optional[int] = None, seller_kind: Optional[str] = None
    ) -> EnrichRunResult:
        """Enrich the next pending listings."""
        pass

    @abstractmethod
    async def backfill_dealer_aliases(self, limit: int = 10) -> EnrichRunResult:
        """Learn registered names for dealers that have no alias yet."""
        pass

    @abstractmethod
    async def get_stats(self) -> Dict[str, int]:
        pass


class Service(IService):
    """Enrichment orchestrator.

    Args:
        client: Biluppgifter client the caller has already opened. When None,
            one is opened per run against config.api_url.
        repo: Provenance persistence
        dealer_repo: Known dealer persistence (backs the registry)
        registry: Shared dealer registry (default: built on dealer_repo)
        config: Pacing settings (default: from environment)
        sleep: Awaitable sleep in seconds, injectable for tests
        rng: Random source for jitter
    """

    def __init__(
        self,
        client: Optional[BiluppgifterClient] = None,
        repo: Optional[IEnrichmentRepo] = None,
        dealer_repo: Optional[IDealerRepo] = None,
        registry: Optional[DealerRegistry] = None,
        config: Optional[EnrichmentConfig] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config or EnrichmentConfig.from_env()
        self._client = client
        self._repo = repo or EnrichmentRepo()
        self._dealer_repo = dealer_repo or DealerRepo()
        self.registry = registry or DealerRegistry(self._dealer_repo)
        self._walker = ChainWalker(self.registry, self.config.dealer_vehicle_threshold)
        self._sleep = sleep
        self._rng = rng or random.Random()

    @asynccontextmanager
    async def _provider(self):
        if self._client is not None:
            yield self._client
        else:
            async with BiluppgifterClient(self.config.api_url) as client:
                yield client

    # =========================================================================
    # Batch loop
    # =========================================================================

    async def run_batch(self, vehicles: List[PendingVehicle]) -> EnrichRunResult:
        result = EnrichRunResult(total=len(vehicles))
        started = time.monotonic()

        async with self._provider() as client:
            if not await client.health():
                result.aborted = True
                result.error = "Biluppgifter API not reachable"
            else:
                try:
                    await self.registry.reload()
                except Exception as e:
                    result.aborted = True
                    result.error = f"Could not load known dealers: {e}"

            if result.aborted:
                logger.error(f"Aborting run: {result.error}")
                for vehicle in vehicles:
                    result.add(ItemResult(regnr=vehicle.regnr, status=ItemStatus.SKIPPED))
            else:
                await self._process_all(client, vehicles, result)

        result.duration_s = time.monotonic() - started
        await self._log_summary(result)
        return result

    async def _process_all(
        self,
        client: BiluppgifterClient,
        vehicles: List[PendingVehicle],
        result: EnrichRunResult,
    ) -> None:
        state = EnrichmentState.initial(self.config)
        total = len(vehicles)

        for i, vehicle in enumerate(vehicles, 1):
            if state.circuit_open:
                result.add(ItemResult(regnr=vehicle.regnr, status=ItemStatus.SKIPPED))
                continue

            logger.info(
                f"[{i}/{total}] {vehicle.regnr} - {vehicle.description or '?'} "
                f"| {vehicle.seller_name or '?'} ({vehicle.seller_kind})"
            )
            item = await self._process_vehicle(client, vehicle)
            result.add(item)
            state = self._advance(state, item)

            if state.circuit_open:
                result.circuit_opened = True
                logger.warning(
                    f"Circuit breaker open after {state.consecutive_failures} rate limits in a row, "
                    f"skipping {total - i} remaining"
                )
                continue

            if i < total:
                delay_ms = state.next_delay_ms(self.config, self._rng)
                logger.debug(f"  Waiting {delay_ms / 1000:.1f}s")
                await self._sleep(delay_ms / 1000)

    def _advance(self, state: EnrichmentState, item: ItemResult) -> EnrichmentState:
        if item.status == ItemStatus.RATE_LIMITED:
            return state.on_rate_limited(self.config)
        if item.status == ItemStatus.FAILED and not item.persist_failed:
            return state.on_failure()
        # The provider answered, even if we couldn't save what it said
        return state.on_success(self.config)

    async def _process_vehicle(self, client: BiluppgifterClient, vehicle: PendingVehicle) -> ItemResult:
        """Look up, resolve and save one vehicle. Never raises."""
        regnr = vehicle.regnr
        try:
            lookup = await self._fetch_lookup(client, regnr)
            if not lookup.has_data:
                return await self._save_no_data(vehicle)

            assertion = ListingAssertion.from_listing(vehicle.seller_name, vehicle.seller_kind)
            resolved = await self._walker.resolve(assertion, lookup)
            lead_profile = await self._fetch_lead_profile(client, resolved)
        except RateLimitedError as e:
            logger.warning(f"  Rate limited: {e}")
            return ItemResult(regnr=regnr, status=ItemStatus.RATE_LIMITED, error=str(e))
        except ProviderError as e:
            logger.warning(f"  Lookup failed: {e}")
            return ItemResult(regnr=regnr, status=ItemStatus.FAILED, error=str(e))
        except Exception as e:
            logger.error(f"  Unexpected error for {regnr}: {e}")
            return ItemResult(regnr=regnr, status=ItemStatus.FAILED, error=str(e))

        previous_owner = build_previous_owner(resolved, lead_profile)
        provenance = build_provenance(vehicle, lookup, resolved, previous_owner)
        try:
            await self._repo.upsert_provenance(provenance)
        except Exception as e:
            logger.error(f"  Could not save {regnr}: {e}")
            return ItemResult(
                regnr=regnr,
                status=ItemStatus.FAILED,
                owner_kind=resolved.owner_kind,
                persist_failed=True,
                error=str(e),
            )

        logger.success(
            f"  Saved: {resolved.owner_kind.value} {resolved.holder_name or '?'}"
            f", since {resolved.dealer_since or '?'}"
            f", lead={'yes' if previous_owner else 'no'}"
        )
        return ItemResult(
            regnr=regnr,
            status=ItemStatus.SAVED,
            owner_kind=resolved.owner_kind,
            has_lead=previous_owner is not None,
        )

    async def _save_no_data(self, vehicle: PendingVehicle) -> ItemResult:
        logger.info("  No ownership data")
        try:
            await self._repo.mark_no_data(vehicle.regnr, vehicle.listing_id)
        except Exception as e:
            logger.error(f"  Could not save no-data marker for {vehicle.regnr}: {e}")
            return ItemResult(
                regnr=vehicle.regnr, status=ItemStatus.FAILED, persist_failed=True, error=str(e)
            )
        return ItemResult(regnr=vehicle.regnr, status=ItemStatus.NO_DATA)

    # =========================================================================
    # Provider calls
    # =========================================================================

    async def _pause_before_profile(self) -> None:
        await self._sleep(profile_delay_ms(self.config, self._rng) / 1000)

    async def _fetch_profile(self, client: BiluppgifterClient, profile_id: str) -> Optional[OwnerProfile]:
        """Profile fetch after its own pause. Rate limits propagate; other failures give None."""
        await self._pause_before_profile()
        try:
            return await client.lookup_profile(profile_id)
        except RateLimitedError:
            raise
        except ProviderError as e:
            logger.warning(f"  Could not fetch profile {profile_id}: {e}")
            return None

    async def _fetch_lookup(self, client: BiluppgifterClient, regnr: str) -> OwnerLookup:
        """Owner endpoint first, then the vehicle endpoint when it has nothing."""
        data = await client.lookup_owner(regnr)
        owner_lookup = OwnerLookup.from_owner_response(regnr, data)
        if owner_lookup.owner_profile is not None and not data.get("error"):
            return owner_lookup

        logger.info("  Owner endpoint has no profile, trying vehicle endpoint")
        await self._pause_before_profile()
        try:
            vehicle_data = await client.lookup_vehicle(regnr)
        except RateLimitedError:
            raise
        except ProviderError as e:
            logger.warning(f"  Vehicle endpoint failed: {e}")
            return owner_lookup

        lookup = OwnerLookup.from_vehicle_response(regnr, vehicle_data)
        if not lookup.owner_history:
            return owner_lookup
        if not lookup.mileage_history and owner_lookup.mileage_history:
            lookup = lookup.model_copy(update={"mileage_history": owner_lookup.mileage_history})

        # First entry we can follow; skips "Okänd" holders without a profile
        for idx, record in enumerate(lookup.owner_history):
            if not record.profile_id:
                continue
            logger.info(f"  Fetching profile for chain [{idx}]: {record.name}")
            profile = await self._fetch_profile(client, record.profile_id)
            if profile is not None:
                lookup = lookup.model_copy(update={"owner_profile": profile, "profile_owner_index": idx})
            break
        return lookup

    async def _fetch_lead_profile(
        self, client: BiluppgifterClient, resolved: Optional[ResolvedProvenance]
    ) -> Optional[OwnerProfile]:
        if resolved is None or resolved.lead is None or not resolved.lead.record.profile_id:
            return None
        lead = resolved.lead
        logger.info(f"  Fetching lead profile [{lead.chain_index}]: {lead.record.name}")
        return await self._fetch_profile(client, lead.record.profile_id)

    # =========================================================================
    # Reporting
    # =========================================================================

    async def _log_summary(self, result: EnrichRunResult) -> None:
        kinds = ", ".join(f"{k}: {v}" for k, v in sorted(result.owner_kinds.items())) or "none"
        logger.info(
            f"Enrichment done: {result.saved} saved, {result.no_data} no data, "
            f"{result.failed} failed, {result.rate_limited} rate limited, {result.skipped} skipped "
            f"({result.duration_s:.0f}s)"
        )
        logger.info(f"  Owner kinds: {kinds} | {result.leads_found} leads from ownership chains")

        level = "error" if result.aborted else "info"
        message = "Enrichment aborted" if result.aborted else "Enrichment done"
        details = result.summary()
        if result.error:
            details["error"] = result.error
        try:
            await self._repo.insert_run_log(level, message, details)
        except Exception as e:
            logger.warning(f"Could not write enrichment log: {e}")

    # =========================================================================
    # Entry points
    # =========================================================================

    async def enrich_pending(
        self, limit: Optional[int] = None, seller_kind: Optional[str] = None
    ) -> EnrichRunResult:
        vehicles = await self._repo.get_vehicles_pending(limit or self.config.batch_size, seller_kind)
        if not vehicles:
            logger.info("No vehicles pending enrichment")
            return EnrichRunResult(total=0)
        logger.info(f"Enriching {len(vehicles)} vehicles")
        return await self.run_batch(vehicles)

    async def backfill_dealer_aliases(self, limit: int = 10) -> EnrichRunResult:
        """Run one listing per alias-less dealer through the batch loop.

        Resolving a dealer-held vehicle feeds the registered owner name back
        into the registry, so each dealer that resolves as a dealer learns
        its alias.
        """
        dealers = await self._dealer_repo.get_dealers_without_alias(limit)
        vehicles = []
        for dealer in dealers:
            listing = await self._dealer_repo.get_sample_listing_for_seller(dealer.name)
            if listing is None:
                logger.info(f"No active listing for {dealer.name}, skipping")
                continue
            vehicles.append(listing.model_copy(update={"seller_kind": "dealer"}))

        if not vehicles:
            logger.info("No dealers to backfill")
            return EnrichRunResult(total=0)
        logger.info(f"Backfilling aliases for {len(vehicles)} dealers")
        return await self.run_batch(vehicles)

    async def get_stats(self) -> Dict[str, int]:
        stats = await self._repo.get_provenance_stats()
        stats["known_dealers"] = await self._dealer_repo.count_known_dealers()
        return stats
