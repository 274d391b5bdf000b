"""Ownership chain walker.

Resolves who is behind a listed vehicle from the provider's lookup and feeds
confirmed dealer identities back into the dealer registry.
"""

from typing import Optional

from loguru import logger

from db.models.dealer import DealerContact
from lib.biluppgifter.models import OwnerClass, OwnerLookup, OwnerProfile, days_between
from services.dealers.registry import DealerRegistry
from services.provenance.chain import (
    DEALER_VEHICLE_THRESHOLD,
    determine_owner_kind,
    find_lead_in_chain,
    is_dealer_like,
)
from services.provenance.models import ListingAssertion, OwnerKind, ResolvedProvenance


def _contact(profile: Optional[OwnerProfile]) -> Optional[DealerContact]:
    if profile is None:
        return None
    return DealerContact(
        address=profile.address,
        postal_code=profile.postal_code,
        postal_city=profile.postal_city,
        phone=profile.phone,
    )


class ChainWalker:
    """Applies the chain rules to one lookup at a time.

    The registry is shared across a whole run, so dealers learned while
    resolving one vehicle are known when resolving the next.
    """

    def __init__(self, registry: DealerRegistry, dealer_vehicle_threshold: int = DEALER_VEHICLE_THRESHOLD):
        self.registry = registry
        self.dealer_vehicle_threshold = dealer_vehicle_threshold

    @staticmethod
    def holder_index(lookup: OwnerLookup) -> int:
        """Chain index of the holder the lookup's profile describes.

        Normally 0. When the current holder is unknown ("Okänd") and the
        profile was fetched for a later chain entry, that entry stands in
        for the holder.
        """
        chain = lookup.owner_history
        idx = lookup.profile_owner_index
        if chain and chain[0].owner_class == OwnerClass.UNKNOWN and 0 < idx < len(chain):
            return idx
        return 0

    async def resolve(self, assertion: ListingAssertion, lookup: OwnerLookup) -> Optional[ResolvedProvenance]:
        """Resolve a lookup. None means the provider had no ownership data."""
        if not lookup.has_data:
            return None

        chain = lookup.owner_history
        idx = self.holder_index(lookup)
        holder = chain[idx] if chain else None

        # The profile describes the holder unless it belongs to some other entry
        profile = lookup.owner_profile if lookup.profile_owner_index == idx else None
        holder_name = (profile.name if profile else None) or (holder.name if holder else "")
        dealer_since = (holder.since if holder else None) or (chain[0].since if chain else None)
        dealer_like = is_dealer_like(
            profile.vehicle_count if profile else None,
            self.dealer_vehicle_threshold,
        )

        if idx > 0:
            logger.info(f"  Current holder unknown, using chain [{idx}]: {holder_name}")

        owner_kind = determine_owner_kind(assertion, holder_name, self.registry)

        lead = None
        if owner_kind == OwnerKind.DEALER:
            lead = find_lead_in_chain(chain, self.registry, start=idx + 1)
            if lead:
                held = days_between(lead.record.since, dealer_since)
                logger.info(
                    f"  Lead in chain [{lead.chain_index}]: {lead.record.name} "
                    f"({lead.lead_type.value}, owned {held if held is not None else '?'} days)"
                )
            else:
                logger.info("  No lead found in ownership chain")

            if assertion.seller_name:
                await self.registry.enrich(
                    assertion.seller_name,
                    holder_name,
                    _contact(profile),
                    vehicle_count=profile.vehicle_count if profile else None,
                )
        elif owner_kind == OwnerKind.BROKER:
            logger.info(f"  Broker: '{assertion.seller_name}' is selling for {holder_name}")

        return ResolvedProvenance(
            owner_kind=owner_kind,
            holder_name=holder_name,
            holder_index=idx,
            lead=lead,
            dealer_since=dealer_since,
            is_dealer_like=dealer_like,
        )
