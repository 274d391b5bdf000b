"""Ownership chain rules.

Pure functions over an ownership chain (index 0 = current holder) and the
dealer registry. No I/O: the walker feeds them provider data and applies the
registry feedback.
"""

from typing import Optional, Sequence

from loguru import logger

from lib.biluppgifter.models import OwnerClass, OwnershipRecord
from lib.names import names_match
from services.dealers.registry import DealerRegistry
from services.provenance.models import (
    ChainLead,
    LeadType,
    ListingAssertion,
    OwnerKind,
    SellerKind,
)

# A holder with this many vehicles on its profile is treated as a dealer
DEALER_VEHICLE_THRESHOLD = 10


def is_dealer_like(vehicle_count: Optional[int], threshold: int = DEALER_VEHICLE_THRESHOLD) -> bool:
    return vehicle_count is not None and vehicle_count >= threshold


def determine_owner_kind(
    assertion: ListingAssertion,
    holder_name: str,
    registry: DealerRegistry,
) -> OwnerKind:
    """Classify the current holder of a listed vehicle.

    A private listing is trusted outright. For a dealer listing, a holder
    whose name doesn't match the listed seller and who isn't a known dealer
    means the seller is a broker fronting for the holder. The name check wins
    over the holder's stock size, so a dealer-like holder under another name
    is still a broker.

    A dealer listing is never downgraded to private.
    """
    if assertion.seller_kind == SellerKind.PRIVATE:
        return OwnerKind.PRIVATE

    if holder_name and assertion.seller_name:
        if not names_match(assertion.seller_name, holder_name) and not registry.is_known_dealer(holder_name):
            return OwnerKind.BROKER

    # Dealer-like and company holders are dealers, and so is everything else
    # left over: the listing said dealer.
    return OwnerKind.DEALER


def find_lead_in_chain(
    chain: Sequence[OwnershipRecord],
    registry: DealerRegistry,
    start: int = 1,
) -> Optional[ChainLead]:
    """Walk back from `start` to the first owner that isn't a known dealer.

    Companies are returned as company leads; people only when they have a
    profile to follow. Index 0 (the current holder) is never inspected.
    Returns None when the chain runs out, which is a normal outcome.
    """
    for i in range(max(1, start), len(chain)):
        record = chain[i]
        if registry.is_known_dealer(record.name):
            logger.debug(f"  [{i}] skipping dealer: {record.name}")
            continue
        if record.owner_class == OwnerClass.COMPANY:
            return ChainLead(record=record, lead_type=LeadType.COMPANY, chain_index=i)
        if record.owner_class == OwnerClass.PERSON and record.profile_id:
            return ChainLead(record=record, lead_type=LeadType.PRIVATE, chain_index=i)
    return None
