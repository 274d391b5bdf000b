"""Ownership chain walker.

Components:
- Models: Listing assertion, owner kinds, resolved provenance (models.py)
- Chain: Pure owner-kind and lead-search rules (chain.py)
- Walker: Applies the rules to a provider lookup with registry feedback (walker.py)
"""

from services.provenance.models import (
    SellerKind,
    OwnerKind,
    LeadType,
    ListingAssertion,
    ChainLead,
    ResolvedProvenance,
)
from services.provenance.chain import (
    DEALER_VEHICLE_THRESHOLD,
    is_dealer_like,
    determine_owner_kind,
    find_lead_in_chain,
)
from services.provenance.walker import ChainWalker

__all__ = [
    "SellerKind",
    "OwnerKind",
    "LeadType",
    "ListingAssertion",
    "ChainLead",
    "ResolvedProvenance",
    "DEALER_VEHICLE_THRESHOLD",
    "is_dealer_like",
    "determine_owner_kind",
    "find_lead_in_chain",
    "ChainWalker",
]
