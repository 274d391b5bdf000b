"""Types shared by the chain rules and the walker."""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from lib.biluppgifter.models import OwnershipRecord


class SellerKind(str, Enum):
    """Seller kind as declared on the marketplace listing."""
    PRIVATE = "private"
    DEALER = "dealer"


class OwnerKind(str, Enum):
    PRIVATE = "private"
    COMPANY = "company"
    DEALER = "dealer"
    BROKER = "broker"


class LeadType(str, Enum):
    PRIVATE = "private"
    COMPANY = "company"


@dataclass(frozen=True)
class ListingAssertion:
    """Who the listing says is selling."""
    seller_name: str
    seller_kind: SellerKind

    @classmethod
    def from_listing(cls, seller_name: Optional[str], seller_kind: Optional[str]) -> "ListingAssertion":
        kind = SellerKind.DEALER if (seller_kind or "").lower() == "dealer" else SellerKind.PRIVATE
        return cls(seller_name=seller_name or "", seller_kind=kind)


@dataclass(frozen=True)
class ChainLead:
    """First real counterparty found behind a dealer in the ownership chain."""
    record: OwnershipRecord
    lead_type: LeadType
    chain_index: int


@dataclass(frozen=True)
class ResolvedProvenance:
    """Outcome of resolving who is behind a listing."""
    owner_kind: OwnerKind
    holder_name: str
    holder_index: int = 0
    lead: Optional[ChainLead] = None
    dealer_since: Optional[date] = None
    is_dealer_like: bool = False
