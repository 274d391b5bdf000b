"""Biluppgifter ownership/profile provider."""

from lib.biluppgifter.client import (
    BiluppgifterClient,
    ProviderError,
    RateLimitedError,
    is_rate_limited,
)
from lib.biluppgifter.models import (
    OwnerClass,
    OwnershipRecord,
    OwnedVehicle,
    OwnerProfile,
    OwnerLookup,
    parse_date,
    days_between,
)

__all__ = [
    "BiluppgifterClient",
    "ProviderError",
    "RateLimitedError",
    "is_rate_limited",
    "OwnerClass",
    "OwnershipRecord",
    "OwnedVehicle",
    "OwnerProfile",
    "OwnerLookup",
    "parse_date",
    "days_between",
]
