"""Enrichment service.

Vehicle provenance enrichment from Biluppgifter.

Components:
- Config: Pacing and breaker settings (config.py)
- Pacing: Backoff / circuit breaker state machine (pacing.py)
- Repo: Database operations (repo.py)
- Service: Orchestrates lookups, chain walking and persistence (service.py)
"""

from services.enrichment.config import EnrichmentConfig
from services.enrichment.pacing import EnrichmentState
from services.enrichment.repo import IEnrichmentRepo, EnrichmentRepo
from services.enrichment.service import (
    IService,
    Service,
    ItemStatus,
    ItemResult,
    EnrichRunResult,
)

__all__ = [
    # Config
    "EnrichmentConfig",
    "EnrichmentState",
    # Repo
    "IEnrichmentRepo",
    "EnrichmentRepo",
    # Service
    "IService",
    "Service",
    "ItemStatus",
    "ItemResult",
    "EnrichRunResult",
]
