"""
Enrichment configuration.

Pacing and breaker settings for Biluppgifter lookups, read from the
environment (.env supported). Delays are in milliseconds.
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

from lib.biluppgifter.client import DEFAULT_API_URL
from services.provenance.chain import DEALER_VEHICLE_THRESHOLD


class EnrichmentConfig(BaseModel):
    """Settings for one enrichment run."""

    api_url: str = Field(default=DEFAULT_API_URL, description="Biluppgifter proxy root")
    batch_size: int = Field(default=5, ge=1, description="Vehicles per run when no limit is given")

    # Inter-item pacing
    base_delay_ms: int = Field(default=3000, ge=0, description="Delay floor")
    max_delay_ms: int = Field(default=10000, ge=0, description="Delay cap under backoff")
    relax_step_ms: int = Field(default=500, ge=0, description="Delay decrease per success")
    jitter_ms: int = Field(default=5000, ge=0, description="Max random delay added per item")

    # Pause before each profile fetch
    profile_delay_min_ms: int = Field(default=2000, ge=0)
    profile_delay_max_ms: int = Field(default=5000, ge=0)

    failure_threshold: int = Field(default=3, ge=1, description="Rate limits in a row before the breaker opens")
    dealer_vehicle_threshold: int = Field(default=DEALER_VEHICLE_THRESHOLD, ge=1)

    @model_validator(mode="after")
    def check_ranges(self):
        if self.base_delay_ms > self.max_delay_ms:
            raise ValueError("base_delay_ms must not exceed max_delay_ms")
        if self.profile_delay_min_ms > self.profile_delay_max_ms:
            raise ValueError("profile_delay_min_ms must not exceed profile_delay_max_ms")
        return self

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "EnrichmentConfig":
        """Build from environment variables, falling back to defaults."""
        load_dotenv(env_file)
        values = {}
        for field, var in _ENV_VARS.items():
            raw = os.getenv(var)
            if raw not in (None, ""):
                values[field] = raw
        return cls(**values)


_ENV_VARS = {
    "api_url": "BILUPPGIFTER_API_URL",
    "batch_size": "ENRICH_BATCH_SIZE",
    "base_delay_ms": "ENRICH_BASE_DELAY_MS",
    "max_delay_ms": "ENRICH_MAX_DELAY_MS",
    "relax_step_ms": "ENRICH_RELAX_STEP_MS",
    "jitter_ms": "ENRICH_JITTER_MS",
    "profile_delay_min_ms": "ENRICH_PROFILE_DELAY_MIN_MS",
    "profile_delay_max_ms": "ENRICH_PROFILE_DELAY_MAX_MS",
    "failure_threshold": "ENRICH_FAILURE_THRESHOLD",
    "dealer_vehicle_threshold": "DEALER_VEHICLE_THRESHOLD",
}
