"""Pacing state machine for Biluppgifter lookups.

EnrichmentState is an immutable value threaded through the batch loop:
every outcome returns a new state. Nothing here sleeps or does I/O, so the
backoff and breaker rules are testable on their own.

    rate limited  -> failures + 1, delay doubled (capped), breaker opens at threshold
    success       -> failures reset, delay relaxed one step toward the floor
    other failure -> failures reset, delay unchanged
"""

import random
from dataclasses import dataclass, replace

from services.enrichment.config import EnrichmentConfig


@dataclass(frozen=True)
class EnrichmentState:
    consecutive_failures: int
    current_delay_ms: int
    circuit_open: bool = False

    @classmethod
    def initial(cls, config: EnrichmentConfig) -> "EnrichmentState":
        return cls(consecutive_failures=0, current_delay_ms=config.base_delay_ms)

    def on_rate_limited(self, config: EnrichmentConfig) -> "EnrichmentState":
        failures = self.consecutive_failures + 1
        if failures >= config.failure_threshold:
            return replace(self, consecutive_failures=failures, circuit_open=True)
        return replace(
            self,
            consecutive_failures=failures,
            current_delay_ms=min(self.current_delay_ms * 2, config.max_delay_ms),
        )

    def on_success(self, config: EnrichmentConfig) -> "EnrichmentState":
        # Step down rather than jump to the floor, so we don't oscillate
        return replace(
            self,
            consecutive_failures=0,
            current_delay_ms=max(config.base_delay_ms, self.current_delay_ms - config.relax_step_ms),
        )

    def on_failure(self) -> "EnrichmentState":
        return replace(self, consecutive_failures=0)

    def next_delay_ms(self, config: EnrichmentConfig, rng: random.Random) -> int:
        """Current delay plus random jitter."""
        return self.current_delay_ms + rng.randint(0, config.jitter_ms)


def profile_delay_ms(config: EnrichmentConfig, rng: random.Random) -> int:
    """Pause before a profile fetch (shorter window than between vehicles)."""
    return rng.randint(config.profile_delay_min_ms, config.profile_delay_max_ms)
