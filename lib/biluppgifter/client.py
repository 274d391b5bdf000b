"""Async client for the Biluppgifter ownership/profile API.

The API is a local scraping proxy in front of biluppgifter.se:

    GET /health                 liveness probe
    GET /api/owner/{regnr}      current owner profile + ownership history
    GET /api/vehicle/{regnr}    vehicle page, history under owner.history
    GET /api/profile/{id}       owner profile (contact, vehicles, address vehicles)

The upstream site is behind Cloudflare and blocks aggressive clients, so this
client never retries or sleeps by itself. Pacing is the caller's job
(see services.enrichment.pacing). Blocks surface as RateLimitedError.

Usage:
    async with BiluppgifterClient() as client:
        if await client.health():
            data = await client.lookup_owner("ABC123")
"""

import os
from typing import Optional

import httpx
from loguru import logger
from pydantic import ValidationError

from lib.biluppgifter.models import OwnerProfile

DEFAULT_API_URL = "http://localhost:3456"
HEALTH_TIMEOUT = 5.0

RATE_LIMIT_STATUS_CODES = frozenset({403, 429})

# Substrings the proxy puts in error messages when upstream blocks us
RATE_LIMIT_MARKERS = (
    "429",
    "403",
    "hbp210",
    "blockerar",
    "cloudflare",
    "rate limit",
    "för många",
)


class ProviderError(Exception):
    """Provider call failed (transport error, bad status, bad payload)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitedError(ProviderError):
    """Provider signalled rate limiting or blocking."""


def is_rate_limited(status_code: Optional[int], message: Optional[str]) -> bool:
    """Classify a provider response as a rate-limit/block signal."""
    if status_code in RATE_LIMIT_STATUS_CODES:
        return True
    if not message:
        return False
    lower = message.lower()
    return any(marker in lower for marker in RATE_LIMIT_MARKERS)


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
        if isinstance(data, dict) and data.get("error"):
            return str(data["error"])
    except ValueError:
        pass
    return f"HTTP {resp.status_code}: {resp.reason_phrase}"


class BiluppgifterClient:
    """Thin async wrapper around the Biluppgifter proxy.

    Args:
        base_url: API root (default: BILUPPGIFTER_API_URL env var)
        client: Optional pre-built httpx.AsyncClient (tests pass one with a MockTransport)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (
            base_url or os.getenv("BILUPPGIFTER_API_URL") or DEFAULT_API_URL
        ).rstrip("/")
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "BiluppgifterClient":
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("BiluppgifterClient used outside of 'async with'")
        return self._client

    async def health(self) -> bool:
        """Liveness probe. Never raises."""
        try:
            resp = await self.client.get(f"{self.base_url}/health", timeout=HEALTH_TIMEOUT)
        except httpx.HTTPError as e:
            logger.warning(f"Biluppgifter health check failed: {e}")
            return False
        if resp.status_code != 200:
            logger.warning(f"Biluppgifter health check failed: HTTP {resp.status_code}")
            return False
        return True

    async def _get_json(self, path: str) -> dict:
        url = f"{self.base_url}{path}"
        try:
            resp = await self.client.get(url)
        except httpx.HTTPError as e:
            raise ProviderError(f"{path}: {e}") from e

        if resp.status_code != 200:
            message = _error_message(resp)
            if is_rate_limited(resp.status_code, message):
                raise RateLimitedError(f"{path}: {message}", resp.status_code)
            raise ProviderError(f"{path}: {message}", resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise ProviderError(f"{path}: invalid JSON", resp.status_code) from e
        if not isinstance(data, dict):
            raise ProviderError(f"{path}: unexpected payload", resp.status_code)

        error = data.get("error")
        if error and is_rate_limited(None, str(error)):
            raise RateLimitedError(f"{path}: {error}", resp.status_code)
        return data

    async def lookup_owner(self, regnr: str) -> dict:
        """Owner endpoint. May come back with an "error" and no profile."""
        return await self._get_json(f"/api/owner/{regnr}")

    async def lookup_vehicle(self, regnr: str) -> dict:
        """Vehicle endpoint. Often has ownership history when the owner endpoint doesn't."""
        return await self._get_json(f"/api/vehicle/{regnr}")

    async def lookup_profile(self, profile_id: str) -> OwnerProfile:
        """Owner profile. Raises ProviderError if the profile can't be read."""
        data = await self._get_json(f"/api/profile/{profile_id}")
        if data.get("error"):
            raise ProviderError(f"/api/profile/{profile_id}: {data['error']}")
        try:
            return OwnerProfile(**data)
        except ValidationError as e:
            raise ProviderError(f"/api/profile/{profile_id}: unreadable profile ({e.error_count()} errors)") from e
