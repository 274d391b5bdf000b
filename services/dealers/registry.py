"""Known dealer registry.

Read-through/write-through cache over the known_dealers table:
  - reload() at the start of a run pulls every dealer and alias into memory
  - is_known_dealer() fuzzy-matches a name against the in-memory aliases
  - enrich() learns a new alias (+ contact details) and persists it

An alias learned with enrich() is effective immediately for the rest of the
run. Aliases are never removed or re-validated, so is_known_dealer() can only
go from False to True as the registry grows.

The registry is shared by every item of a run. Runs are sequential, so there
is no locking; concurrent runs must each own their registry.
"""

from typing import Optional, Dict, Set

from loguru import logger

from db.models.dealer import DealerContact, KnownDealer
from lib.names import names_match, normalize_name
from services.dealers.repo import IDealerRepo


class DealerRegistry:
    """In-memory alias set backed by the dealer repository."""

    def __init__(self, repo: Optional[IDealerRepo] = None):
        self._repo = repo
        self._entries: Dict[str, KnownDealer] = {}
        self._aliases: Set[str] = set()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def aliases(self) -> frozenset:
        return frozenset(self._aliases)

    def get(self, primary_name: str) -> Optional[KnownDealer]:
        return self._entries.get(primary_name)

    async def reload(self) -> int:
        """Replace the in-memory state with what is persisted. Returns alias count."""
        self._entries = {}
        self._aliases = set()
        if self._repo is None:
            return 0
        dealers = await self._repo.get_known_dealers()
        for dealer in dealers:
            self._add_entry(dealer)
        logger.info(f"Loaded {len(self._aliases)} dealer aliases ({len(self._entries)} dealers)")
        return len(self._aliases)

    def _add_entry(self, dealer: KnownDealer) -> None:
        self._entries[dealer.name] = dealer
        for name in [dealer.name, *dealer.aliases]:
            normalized = normalize_name(name)
            if normalized:
                self._aliases.add(normalized)

    def match(self, name: Optional[str]) -> Optional[str]:
        """Return the first alias the name fuzzy-matches, or None."""
        normalized = normalize_name(name)
        if not normalized:
            return None
        for alias in self._aliases:
            if names_match(normalized, alias):
                return alias
        return None

    def is_known_dealer(self, name: Optional[str]) -> bool:
        return self.match(name) is not None

    async def enrich(
        self,
        primary_name: str,
        observed_alias: Optional[str],
        contact: Optional[DealerContact] = None,
        vehicle_count: Optional[int] = None,
    ) -> KnownDealer:
        """Upsert a dealer keyed by its listing name and learn an alias for it.

        Non-null contact fields overwrite stored ones; nulls never erase.
        Persistence is best-effort: a failed write is logged and the alias
        still applies for the rest of the run.
        """
        existing = self._entries.get(primary_name) or KnownDealer(name=primary_name)
        updates = {}

        alias = normalize_name(observed_alias)
        if alias and alias not in existing.aliases:
            updates["aliases"] = [*existing.aliases, alias]

        if contact is not None:
            for field, value in contact.model_dump().items():
                if value:
                    updates[field] = value
        if vehicle_count is not None:
            updates["vehicle_count"] = vehicle_count

        dealer = existing.model_copy(update=updates)
        self._add_entry(dealer)

        if self._repo is not None:
            try:
                await self._repo.upsert_known_dealer(dealer)
            except Exception as e:
                logger.warning(f"Could not persist dealer '{primary_name}': {e}")

        if alias:
            logger.debug(f"Dealer '{primary_name}' known as '{alias}'")
        return dealer
