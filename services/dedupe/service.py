"""Duplicate Service - Check leads against history and each other.

The existing population is read page by page (the store caps result size)
until a short page marks the end.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from loguru import logger

from db.models.lead import LeadRecord
from services.dedupe.detector import DuplicateCheckResult, DuplicateDetector, MatchOptions
from services.dedupe.repo import ILeadRepo, LeadRepo

PAGE_SIZE = 1000


class IService(ABC):
    """Duplicate Service Interface."""

    @abstractmethod
    async def check_duplicates(self, lead_ids: List[str], options: MatchOptions) -> DuplicateCheckResult:
        """Check stored leads by id."""
        pass

    @abstractmethod
    async def check_leads(self, candidates: List[LeadRecord], options: MatchOptions) -> DuplicateCheckResult:
        """Check a batch of leads (e.g. about to be imported)."""
        pass


class Service(IService):

    def __init__(self, repo: Optional[ILeadRepo] = None, page_size: int = PAGE_SIZE) -> None:
        self._repo = repo or LeadRepo()
        self.page_size = page_size

    async def check_duplicates(self, lead_ids: List[str], options: MatchOptions) -> DuplicateCheckResult:
        if not options.enabled_fields():
            return DuplicateCheckResult.failure("Select at least one match field")
        if not lead_ids:
            return DuplicateCheckResult.failure("No leads to check")

        found = {lead.id: lead for lead in await self._repo.get_leads_by_ids(lead_ids)}
        # Batch order is the caller's order, not the database's
        candidates = [found[i] for i in dict.fromkeys(lead_ids) if i in found]
        if not candidates:
            return DuplicateCheckResult.failure("None of the given leads exist")
        if len(candidates) < len(set(lead_ids)):
            logger.warning(f"{len(set(lead_ids)) - len(candidates)} lead ids not found")
        return await self.check_leads(candidates, options)

    async def check_leads(self, candidates: List[LeadRecord], options: MatchOptions) -> DuplicateCheckResult:
        detector = DuplicateDetector(options, exclude_ids=[c.id for c in candidates])
        error = detector.validate(candidates)
        if error:
            return DuplicateCheckResult.failure(error)

        fields = ", ".join(f.value for f in detector.fields)
        logger.info(f"Checking {len(candidates)} leads for duplicates on {fields}")

        offset = 0
        while True:
            page = await self._repo.get_leads_page(offset, self.page_size)
            detector.add_existing(page)
            offset += len(page)
            if len(page) < self.page_size:
                break
        logger.info(f"Indexed {detector.indexed} existing leads")

        result = detector.check(candidates)
        logger.info(
            f"Duplicate check: {result.duplicate_count} duplicates, "
            f"{result.unique_count} unique of {result.total_checked}"
        )
        return result
