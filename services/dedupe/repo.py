"""Lead Repository - Read access to the lead population for duplicate checks."""

from abc import ABC, abstractmethod
from typing import List

from db.client import queries, get_conn
from db.models.lead import LeadRecord


class ILeadRepo(ABC):
    """Interface for lead reads."""

    @abstractmethod
    async def get_leads_page(self, offset: int, limit: int) -> List[LeadRecord]:
        """One page of existing leads in a stable order."""
        pass

    @abstractmethod
    async def get_leads_by_ids(self, lead_ids: List[str]) -> List[LeadRecord]:
        pass


class LeadRepo(ILeadRepo):
    """Postgres implementation of the lead repository."""

    async def get_leads_page(self, offset: int, limit: int) -> List[LeadRecord]:
        async with get_conn() as conn:
            rows = await queries.get_leads_page(conn, limit=limit, offset=offset)
            return [LeadRecord.model_validate(dict(r)) for r in rows]

    async def get_leads_by_ids(self, lead_ids: List[str]) -> List[LeadRecord]:
        if not lead_ids:
            return []
        async with get_conn() as conn:
            rows = await queries.get_leads_by_ids(conn, lead_ids=lead_ids)
            return [LeadRecord.model_validate(dict(r)) for r in rows]
