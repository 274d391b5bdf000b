"""Unit tests for the duplicate service."""

from typing import List

import pytest

from db.models.lead import LeadRecord
from services.dedupe.detector import MatchOptions
from services.dedupe.repo import ILeadRepo
from services.dedupe.service import Service


class MockLeadRepo(ILeadRepo):
    """Serves a fixed population in pages and records the offsets asked for."""

    def __init__(self, leads: List[LeadRecord]):
        self.leads = leads
        self.offsets: List[int] = []

    async def get_leads_page(self, offset: int, limit: int) -> List[LeadRecord]:
        self.offsets.append(offset)
        return self.leads[offset:offset + limit]

    async def get_leads_by_ids(self, lead_ids: List[str]) -> List[LeadRecord]:
        wanted = set(lead_ids)
        # Database order, not caller order
        return [lead for lead in self.leads if lead.id in wanted]


def population(n: int) -> List[LeadRecord]:
    return [
        LeadRecord(id=f"l{i:03d}", reg_nr=f"REG{i:03d}", phone=f"0701{i:06d}")
        for i in range(n)
    ]


@pytest.mark.no_db
class TestCheckLeads:

    @pytest.mark.asyncio
    async def test_pages_until_short_page(self):
        repo = MockLeadRepo(population(25))
        service = Service(repo, page_size=10)

        result = await service.check_leads(
            [LeadRecord(id="new", reg_nr="REG024")],
            MatchOptions(plate=True),
        )

        assert repo.offsets == [0, 10, 20]
        assert result.duplicate_count == 1
        assert result.duplicates[0].matched_lead_id == "l024"

    @pytest.mark.asyncio
    async def test_exact_multiple_of_page_size(self):
        repo = MockLeadRepo(population(20))
        service = Service(repo, page_size=10)

        await service.check_leads([LeadRecord(id="new")], MatchOptions(plate=True))

        assert repo.offsets == [0, 10, 20]

    @pytest.mark.asyncio
    async def test_misuse_does_not_touch_repo(self):
        repo = MockLeadRepo(population(5))
        service = Service(repo)

        no_fields = await service.check_leads([LeadRecord(id="new")], MatchOptions())
        no_leads = await service.check_leads([], MatchOptions(plate=True))

        assert not no_fields.success and no_fields.error
        assert not no_leads.success and no_leads.error
        assert repo.offsets == []


@pytest.mark.no_db
class TestCheckDuplicates:

    @pytest.mark.asyncio
    async def test_stored_leads_do_not_match_themselves(self):
        leads = population(5)
        repo = MockLeadRepo(leads)
        service = Service(repo)

        result = await service.check_duplicates(["l001", "l002"], MatchOptions(plate=True, phone=True))

        assert result.success
        assert result.total_checked == 2
        assert result.duplicate_count == 0

    @pytest.mark.asyncio
    async def test_caller_order_decides_canonical(self):
        leads = population(3) + [LeadRecord(id="l900", phone="0701000001")]
        repo = MockLeadRepo(leads)
        service = Service(repo)

        result = await service.check_duplicates(["l900", "l001"], MatchOptions(phone=True))

        assert result.duplicate_lead_ids == ["l001"]
        match = result.duplicates[0]
        assert match.matched_lead_id == "l900"
        assert match.in_batch

    @pytest.mark.asyncio
    async def test_unknown_ids(self):
        service = Service(MockLeadRepo(population(3)))

        result = await service.check_duplicates(["nope"], MatchOptions(plate=True))

        assert not result.success

    @pytest.mark.asyncio
    async def test_empty_ids(self):
        service = Service(MockLeadRepo(population(3)))
        result = await service.check_duplicates([], MatchOptions(plate=True))
        assert not result.success
