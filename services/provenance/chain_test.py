"""Unit tests for the ownership chain rules."""

import pytest

from lib.biluppgifter.models import OwnershipRecord
from services.dealers.registry import DealerRegistry
from services.provenance.chain import (
    determine_owner_kind,
    find_lead_in_chain,
    is_dealer_like,
)
from services.provenance.models import (
    LeadType,
    ListingAssertion,
    OwnerKind,
    SellerKind,
)


async def make_registry(*names: str) -> DealerRegistry:
    registry = DealerRegistry()
    for name in names:
        await registry.enrich(name, name)
    return registry


def record(name, owner_class="company", profile_id=None, since=None) -> OwnershipRecord:
    return OwnershipRecord(name=name, owner_class=owner_class, profile_id=profile_id, date=since)


BILO_CHAIN = [
    record("Bilo AB"),
    record("Svensson Motor"),
    record("Anna Karlsson", "person", "p1"),
]


@pytest.mark.no_db
class TestIsDealerLike:

    def test_threshold(self):
        assert is_dealer_like(10)
        assert is_dealer_like(57)
        assert not is_dealer_like(9)
        assert not is_dealer_like(None)

    def test_custom_threshold(self):
        assert is_dealer_like(3, threshold=3)


@pytest.mark.no_db
class TestDetermineOwnerKind:

    @pytest.mark.asyncio
    async def test_private_listing_trusted(self):
        registry = await make_registry("bilo")
        assertion = ListingAssertion("Anna Karlsson", SellerKind.PRIVATE)
        # Even a known dealer as holder doesn't override a private listing
        assert determine_owner_kind(assertion, "Bilo AB", registry) == OwnerKind.PRIVATE

    @pytest.mark.asyncio
    async def test_matching_dealer(self):
        registry = await make_registry("bilo")
        assertion = ListingAssertion("Bilo AB", SellerKind.DEALER)
        assert determine_owner_kind(assertion, "Bilo AB", registry) == OwnerKind.DEALER

    @pytest.mark.asyncio
    async def test_broker_when_holder_is_someone_else(self):
        registry = await make_registry("bilo")
        assertion = ListingAssertion("Kalles Bilservice", SellerKind.DEALER)
        assert determine_owner_kind(assertion, "Anna Karlsson", registry) == OwnerKind.BROKER

    @pytest.mark.asyncio
    async def test_holder_under_other_name_but_known_dealer(self):
        registry = await make_registry("riddermark bil")
        assertion = ListingAssertion("Kvdbil", SellerKind.DEALER)
        assert determine_owner_kind(assertion, "Riddermark Bil AB", registry) == OwnerKind.DEALER

    @pytest.mark.asyncio
    async def test_suffix_and_plural_variants_match(self):
        registry = await make_registry()
        assertion = ListingAssertion("Riddermark Bilar", SellerKind.DEALER)
        assert determine_owner_kind(assertion, "Riddermark Bil AB", registry) == OwnerKind.DEALER

    @pytest.mark.asyncio
    async def test_unknown_holder_name_falls_back_to_dealer(self):
        registry = await make_registry()
        assertion = ListingAssertion("Kalles Bilservice", SellerKind.DEALER)
        assert determine_owner_kind(assertion, "", registry) == OwnerKind.DEALER

    @pytest.mark.asyncio
    async def test_never_company(self):
        registry = await make_registry()
        for kind in SellerKind:
            for holder in ["Bilo AB", "Anna Karlsson", ""]:
                result = determine_owner_kind(ListingAssertion("Bilo AB", kind), holder, registry)
                assert result != OwnerKind.COMPANY


@pytest.mark.no_db
class TestFindLeadInChain:

    @pytest.mark.asyncio
    async def test_stops_at_first_non_dealer_company(self):
        registry = await make_registry("bilo")
        lead = find_lead_in_chain(BILO_CHAIN, registry)

        assert lead.record.name == "Svensson Motor"
        assert lead.lead_type == LeadType.COMPANY
        assert lead.chain_index == 1

    @pytest.mark.asyncio
    async def test_skips_known_dealers(self):
        registry = await make_registry("bilo", "svensson motor")
        lead = find_lead_in_chain(BILO_CHAIN, registry)

        assert lead.record.name == "Anna Karlsson"
        assert lead.lead_type == LeadType.PRIVATE
        assert lead.chain_index == 2

    @pytest.mark.asyncio
    async def test_person_without_profile_is_not_a_lead(self):
        registry = await make_registry("bilo")
        chain = [record("Bilo AB"), record("Okänd", "person"), record("Erik Berg", "person", "p7")]
        lead = find_lead_in_chain(chain, registry)
        assert lead.record.name == "Erik Berg"
        assert lead.chain_index == 2

    @pytest.mark.asyncio
    async def test_unknown_class_is_not_a_lead(self):
        registry = await make_registry()
        chain = [record("Bilo AB"), record("Okänd", "unknown", "p3")]
        assert find_lead_in_chain(chain, registry) is None

    @pytest.mark.asyncio
    async def test_all_dealers_yields_no_lead(self):
        registry = await make_registry("bilo", "hedin bil", "riddermark bil")
        chain = [record("Bilo AB"), record("Hedin Bil Göteborg"), record("Riddermark Bilar AB")]
        assert find_lead_in_chain(chain, registry) is None

    @pytest.mark.asyncio
    async def test_never_inspects_current_holder(self):
        registry = await make_registry("hedin bil")
        chain = [record("Anna Karlsson", "person", "p1"), record("Hedin Bil")]
        assert find_lead_in_chain(chain, registry) is None

    @pytest.mark.asyncio
    async def test_start_below_one_is_clamped(self):
        registry = await make_registry("hedin bil")
        chain = [record("Svensson Motor"), record("Hedin Bil")]
        assert find_lead_in_chain(chain, registry, start=0) is None

    @pytest.mark.asyncio
    async def test_custom_start(self):
        registry = await make_registry()
        lead = find_lead_in_chain(BILO_CHAIN, registry, start=2)
        assert lead.chain_index == 2

    @pytest.mark.asyncio
    async def test_short_chains(self):
        registry = await make_registry()
        assert find_lead_in_chain([], registry) is None
        assert find_lead_in_chain([record("Bilo AB")], registry) is None
