"""Unit tests for the chain walker and its registry feedback."""

from datetime import date

import pytest

from lib.biluppgifter.models import OwnerLookup
from services.dealers.registry import DealerRegistry
from services.provenance.models import (
    LeadType,
    ListingAssertion,
    OwnerKind,
    SellerKind,
)
from services.provenance.walker import ChainWalker


def lookup(history, profile=None, profile_owner_index=0) -> OwnerLookup:
    return OwnerLookup(
        regnr="ABC123",
        owner_history=history,
        owner_profile=profile,
        profile_owner_index=profile_owner_index,
    )


async def make_walker(*names: str) -> ChainWalker:
    registry = DealerRegistry()
    for name in names:
        await registry.enrich(name, name)
    return ChainWalker(registry)


BILO_HISTORY = [
    {"name": "Bilo AB", "owner_class": "company", "date": "2024-05-02"},
    {"name": "Svensson Motor", "owner_class": "company", "date": "2023-11-20"},
    {"name": "Anna Karlsson", "owner_class": "person", "profile_id": "p1", "date": "2019-03-14"},
]

STOCK = [{"regnr": f"AAA{i:03d}", "model": "Volvo V70"} for i in range(14)]


@pytest.mark.no_db
class TestResolve:

    @pytest.mark.asyncio
    async def test_no_data(self):
        walker = await make_walker("bilo")
        assertion = ListingAssertion("Bilo AB", SellerKind.DEALER)
        assert await walker.resolve(assertion, lookup([])) is None

    @pytest.mark.asyncio
    async def test_dealer_with_company_lead(self):
        walker = await make_walker("bilo")
        assertion = ListingAssertion("Bilo AB", SellerKind.DEALER)

        result = await walker.resolve(assertion, lookup(BILO_HISTORY))

        assert result.owner_kind == OwnerKind.DEALER
        assert result.holder_name == "Bilo AB"
        assert result.dealer_since == date(2024, 5, 2)
        assert result.lead.record.name == "Svensson Motor"
        assert result.lead.lead_type == LeadType.COMPANY
        assert result.lead.chain_index == 1

    @pytest.mark.asyncio
    async def test_dealer_chain_skips_registered_dealer(self):
        walker = await make_walker("bilo", "svensson motor")
        assertion = ListingAssertion("Bilo AB", SellerKind.DEALER)

        result = await walker.resolve(assertion, lookup(BILO_HISTORY))

        assert result.lead.record.name == "Anna Karlsson"
        assert result.lead.lead_type == LeadType.PRIVATE
        assert result.lead.chain_index == 2

    @pytest.mark.asyncio
    async def test_broker_no_chain_walk_no_registry_feedback(self):
        walker = await make_walker()
        assertion = ListingAssertion("Kalles Bilservice", SellerKind.DEALER)
        history = [
            {"name": "Anna Karlsson", "owner_class": "person", "profile_id": "p1", "date": "2020-01-01"},
            {"name": "Erik Berg", "owner_class": "person", "profile_id": "p2", "date": "2015-01-01"},
        ]

        result = await walker.resolve(assertion, lookup(history, {"name": "Anna Karlsson"}))

        assert result.owner_kind == OwnerKind.BROKER
        assert result.holder_name == "Anna Karlsson"
        assert result.lead is None
        assert not walker.registry.is_known_dealer("Anna Karlsson")
        assert walker.registry.get("Kalles Bilservice") is None

    @pytest.mark.asyncio
    async def test_private_listing(self):
        walker = await make_walker()
        assertion = ListingAssertion("Anna Karlsson", SellerKind.PRIVATE)
        history = [{"name": "Anna Karlsson", "owner_class": "person", "profile_id": "p1"}]

        result = await walker.resolve(assertion, lookup(history))

        assert result.owner_kind == OwnerKind.PRIVATE
        assert result.lead is None
        assert len(walker.registry) == 0

    @pytest.mark.asyncio
    async def test_dealer_feeds_registry(self):
        walker = await make_walker()
        assertion = ListingAssertion("Bilo", SellerKind.DEALER)
        profile = {
            "name": "Bilo Bilhandel AB",
            "address": "Storgatan 1",
            "postal_code": "41101",
            "postal_city": "Göteborg",
            "phone": "031-123456",
            "vehicles": STOCK,
        }
        history = [{"name": "Bilo Bilhandel AB", "owner_class": "company"}]

        result = await walker.resolve(assertion, lookup(history, profile))

        assert result.owner_kind == OwnerKind.DEALER
        assert result.is_dealer_like
        dealer = walker.registry.get("Bilo")
        assert dealer.aliases == ["bilo bilhandel ab"]
        assert dealer.phone == "031-123456"
        assert dealer.vehicle_count == 14
        assert walker.registry.is_known_dealer("Bilo Bilhandel")

    @pytest.mark.asyncio
    async def test_profile_name_preferred(self):
        walker = await make_walker()
        assertion = ListingAssertion("Hedin Bil", SellerKind.DEALER)
        history = [{"name": "HEDIN BIL AB", "owner_class": "company"}]

        result = await walker.resolve(assertion, lookup(history, {"name": "Hedin Automotive Bil AB"}))

        assert result.holder_name == "Hedin Automotive Bil AB"

    @pytest.mark.asyncio
    async def test_unknown_current_holder_uses_profiled_entry(self):
        walker = await make_walker()
        assertion = ListingAssertion("Bilo", SellerKind.DEALER)
        history = [
            {"name": "Okänd", "owner_class": "unknown", "date": "2024-06-01"},
            {"name": "Bilo Bilhandel AB", "owner_class": "company", "profile_id": "c9", "date": "2024-04-10"},
            {"name": "Anna Karlsson", "owner_class": "person", "profile_id": "p1", "date": "2018-02-01"},
        ]
        profile = {"name": "Bilo Bilhandel AB", "vehicles": STOCK}

        result = await walker.resolve(assertion, lookup(history, profile, profile_owner_index=1))

        assert result.holder_index == 1
        assert result.holder_name == "Bilo Bilhandel AB"
        assert result.dealer_since == date(2024, 4, 10)
        assert result.owner_kind == OwnerKind.DEALER
        assert result.lead.chain_index == 2
        assert result.lead.record.name == "Anna Karlsson"

    @pytest.mark.asyncio
    async def test_profile_of_other_entry_not_used_for_known_holder(self):
        walker = await make_walker()
        assertion = ListingAssertion("Bilo AB", SellerKind.DEALER)
        history = [
            {"name": "Bilo AB", "owner_class": "company"},
            {"name": "Anna Karlsson", "owner_class": "person", "profile_id": "p1"},
        ]
        profile = {"name": "Anna Karlsson", "vehicles": STOCK}

        result = await walker.resolve(assertion, lookup(history, profile, profile_owner_index=1))

        assert result.holder_index == 0
        assert result.holder_name == "Bilo AB"
        assert result.owner_kind == OwnerKind.DEALER
        assert not result.is_dealer_like

    @pytest.mark.asyncio
    async def test_alias_learned_on_one_vehicle_applies_to_next(self):
        walker = await make_walker()
        first = [
            {"name": "Norrlands Bilcenter AB", "owner_class": "company"},
            {"name": "Erik Berg", "owner_class": "person", "profile_id": "p2"},
        ]
        await walker.resolve(ListingAssertion("Norrlands Bil", SellerKind.DEALER), lookup(first))

        # Another dealer's chain passing through Norrlands skips it
        second = [
            {"name": "Bilo AB", "owner_class": "company"},
            {"name": "Norrlands Bilcenter AB", "owner_class": "company"},
            {"name": "Lisa Ek", "owner_class": "person", "profile_id": "p3"},
        ]
        result = await walker.resolve(ListingAssertion("Bilo AB", SellerKind.DEALER), lookup(second))

        assert result.lead.record.name == "Lisa Ek"
