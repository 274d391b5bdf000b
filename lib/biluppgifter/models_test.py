"""Unit tests for Biluppgifter response models."""

from datetime import date

import pytest

from lib.biluppgifter.models import (
    OwnerClass,
    OwnershipRecord,
    OwnerLookup,
    OwnerProfile,
    days_between,
    parse_date,
)


@pytest.mark.no_db
class TestOwnershipRecord:

    def test_from_provider_keys(self):
        record = OwnershipRecord(**{
            "name": " Anna Karlsson ",
            "owner_class": "person",
            "profile_id": 123,
            "date": "2021-05-03",
        })
        assert record.name == "Anna Karlsson"
        assert record.owner_class == OwnerClass.PERSON
        assert record.profile_id == "123"
        assert record.since == date(2021, 5, 3)

    def test_unknown_class_and_missing_fields(self):
        record = OwnershipRecord(**{"name": None, "owner_class": "Okänd", "date": "?"})
        assert record.name == ""
        assert record.owner_class == OwnerClass.UNKNOWN
        assert record.profile_id is None
        assert record.since is None

    def test_populate_by_field_name(self):
        record = OwnershipRecord(name="Bilo AB", owner_class=OwnerClass.COMPANY, since=date(2024, 1, 1))
        assert record.since == date(2024, 1, 1)

    def test_frozen(self):
        record = OwnershipRecord(name="Bilo AB")
        with pytest.raises(Exception):
            record.name = "Other"


@pytest.mark.no_db
class TestOwnerLookup:

    def test_from_owner_response(self):
        lookup = OwnerLookup.from_owner_response("ABC123", {
            "owner_profile": {"name": "Bilo AB", "vehicles": None},
            "owner_history": [{"name": "Bilo AB", "owner_class": "company", "date": "2024-02-01"}],
            "mileage_history": [{"date": "2024-01-01", "mileage": 12000}],
        })
        assert lookup.has_data
        assert lookup.owner_profile.vehicles == []
        assert lookup.owner_history[0].owner_class == OwnerClass.COMPANY
        assert not lookup.from_vehicle_endpoint

    def test_from_vehicle_response(self):
        lookup = OwnerLookup.from_vehicle_response("ABC123", {
            "owner": {"history": [{"name": "Okänd", "owner_class": "unknown"}]},
        })
        assert lookup.from_vehicle_endpoint
        assert lookup.owner_profile is None
        assert len(lookup.owner_history) == 1

    def test_empty_has_no_data(self):
        assert not OwnerLookup.from_owner_response("ABC123", {}).has_data


@pytest.mark.no_db
class TestDateHelpers:

    def test_parse_date_variants(self):
        assert parse_date("2023-04-12") == date(2023, 4, 12)
        assert parse_date("2023-04-12T10:00:00Z") == date(2023, 4, 12)
        assert parse_date(date(2020, 1, 1)) == date(2020, 1, 1)
        assert parse_date("") is None
        assert parse_date("nyligen") is None

    def test_days_between(self):
        assert days_between(date(2024, 1, 1), date(2024, 1, 31)) == 30
        assert days_between(date(2024, 1, 31), date(2024, 1, 1)) == 30
        assert days_between(None, date(2024, 1, 1)) is None


@pytest.mark.no_db
def test_profile_vehicle_count():
    profile = OwnerProfile(vehicles=[{"regnr": f"AAA{i:03d}"} for i in range(12)])
    assert profile.vehicle_count == 12


@pytest.mark.no_db
def test_profile_numeric_contact_fields_become_strings():
    profile = OwnerProfile(**{
        "name": "Anna Karlsson",
        "postal_code": 41101,
        "phone": 701234567,
        "vehicles": [{"regnr": 123456, "model": "Volvo V70"}],
    })
    assert profile.postal_code == "41101"
    assert profile.phone == "701234567"
    assert profile.vehicles[0].regnr == "123456"


@pytest.mark.no_db
def test_unreadable_owner_profile_keeps_history():
    lookup = OwnerLookup.from_owner_response("ABC123", {
        "owner_profile": {"name": "Bilo AB", "vehicles": "många"},
        "owner_history": [{"name": "Bilo AB", "owner_class": "company", "date": "2024-02-01"}],
    })
    assert lookup.owner_profile is None
    assert lookup.has_data
    assert lookup.owner_history[0].name == "Bilo AB"
