"""Unit tests for trip search filters and TripService."""

import pytest
from datetime import datetime, timezone
from bson import ObjectId

from common.utils.exceptions import BadRequestException, ForbiddenException, NotFoundException
from tripmates.catalog.services.catalog_service import CatalogService
from tripmates.groups.services.membership_service import MembershipService
from tripmates.trips.services.trip_service import TripService, build_trip_filter, parse_budget


def day(month, dom):
    return datetime(2026, month, dom, tzinfo=timezone.utc)


# ─────────────────────────────────────────────────────────────────
# Pure filter building
# ─────────────────────────────────────────────────────────────────


class TestParseBudget:

    def test_both_bounds(self):
        assert parse_budget("500,1500") == {"$gte": 500.0, "$lte": 1500.0}

    def test_open_upper_bound(self):
        assert parse_budget("500,") == {"$gte": 500.0}

    def test_open_lower_bound(self):
        assert parse_budget(",800") == {"$lte": 800.0}

    def test_garbage_is_ignored(self):
        assert parse_budget("cheap,") is None
        assert parse_budget("") is None
        assert parse_budget(None) is None


class TestBuildTripFilter:

    def test_exact_dates(self):
        query = build_trip_filter(start_date=day(5, 1), end_date=day(5, 10), date_option="exact")

        assert query == {"startDate": day(5, 1), "endDate": day(5, 10)}

    def test_range_matches_inside_or_covering(self):
        query = build_trip_filter(start_date=day(5, 1), end_date=day(5, 10), date_option="range")

        inside, covering = query["$or"]
        assert inside["startDate"] == {"$gte": day(5, 1), "$lte": day(5, 10)}
        assert covering == {"startDate": {"$lte": day(5, 1)}, "endDate": {"$gte": day(5, 10)}}

    def test_start_and_end_options(self):
        assert build_trip_filter(day(5, 1), day(5, 10), "start") == {"startDate": day(5, 1)}
        assert build_trip_filter(day(5, 1), day(5, 10), "end") == {"endDate": day(5, 10)}

    def test_single_dates_are_open_bounds(self):
        assert build_trip_filter(start_date=day(5, 1)) == {"startDate": {"$gte": day(5, 1)}}
        assert build_trip_filter(end_date=day(5, 10)) == {"endDate": {"$lte": day(5, 10)}}

    def test_both_dates_need_an_option(self):
        with pytest.raises(BadRequestException) as exc_info:
            build_trip_filter(start_date=day(5, 1), end_date=day(5, 10))

        assert exc_info.value.code == "INVALID_DATE_OPTION"

    def test_reversed_dates(self):
        with pytest.raises(BadRequestException) as exc_info:
            build_trip_filter(start_date=day(5, 10), end_date=day(5, 1), date_option="exact")

        assert exc_info.value.code == "INVALID_DATE_RANGE"

    def test_references(self):
        transport = ObjectId()
        destination = ObjectId()

        query = build_trip_filter(transport=[str(transport)], destination=str(destination), budget=",900")

        assert query == {
            "transport": {"$in": [transport]},
            "destination": destination,
            "budget": {"$lte": 900.0},
        }

    def test_malformed_id(self):
        with pytest.raises(BadRequestException) as exc_info:
            build_trip_filter(destination="not-an-id")

        assert exc_info.value.code == "INVALID_ID"


# ─────────────────────────────────────────────────────────────────
# TripService
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def membership(fake_db):
    return MembershipService(fake_db)


@pytest.fixture
def service(fake_db, membership):
    return TripService(fake_db, membership, CatalogService(fake_db))


@pytest.fixture
def train(fake_db):
    transport_id = ObjectId()
    fake_db["transports"].docs.append({"_id": transport_id, "code": "train", "name": {"en": "Train"}})
    return transport_id


def trip_data(title="Lisbon", start=None, end=None, budget=900, **extra):
    data = {
        "title": title,
        "startDate": start or day(5, 1),
        "endDate": end or day(5, 10),
        "budget": budget,
    }
    data.update(extra)
    return data


class TestTripService:

    @pytest.mark.asyncio
    async def test_create_trip_creates_owned_group(self, service, membership, make_user, train):
        owner = make_user()

        trip = await service.create_trip(owner, trip_data(transport=[str(train)]))

        group = await membership.get_group(trip["groupId"])
        assert trip["userId"] == owner
        assert trip["transport"] == [train]
        assert group["name"] == "Lisbon"
        assert group["members"] == [owner]
        assert group["tripId"] == trip["_id"]

    @pytest.mark.asyncio
    async def test_unknown_transport(self, service, make_user):
        with pytest.raises(BadRequestException) as exc_info:
            await service.create_trip(make_user(), trip_data(transport=[str(ObjectId())]))

        assert exc_info.value.code == "UNKNOWN_REFERENCE"

    @pytest.mark.asyncio
    async def test_rename_follows_to_group(self, service, membership, make_user):
        owner = make_user()
        trip = await service.create_trip(owner, trip_data())

        updated = await service.update_trip(trip["_id"], owner, {"title": "Lisbon and Sintra"})

        group = await membership.get_group(trip["groupId"])
        assert updated["title"] == "Lisbon and Sintra"
        assert group["name"] == "Lisbon and Sintra"

    @pytest.mark.asyncio
    async def test_member_cannot_edit(self, service, membership, make_user):
        owner = make_user()
        member = make_user()
        trip = await service.create_trip(owner, trip_data())
        await membership.add_member(trip["groupId"], member)

        with pytest.raises(ForbiddenException):
            await service.update_trip(trip["_id"], member, {"budget": 10})

    @pytest.mark.asyncio
    async def test_update_rejects_reversed_dates(self, service, make_user):
        owner = make_user()
        trip = await service.create_trip(owner, trip_data())

        with pytest.raises(BadRequestException):
            await service.update_trip(trip["_id"], owner, {"endDate": day(4, 1)})

    @pytest.mark.asyncio
    async def test_delete_trip_deletes_group(self, service, fake_db, make_user):
        owner = make_user()
        trip = await service.create_trip(owner, trip_data())

        await service.delete_trip(trip["_id"], owner)

        assert await fake_db["trips"].count_documents({}) == 0
        assert await fake_db["groups"].count_documents({}) == 0
        with pytest.raises(NotFoundException):
            await service.get_trip(trip["_id"])

    @pytest.mark.asyncio
    async def test_search_by_range_budget_and_language(self, service, make_user, seed_catalog):
        english_speaker = make_user(languages=[seed_catalog.english])
        french_speaker = make_user(languages=[seed_catalog.french])
        inside = await service.create_trip(english_speaker, trip_data("Inside", day(5, 3), day(5, 6), 500))
        covering = await service.create_trip(french_speaker, trip_data("Covering", day(4, 28), day(5, 12), 700))
        await service.create_trip(english_speaker, trip_data("Later", day(6, 1), day(6, 5), 500))
        await service.create_trip(english_speaker, trip_data("Pricey", day(5, 2), day(5, 4), 5000))

        trips, total = await service.search_trips(
            {"start_date": day(5, 1), "end_date": day(5, 10), "date_option": "range", "budget": ",1000"},
        )
        assert total == 2
        assert [trip["_id"] for trip in trips] == [covering["_id"], inside["_id"]]

        trips, total = await service.search_trips(
            {"start_date": day(5, 1), "end_date": day(5, 10), "date_option": "range", "budget": ",1000"},
            languages=[str(seed_catalog.french)],
        )
        assert total == 1
        assert trips[0]["_id"] == covering["_id"]

    @pytest.mark.asyncio
    async def test_search_paginates(self, service, make_user):
        owner = make_user()
        for index in range(5):
            await service.create_trip(owner, trip_data(f"Trip {index}", day(7, index + 1), day(7, index + 2)))

        trips, total = await service.search_trips({}, page=2, limit=2)

        assert total == 5
        assert [trip["title"] for trip in trips] == ["Trip 2", "Trip 3"]
