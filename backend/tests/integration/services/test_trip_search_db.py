# backend/tests/integration/services/test_trip_search_db.py
"""
Trip discovery: filters combine with AND, sorts are stable, and walking the
pages until ``has_next_page`` is false visits every match exactly once.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.enums import TripSort
from app.core.exceptions import ValidationException
from app.repositories.trip_repository import TripSearchFilter
from app.services.trip_search_service import TripSearchService
from tests.factories.trip_builders import PETRA_DATE, PETRA_TIME, slot_at

BASE_TIME = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def search(db: Session) -> TripSearchService:
    return TripSearchService(db)


@pytest.fixture
def catalog(trip_factory, guide, other_guide):
    """Six trips with distinct prices and creation times, one deleted."""
    specs = [
        ("Petra Day Tour", "Wadi Musa", "Historical", "75", "Treasury and Monastery"),
        ("Petra by Night", "Wadi Musa", "Cultural", "40", "Candle-lit Siq walk"),
        ("Wadi Rum Jeep Tour", "Wadi Rum", "Adventure", "120", "Desert camp and dunes"),
        ("Dead Sea Float", "Sweimeh", "Relaxation", "60", "Mud and salt"),
        ("Amman Food Walk", "Amman", "Food", "35", "Falafel in downtown Amman"),
        ("Jerash Ruins", "Jerash", "Historical", "50", "Roman city, hippodrome show"),
    ]
    trips = {}
    for index, (title, city, trip_type, price, description) in enumerate(specs):
        trips[title] = trip_factory(
            guide.id if index % 2 == 0 else other_guide.id,
            title=title,
            city=city,
            trip_type=trip_type,
            price=Decimal(price),
            description=description,
            created_at=BASE_TIME + timedelta(days=index),
        )
    trips["Old Listing"] = trip_factory(
        guide.id,
        title="Old Listing",
        city="Wadi Musa",
        price=Decimal("10"),
        is_deleted=True,
        created_at=BASE_TIME - timedelta(days=30),
    )
    return trips


def _titles(result):
    return [trip.title for trip in result.items]


class TestFilters:
    def test_no_filters_returns_all_live_trips_newest_first(self, search, catalog):
        result = search.search(TripSearchFilter())

        assert _titles(result) == [
            "Jerash Ruins",
            "Amman Food Walk",
            "Dead Sea Float",
            "Wadi Rum Jeep Tour",
            "Petra by Night",
            "Petra Day Tour",
        ]
        assert result.has_next_page is False
        assert result.page == 1
        assert result.page_size == settings.search_default_page_size

    def test_city(self, search, catalog):
        result = search.search(TripSearchFilter(city="Wadi Musa"))

        assert set(_titles(result)) == {"Petra Day Tour", "Petra by Night"}

    def test_type(self, search, catalog):
        result = search.search(TripSearchFilter(trip_type="Historical"))

        assert set(_titles(result)) == {"Petra Day Tour", "Jerash Ruins"}

    def test_price_range_is_inclusive(self, search, catalog):
        result = search.search(
            TripSearchFilter(min_price=Decimal("40"), max_price=Decimal("75")), sort=TripSort.PRICE
        )

        assert _titles(result) == ["Petra by Night", "Jerash Ruins", "Dead Sea Float", "Petra Day Tour"]

    def test_min_price_only(self, search, catalog):
        result = search.search(TripSearchFilter(min_price=Decimal("100")))

        assert _titles(result) == ["Wadi Rum Jeep Tour"]

    def test_filters_combine_with_and(self, search, catalog):
        result = search.search(
            TripSearchFilter(city="Wadi Musa", trip_type="Historical", max_price=Decimal("80"))
        )

        assert _titles(result) == ["Petra Day Tour"]

    def test_text_matches_title_description_or_city_case_insensitively(self, search, catalog):
        assert set(_titles(search.search(TripSearchFilter(text_query="petra")))) == {
            "Petra Day Tour",
            "Petra by Night",
        }
        assert _titles(search.search(TripSearchFilter(text_query="FALAFEL"))) == ["Amman Food Walk"]
        assert _titles(search.search(TripSearchFilter(text_query="sweimeh"))) == ["Dead Sea Float"]

    def test_text_wildcards_are_literal(self, search, catalog):
        assert _titles(search.search(TripSearchFilter(text_query="%"))) == []

    def test_deleted_trips_never_match(self, search, catalog):
        result = search.search(TripSearchFilter(city="Wadi Musa", max_price=Decimal("20")))

        assert _titles(result) == []

    def test_available_only(self, db, search, trip_factory, guide):
        open_trip = trip_factory(guide.id, title="Open")
        blocked = trip_factory(guide.id, title="Fully Blocked")
        slot_at(db, blocked.id, PETRA_DATE, PETRA_TIME).is_available = False
        db.commit()
        trip_factory(guide.id, title="Paused", is_available=False)
        trip_factory(guide.id, title="No Schedule", slots=[])

        result = search.search(TripSearchFilter(available_only=True))
        everything = search.search(TripSearchFilter())

        assert _titles(result) == [open_trip.title]
        assert len(everything.items) == 4


class TestSorting:
    def test_price_ascending(self, search, catalog):
        result = search.search(TripSearchFilter(), sort=TripSort.PRICE)

        prices = [trip.price for trip in result.items]
        assert prices == sorted(prices)
        assert _titles(result)[0] == "Amman Food Walk"

    def test_oldest_first(self, search, catalog):
        result = search.search(TripSearchFilter(), sort="oldest")

        assert _titles(result)[:2] == ["Petra Day Tour", "Petra by Night"]


class TestPagination:
    @pytest.mark.parametrize("page_size", [1, 2, 4, 5, 6, 7])
    @pytest.mark.parametrize("sort", list(TripSort))
    def test_walking_pages_visits_every_match_once(self, search, catalog, page_size, sort):
        expected = {t.id for title, t in catalog.items() if title != "Old Listing"}
        seen = []
        page = 1
        while True:
            result = search.search(TripSearchFilter(), sort=sort, page=page, page_size=page_size)
            assert len(result.items) <= page_size
            seen.extend(trip.id for trip in result.items)
            if not result.has_next_page:
                break
            page += 1

        assert len(seen) == len(set(seen))
        assert set(seen) == expected

    def test_page_past_the_end_is_empty(self, search, catalog):
        result = search.search(TripSearchFilter(), page=5, page_size=2)

        assert result.items == []
        assert result.has_next_page is False

    def test_page_size_is_capped(self, search, catalog):
        result = search.search(TripSearchFilter(), page_size=10_000)

        assert result.page_size == settings.search_max_page_size


class TestValidation:
    @pytest.mark.parametrize("page", [0, -1])
    def test_page_must_be_positive(self, search, page):
        with pytest.raises(ValidationException) as exc:
            search.search(TripSearchFilter(), page=page)

        assert exc.value.code == "INVALID_PAGE"

    def test_page_size_must_be_positive(self, search):
        with pytest.raises(ValidationException) as exc:
            search.search(TripSearchFilter(), page_size=0)

        assert exc.value.code == "INVALID_PAGE_SIZE"

    def test_negative_min_price(self, search):
        with pytest.raises(ValidationException) as exc:
            search.search(TripSearchFilter(min_price=Decimal("-1")))

        assert exc.value.code == "INVALID_PRICE_RANGE"

    def test_min_above_max(self, search):
        with pytest.raises(ValidationException) as exc:
            search.search(TripSearchFilter(min_price=Decimal("100"), max_price=Decimal("50")))

        assert exc.value.code == "INVALID_PRICE_RANGE"
