from datetime import date
from decimal import Decimal

from pydantic import ValidationError
import pytest

from app.schemas.trip import ScheduleSlotInput, TripCreate, TripSearchResponse
from tests.factories.trip_builders import trip_payload


def test_trip_create_reads_wire_payload():
    draft = TripCreate.model_validate(trip_payload(price="75.50"))

    assert draft.trip_type == "Historical"
    assert draft.price == Decimal("75.50")
    assert draft.start_location is not None and draft.start_location.lat == pytest.approx(30.3285)
    assert [slot.slot_time for slot in draft.schedule] == ["09:00"]
    assert draft.schedule[0].slot_date == date(2025, 6, 15)


def test_trip_create_leaves_content_rules_to_the_service():
    draft = TripCreate.model_validate({})

    assert draft.title == ""
    assert draft.schedule == []


@pytest.mark.parametrize("price", ["seventy", "", [75], {"amount": 75}])
def test_money_rejects_non_amounts(price):
    with pytest.raises(ValidationError):
        TripCreate.model_validate(trip_payload(price=price))


def test_schedule_slot_requires_hh_mm():
    with pytest.raises(ValidationError):
        ScheduleSlotInput.model_validate({"date": "2025-06-15", "time": "9am"})


def test_search_response_is_camel_case():
    body = TripSearchResponse(trips=[], has_next_page=True, page=2, page_size=12).model_dump(
        by_alias=True
    )

    assert body == {"trips": [], "hasNextPage": True, "page": 2, "pageSize": 12}
