"""Trip authoring, reads and soft delete."""

from datetime import date

import pytest
from sqlalchemy.orm import Session

from app.core.exceptions import (
    BusinessRuleException,
    DuplicateSlotException,
    NotAuthorizedException,
    NotFoundException,
    ValidationException,
)
from app.models.trip import Trip, TripScheduleSlot
from app.schemas.trip import TripCreate
from app.services.booking_service import BookingService
from app.services.guide_schedule import GuideScheduleService
from app.services.slot_service import SlotService
from app.services.trip_service import TripService
from tests.factories.trip_builders import (
    PETRA_DATE,
    PETRA_TIME,
    booking_request,
    slot_at,
    trip_payload,
)


@pytest.fixture
def trip_service(db: Session) -> TripService:
    return TripService(db)


def _draft(**overrides) -> TripCreate:
    return TripCreate.model_validate(trip_payload(**overrides))


class TestCreateTrip:
    def test_guide_creates_trip_with_schedule(self, trip_service, guide):
        trip = trip_service.create_trip(
            guide,
            _draft(
                schedule=[
                    {"date": "2025-06-16", "time": "06:00"},
                    {"date": "2025-06-15", "time": "09:00"},
                ]
            ),
        )

        assert trip.guide_id == guide.id
        assert trip.trip_type == "Historical"
        assert trip.is_available is True
        assert trip.path[0] == {"name": "Siq", "lat": 30.3207, "lng": 35.4536}
        assert [(s.slot_date, s.slot_time) for s in trip.slots] == [
            (date(2025, 6, 15), "09:00"),
            (date(2025, 6, 16), "06:00"),
        ]
        assert all(slot.is_available for slot in trip.slots)

    @pytest.mark.parametrize("role_fixture", ["tourist", "admin"])
    def test_only_guides_create_trips(self, request, trip_service, role_fixture):
        actor = request.getfixturevalue(role_fixture)

        with pytest.raises(NotAuthorizedException):
            trip_service.create_trip(actor, _draft())

    def test_invalid_draft_lists_all_errors(self, db, trip_service, guide):
        with pytest.raises(ValidationException) as exc:
            trip_service.create_trip(guide, _draft(title="", city="", schedule=[]))

        assert exc.value.code == "TRIP_VALIDATION_FAILED"
        assert [e["field"] for e in exc.value.details["errors"]] == ["title", "city", "schedule"]
        assert db.query(Trip).count() == 0

    def test_repeated_instant_rolls_back_the_whole_trip(self, db, trip_service, guide):
        schedule = [{"date": "2025-06-15", "time": "09:00"}] * 2

        with pytest.raises(DuplicateSlotException):
            trip_service.create_trip(guide, _draft(schedule=schedule))

        assert db.query(Trip).count() == 0
        assert db.query(TripScheduleSlot).count() == 0


class TestReadTrips:
    def test_get_trip_with_schedule(self, trip_service, petra_trip):
        trip = trip_service.get_trip(petra_trip.id)

        assert trip.title == "Petra Day Tour"
        assert len(trip.slots) == 1

    def test_unknown_trip_is_not_found(self, trip_service):
        with pytest.raises(NotFoundException) as exc:
            trip_service.get_trip("01UNKNOWNTRIP0000000000000")

        assert exc.value.code == "TRIP_NOT_FOUND"

    def test_guide_listing_hides_deleted_trips(self, trip_service, trip_factory, guide, other_guide):
        kept = trip_factory(guide.id)
        trip_factory(guide.id, is_deleted=True)
        trip_factory(other_guide.id)

        assert [t.id for t in trip_service.list_guide_trips(guide.id)] == [kept.id]


class TestDeleteTrip:
    def test_owner_soft_deletes(self, db, trip_service, guide, petra_trip):
        trip_service.delete_trip(guide, petra_trip.id)

        with pytest.raises(NotFoundException):
            trip_service.get_trip(petra_trip.id)
        assert db.query(Trip).filter(Trip.id == petra_trip.id).one().is_deleted is True

    def test_admin_may_delete(self, trip_service, admin, petra_trip):
        trip_service.delete_trip(admin, petra_trip.id)

        with pytest.raises(NotFoundException):
            trip_service.get_trip(petra_trip.id)

    def test_other_guide_may_not_delete(self, trip_service, other_guide, petra_trip):
        with pytest.raises(NotAuthorizedException):
            trip_service.delete_trip(other_guide, petra_trip.id)

    def test_active_booking_blocks_delete(self, db, trip_service, guide, tourist, petra_trip):
        bookings = BookingService(db)
        booking = bookings.create_booking(tourist, booking_request(petra_trip.id))

        with pytest.raises(BusinessRuleException) as exc:
            trip_service.delete_trip(guide, petra_trip.id)
        assert exc.value.code == "TRIP_HAS_ACTIVE_BOOKINGS"
        assert exc.value.details == {"active_bookings": 1}

        bookings.cancel_booking(booking.id, tourist)
        trip_service.delete_trip(guide, petra_trip.id)

    def test_deleted_trip_leaves_guide_calendar(
        self, db, trip_service, trip_factory, guide, petra_trip
    ):
        sunset = trip_factory(guide.id, title="Sunset Walk", slots=[(date(2025, 6, 16), "18:00")])

        trip_service.delete_trip(guide, petra_trip.id)

        schedule = GuideScheduleService(db).slots_for_guide(guide.id)
        assert [entry.trip_id for entry in schedule] == [sunset.id]

    def test_delete_clears_manual_blocks(self, db, trip_service, trip_factory, guide, tourist):
        old = trip_factory(guide.id, title="Old Petra Loop")
        slot = slot_at(db, old.id, PETRA_DATE, PETRA_TIME)
        SlotService(db).set_availability(guide, old.id, slot.id, False)

        trip_service.delete_trip(guide, old.id)

        assert slot_at(db, old.id, PETRA_DATE, PETRA_TIME).is_available is True
        new = trip_factory(guide.id, title="New Petra Loop")
        booking = BookingService(db).create_booking(tourist, booking_request(new.id))
        assert booking.trip_id == new.id
        assert slot_at(db, new.id, PETRA_DATE, PETRA_TIME).is_available is False

    def test_delete_keeps_completed_booking_holding_its_slot(
        self, db, trip_service, guide, tourist, petra_trip
    ):
        bookings = BookingService(db)
        booking = bookings.create_booking(tourist, booking_request(petra_trip.id))
        bookings.confirm_booking(booking.id, guide)
        bookings.complete_booking(booking.id, guide)

        trip_service.delete_trip(guide, petra_trip.id)

        assert slot_at(db, petra_trip.id, PETRA_DATE, PETRA_TIME).is_available is False
