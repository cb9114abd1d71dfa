from datetime import date

import pytest

from app.core.exceptions import ValidationException
from app.services.guide_schedule import GuideScheduleService
from tests.factories.trip_builders import slot_at


class TestGuideSchedule:
    def test_union_of_all_trips_sorted_by_date_then_time(self, db, trip_factory, guide):
        rum = trip_factory(
            guide.id,
            title="Wadi Rum Jeep Tour",
            slots=[(date(2025, 6, 16), "06:00"), (date(2025, 6, 15), "14:00")],
        )
        petra = trip_factory(
            guide.id, slots=[(date(2025, 6, 15), "09:00"), (date(2025, 6, 17), "09:00")]
        )

        schedule = GuideScheduleService(db).slots_for_guide(guide.id)

        assert [(s.slot_date, s.slot_time, s.trip_id) for s in schedule] == [
            (date(2025, 6, 15), "09:00", petra.id),
            (date(2025, 6, 15), "14:00", rum.id),
            (date(2025, 6, 16), "06:00", rum.id),
            (date(2025, 6, 17), "09:00", petra.id),
        ]

    def test_blocked_slots_are_listed_as_unavailable(self, db, petra_trip, guide):
        slot = petra_trip.slots[0]
        slot.is_available = False
        db.commit()

        (entry,) = GuideScheduleService(db).slots_for_guide(guide.id)

        assert entry.slot_id == slot.id
        assert entry.is_available is False

    def test_date_range_is_inclusive(self, db, trip_factory, guide):
        trip_factory(
            guide.id,
            slots=[(date(2025, 6, d), "09:00") for d in (14, 15, 16, 17)],
        )

        schedule = GuideScheduleService(db).slots_for_guide(
            guide.id, date(2025, 6, 15), date(2025, 6, 16)
        )

        assert [s.slot_date.day for s in schedule] == [15, 16]

    def test_reversed_range_is_rejected(self, db, guide):
        with pytest.raises(ValidationException):
            GuideScheduleService(db).slots_for_guide(guide.id, date(2025, 6, 16), date(2025, 6, 15))

    def test_other_guides_slots_are_excluded(self, db, trip_factory, guide, other_guide):
        trip_factory(other_guide.id)

        assert GuideScheduleService(db).slots_for_guide(guide.id) == []

    def test_slots_at_matches_instant_across_trips(self, db, trip_factory, guide):
        first = trip_factory(guide.id, title="Petra Day Tour")
        second = trip_factory(guide.id, title="Little Petra Hike")

        matches = GuideScheduleService(db).slots_at(guide.id, date(2025, 6, 15), "09:00")

        assert {slot.trip_id for slot in matches} == {first.id, second.id}
        assert slot_at(db, first.id, date(2025, 6, 15), "09:00") in matches
