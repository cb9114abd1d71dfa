# backend/tests/integration/services/test_booking_race_protection.py
"""
Concurrency safeguards for BookingService.

These tests ensure that:
• Two tourists racing for the same guide instant cannot both win.
• A guide confirming while the tourist cancels ends in one consistent state.
• The partial unique index on (guide, date, time) rejects a second active
  booking even when the application-level check is bypassed.
"""

from __future__ import annotations

import threading
from typing import List
from unittest.mock import MagicMock

import pytest
from sqlalchemy.orm import Session, sessionmaker

from app.core.exceptions import IllegalTransitionException, SlotTakenException
from app.models.booking import Booking, BookingStatus
from app.models.booking_status_history import BookingStatusHistory
from app.services.booking_service import BookingService
from app.services.conflict_checker import ConflictResult
from tests.factories.trip_builders import (
    PETRA_DATE,
    PETRA_TIME,
    booking_request,
    create_trip,
    slot_at,
)


class TestBookingRaceProtection:
    """Concurrent creation against one guide instant."""

    def test_two_concurrent_bookings_only_one_succeeds(
        self, file_engine, guide, tourist, other_tourist
    ):
        SessionFactory = sessionmaker(bind=file_engine, expire_on_commit=False)
        with SessionFactory() as setup:
            petra = create_trip(setup, guide.id)
            wadi_rum = create_trip(setup, guide.id, title="Wadi Rum Jeep Tour", city="Wadi Rum")
            trip_ids = {tourist.id: petra.id, other_tourist.id: wadi_rum.id}

        barrier = threading.Barrier(2)
        winners: List[str] = []
        refusals: List[SlotTakenException] = []
        unexpected: List[BaseException] = []

        def attempt(actor):
            session = SessionFactory()
            try:
                service = BookingService(session)
                barrier.wait(timeout=5)
                booking = service.create_booking(actor, booking_request(trip_ids[actor.id]))
                winners.append(booking.id)
            except SlotTakenException as exc:
                refusals.append(exc)
            except Exception as exc:  # surfaced by the assertions below
                unexpected.append(exc)
            finally:
                session.close()

        threads = [threading.Thread(target=attempt, args=(a,)) for a in (tourist, other_tourist)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert unexpected == []
        assert len(winners) == 1
        assert len(refusals) == 1
        assert refusals[0].details["reason"] == "active_booking"

        with SessionFactory() as check:
            active = (
                check.query(Booking)
                .filter(Booking.guide_id == guide.id, Booking.status != BookingStatus.CANCELED.value)
                .all()
            )
            assert [b.id for b in active] == winners
            open_slots = [
                slot_at(check, trip_id, PETRA_DATE, PETRA_TIME).is_available
                for trip_id in trip_ids.values()
            ]
            assert sorted(open_slots) == [False, True]

    def test_confirm_racing_cancel_leaves_consistent_state(self, file_engine, guide, tourist):
        SessionFactory = sessionmaker(bind=file_engine, expire_on_commit=False)
        with SessionFactory() as setup:
            petra = create_trip(setup, guide.id)
            booking_id = BookingService(setup).create_booking(
                tourist, booking_request(petra.id)
            ).id

        barrier = threading.Barrier(2)
        applied: List[str] = []
        refusals: List[Exception] = []
        unexpected: List[BaseException] = []

        def attempt(target: BookingStatus, actor):
            session = SessionFactory()
            try:
                service = BookingService(session)
                barrier.wait(timeout=5)
                service.transition(booking_id, target, actor)
                applied.append(target.value)
            except (IllegalTransitionException, SlotTakenException) as exc:
                refusals.append(exc)
            except Exception as exc:  # surfaced by the assertions below
                unexpected.append(exc)
            finally:
                session.close()

        threads = [
            threading.Thread(target=attempt, args=(BookingStatus.CONFIRMED, guide)),
            threading.Thread(target=attempt, args=(BookingStatus.CANCELED, tourist)),
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert unexpected == []
        assert len(applied) + len(refusals) == 2
        assert "canceled" in applied or refusals

        with SessionFactory() as check:
            final = check.query(Booking).filter(Booking.id == booking_id).one()
            slot_open = slot_at(check, petra.id, PETRA_DATE, PETRA_TIME).is_available
            history = [
                row.to_status
                for row in check.query(BookingStatusHistory)
                .filter(BookingStatusHistory.booking_id == booking_id)
                .all()
            ]

        if final.status == BookingStatus.CANCELED.value:
            assert slot_open is True
            assert "canceled" in applied
        else:
            assert final.status == BookingStatus.CONFIRMED.value
            assert slot_open is False
            assert applied == ["confirmed"]
        assert sorted(history) == sorted(["pending", *applied])

    def test_database_rejects_second_active_booking_for_guide_instant(
        self, db: Session, trip_factory, guide, tourist, other_tourist
    ):
        petra = trip_factory(guide.id)
        wadi_rum = trip_factory(guide.id, title="Wadi Rum Jeep Tour", city="Wadi Rum")
        BookingService(db).create_booking(tourist, booking_request(petra.id))

        blind_checker = MagicMock()
        blind_checker.check_conflict.return_value = ConflictResult.free()
        service = BookingService(db, conflict_checker=blind_checker)

        with pytest.raises(SlotTakenException):
            service.create_booking(other_tourist, booking_request(wadi_rum.id))

        assert db.query(Booking).filter(Booking.guide_id == guide.id).count() == 1
        assert slot_at(db, wadi_rum.id, PETRA_DATE, PETRA_TIME).is_available is True

    def test_canceled_booking_does_not_block_the_index(
        self, db: Session, trip_factory, guide, tourist, other_tourist
    ):
        petra = trip_factory(guide.id)
        service = BookingService(db)
        first = service.create_booking(tourist, booking_request(petra.id))
        service.cancel_booking(first.id, tourist)

        second = service.create_booking(other_tourist, booking_request(petra.id))

        assert second.status == BookingStatus.PENDING.value
        assert db.query(Booking).filter(Booking.guide_id == guide.id).count() == 2
