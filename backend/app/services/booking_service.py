# backend/app/services/booking_service.py
"""
Booking Service for the Jawla Platform

The booking lifecycle manager. Handles:
- Creating bookings against a trip's schedule slot without double-booking
- Driving the pending -> confirmed -> completed / canceled state machine
- Releasing the slot when a booking is canceled
- Scoped booking reads and the status history trail

This service is the only writer of a slot's availability flag on behalf of a
booking. The conflict check and every write that follows run inside the
per-(guide, date, time) slot lock and one database transaction, so two
tourists racing for the same instant cannot both win.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Callable, Dict, FrozenSet, List, NoReturn, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.booking_lock import slot_lock
from ..core.enums import RoleName
from ..core.exceptions import (
    DomainException,
    IllegalTransitionException,
    NotAuthorizedException,
    SlotNotFoundException,
    SlotTakenException,
)
from ..events import BookingStatusChanged, EventPublisher
from ..models.booking import Booking, BookingStatus
from ..models.booking_status_history import BookingStatusHistory
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..principal import Actor
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.slot_repository import SlotRepository
from ..repositories.trip_repository import TripRepository
from ..schemas.booking import BookingCreate
from .base import BaseService
from .conflict_checker import ConflictChecker

logger = logging.getLogger(__name__)

_STAFF = frozenset({RoleName.GUIDE, RoleName.ADMIN})
_ANY_PARTY = frozenset({RoleName.TOURIST, RoleName.GUIDE, RoleName.ADMIN})

# (from, to) -> roles allowed to take the edge. Anything else is illegal.
ALLOWED_TRANSITIONS: Dict[Tuple[BookingStatus, BookingStatus], FrozenSet[RoleName]] = {
    (BookingStatus.PENDING, BookingStatus.CONFIRMED): _STAFF,
    (BookingStatus.PENDING, BookingStatus.CANCELED): _ANY_PARTY,
    (BookingStatus.CONFIRMED, BookingStatus.CANCELED): _ANY_PARTY,
    (BookingStatus.CONFIRMED, BookingStatus.COMPLETED): _STAFF,
}


def _local_now() -> datetime:
    return datetime.now()


class BookingService(BaseService):
    """
    Service layer for booking operations.

    ``now`` returns the naive local wall-clock time used to decide whether a
    booking's instant has passed; slots carry no timezone.
    """

    def __init__(
        self,
        db: Session,
        booking_repository: Optional[BookingRepository] = None,
        slot_repository: Optional[SlotRepository] = None,
        trip_repository: Optional[TripRepository] = None,
        conflict_checker: Optional[ConflictChecker] = None,
        event_publisher: Optional[EventPublisher] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(db)
        self.repository = booking_repository or RepositoryFactory.create_booking_repository(db)
        self.slot_repository = slot_repository or RepositoryFactory.create_slot_repository(db)
        self.trip_repository = trip_repository or RepositoryFactory.create_trip_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(
            db, booking_repository=self.repository
        )
        self.event_publisher = event_publisher or EventPublisher(
            RepositoryFactory.create_background_job_repository(db)
        )
        self._now = now or _local_now

    # Creation

    @BaseService.measure_operation("create_booking")
    def create_booking(self, tourist: Actor, booking_data: BookingCreate) -> Booking:
        """
        Book one (date, time) slot of a trip for a tourist.

        Args:
            tourist: The booking tourist
            booking_data: Trip, instant and contact details

        Returns:
            The new booking, status pending

        Raises:
            NotAuthorizedException: Actor is not a tourist
            SlotNotFoundException: Trip is not bookable or has no slot at that instant
            SlotTakenException: The guide is already committed at that instant
        """
        if not tourist.is_tourist:
            self._reject(
                NotAuthorizedException("Only tourists can book trips"),
                None,
                tourist,
                None,
                BookingStatus.PENDING,
            )

        slot_date, slot_time = booking_data.slot_date, booking_data.slot_time
        self.log_operation(
            "create_booking",
            tourist_id=tourist.id,
            trip_id=booking_data.trip_id,
            date=str(slot_date),
            time=slot_time,
        )

        trip = self.trip_repository.get_by_id(booking_data.trip_id, load_relationships=False)
        if trip is None or not trip.is_bookable:
            raise SlotNotFoundException(booking_data.trip_id, slot_date.isoformat(), slot_time)
        if self.slot_repository.find_slot(trip.id, slot_date, slot_time) is None:
            raise SlotNotFoundException(trip.id, slot_date.isoformat(), slot_time)

        with slot_lock(trip.guide_id, slot_date, slot_time):
            with self.transaction():
                # Authoritative re-read under the lock
                slot = self.slot_repository.find_slot(
                    trip.id, slot_date, slot_time, for_update=True
                )
                if slot is None:
                    raise SlotNotFoundException(trip.id, slot_date.isoformat(), slot_time)

                result = self.conflict_checker.check_conflict(
                    trip.guide_id, slot_date, slot_time, for_update=True
                )
                if not result.is_free:
                    raise SlotTakenException(details=result.to_details())

                self.slot_repository.set_availability(slot, False)
                try:
                    booking = self.repository.create(
                        tourist_id=tourist.id,
                        trip_id=trip.id,
                        guide_id=trip.guide_id,
                        slot_id=slot.id,
                        scheduled_date=slot_date,
                        scheduled_time=slot_time,
                        status=BookingStatus.PENDING.value,
                        contact_phone=booking_data.contact_phone,
                        contact_email=booking_data.contact_email,
                        note=booking_data.note,
                    )
                except IntegrityError as exc:
                    # Partial unique index on (guide, date, time) caught a racer
                    raise SlotTakenException() from exc

                self._record_change(booking, None, BookingStatus.PENDING, tourist)

        prometheus_metrics.record_booking_transition(None, BookingStatus.PENDING.value)
        self.logger.info(
            f"Booking {booking.id} created for trip {trip.id} at {slot_date} {slot_time}"
        )
        return booking

    # Lifecycle

    @BaseService.measure_operation("transition_booking")
    def transition(
        self,
        booking_id: str,
        new_status: BookingStatus,
        actor: Actor,
        reason: Optional[str] = None,
    ) -> Booking:
        """
        Move a booking to ``new_status``.

        Raises:
            NotAuthorizedException: Unknown booking, unrelated actor, or role not allowed
            IllegalTransitionException: The state machine does not allow the change
        """
        target = BookingStatus(new_status)
        booking = self.repository.get_by_id(booking_id, load_relationships=False)
        if booking is None or not self._is_party(actor, booking):
            self._reject(NotAuthorizedException(), booking_id, actor, None, target)

        with slot_lock(booking.guide_id, booking.scheduled_date, booking.scheduled_time):
            with self.transaction():
                booking = self.repository.get_for_update(booking_id)
                if booking is None:
                    self._reject(NotAuthorizedException(), booking_id, actor, None, target)
                current = BookingStatus(booking.status)
                self._check_transition(booking, current, target, actor)

                if target == BookingStatus.CONFIRMED:
                    booking.confirm()
                elif target == BookingStatus.COMPLETED:
                    booking.complete()
                else:
                    booking.cancel(actor.id, reason)
                    self._release_slot(booking)
                self.repository.flush()

                self._record_change(booking, current, target, actor, reason)

        prometheus_metrics.record_booking_transition(current.value, target.value)
        self.log_operation(
            "transition_booking",
            booking_id=booking_id,
            from_status=current.value,
            to_status=target.value,
            actor_id=actor.id,
        )
        return booking

    def confirm_booking(self, booking_id: str, actor: Actor) -> Booking:
        return self.transition(booking_id, BookingStatus.CONFIRMED, actor)

    def cancel_booking(
        self, booking_id: str, actor: Actor, reason: Optional[str] = None
    ) -> Booking:
        """Cancel a booking and release its slot."""
        return self.transition(booking_id, BookingStatus.CANCELED, actor, reason)

    def complete_booking(self, booking_id: str, actor: Actor) -> Booking:
        return self.transition(booking_id, BookingStatus.COMPLETED, actor)

    # Reads

    @BaseService.measure_operation("get_bookings_for_actor")
    def get_bookings_for_actor(
        self, actor: Actor, status: Optional[BookingStatus] = None
    ) -> List[Booking]:
        """
        Bookings visible to the actor, newest first.

        Tourists see their own bookings, guides the bookings on their trips,
        admins everything.
        """
        if actor.is_admin:
            return self.repository.get_all_bookings(status)
        if actor.is_guide:
            return self.repository.get_guide_bookings(actor.id, status)
        return self.repository.get_tourist_bookings(actor.id, status)

    @BaseService.measure_operation("get_booking_for_actor")
    def get_booking_for_actor(self, booking_id: str, actor: Actor) -> Booking:
        """
        Get a booking the actor is a party to.

        Raises:
            NotAuthorizedException: Same payload whether or not the booking exists
        """
        booking = self.repository.get_by_id(booking_id)
        if booking is None or not self._is_party(actor, booking):
            raise NotAuthorizedException()
        return booking

    def get_history(self, booking_id: str, actor: Actor) -> List[BookingStatusHistory]:
        booking = self.get_booking_for_actor(booking_id, actor)
        return self.repository.get_history(booking.id)

    # Helpers

    @staticmethod
    def _is_party(actor: Actor, booking: Booking) -> bool:
        if actor.is_admin:
            return True
        if actor.is_guide:
            return actor.id == booking.guide_id
        return actor.is_tourist and actor.id == booking.tourist_id

    def _check_transition(
        self,
        booking: Booking,
        current: BookingStatus,
        target: BookingStatus,
        actor: Actor,
    ) -> None:
        allowed_roles = ALLOWED_TRANSITIONS.get((current, target))
        if allowed_roles is None:
            self._reject(
                IllegalTransitionException(current.value, target.value),
                booking.id,
                actor,
                current,
                target,
            )
        if actor.role not in allowed_roles:
            self._reject(NotAuthorizedException(), booking.id, actor, current, target)
        if target == BookingStatus.COMPLETED and booking.scheduled_at() > self._now():
            self._reject(
                IllegalTransitionException(
                    current.value,
                    target.value,
                    reason="A booking can only be completed after its scheduled time",
                ),
                booking.id,
                actor,
                current,
                target,
            )

    def _reject(
        self,
        exc: DomainException,
        booking_id: Optional[str],
        actor: Actor,
        current: Optional[BookingStatus],
        target: BookingStatus,
    ) -> NoReturn:
        self.logger.warning(
            f"Booking transition rejected: {exc.code}",
            extra={
                "booking_id": booking_id,
                "actor_id": actor.id,
                "role": actor.role.value,
                "from_status": current.value if current else None,
                "to_status": target.value,
                "code": exc.code,
            },
        )
        prometheus_metrics.record_booking_rejection(exc.code.lower())
        raise exc

    def _release_slot(self, booking: Booking) -> None:
        """Make the booking's slot bookable again, if the trip still has it."""
        if booking.slot_id is None:
            return
        slot = self.slot_repository.find_slot(
            booking.trip_id, booking.scheduled_date, booking.scheduled_time, for_update=True
        )
        if slot is not None and slot.id == booking.slot_id:
            self.slot_repository.set_availability(slot, True)

    def _record_change(
        self,
        booking: Booking,
        previous: Optional[BookingStatus],
        new: BookingStatus,
        actor: Actor,
        reason: Optional[str] = None,
    ) -> None:
        """Write the history row and the outbox event in the current transaction."""
        self.repository.add_history(
            BookingStatusHistory.from_transition(
                booking.id,
                previous.value if previous else None,
                new.value,
                actor,
                reason,
            )
        )
        self.event_publisher.publish(
            BookingStatusChanged(
                booking_id=booking.id,
                new_status=new.value,
                previous_status=previous.value if previous else None,
                trip_id=booking.trip_id,
                guide_id=booking.guide_id,
                tourist_id=booking.tourist_id,
                actor_id=actor.id,
                occurred_at=datetime.now(timezone.utc),
            )
        )
