# backend/app/services/slot_service.py
"""
Slot Store Service for the Jawla Platform

Owns the schedule sub-resource of a trip: adding, listing, blocking and
removing (date, time) slots. The only rule enforced here is that a trip
never holds two slots at the same instant; cross-trip commitments are the
conflict checker's concern.

Writes that can change a guide's availability at an instant (block,
unblock, remove) run under the same per-instant slot lock the booking
engine uses, so they serialize with concurrent bookings.
"""

from datetime import date
import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.booking_lock import slot_lock
from ..core.constants import SLOT_TIME_REGEX
from ..core.exceptions import (
    BusinessRuleException,
    DuplicateSlotException,
    NotAuthorizedException,
    NotFoundException,
    RepositoryException,
    ValidationException,
)
from ..models.booking import ACTIVE_STATUSES
from ..models.trip import Trip, TripScheduleSlot
from ..principal import Actor
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.slot_repository import SlotRepository
from ..repositories.trip_repository import TripRepository
from .base import BaseService

logger = logging.getLogger(__name__)


def ensure_slot_time(slot_time: str) -> str:
    """Validate an "HH:MM" slot time, returning it unchanged."""
    if not isinstance(slot_time, str) or not SLOT_TIME_REGEX.fullmatch(slot_time):
        raise ValidationException(
            "Slot time must be HH:MM (24h)",
            code="INVALID_SLOT_TIME",
            details={"time": slot_time},
        )
    return slot_time


def can_manage_trip(actor: Actor, trip: Trip) -> bool:
    """Only the owning guide or an admin may edit a trip or its schedule."""
    return actor.is_admin or (actor.is_guide and actor.id == trip.guide_id)


class SlotService(BaseService):
    """Service for a trip's schedule slots."""

    def __init__(
        self,
        db: Session,
        slot_repository: Optional[SlotRepository] = None,
        trip_repository: Optional[TripRepository] = None,
        booking_repository: Optional[BookingRepository] = None,
    ):
        super().__init__(db)
        self.slot_repository = slot_repository or RepositoryFactory.create_slot_repository(db)
        self.trip_repository = trip_repository or RepositoryFactory.create_trip_repository(db)
        self.booking_repository = (
            booking_repository or RepositoryFactory.create_booking_repository(db)
        )

    # Helpers shared with trip authoring

    def stage_slots(
        self, trip_id: str, instants: Iterable[Tuple[date, str]]
    ) -> List[TripScheduleSlot]:
        """
        Create slots for a trip inside the caller's transaction.

        Raises:
            DuplicateSlotException: If an instant repeats or already exists on the trip
        """
        seen: set[Tuple[date, str]] = set()
        created: List[TripScheduleSlot] = []
        for slot_date, slot_time in instants:
            ensure_slot_time(slot_time)
            key = (slot_date, slot_time)
            if key in seen or self.slot_repository.instant_exists(trip_id, slot_date, slot_time):
                raise DuplicateSlotException(trip_id, slot_date.isoformat(), slot_time)
            seen.add(key)
            try:
                slot = self.slot_repository.create(
                    trip_id=trip_id, slot_date=slot_date, slot_time=slot_time, is_available=True
                )
            except RepositoryException as exc:
                # Unique (trip_id, date, time) lost a race with another writer
                if isinstance(exc.__cause__, IntegrityError):
                    raise DuplicateSlotException(
                        trip_id, slot_date.isoformat(), slot_time
                    ) from exc
                raise
            created.append(slot)
        return created

    def release_unheld_slots(self, trip: Trip) -> List[TripScheduleSlot]:
        """
        Clear manual blocks on a trip's slots inside the caller's transaction.

        Slots held by a non-canceled booking stay unavailable.

        Returns:
            The slots whose flag was flipped back to available
        """
        held = self.booking_repository.get_held_slot_ids([slot.id for slot in trip.slots])
        released = []
        for slot in trip.slots:
            if not slot.is_available and slot.id not in held:
                self.slot_repository.set_availability(slot, True)
                released.append(slot)
        return released

    def _get_managed_trip(self, actor: Actor, trip_id: str) -> Trip:
        trip = self.trip_repository.get_active(trip_id)
        if trip is None:
            raise NotFoundException("Trip not found", code="TRIP_NOT_FOUND")
        if not can_manage_trip(actor, trip):
            self.logger.warning(
                "Schedule edit refused",
                extra={"trip_id": trip_id, "actor_id": actor.id, "role": actor.role.value},
            )
            raise NotAuthorizedException()
        return trip

    def _get_slot(self, trip_id: str, slot_id: str) -> TripScheduleSlot:
        slot = self.slot_repository.get_for_trip(trip_id, slot_id)
        if slot is None:
            raise NotFoundException("Slot not found", code="SLOT_NOT_FOUND")
        return slot

    # Public operations

    @BaseService.measure_operation("add_slot")
    def add_slot(self, actor: Actor, trip_id: str, slot_date: date, slot_time: str) -> TripScheduleSlot:
        """
        Add a single (date, time) slot to a trip.

        Raises:
            DuplicateSlotException: The trip already has a slot at that instant
            NotFoundException: Unknown or deleted trip
            NotAuthorizedException: Actor does not own the trip
        """
        self.log_operation("add_slot", trip_id=trip_id, date=str(slot_date), time=slot_time)
        trip = self._get_managed_trip(actor, trip_id)
        with self.transaction():
            (slot,) = self.stage_slots(trip.id, [(slot_date, slot_time)])
        return slot

    @BaseService.measure_operation("list_slots")
    def list_slots(self, trip_id: str, available_only: bool = False) -> List[TripScheduleSlot]:
        """A trip's slots ordered by date then time."""
        if self.trip_repository.get_active(trip_id) is None:
            raise NotFoundException("Trip not found", code="TRIP_NOT_FOUND")
        return self.slot_repository.list_for_trip(trip_id, available_only=available_only)

    @BaseService.measure_operation("set_slot_availability")
    def set_availability(
        self, actor: Actor, trip_id: str, slot_id: str, is_available: bool
    ) -> TripScheduleSlot:
        """
        Manually block or unblock a slot.

        Blocking is always allowed. Unblocking a slot that a booking holds is
        refused; only canceling the booking releases it.

        Raises:
            BusinessRuleException: Unblocking a booked slot
        """
        trip = self._get_managed_trip(actor, trip_id)
        slot = self._get_slot(trip_id, slot_id)

        with slot_lock(trip.guide_id, slot.slot_date, slot.slot_time):
            with self.transaction():
                slot = self.slot_repository.find_slot(
                    trip_id, slot.slot_date, slot.slot_time, for_update=True
                )
                if slot is None:
                    raise NotFoundException("Slot not found", code="SLOT_NOT_FOUND")
                if is_available and not slot.is_available:
                    holder = self.booking_repository.get_holding_booking(slot.id)
                    if holder is not None:
                        raise BusinessRuleException(
                            "This slot is held by a booking; cancel the booking to release it",
                            code="SLOT_BOOKED",
                            details={"slot_id": slot.id, "booking_id": holder.id},
                        )
                self.slot_repository.set_availability(slot, is_available)

        self.log_operation(
            "set_slot_availability", trip_id=trip_id, slot_id=slot_id, is_available=is_available
        )
        return slot

    @BaseService.measure_operation("remove_slot")
    def remove_slot(self, actor: Actor, trip_id: str, slot_id: str) -> None:
        """
        Remove a slot from a trip's schedule.

        Raises:
            BusinessRuleException: A pending or confirmed booking holds the slot
        """
        trip = self._get_managed_trip(actor, trip_id)
        slot = self._get_slot(trip_id, slot_id)

        with slot_lock(trip.guide_id, slot.slot_date, slot.slot_time):
            with self.transaction():
                holder = self.booking_repository.get_holding_booking(slot.id)
                if holder is not None and holder.status in {s.value for s in ACTIVE_STATUSES}:
                    raise BusinessRuleException(
                        "Cannot remove a slot with an active booking",
                        code="SLOT_BOOKED",
                        details={"slot_id": slot.id, "booking_id": holder.id},
                    )
                self.slot_repository.delete(slot.id)

        self.log_operation("remove_slot", trip_id=trip_id, slot_id=slot_id)
