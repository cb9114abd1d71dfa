# backend/app/repositories/slot_repository.py
"""
Slot Repository for the Jawla Platform

Data access for trip schedule slots, keyed by (trip_id, date, time). The
slot store is the single source of truth for a trip's schedule; nothing
here decides whether a write is allowed, that is the services' job.
"""

from datetime import date
import logging
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.trip import TripScheduleSlot
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class SlotRepository(BaseRepository[TripScheduleSlot]):
    """Repository for trip schedule slots."""

    def __init__(self, db: Session):
        super().__init__(db, TripScheduleSlot)
        self.logger = logging.getLogger(__name__)

    def find_slot(
        self,
        trip_id: str,
        slot_date: date,
        slot_time: str,
        *,
        for_update: bool = False,
    ) -> Optional[TripScheduleSlot]:
        """
        Find the slot of a trip at an exact instant.

        Args:
            trip_id: Owning trip
            slot_date: Calendar date
            slot_time: "HH:MM" wall-clock time
            for_update: Take a row lock where the dialect supports it

        Returns:
            The slot, or None when the trip has no slot at that instant
        """
        try:
            query = self.db.query(TripScheduleSlot).filter(
                TripScheduleSlot.trip_id == trip_id,
                TripScheduleSlot.slot_date == slot_date,
                TripScheduleSlot.slot_time == slot_time,
            )
            if for_update:
                query = query.with_for_update().populate_existing()
            return cast(Optional[TripScheduleSlot], query.first())
        except SQLAlchemyError as e:
            self.logger.error(f"Error finding slot for trip {trip_id}: {str(e)}")
            raise RepositoryException(f"Failed to find slot: {str(e)}")

    def get_for_trip(self, trip_id: str, slot_id: str) -> Optional[TripScheduleSlot]:
        """Get a slot by id, only if it belongs to the given trip."""
        try:
            return cast(
                Optional[TripScheduleSlot],
                self.db.query(TripScheduleSlot)
                .filter(TripScheduleSlot.id == slot_id, TripScheduleSlot.trip_id == trip_id)
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting slot {slot_id}: {str(e)}")
            raise RepositoryException(f"Failed to get slot: {str(e)}")

    def list_for_trip(self, trip_id: str, *, available_only: bool = False) -> List[TripScheduleSlot]:
        """List a trip's slots ordered by date then time."""
        query = self.db.query(TripScheduleSlot).filter(TripScheduleSlot.trip_id == trip_id)
        if available_only:
            query = query.filter(TripScheduleSlot.is_available.is_(True))
        query = query.order_by(TripScheduleSlot.slot_date, TripScheduleSlot.slot_time)
        return self._execute_query(query)

    def instant_exists(self, trip_id: str, slot_date: date, slot_time: str) -> bool:
        return self.exists(trip_id=trip_id, slot_date=slot_date, slot_time=slot_time)

    def set_availability(self, slot: TripScheduleSlot, is_available: bool) -> TripScheduleSlot:
        """Flip the availability flag. Flushes, never commits."""
        try:
            slot.is_available = is_available
            self.db.flush()
            return slot
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating slot {slot.id}: {str(e)}")
            raise RepositoryException(f"Failed to update slot: {str(e)}")
