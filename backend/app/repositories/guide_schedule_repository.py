# backend/app/repositories/guide_schedule_repository.py
"""
Guide Schedule Repository for the Jawla Platform

Answers "which slots does this guide own at (date, time)" across every trip
the guide has ever owned. A guide's schedule is the union of the slots of
all their trips. A soft-deleted trip still occupies the guide wherever a
booking holds one of its slots; the public calendar omits deleted trips.
"""

from datetime import date
import logging
from typing import List, Optional, cast

from sqlalchemy import and_, exists, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, contains_eager

from ..core.exceptions import RepositoryException
from ..models.booking import Booking, BookingStatus
from ..models.trip import Trip, TripScheduleSlot
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


def _held_by_booking():
    return exists().where(
        and_(
            Booking.slot_id == TripScheduleSlot.id,
            Booking.status != BookingStatus.CANCELED.value,
        )
    )


class GuideScheduleRepository(BaseRepository[TripScheduleSlot]):
    """Read-side queries over the guide's cross-trip schedule."""

    def __init__(self, db: Session):
        super().__init__(db, TripScheduleSlot)
        self.logger = logging.getLogger(__name__)

    def slots_for_guide_at(
        self,
        guide_id: str,
        slot_date: date,
        slot_time: str,
        *,
        for_update: bool = False,
    ) -> List[TripScheduleSlot]:
        """
        Every slot of every trip of ``guide_id`` at exactly (date, time).

        Slots of deleted trips are only returned while a non-canceled booking
        holds them.

        Args:
            guide_id: The guide whose schedule is queried
            slot_date: Calendar date
            slot_time: "HH:MM" time
            for_update: Lock the matching slot rows where supported

        Returns:
            Matching slots (possibly empty), ordered by trip creation
        """
        try:
            query = (
                self.db.query(TripScheduleSlot)
                .join(Trip, TripScheduleSlot.trip_id == Trip.id)
                .filter(
                    Trip.guide_id == guide_id,
                    TripScheduleSlot.slot_date == slot_date,
                    TripScheduleSlot.slot_time == slot_time,
                    or_(Trip.is_deleted.is_(False), _held_by_booking()),
                )
                .order_by(Trip.created_at, Trip.id)
            )
            if for_update:
                query = query.with_for_update(of=TripScheduleSlot).populate_existing()
            return cast(List[TripScheduleSlot], query.all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading guide {guide_id} slots at {slot_date} {slot_time}: {e}")
            raise RepositoryException(f"Failed to load guide schedule: {str(e)}")

    def slots_for_guide(
        self,
        guide_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[TripScheduleSlot]:
        """
        The guide's bookable calendar within an optional inclusive date range.

        Deleted trips are left out; their slots can no longer be booked.

        Slots come back with their trip populated, ordered by date, time, trip.
        """
        query = (
            self.db.query(TripScheduleSlot)
            .join(Trip, TripScheduleSlot.trip_id == Trip.id)
            .options(contains_eager(TripScheduleSlot.trip))
            .filter(Trip.guide_id == guide_id, Trip.is_deleted.is_(False))
        )
        if start_date is not None:
            query = query.filter(TripScheduleSlot.slot_date >= start_date)
        if end_date is not None:
            query = query.filter(TripScheduleSlot.slot_date <= end_date)
        query = query.order_by(
            TripScheduleSlot.slot_date, TripScheduleSlot.slot_time, Trip.created_at, Trip.id
        )
        return self._execute_query(query)
