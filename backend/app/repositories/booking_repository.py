# backend/app/repositories/booking_repository.py
"""
Booking Repository for the Jawla Platform

Implements data access for bookings and their status history.

This repository handles:
- Booking CRUD operations (bookings are never deleted)
- Row-locked reads for lifecycle transitions
- "Is this slot held" lookups for conflict classification
- Tourist- and guide-scoped listings
- Status history rows
"""

import logging
from typing import Any, List, Optional, cast

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.booking import ACTIVE_STATUSES, Booking, BookingStatus
from ..models.booking_status_history import BookingStatusHistory
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_ACTIVE_VALUES = [s.value for s in ACTIVE_STATUSES]


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def create(self, **kwargs: Any) -> Booking:
        """Create a booking, exposing integrity errors for conflict handling."""
        try:
            return super().create(**kwargs)
        except RepositoryException as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise exc.__cause__
            raise

    def get_for_update(self, booking_id: str) -> Optional[Booking]:
        """Load a booking with a row lock (no-op on SQLite)."""
        try:
            return cast(
                Optional[Booking],
                self.db.query(Booking).filter(Booking.id == booking_id)
                .with_for_update()
                .populate_existing()
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to load booking: {str(e)}")

    def get_holding_booking(self, slot_id: str) -> Optional[Booking]:
        """The non-canceled booking occupying a slot, if any."""
        try:
            return cast(
                Optional[Booking],
                self.db.query(Booking)
                .filter(
                    Booking.slot_id == slot_id,
                    Booking.status != BookingStatus.CANCELED.value,
                )
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking active booking for slot {slot_id}: {str(e)}")
            raise RepositoryException(f"Failed to check slot bookings: {str(e)}")

    def get_held_slot_ids(self, slot_ids: List[str]) -> set[str]:
        """Subset of ``slot_ids`` occupied by a non-canceled booking."""
        if not slot_ids:
            return set()
        try:
            rows = (
                self.db.query(Booking.slot_id)
                .filter(
                    Booking.slot_id.in_(slot_ids),
                    Booking.status != BookingStatus.CANCELED.value,
                )
                .all()
            )
            return {row[0] for row in rows}
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking active bookings for slots: {str(e)}")
            raise RepositoryException(f"Failed to check slot bookings: {str(e)}")

    def count_active_for_trip(self, trip_id: str) -> int:
        try:
            return cast(
                int,
                self.db.query(Booking)
                .filter(Booking.trip_id == trip_id, Booking.status.in_(_ACTIVE_VALUES))
                .count(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting active bookings for trip {trip_id}: {str(e)}")
            raise RepositoryException(f"Failed to count bookings: {str(e)}")

    def get_tourist_bookings(
        self, tourist_id: str, status: Optional[BookingStatus] = None
    ) -> List[Booking]:
        """A tourist's bookings, newest first."""
        query = self._build_query().filter(Booking.tourist_id == tourist_id)
        return self._list(query, status)

    def get_guide_bookings(
        self, guide_id: str, status: Optional[BookingStatus] = None
    ) -> List[Booking]:
        """Bookings on a guide's trips, newest first."""
        query = self._build_query().filter(Booking.guide_id == guide_id)
        return self._list(query, status)

    def get_all_bookings(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        return self._list(self._build_query(), status)

    def _list(self, query: Query, status: Optional[BookingStatus]) -> List[Booking]:
        if status is not None:
            query = query.filter(Booking.status == BookingStatus(status).value)
        query = self._apply_eager_loading(query).order_by(
            Booking.created_at.desc(), Booking.id.desc()
        )
        return self._execute_query(query)

    # Status history

    def add_history(self, entry: BookingStatusHistory) -> BookingStatusHistory:
        """Append a status history row. Flushes, never commits."""
        try:
            self.db.add(entry)
            self.db.flush()
            return entry
        except SQLAlchemyError as e:
            self.logger.error(f"Error writing history for booking {entry.booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to write booking history: {str(e)}")

    def get_history(self, booking_id: str) -> List[BookingStatusHistory]:
        try:
            return cast(
                List[BookingStatusHistory],
                self.db.query(BookingStatusHistory)
                .filter(BookingStatusHistory.booking_id == booking_id)
                .order_by(BookingStatusHistory.occurred_at.asc(), BookingStatusHistory.id.asc())
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading history for booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to load booking history: {str(e)}")

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(Booking.trip))
