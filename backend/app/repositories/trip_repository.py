# backend/app/repositories/trip_repository.py
"""
Trip Repository for the Jawla Platform

Data access for trips: loading with schedule, guide listings, soft delete
and the discovery search used by listing pages.

Search is a pure read-side projection. It always hits the live tables so it
reflects whatever availability the booking engine last committed.
"""

from dataclasses import dataclass
from decimal import Decimal
import logging
from typing import List, Optional, Tuple, cast

from sqlalchemy import and_, exists, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from ..core.enums import TripSort
from ..core.exceptions import RepositoryException
from ..models.trip import Trip, TripScheduleSlot
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TripSearchFilter:
    """Conjunctive search criteria; None means "don't filter"."""

    city: Optional[str] = None
    trip_type: Optional[str] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    text_query: Optional[str] = None
    available_only: bool = False


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class TripRepository(BaseRepository[Trip]):
    """Repository for trip data access."""

    def __init__(self, db: Session):
        super().__init__(db, Trip)
        self.logger = logging.getLogger(__name__)

    def get_active(self, trip_id: str) -> Optional[Trip]:
        """Get a non-deleted trip with its schedule loaded."""
        try:
            query = self._apply_eager_loading(
                self.db.query(Trip).filter(Trip.id == trip_id, Trip.is_deleted.is_(False))
            )
            return cast(Optional[Trip], query.first())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting trip {trip_id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve trip: {str(e)}")

    def list_for_guide(self, guide_id: str) -> List[Trip]:
        """A guide's non-deleted trips, newest first."""
        query = self._apply_eager_loading(
            self.db.query(Trip).filter(Trip.guide_id == guide_id, Trip.is_deleted.is_(False))
        ).order_by(Trip.created_at.desc(), Trip.id.desc())
        return self._execute_query(query)

    def soft_delete(self, trip: Trip) -> Trip:
        try:
            trip.is_deleted = True
            self.db.flush()
            return trip
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting trip {trip.id}: {str(e)}")
            raise RepositoryException(f"Failed to delete trip: {str(e)}")

    def search(
        self,
        criteria: TripSearchFilter,
        sort: TripSort,
        offset: int,
        limit: int,
    ) -> Tuple[List[Trip], bool]:
        """
        Filter, sort and slice non-deleted trips.

        Fetches ``limit + 1`` rows so the caller learns whether another page
        exists without a second query.

        Returns:
            Tuple of (trips on this page, has_next_page)
        """
        query = self._apply_filters(self.db.query(Trip), criteria)
        query = self._apply_sort(query, sort)
        query = self._apply_eager_loading(query).offset(offset).limit(limit + 1)

        rows = self._execute_query(query)
        has_next = len(rows) > limit
        return rows[:limit], has_next

    def _apply_filters(self, query: Query, criteria: TripSearchFilter) -> Query:
        query = query.filter(Trip.is_deleted.is_(False))

        if criteria.city:
            query = query.filter(Trip.city == criteria.city)
        if criteria.trip_type:
            query = query.filter(Trip.trip_type == criteria.trip_type)

        # Inclusive price range, absent bounds default to [0, +inf)
        query = query.filter(Trip.price >= (criteria.min_price or Decimal("0")))
        if criteria.max_price is not None:
            query = query.filter(Trip.price <= criteria.max_price)

        if criteria.text_query:
            pattern = f"%{_escape_like(criteria.text_query.strip())}%"
            query = query.filter(
                or_(
                    Trip.title.ilike(pattern, escape="\\"),
                    Trip.description.ilike(pattern, escape="\\"),
                    Trip.city.ilike(pattern, escape="\\"),
                )
            )

        if criteria.available_only:
            has_open_slot = exists().where(
                and_(
                    TripScheduleSlot.trip_id == Trip.id,
                    TripScheduleSlot.is_available.is_(True),
                )
            )
            query = query.filter(Trip.is_available.is_(True), has_open_slot)

        return query

    @staticmethod
    def _apply_sort(query: Query, sort: TripSort) -> Query:
        # id is the tiebreaker so paging stays stable across equal keys
        if sort == TripSort.PRICE:
            return query.order_by(Trip.price.asc(), Trip.id.asc())
        if sort == TripSort.OLDEST:
            return query.order_by(Trip.created_at.asc(), Trip.id.asc())
        return query.order_by(Trip.created_at.desc(), Trip.id.desc())

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(selectinload(Trip.slots))
