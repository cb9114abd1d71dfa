# backend/app/services/trip_search_service.py
"""
Trip Search Service for the Jawla Platform

Read-side discovery over trips: filter by city, type, price range and free
text, sort by price or creation time, and page through the results.

Pages are 1-based. ``has_next_page`` comes from fetching one row past the
page, so walking pages until it turns false visits every match once.
"""

from dataclasses import dataclass
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import TripSort
from ..core.exceptions import ValidationException
from ..models.trip import Trip
from ..repositories.factory import RepositoryFactory
from ..repositories.trip_repository import TripRepository, TripSearchFilter
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TripSearchResult:
    items: List[Trip]
    has_next_page: bool
    page: int
    page_size: int


class TripSearchService(BaseService):
    """Service for trip discovery queries."""

    def __init__(self, db: Session, trip_repository: Optional[TripRepository] = None):
        super().__init__(db)
        self.trip_repository = trip_repository or RepositoryFactory.create_trip_repository(db)

    @BaseService.measure_operation("search_trips")
    def search(
        self,
        criteria: TripSearchFilter,
        sort: TripSort = TripSort.NEWEST,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> TripSearchResult:
        """
        Search non-deleted trips.

        Args:
            criteria: Filters, combined with AND
            sort: price (ascending), newest or oldest
            page: 1-based page number
            page_size: Items per page, capped at the configured maximum

        Raises:
            ValidationException: Bad page, page size or price range
        """
        if page < 1:
            raise ValidationException("page must be 1 or greater", code="INVALID_PAGE")
        size = page_size if page_size is not None else settings.search_default_page_size
        if size < 1:
            raise ValidationException("pageSize must be 1 or greater", code="INVALID_PAGE_SIZE")
        size = min(size, settings.search_max_page_size)

        if criteria.min_price is not None and criteria.min_price < 0:
            raise ValidationException("minPrice cannot be negative", code="INVALID_PRICE_RANGE")
        if (
            criteria.min_price is not None
            and criteria.max_price is not None
            and criteria.min_price > criteria.max_price
        ):
            raise ValidationException(
                "minPrice cannot exceed maxPrice",
                code="INVALID_PRICE_RANGE",
                details={"min_price": str(criteria.min_price), "max_price": str(criteria.max_price)},
            )

        items, has_next = self.trip_repository.search(
            criteria, TripSort(sort), offset=(page - 1) * size, limit=size
        )
        logger.debug(
            "Trip search returned %d items (page=%d, size=%d, more=%s)",
            len(items),
            page,
            size,
            has_next,
        )
        return TripSearchResult(items=items, has_next_page=has_next, page=page, page_size=size)
