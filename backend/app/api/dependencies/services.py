# backend/app/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.booking_service import BookingService
from ...services.conflict_checker import ConflictChecker
from ...services.guide_schedule import GuideScheduleService
from ...services.slot_service import SlotService
from ...services.trip_search_service import TripSearchService
from ...services.trip_service import TripService
from .database import get_db

logger = logging.getLogger(__name__)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """
    Get booking service instance.

    Args:
        db: Database session

    Returns:
        BookingService instance
    """
    return BookingService(db)


def get_conflict_checker(db: Session = Depends(get_db)) -> ConflictChecker:
    return ConflictChecker(db)


def get_guide_schedule_service(db: Session = Depends(get_db)) -> GuideScheduleService:
    return GuideScheduleService(db)


def get_slot_service(db: Session = Depends(get_db)) -> SlotService:
    return SlotService(db)


def get_trip_service(db: Session = Depends(get_db)) -> TripService:
    return TripService(db)


def get_trip_search_service(db: Session = Depends(get_db)) -> TripSearchService:
    return TripSearchService(db)
