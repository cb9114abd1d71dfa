# backend/app/repositories/factory.py
"""
Repository Factory for the Jawla Platform

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .background_job_repository import BackgroundJobRepository
    from .booking_repository import BookingRepository
    from .guide_schedule_repository import GuideScheduleRepository
    from .slot_repository import SlotRepository
    from .trip_repository import TripRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_trip_repository(db: Session) -> "TripRepository":
        """Create repository for trip reads, soft delete and search."""
        from .trip_repository import TripRepository

        return TripRepository(db)

    @staticmethod
    def create_slot_repository(db: Session) -> "SlotRepository":
        """Create repository for schedule slot operations."""
        from .slot_repository import SlotRepository

        return SlotRepository(db)

    @staticmethod
    def create_guide_schedule_repository(db: Session) -> "GuideScheduleRepository":
        """Create repository for cross-trip guide schedule queries."""
        from .guide_schedule_repository import GuideScheduleRepository

        return GuideScheduleRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        """Create repository for booking operations."""
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_background_job_repository(db: Session) -> "BackgroundJobRepository":
        """Create repository for the event outbox."""
        from .background_job_repository import BackgroundJobRepository

        return BackgroundJobRepository(db)
