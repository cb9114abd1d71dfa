# backend/app/repositories/__init__.py
"""
Repository Pattern Implementation for the Jawla Platform

This package provides the repository layer for data access,
separating business logic from database queries.

Key Components:
- BaseRepository: Shared reads, inserts, deletes and existence checks
- RepositoryFactory: Factory for creating repository instances
- TripRepository: Trip reads, soft delete and discovery search
- SlotRepository: Per-trip schedule slots
- GuideScheduleRepository: A guide's slots across all of their trips
- BookingRepository: Bookings and their status history
- BackgroundJobRepository: Event outbox

Usage:
    from app.repositories import RepositoryFactory

    # In a service:
    repository = RepositoryFactory.create_booking_repository(db)
    booking = repository.get_by_id(booking_id)

Repositories flush but never commit; services own transactions.
"""

from .background_job_repository import BackgroundJobRepository
from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory
from .guide_schedule_repository import GuideScheduleRepository
from .slot_repository import SlotRepository
from .trip_repository import TripRepository, TripSearchFilter

__all__ = [
    "BackgroundJobRepository",
    "BaseRepository",
    "BookingRepository",
    "GuideScheduleRepository",
    "RepositoryFactory",
    "SlotRepository",
    "TripRepository",
    "TripSearchFilter",
]
