"""
Database models for the Jawla platform.

The models are organized by functionality:
- Trips and their schedule slots
- Bookings and their status history
- Background job outbox for emitted events

Accounts, guide applications, reviews, posts and images live in other
services and are referenced here by id only.
"""

from .background_job import BackgroundJob
from .booking import ACTIVE_STATUSES, Booking, BookingStatus
from .booking_status_history import BookingStatusHistory
from .trip import Trip, TripScheduleSlot

__all__ = [
    "ACTIVE_STATUSES",
    "BackgroundJob",
    "Booking",
    "BookingStatus",
    "BookingStatusHistory",
    "Trip",
    "TripScheduleSlot",
]
