# backend/app/schemas/__init__.py
"""
Pydantic schemas for the Jawla platform.

Request models forbid unknown fields; response models serialize camelCase.
"""

from .base import Money, StandardizedModel, StrictRequestModel

# Booking schemas
from .booking import (
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingStatusHistoryResponse,
    BookingStatusUpdate,
)

# Health schemas
from .health import HealthLiteResponse, HealthResponse

# Trip and schedule schemas
from .trip import (
    GuideScheduleEntry,
    GuideScheduleResponse,
    PathLocation,
    ScheduleSlotInput,
    ScheduleSlotResponse,
    SlotAvailabilityUpdate,
    StartLocation,
    TripCreate,
    TripResponse,
    TripSearchResponse,
)

__all__ = [
    # Base
    "Money",
    "StandardizedModel",
    "StrictRequestModel",
    # Booking
    "BookingCreate",
    "BookingListResponse",
    "BookingResponse",
    "BookingStatusHistoryResponse",
    "BookingStatusUpdate",
    # Health
    "HealthLiteResponse",
    "HealthResponse",
    # Trip
    "GuideScheduleEntry",
    "GuideScheduleResponse",
    "PathLocation",
    "ScheduleSlotInput",
    "ScheduleSlotResponse",
    "SlotAvailabilityUpdate",
    "StartLocation",
    "TripCreate",
    "TripResponse",
    "TripSearchResponse",
]
