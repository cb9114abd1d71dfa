# backend/app/schemas/booking.py
"""
Booking schemas for the Jawla platform.

A booking request names a trip and one of its schedule instants; the guide
is implied by the trip. Status changes go through a single PATCH carrying the
requested status, mirroring the lifecycle state machine.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator

from ..core.constants import (
    CONTACT_EMAIL_REGEX,
    CONTACT_PHONE_REGEX,
    MAX_NOTE_LENGTH,
    MAX_REASON_LENGTH,
    SLOT_TIME_REGEX,
)
from ..models.booking import BookingStatus
from .base import StandardizedModel, StrictRequestModel


class BookingCreate(StrictRequestModel):
    """Request to book one (date, time) slot of a trip."""

    trip_id: str = Field(..., min_length=1, description="Trip to book")
    slot_date: date = Field(..., alias="date", description="Calendar date of the slot")
    slot_time: str = Field(..., alias="time", description='Local time of the slot, "HH:MM"')
    contact_phone: str = Field(..., description="Phone the guide can reach the tourist on")
    contact_email: str = Field(..., description="Email for booking updates")
    note: Optional[str] = Field(None, max_length=MAX_NOTE_LENGTH)

    @field_validator("slot_time")
    @classmethod
    def validate_slot_time(cls, v: str) -> str:
        if not SLOT_TIME_REGEX.fullmatch(v):
            raise ValueError("time must be HH:MM (24h)")
        return v

    @field_validator("contact_phone")
    @classmethod
    def validate_contact_phone(cls, v: str) -> str:
        if not CONTACT_PHONE_REGEX.fullmatch(v):
            raise ValueError("Please enter a valid phone number")
        return v

    @field_validator("contact_email")
    @classmethod
    def validate_contact_email(cls, v: str) -> str:
        if not CONTACT_EMAIL_REGEX.fullmatch(v):
            raise ValueError("Please enter a valid email address")
        return v

    @field_validator("note")
    @classmethod
    def clean_note(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class BookingStatusUpdate(StrictRequestModel):
    """Requested lifecycle transition."""

    status: BookingStatus
    reason: Optional[str] = Field(None, max_length=MAX_REASON_LENGTH)


class BookingResponse(StandardizedModel):
    """Booking as returned to its tourist, guide or an admin."""

    id: str
    tourist_id: str
    trip_id: str
    guide_id: str
    slot_id: Optional[str] = None
    scheduled_date: date = Field(
        ..., validation_alias=AliasChoices("scheduled_date", "date"), serialization_alias="date"
    )
    scheduled_time: str = Field(
        ..., validation_alias=AliasChoices("scheduled_time", "time"), serialization_alias="time"
    )
    status: BookingStatus
    contact_phone: str
    contact_email: str
    note: Optional[str] = None
    trip_title: Optional[str] = None
    created_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None
    canceled_by_id: Optional[str] = None
    cancellation_reason: Optional[str] = None

    @classmethod
    def from_booking(cls, booking) -> "BookingResponse":
        response = cls.model_validate(booking)
        trip = getattr(booking, "trip", None)
        if trip is not None:
            response.trip_title = trip.title
        return response


class BookingListResponse(StandardizedModel):
    items: List[BookingResponse]
    total: int


class BookingStatusHistoryResponse(StandardizedModel):
    id: str
    booking_id: str
    from_status: Optional[BookingStatus] = None
    to_status: BookingStatus
    actor_id: Optional[str] = None
    actor_role: Optional[str] = None
    reason: Optional[str] = None
    occurred_at: datetime
