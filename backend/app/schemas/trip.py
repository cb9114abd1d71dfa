# backend/app/schemas/trip.py
"""
Trip, schedule and search schemas for the Jawla platform.

Trip drafts are deliberately permissive about content: pydantic only checks
shapes and types here, while the trip service applies the field rules and
returns every problem at once as a structured error list.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, Field, field_validator

from ..core.constants import SLOT_TIME_REGEX
from .base import Money, StandardizedModel, StrictRequestModel


class PathLocation(StrictRequestModel):
    name: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None


class StartLocation(StrictRequestModel):
    lat: Optional[float] = None
    lng: Optional[float] = None
    description: Optional[str] = None


class ScheduleSlotInput(StrictRequestModel):
    """One (date, time) instant offered by a trip."""

    slot_date: date = Field(..., alias="date")
    slot_time: str = Field(..., alias="time")

    @field_validator("slot_time")
    @classmethod
    def validate_slot_time(cls, v: str) -> str:
        if not SLOT_TIME_REGEX.fullmatch(v):
            raise ValueError("time must be HH:MM (24h)")
        return v


class TripCreate(StrictRequestModel):
    """Trip draft submitted by a guide together with its initial schedule."""

    title: str = ""
    description: str = ""
    city: str = ""
    price: Money = Field(default=Decimal("0"))
    trip_type: str = Field("", alias="type")
    path: List[PathLocation] = Field(default_factory=list)
    start_location: Optional[StartLocation] = None
    image_url: Optional[str] = None
    is_available: bool = True
    schedule: List[ScheduleSlotInput] = Field(default_factory=list)


class SlotAvailabilityUpdate(StrictRequestModel):
    is_available: bool


class ScheduleSlotResponse(StandardizedModel):
    id: str
    trip_id: str
    slot_date: date = Field(
        ..., validation_alias=AliasChoices("slot_date", "date"), serialization_alias="date"
    )
    slot_time: str = Field(
        ..., validation_alias=AliasChoices("slot_time", "time"), serialization_alias="time"
    )
    is_available: bool


class TripResponse(StandardizedModel):
    id: str
    guide_id: str
    title: str
    description: str
    city: str
    price: Money
    trip_type: str = Field(
        ..., validation_alias=AliasChoices("trip_type", "type"), serialization_alias="type"
    )
    path: List[Dict[str, Any]] = Field(default_factory=list)
    start_location: Optional[Dict[str, Any]] = None
    image_url: Optional[str] = None
    is_available: bool
    created_at: Optional[datetime] = None
    schedule: List[ScheduleSlotResponse] = Field(default_factory=list)

    @classmethod
    def from_trip(cls, trip) -> "TripResponse":
        return cls(
            id=trip.id,
            guide_id=trip.guide_id,
            title=trip.title,
            description=trip.description or "",
            city=trip.city,
            price=trip.price,
            trip_type=trip.trip_type,
            path=list(trip.path or []),
            start_location=trip.start_location,
            image_url=trip.image_url,
            is_available=trip.is_available,
            created_at=trip.created_at,
            schedule=[ScheduleSlotResponse.model_validate(slot) for slot in trip.slots],
        )


class TripSearchResponse(StandardizedModel):
    trips: List[TripResponse]
    has_next_page: bool
    page: int
    page_size: int


class GuideScheduleEntry(StandardizedModel):
    """One row of a guide's read-only availability calendar."""

    trip_id: str
    slot_id: str
    slot_date: date = Field(
        ..., validation_alias=AliasChoices("slot_date", "date"), serialization_alias="date"
    )
    slot_time: str = Field(
        ..., validation_alias=AliasChoices("slot_time", "time"), serialization_alias="time"
    )
    is_available: bool


class GuideScheduleResponse(StandardizedModel):
    guide_id: str
    slots: List[GuideScheduleEntry]
