# backend/app/models/trip.py
"""
Trip and schedule slot models for the Jawla platform.

A Trip is a bookable product owned by exactly one guide. Its schedule is a set
of point-in-time slots (calendar date plus a local "HH:MM" wall-clock string).
Slots belong to exactly one trip and cannot be moved to another one; through
the trip they belong to exactly one guide.

Classes:
    Trip: The guide's listing (metadata plus path and start location)
    TripScheduleSlot: One bookable (date, time) instant of a trip
"""

from datetime import datetime, timezone
import logging

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import TripType
from ..database import Base

logger = logging.getLogger(__name__)

_TRIP_TYPE_VALUES = ", ".join(f"'{t.value}'" for t in TripType)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class Trip(Base):
    """
    A guide's bookable trip.

    Catalog metadata (title, description, images, path) is maintained by the
    catalog collaborator; this service only needs it for search and display.
    """

    __tablename__ = "trips"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    guide_id = Column(String(26), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    city = Column(String(100), nullable=False, index=True)
    price = Column(Numeric(10, 2), nullable=False)
    trip_type = Column(String(20), nullable=False, index=True)

    # Ordered list of {"name": str, "lat": float | None, "lng": float | None}
    path = Column(JSON, nullable=False, default=list)
    # {"lat": float, "lng": float, "description": str | None}
    start_location = Column(JSON, nullable=True)
    image_url = Column(String(500), nullable=True)

    is_available = Column(Boolean, nullable=False, default=True)
    is_deleted = Column(Boolean, nullable=False, default=False, index=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, default=_now_utc, server_default=func.now()
    )
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    slots = relationship(
        "TripScheduleSlot",
        back_populates="trip",
        cascade="all, delete-orphan",
        order_by=lambda: (TripScheduleSlot.slot_date, TripScheduleSlot.slot_time),
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_trips_price_non_negative"),
        CheckConstraint(f"trip_type IN ({_TRIP_TYPE_VALUES})", name="ck_trips_trip_type"),
        Index("ix_trips_created_at_id", "created_at", "id"),
    )

    @property
    def is_bookable(self) -> bool:
        """Whether tourists may book this trip at all."""
        return bool(self.is_available) and not bool(self.is_deleted)

    def __repr__(self) -> str:
        return f"<Trip {self.id}: {self.title!r} guide={self.guide_id} city={self.city}>"


class TripScheduleSlot(Base):
    """
    The atomic bookable unit: one (date, time) instant of one trip.

    ``is_available`` is False either because a booking holds the slot or
    because the guide blocked it manually; bookings are the source of truth
    for which of the two applies.
    """

    __tablename__ = "trip_schedule_slots"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    trip_id = Column(String(26), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False)
    slot_date = Column(Date, nullable=False)
    slot_time = Column(String(5), nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, default=_now_utc, server_default=func.now()
    )
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    trip = relationship("Trip", back_populates="slots")

    __table_args__ = (
        UniqueConstraint("trip_id", "slot_date", "slot_time", name="uq_trip_slot_instant"),
        Index("ix_trip_schedule_slots_date_time", "slot_date", "slot_time"),
    )

    def __repr__(self) -> str:
        return (
            f"<TripScheduleSlot {self.id}: trip={self.trip_id} "
            f"{self.slot_date} {self.slot_time} available={self.is_available}>"
        )
