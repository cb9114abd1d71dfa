# backend/app/models/booking.py
"""
Booking model for the Jawla platform.

A booking is a tourist's commitment to one schedule slot of one trip. It keeps
non-owning references (ids) to the tourist, trip, guide and the slot it
consumed, plus a snapshot of the slot's date and time. The slot stays the
source of truth for availability; the booking is the source of truth for who
booked and why.

Bookings are never deleted, only transitioned, so the table doubles as an
audit trail.
"""

from datetime import datetime, timezone
from enum import Enum
import logging
from typing import Any, Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"  # Default - awaiting guide confirmation
    CONFIRMED = "confirmed"
    COMPLETED = "completed"  # Terminal
    CANCELED = "canceled"  # Terminal, releases the slot


ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)

_ACTIVE_INDEX_PREDICATE = text("status <> 'canceled'")


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class Booking(Base):
    """
    Commitment linking a tourist, a trip, its guide and one (date, time).

    Design: bookings are created ``pending`` and move through the lifecycle
    only via the booking service, which also owns the slot's availability flag.
    """

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    tourist_id = Column(String(26), nullable=False, index=True)
    trip_id = Column(String(26), ForeignKey("trips.id"), nullable=False, index=True)
    guide_id = Column(String(26), nullable=False, index=True)
    # Nulled if the guide later removes a slot this booking no longer holds
    slot_id = Column(
        String(26),
        ForeignKey("trip_schedule_slots.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Snapshot of the consumed slot
    scheduled_date = Column(Date, nullable=False, index=True)
    scheduled_time = Column(String(5), nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    contact_phone = Column(String(40), nullable=False)
    contact_email = Column(String(255), nullable=False)
    note = Column(Text, nullable=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, default=_now_utc, server_default=func.now()
    )
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    canceled_at = Column(DateTime(timezone=True), nullable=True)

    canceled_by_id = Column(String(26), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    trip = relationship("Trip")
    slot = relationship("TripScheduleSlot")
    status_history = relationship(
        "BookingStatusHistory",
        back_populates="booking",
        order_by="BookingStatusHistory.occurred_at",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'canceled')",
            name="ck_bookings_status",
        ),
        # A guide holds at most one non-canceled booking per instant.
        Index(
            "uq_bookings_guide_instant_active",
            "guide_id",
            "scheduled_date",
            "scheduled_time",
            unique=True,
            postgresql_where=_ACTIVE_INDEX_PREDICATE,
            sqlite_where=_ACTIVE_INDEX_PREDICATE,
        ),
    )

    def __init__(self, **kwargs: Any) -> None:
        """Initialize as pending by default."""
        super().__init__(**kwargs)
        if not self.status:
            self.status = BookingStatus.PENDING.value
        logger.info(
            f"Creating booking for tourist {self.tourist_id} with guide {self.guide_id}"
        )

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: tourist={self.tourist_id}, guide={self.guide_id}, "
            f"trip={self.trip_id}, at={self.scheduled_date} {self.scheduled_time}, "
            f"status={self.status}>"
        )

    def confirm(self) -> None:
        """Mark booking as confirmed by the guide."""
        self.status = BookingStatus.CONFIRMED.value
        self.confirmed_at = datetime.now(timezone.utc)
        logger.info(f"Booking {self.id} confirmed")

    def cancel(self, canceled_by_id: str, reason: Optional[str] = None) -> None:
        """Cancel this booking."""
        self.status = BookingStatus.CANCELED.value
        self.canceled_at = datetime.now(timezone.utc)
        self.canceled_by_id = canceled_by_id
        self.cancellation_reason = reason
        logger.info(f"Booking {self.id} canceled by {canceled_by_id}")

    def complete(self) -> None:
        """Mark booking as completed."""
        self.status = BookingStatus.COMPLETED.value
        self.completed_at = datetime.now(timezone.utc)
        logger.info(f"Booking {self.id} marked as completed")

    def scheduled_at(self) -> datetime:
        """Naive local datetime of the booked instant."""
        hours, minutes = str(self.scheduled_time).split(":")
        return datetime.combine(self.scheduled_date, datetime.min.time()).replace(
            hour=int(hours), minute=int(minutes)
        )
