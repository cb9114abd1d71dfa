# backend/app/models/booking_status_history.py
"""
Append-only trail of booking status transitions.

One row per accepted transition (including creation), recording who moved the
booking, from which status, and when.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from app.database import Base


def _now_utc() -> datetime:
    """Return timezone-aware UTC timestamp for defaults."""
    return datetime.now(timezone.utc)


class BookingStatusHistory(Base):
    """Persistence model for booking transition entries."""

    __tablename__ = "booking_status_history"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(
        String(26), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    from_status = Column(String(20), nullable=True)
    to_status = Column(String(20), nullable=False)
    actor_id = Column(String(26), nullable=True)
    actor_role = Column(String(30), nullable=True)
    reason = Column(Text, nullable=True)
    occurred_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_now_utc,
        server_default=func.now(),
    )

    booking = relationship("Booking", back_populates="status_history")

    @classmethod
    def from_transition(
        cls,
        booking_id: str,
        from_status: Optional[str],
        to_status: str,
        actor: Any | None,
        reason: Optional[str] = None,
    ) -> "BookingStatusHistory":
        """Build a row from a transition, pulling id/role off the actor if present."""
        return cls(
            booking_id=booking_id,
            from_status=from_status,
            to_status=to_status,
            actor_id=getattr(actor, "id", None),
            actor_role=_role_value(actor),
            reason=reason,
            occurred_at=_now_utc(),
        )

    def __repr__(self) -> str:
        return f"<BookingStatusHistory {self.booking_id}: {self.from_status}->{self.to_status}>"


def _role_value(actor: Any | None) -> Optional[str]:
    role = getattr(actor, "role", None)
    if role is None:
        return None
    return str(getattr(role, "value", role))
