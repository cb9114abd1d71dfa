"""Domain events emitted by the booking engine."""

from app.events.booking_events import BookingStatusChanged
from app.events.publisher import EventPublisher

__all__ = [
    "BookingStatusChanged",
    "EventPublisher",
]
