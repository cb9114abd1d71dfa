"""Booking domain events."""
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class BookingStatusChanged:
    """
    Fired after every accepted booking transition, including creation.

    Delivery (email, push) belongs to the notification collaborator; this
    service only writes the event to the outbox.
    """

    booking_id: str
    new_status: str
    previous_status: Optional[str]
    trip_id: str
    guide_id: str
    tourist_id: str
    actor_id: Optional[str]
    occurred_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
