"""Event publisher - queues events for background processing."""
from datetime import date, datetime
from typing import Any, Dict, Protocol

from app.repositories.background_job_repository import BackgroundJobRepository


class Event(Protocol):
    """Protocol for event types."""

    def to_dict(self) -> Dict[str, Any]:
        ...


class EventPublisher:
    """Publishes domain events to the job queue for async processing."""

    def __init__(self, job_repository: BackgroundJobRepository):
        self.job_repo = job_repository

    def publish(self, event: Event) -> str:
        """
        Queue an event for background processing.

        The outbox row is written in the caller's transaction, so the event
        exists iff the state change that produced it was committed.

        Returns:
            The outbox job id
        """
        event_type = type(event).__name__
        payload = event.to_dict()

        # Convert date/datetime objects to ISO strings for JSON serialization
        for key, value in payload.items():
            if isinstance(value, (datetime, date)):
                payload[key] = value.isoformat()

        return self.job_repo.enqueue(type=f"event:{event_type}", payload=payload)
