# backend/app/services/trip_service.py
"""
Trip Service for the Jawla Platform

Trip authoring (a trip together with its initial schedule), reads, guide
listings and soft delete.

Drafts are validated field by field and every problem is reported at once
as a list of ``{"field", "message"}`` entries, so a multi-step form can
highlight all of them in one round trip.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.constants import MAX_CITY_LENGTH, MAX_DESCRIPTION_LENGTH, MAX_TITLE_LENGTH
from ..core.enums import TripType
from ..core.exceptions import (
    BusinessRuleException,
    NotAuthorizedException,
    NotFoundException,
    ValidationException,
)
from ..models.trip import Trip
from ..principal import Actor
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.trip_repository import TripRepository
from ..schemas.trip import TripCreate
from .base import BaseService
from .slot_service import SlotService, can_manage_trip

logger = logging.getLogger(__name__)

FieldError = Dict[str, str]


def validate_trip_draft(draft: TripCreate) -> List[FieldError]:
    """
    Check a trip draft against the authoring rules.

    Returns:
        List of field errors; empty when the draft is valid
    """
    errors: List[FieldError] = []

    def add(field: str, message: str) -> None:
        errors.append({"field": field, "message": message})

    if not draft.title:
        add("title", "Title is required")
    elif len(draft.title) > MAX_TITLE_LENGTH:
        add("title", f"Title must be at most {MAX_TITLE_LENGTH} characters")

    if not draft.description:
        add("description", "Description is required")
    elif len(draft.description) > MAX_DESCRIPTION_LENGTH:
        add("description", f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters")

    if not draft.city:
        add("city", "City is required")
    elif len(draft.city) > MAX_CITY_LENGTH:
        add("city", f"City must be at most {MAX_CITY_LENGTH} characters")

    if draft.price is None or draft.price < 0:
        add("price", "Price must be zero or more")

    if draft.trip_type not in {t.value for t in TripType}:
        add("type", f"Type must be one of: {', '.join(t.value for t in TripType)}")

    if not draft.schedule:
        add("schedule", "Add at least one date and time")

    if not draft.path:
        add("path", "Add at least one location to the trip path")
    for index, location in enumerate(draft.path):
        if not location.name:
            add(f"path[{index}].name", "Location name is required")

    start = draft.start_location
    if start is None or start.lat is None or start.lng is None:
        add("start_location", "Pick a start location on the map")
    else:
        if not -90 <= start.lat <= 90:
            add("start_location.lat", "Latitude must be between -90 and 90")
        if not -180 <= start.lng <= 180:
            add("start_location.lng", "Longitude must be between -180 and 180")

    return errors


class TripService(BaseService):
    """Service for trip authoring and reads."""

    def __init__(
        self,
        db: Session,
        trip_repository: Optional[TripRepository] = None,
        booking_repository: Optional[BookingRepository] = None,
        slot_service: Optional[SlotService] = None,
    ):
        super().__init__(db)
        self.trip_repository = trip_repository or RepositoryFactory.create_trip_repository(db)
        self.booking_repository = (
            booking_repository or RepositoryFactory.create_booking_repository(db)
        )
        self.slot_service = slot_service or SlotService(db)

    @BaseService.measure_operation("create_trip")
    def create_trip(self, actor: Actor, trip_data: TripCreate) -> Trip:
        """
        Create a trip owned by the acting guide, with its initial schedule.

        Raises:
            NotAuthorizedException: Actor is not a guide
            ValidationException: Draft breaks authoring rules (details.errors lists them)
            DuplicateSlotException: Schedule repeats an instant
        """
        if not actor.is_guide:
            raise NotAuthorizedException("Only guides can create trips")

        errors = validate_trip_draft(trip_data)
        if errors:
            raise ValidationException(
                "Trip details are incomplete or invalid",
                code="TRIP_VALIDATION_FAILED",
                details={"errors": errors},
            )

        self.log_operation("create_trip", guide_id=actor.id, city=trip_data.city)
        with self.transaction():
            trip = self.trip_repository.create(
                guide_id=actor.id,
                title=trip_data.title,
                description=trip_data.description,
                city=trip_data.city,
                price=trip_data.price,
                trip_type=trip_data.trip_type,
                path=[location.model_dump() for location in trip_data.path],
                start_location=(
                    trip_data.start_location.model_dump() if trip_data.start_location else None
                ),
                image_url=trip_data.image_url,
                is_available=trip_data.is_available,
            )
            self.slot_service.stage_slots(
                trip.id, [(slot.slot_date, slot.slot_time) for slot in trip_data.schedule]
            )

        self.db.refresh(trip)
        self.logger.info(f"Created trip {trip.id} with {len(trip.slots)} slots for guide {actor.id}")
        return trip

    @BaseService.measure_operation("get_trip")
    def get_trip(self, trip_id: str) -> Trip:
        trip = self.trip_repository.get_active(trip_id)
        if trip is None:
            raise NotFoundException("Trip not found", code="TRIP_NOT_FOUND")
        return trip

    @BaseService.measure_operation("list_guide_trips")
    def list_guide_trips(self, guide_id: str) -> List[Trip]:
        return self.trip_repository.list_for_guide(guide_id)

    @BaseService.measure_operation("delete_trip")
    def delete_trip(self, actor: Actor, trip_id: str) -> None:
        """
        Soft-delete a trip.

        Manual blocks on its slots are cleared so they stop occupying the guide;
        slots held by a booking keep counting toward conflicts.

        Raises:
            BusinessRuleException: The trip still has pending or confirmed bookings
        """
        trip = self.get_trip(trip_id)
        if not can_manage_trip(actor, trip):
            self.logger.warning(
                "Trip delete refused",
                extra={"trip_id": trip_id, "actor_id": actor.id, "role": actor.role.value},
            )
            raise NotAuthorizedException()

        with self.transaction():
            active = self.booking_repository.count_active_for_trip(trip.id)
            if active:
                raise BusinessRuleException(
                    "Cannot delete a trip with pending or confirmed bookings",
                    code="TRIP_HAS_ACTIVE_BOOKINGS",
                    details={"active_bookings": active},
                )
            released = self.slot_service.release_unheld_slots(trip)
            self.trip_repository.soft_delete(trip)

        self.log_operation(
            "delete_trip", trip_id=trip_id, actor_id=actor.id, released_slots=len(released)
        )
