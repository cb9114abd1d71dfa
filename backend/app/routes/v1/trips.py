# backend/app/routes/v1/trips.py
"""
Trip routes - API v1

Versioned trip endpoints under /api/v1/trips.
All business logic delegated to TripService, TripSearchService and SlotService.

Endpoints:
    GET /search - Filtered, sorted, paginated trip discovery
    POST / - Create a trip with its initial schedule (guide)
    GET /{trip_id} - Trip with its schedule
    DELETE /{trip_id} - Soft-delete a trip (owner or admin)
    GET /{trip_id}/schedule - List a trip's slots
    POST /{trip_id}/schedule - Add a slot (owner or admin)
    PATCH /{trip_id}/schedule/{slot_id} - Manually block or unblock a slot
    DELETE /{trip_id}/schedule/{slot_id} - Remove a slot
"""

import asyncio
from decimal import Decimal
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ...api.dependencies import (
    get_current_actor,
    get_slot_service,
    get_trip_search_service,
    get_trip_service,
)
from ...core.enums import TripSort, TripType
from ...core.exceptions import DomainException
from ...principal import Actor
from ...repositories.trip_repository import TripSearchFilter
from ...schemas.trip import (
    ScheduleSlotInput,
    ScheduleSlotResponse,
    SlotAvailabilityUpdate,
    TripCreate,
    TripResponse,
    TripSearchResponse,
)
from ...services.slot_service import SlotService
from ...services.trip_search_service import TripSearchService
from ...services.trip_service import TripService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["trips-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


# ============================================================================
# SECTION 1: Static routes (no path parameters)
# ============================================================================


@router.get("/search", response_model=TripSearchResponse)
async def search_trips(
    city: Optional[str] = Query(None),
    trip_type: Optional[TripType] = Query(None, alias="type"),
    min_price: Optional[Decimal] = Query(None, alias="minPrice"),
    max_price: Optional[Decimal] = Query(None, alias="maxPrice"),
    q: Optional[str] = Query(None, max_length=200),
    sort: TripSort = Query(TripSort.NEWEST),
    page: int = Query(1),
    page_size: Optional[int] = Query(None, alias="pageSize"),
    available_only: bool = Query(False, alias="availableOnly"),
    search_service: TripSearchService = Depends(get_trip_search_service),
) -> TripSearchResponse:
    """Search trips. Filters combine with AND; pages are 1-based."""
    criteria = TripSearchFilter(
        city=city or None,
        trip_type=trip_type.value if trip_type else None,
        min_price=min_price,
        max_price=max_price,
        text_query=(q or "").strip() or None,
        available_only=available_only,
    )
    try:
        result = await asyncio.to_thread(
            search_service.search, criteria, sort, page=page, page_size=page_size
        )
    except DomainException as e:
        handle_domain_exception(e)

    return TripSearchResponse(
        trips=[TripResponse.from_trip(trip) for trip in result.items],
        has_next_page=result.has_next_page,
        page=result.page,
        page_size=result.page_size,
    )


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    current_actor: Actor = Depends(get_current_actor),
    trip_service: TripService = Depends(get_trip_service),
) -> TripResponse:
    """
    Create a trip with its initial schedule.

    Validation failures come back as 400 with ``details.errors``, one entry
    per offending field.
    """
    try:
        trip = await asyncio.to_thread(trip_service.create_trip, current_actor, trip_data)
        return TripResponse.from_trip(trip)
    except DomainException as e:
        handle_domain_exception(e)


# ============================================================================
# SECTION 2: Trip resource
# ============================================================================


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(
    trip_id: str,
    trip_service: TripService = Depends(get_trip_service),
) -> TripResponse:
    try:
        trip = await asyncio.to_thread(trip_service.get_trip, trip_id)
        return TripResponse.from_trip(trip)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/{trip_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_trip(
    trip_id: str,
    current_actor: Actor = Depends(get_current_actor),
    trip_service: TripService = Depends(get_trip_service),
) -> Response:
    try:
        await asyncio.to_thread(trip_service.delete_trip, current_actor, trip_id)
    except DomainException as e:
        handle_domain_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# SECTION 3: Schedule sub-resource
# ============================================================================


@router.get("/{trip_id}/schedule", response_model=List[ScheduleSlotResponse])
async def list_trip_schedule(
    trip_id: str,
    available_only: bool = Query(False, alias="availableOnly"),
    slot_service: SlotService = Depends(get_slot_service),
) -> List[ScheduleSlotResponse]:
    try:
        slots = await asyncio.to_thread(
            slot_service.list_slots, trip_id, available_only=available_only
        )
        return [ScheduleSlotResponse.model_validate(slot) for slot in slots]
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{trip_id}/schedule",
    response_model=ScheduleSlotResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_trip_slot(
    trip_id: str,
    slot_data: ScheduleSlotInput,
    current_actor: Actor = Depends(get_current_actor),
    slot_service: SlotService = Depends(get_slot_service),
) -> ScheduleSlotResponse:
    """Add one instant to a trip. 409 DUPLICATE_SLOT if the trip already has it."""
    try:
        slot = await asyncio.to_thread(
            slot_service.add_slot,
            current_actor,
            trip_id,
            slot_data.slot_date,
            slot_data.slot_time,
        )
        return ScheduleSlotResponse.model_validate(slot)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{trip_id}/schedule/{slot_id}", response_model=ScheduleSlotResponse)
async def update_trip_slot(
    trip_id: str,
    slot_id: str,
    update: SlotAvailabilityUpdate,
    current_actor: Actor = Depends(get_current_actor),
    slot_service: SlotService = Depends(get_slot_service),
) -> ScheduleSlotResponse:
    """Manual block (isAvailable=false) or unblock of a slot."""
    try:
        slot = await asyncio.to_thread(
            slot_service.set_availability,
            current_actor,
            trip_id,
            slot_id,
            update.is_available,
        )
        return ScheduleSlotResponse.model_validate(slot)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/{trip_id}/schedule/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_trip_slot(
    trip_id: str,
    slot_id: str,
    current_actor: Actor = Depends(get_current_actor),
    slot_service: SlotService = Depends(get_slot_service),
) -> Response:
    try:
        await asyncio.to_thread(slot_service.remove_slot, current_actor, trip_id, slot_id)
    except DomainException as e:
        handle_domain_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
