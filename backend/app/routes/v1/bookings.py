# backend/app/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService.

Endpoints:
    GET / - Bookings visible to the caller, optional status filter
    POST / - Book a trip slot (tourist)
    GET /{booking_id} - Booking details (parties only)
    PATCH /{booking_id} - Request a status transition
    GET /{booking_id}/history - Status history trail
"""

import asyncio
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...api.dependencies import get_booking_service, get_current_actor
from ...core.exceptions import DomainException
from ...models.booking import BookingStatus
from ...principal import Actor
from ...schemas.booking import (
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingStatusHistoryResponse,
    BookingStatusUpdate,
)
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


# ============================================================================
# SECTION 1: Static routes (no path parameters)
# ============================================================================


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    current_actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    """Tourists see their bookings, guides the bookings on their trips, admins all."""
    try:
        bookings = await asyncio.to_thread(
            booking_service.get_bookings_for_actor, current_actor, status_filter
        )
    except DomainException as e:
        handle_domain_exception(e)

    items = [BookingResponse.from_booking(booking) for booking in bookings]
    return BookingListResponse(items=items, total=len(items))


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    current_actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Book one (date, time) slot of a trip.

    409 SLOT_TAKEN when the guide is already committed at that instant; the
    client should re-fetch availability. 404 SLOT_NOT_FOUND when the trip
    does not offer that time.
    """
    try:
        booking = await asyncio.to_thread(
            booking_service.create_booking, current_actor, booking_data
        )
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


# ============================================================================
# SECTION 2: Booking resource
# ============================================================================


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    current_actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.get_booking_for_actor, booking_id, current_actor
        )
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{booking_id}", response_model=BookingResponse)
async def update_booking_status(
    booking_id: str,
    update: BookingStatusUpdate,
    current_actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Move a booking through its lifecycle.

    409 ILLEGAL_TRANSITION for changes the state machine forbids, 403
    NOT_AUTHORIZED when the caller may not make the change.
    """
    try:
        booking = await asyncio.to_thread(
            booking_service.transition,
            booking_id,
            BookingStatus(update.status),
            current_actor,
            update.reason,
        )
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{booking_id}/history", response_model=List[BookingStatusHistoryResponse])
async def get_booking_history(
    booking_id: str,
    current_actor: Actor = Depends(get_current_actor),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[BookingStatusHistoryResponse]:
    try:
        history = await asyncio.to_thread(booking_service.get_history, booking_id, current_actor)
        return [BookingStatusHistoryResponse.model_validate(entry) for entry in history]
    except DomainException as e:
        handle_domain_exception(e)
