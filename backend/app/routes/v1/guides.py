# backend/app/routes/v1/guides.py
"""
Guide routes - API v1

Read-only guide views under /api/v1/guides.

Endpoints:
    GET /{guide_id}/schedule - Availability calendar across all of the guide's trips
    GET /{guide_id}/trips - The guide's published trips
"""

import asyncio
from datetime import date
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...api.dependencies import get_guide_schedule_service, get_trip_service
from ...core.exceptions import DomainException
from ...schemas.trip import GuideScheduleEntry, GuideScheduleResponse, TripResponse
from ...services.guide_schedule import GuideScheduleService
from ...services.trip_service import TripService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["guides-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get("/{guide_id}/schedule", response_model=GuideScheduleResponse)
async def get_guide_schedule(
    guide_id: str,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    schedule_service: GuideScheduleService = Depends(get_guide_schedule_service),
) -> GuideScheduleResponse:
    """Every slot the guide offers, sorted by date then time."""
    try:
        slots = await asyncio.to_thread(
            schedule_service.slots_for_guide, guide_id, start_date, end_date
        )
    except DomainException as e:
        handle_domain_exception(e)

    return GuideScheduleResponse(
        guide_id=guide_id,
        slots=[GuideScheduleEntry.model_validate(slot) for slot in slots],
    )


@router.get("/{guide_id}/trips", response_model=List[TripResponse])
async def list_guide_trips(
    guide_id: str,
    trip_service: TripService = Depends(get_trip_service),
) -> List[TripResponse]:
    try:
        trips = await asyncio.to_thread(trip_service.list_guide_trips, guide_id)
        return [TripResponse.from_trip(trip) for trip in trips]
    except DomainException as e:
        handle_domain_exception(e)
