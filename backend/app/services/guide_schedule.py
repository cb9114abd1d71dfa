# backend/app/services/guide_schedule.py
"""
Guide Schedule Index for the Jawla Platform

A guide's schedule is the union of the slots of every trip the guide owns.
It is a derived view over the slot table, served by a live query rather
than a cache, so it is always consistent with the booking engine's writes.
"""

from dataclasses import dataclass
from datetime import date
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import ValidationException
from ..models.trip import TripScheduleSlot
from ..repositories.factory import RepositoryFactory
from ..repositories.guide_schedule_repository import GuideScheduleRepository
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GuideSlot:
    """One entry in a guide's cross-trip schedule."""

    trip_id: str
    slot_id: str
    slot_date: date
    slot_time: str
    is_available: bool

    @classmethod
    def from_slot(cls, slot: TripScheduleSlot) -> "GuideSlot":
        return cls(
            trip_id=slot.trip_id,
            slot_id=slot.id,
            slot_date=slot.slot_date,
            slot_time=slot.slot_time,
            is_available=bool(slot.is_available),
        )


class GuideScheduleService(BaseService):
    """Read-only access to a guide's schedule across all of their trips."""

    def __init__(self, db: Session, repository: Optional[GuideScheduleRepository] = None):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_guide_schedule_repository(db)

    @BaseService.measure_operation("slots_for_guide")
    def slots_for_guide(
        self,
        guide_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[GuideSlot]:
        """
        Every slot of every trip owned by the guide, sorted by date then time.

        Args:
            guide_id: The guide
            start_date: Optional inclusive lower bound
            end_date: Optional inclusive upper bound

        Raises:
            ValidationException: If start_date is after end_date
        """
        if start_date and end_date and start_date > end_date:
            raise ValidationException(
                "start_date must be on or before end_date",
                details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )
        slots = self.repository.slots_for_guide(guide_id, start_date, end_date)
        return [GuideSlot.from_slot(slot) for slot in slots]

    def slots_at(
        self,
        guide_id: str,
        slot_date: date,
        slot_time: str,
        *,
        for_update: bool = False,
    ) -> List[TripScheduleSlot]:
        """The guide's slots at exactly (date, time), across all trips."""
        return self.repository.slots_for_guide_at(
            guide_id, slot_date, slot_time, for_update=for_update
        )
