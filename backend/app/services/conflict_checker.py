# backend/app/services/conflict_checker.py
"""
Conflict Checker Service for the Jawla Platform

Decides whether a guide is already committed at an instant.

Slots are instants, not intervals: two slots conflict only on exact
(date, time) equality, across every trip the guide owns. A matching slot
with ``is_available = False`` is a commitment; it is classified as an active
booking when a non-canceled booking holds it, otherwise as a manual block by
the guide. No matching slot, or only available ones, means the guide is free.
"""

from dataclasses import dataclass
from datetime import date
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.enums import ConflictReason
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .guide_schedule import GuideScheduleService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConflictResult:
    """Outcome of a conflict check: free, or a conflict with its cause."""

    is_free: bool
    reason: Optional[ConflictReason] = None
    conflicting_trip_id: Optional[str] = None
    conflicting_slot_id: Optional[str] = None

    @classmethod
    def free(cls) -> "ConflictResult":
        return cls(is_free=True)

    @classmethod
    def conflict(
        cls, reason: ConflictReason, trip_id: str, slot_id: Optional[str] = None
    ) -> "ConflictResult":
        return cls(
            is_free=False,
            reason=reason,
            conflicting_trip_id=trip_id,
            conflicting_slot_id=slot_id,
        )

    def to_details(self) -> Dict[str, Any]:
        """Error-response details for a conflict."""
        return {
            "reason": self.reason.value if self.reason else None,
            "conflicting_trip_id": self.conflicting_trip_id,
        }


class ConflictChecker(BaseService):
    """
    Service for checking a guide's commitments at an instant.

    Always reads live slot state; callers that go on to write must hold the
    slot lock and pass ``for_update=True``.
    """

    def __init__(
        self,
        db: Session,
        schedule: Optional[GuideScheduleService] = None,
        booking_repository: Optional[BookingRepository] = None,
    ):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.schedule = schedule or GuideScheduleService(db)
        self.booking_repository = (
            booking_repository or RepositoryFactory.create_booking_repository(db)
        )

    @BaseService.measure_operation("check_conflict")
    def check_conflict(
        self,
        guide_id: str,
        slot_date: date,
        slot_time: str,
        *,
        for_update: bool = False,
    ) -> ConflictResult:
        """
        Check whether the guide is already committed at (date, time).

        Args:
            guide_id: The guide to check
            slot_date: Calendar date
            slot_time: "HH:MM" time
            for_update: Lock matching slot rows (use inside the slot lock)

        Returns:
            ConflictResult.free() or a conflict naming the reason and trip
        """
        matching = self.schedule.slots_at(guide_id, slot_date, slot_time, for_update=for_update)
        blocked = [slot for slot in matching if not slot.is_available]
        if not blocked:
            return ConflictResult.free()

        held = self.booking_repository.get_held_slot_ids([slot.id for slot in blocked])
        for slot in blocked:
            if slot.id in held:
                result = ConflictResult.conflict(ConflictReason.ACTIVE_BOOKING, slot.trip_id, slot.id)
                break
        else:
            first = blocked[0]
            result = ConflictResult.conflict(ConflictReason.MANUAL_BLOCK, first.trip_id, first.id)

        self.logger.info(
            "Guide %s already committed at %s %s (%s, trip %s)",
            guide_id,
            slot_date,
            slot_time,
            result.reason.value if result.reason else None,
            result.conflicting_trip_id,
        )
        return result
