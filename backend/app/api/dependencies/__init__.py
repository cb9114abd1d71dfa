# backend/app/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .auth import get_current_actor, require_role
from .database import get_db
from .services import (
    get_booking_service,
    get_conflict_checker,
    get_guide_schedule_service,
    get_slot_service,
    get_trip_search_service,
    get_trip_service,
)

__all__ = [
    # Auth
    "get_current_actor",
    "require_role",
    # Database
    "get_db",
    # Services
    "get_booking_service",
    "get_conflict_checker",
    "get_guide_schedule_service",
    "get_slot_service",
    "get_trip_search_service",
    "get_trip_service",
]
