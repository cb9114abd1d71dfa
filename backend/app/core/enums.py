# backend/app/core/enums.py
"""
Core enums for the Jawla platform.

This module contains enumeration types used throughout the application
for type safety and consistency.
"""

from enum import Enum


class RoleName(str, Enum):
    """
    Roles an authenticated actor can hold.

    Roles are asserted by the identity service in the access token; this
    service never stores accounts.
    """

    ADMIN = "admin"
    GUIDE = "guide"
    TOURIST = "tourist"


class TripType(str, Enum):
    """Trip categories shown in discovery filters."""

    ADVENTURE = "Adventure"
    CULTURAL = "Cultural"
    FOOD = "Food"
    HISTORICAL = "Historical"
    NATURE = "Nature"
    RELAXATION = "Relaxation"
    GROUP = "Group"


class TripSort(str, Enum):
    """Sort orders supported by trip search."""

    PRICE = "price"
    NEWEST = "newest"
    OLDEST = "oldest"


class ConflictReason(str, Enum):
    """Why a guide is already committed at an instant."""

    MANUAL_BLOCK = "manual_block"
    ACTIVE_BOOKING = "active_booking"
