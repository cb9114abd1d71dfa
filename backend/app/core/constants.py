"""Application-wide constants for the Jawla tour-guide platform."""

from __future__ import annotations

import re

BRAND_NAME = "Jawla"

# API metadata
API_TITLE = f"{BRAND_NAME} Booking API"
API_DESCRIPTION = (
    "Trip availability and booking engine: guide schedules, booking lifecycle, "
    "and trip discovery."
)
API_VERSION = "1.0.0"

# Slot times are local wall-clock strings, 24h "HH:MM"
SLOT_TIME_REGEX = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

# Contact validation
CONTACT_PHONE_REGEX = re.compile(r"^\+?[\d\s\-()]{8,}$")
CONTACT_EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Text constraints
MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 5000
MAX_CITY_LENGTH = 100
MAX_NOTE_LENGTH = 1000
MAX_REASON_LENGTH = 255
