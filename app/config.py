"""Environment-driven settings for the amenity booking service."""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

APP_TITLE = os.getenv("APP_TITLE", "Amenity Booking Service")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Opening hours used to compute free hourly slots (24h clock, closing exclusive)
OPENING_HOUR = int(os.getenv("OPENING_HOUR", "6"))
CLOSING_HOUR = int(os.getenv("CLOSING_HOUR", "22"))

if not 0 <= OPENING_HOUR < CLOSING_HOUR <= 24:
    raise ValueError(
        f"Invalid opening hours: OPENING_HOUR={OPENING_HOUR}, CLOSING_HOUR={CLOSING_HOUR}"
    )

SEED_DEMO_DATA = os.getenv("SEED_DEMO_DATA", "false").lower() == "true"
