"""Wall-clock helpers for Daily Dashboard.

Pure functions with no Home Assistant dependency so they can be tested
in isolation. The coordinator feeds them ``dt_util.now()`` (local time in
the configured Home Assistant timezone).

Part-of-day boundaries (local hour):
  [4, 12)  morning
  [12, 18) afternoon
  else     evening   (covers [18, 24) and [0, 4))
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .const import (
    BACKGROUND_IMAGES,
    GREETINGS,
    PART_AFTERNOON,
    PART_EVENING,
    PART_MORNING,
    TICK_INTERVAL_S,
)


@dataclass(frozen=True)
class ClockReading:
    """A single clock tick. Recomputed every minute, never merged."""

    time_label: str
    part_of_day: str
    greeting: str
    background_image: str


@dataclass(frozen=True)
class DateInfo:
    """Date strings from the host locale, computed once at mount."""

    localized_date: str
    weekday_name: str
    month_name: str


# ---------------------------------------------------------------------------
# Time of day
# ---------------------------------------------------------------------------


def classify_part_of_day(hour: int) -> str:
    """Map a 0-23 local hour onto morning / afternoon / evening."""
    if 4 <= hour < 12:
        return PART_MORNING
    if 12 <= hour < 18:
        return PART_AFTERNOON
    return PART_EVENING


def format_time_label(hour: int, minute: int) -> str:
    """Two-digit, colon separated HH:MM."""
    return f"{hour:02d}:{minute:02d}"


def clock_reading(now: datetime) -> ClockReading:
    """Build the reading for ``now``.

    Greeting and background image are derived from the same part of day
    so they can never disagree with each other.
    """
    part = classify_part_of_day(now.hour)
    return ClockReading(
        time_label=format_time_label(now.hour, now.minute),
        part_of_day=part,
        greeting=GREETINGS[part],
        background_image=BACKGROUND_IMAGES[part],
    )


def first_tick_delay(now: datetime) -> int:
    """Seconds until the next minute boundary.

    Only used for the first re-tick; the regular interval is a plain
    60 s after that, so long sessions can drift slightly.
    """
    return TICK_INTERVAL_S - now.second


# ---------------------------------------------------------------------------
# Date
# ---------------------------------------------------------------------------


def date_info(now: datetime) -> DateInfo:
    return DateInfo(
        localized_date=now.strftime("%x"),
        weekday_name=now.strftime("%A"),
        month_name=now.strftime("%B"),
    )


def region_label(zone: str) -> str:
    """IANA zone to a human label, most specific segment first.

    ``Europe/Bratislava`` -> ``Bratislava, Europe``
    """
    return ", ".join(reversed(zone.split("/")))
