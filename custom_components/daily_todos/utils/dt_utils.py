# File: utils/dt_utils.py
"""Date and time utilities for Daily Todos.

Pure Python date/time functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

⚠️ UTILS PURITY: NO `homeassistant.*` imports allowed.
   Uses standard library: datetime, zoneinfo, dateutil.

Functions:
    - dt_now_local: Get current datetime in local timezone
    - dt_now_iso: Get current datetime as ISO string
    - dt_parse_iso: Parse an ISO string into an aware datetime
    - reset_instant_for_day: Reset instant on the same local day as a datetime
    - calculate_next_reset: Next daily reset strictly after a datetime
    - should_reset: Missed-rollover detection
    - parse_time_of_day: Parse "HH:MM" into (hour, minute)
    - format_time_of_day: Format (hour, minute) as "HH:MM"
"""

from __future__ import annotations

from datetime import datetime, time
import logging
from zoneinfo import ZoneInfo

# Third-party date utilities (no HA dependency)
from dateutil.relativedelta import relativedelta

# Module-level logger (no HA dependency)
_LOGGER = logging.getLogger(__name__)

# Default timezone - can be overridden by caller
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

HOURS_PER_DAY = 24
MINUTES_PER_HOUR = 60


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the default timezone for all dt_utils functions.

    Call this during integration setup to configure the user's timezone.
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> ZoneInfo:
    """Get the current default timezone."""
    return DEFAULT_TIME_ZONE


# ==============================================================================
# Current Date/Time Functions
# ==============================================================================


def dt_now_local(tz: ZoneInfo | None = None) -> datetime:
    """Return the current datetime in local timezone (timezone-aware)."""
    return datetime.now(tz or DEFAULT_TIME_ZONE)


def dt_now_iso(tz: ZoneInfo | None = None) -> str:
    """Return the current local datetime as an ISO 8601 string.

    Example:
        "2025-04-07T14:30:00-05:00"
    """
    return dt_now_local(tz).isoformat()


def dt_parse_iso(value: str | None, tz: ZoneInfo | None = None) -> datetime | None:
    """Parse an ISO 8601 string into a timezone-aware datetime.

    Naive values are interpreted in the default (or given) timezone.

    Returns:
        Aware datetime, or None when the value is empty or unparseable.
    """
    if not value or not isinstance(value, str):
        return None

    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        _LOGGER.warning("Unparseable ISO datetime '%s'", value)
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz or DEFAULT_TIME_ZONE)
    return parsed


# ==============================================================================
# Daily Reset Calculations
# ==============================================================================


def reset_instant_for_day(now: datetime, reset_hour: int) -> datetime:
    """Return the reset instant (reset_hour:00:00) on the local day of `now`.

    The result carries the tzinfo of `now`, so the wall clock hour is kept
    across DST transitions.
    """
    return now.replace(hour=reset_hour, minute=0, second=0, microsecond=0)


def calculate_next_reset(now: datetime, reset_hour: int) -> datetime:
    """Return the next reset instant strictly after `now`.

    Today's reset instant if it is still ahead, otherwise tomorrow's.

    Example:
        reset_hour=4, now=03:59 -> today 04:00
        reset_hour=4, now=04:01 -> tomorrow 04:00
    """
    today_reset = reset_instant_for_day(now, reset_hour)
    if now >= today_reset:
        return today_reset + relativedelta(days=1)
    return today_reset


def should_reset(
    now: datetime, last_reset: datetime | None, reset_hour: int
) -> bool:
    """Return True when a rollover was missed.

    True iff `now` is past today's reset instant AND the last reset did not
    happen on the same local calendar day as `now`. A missing last reset is
    treated as the distant past.
    """
    if now <= reset_instant_for_day(now, reset_hour):
        return False

    if last_reset is None:
        return True

    if now.tzinfo is not None:
        last_reset = last_reset.astimezone(now.tzinfo)
    return last_reset.date() != now.date()


# ==============================================================================
# Time of Day
# ==============================================================================


def parse_time_of_day(value: str | time | None) -> tuple[int, int] | None:
    """Parse a time of day into (hour, minute).

    Accepts "HH:MM", "HH:MM:SS" and `datetime.time`. Seconds are dropped:
    reminders recur on hour/minute only.

    Returns:
        (hour, minute), or None for empty input.

    Raises:
        ValueError: The value is not a valid time of day.
    """
    if value is None or value == "":
        return None

    if isinstance(value, time):
        return value.hour, value.minute

    parts = str(value).strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid time of day '{value}'")

    try:
        hour, minute = int(parts[0]), int(parts[1])
        if len(parts) == 3:
            int(parts[2])
    except ValueError as err:
        raise ValueError(f"Invalid time of day '{value}'") from err

    if not 0 <= hour < HOURS_PER_DAY or not 0 <= minute < MINUTES_PER_HOUR:
        raise ValueError(f"Invalid time of day '{value}'")

    return hour, minute


def format_time_of_day(hour: int, minute: int) -> str:
    """Format hour/minute as a zero padded "HH:MM" string."""
    return f"{hour:02d}:{minute:02d}"
