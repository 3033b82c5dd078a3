"""
Wall-clock arithmetic for itinerary times.

All times are "HH:MM" 24-hour strings with no date component.
Adding minutes wraps silently at midnight; no day counter is kept.
"""

import re

from engine.errors import InvalidTimeError

MINUTES_PER_DAY = 24 * 60

LUNCH_WINDOW_START = "12:00"
LUNCH_WINDOW_END = "13:30"

# Database rows come back as HH:MM:SS, the builder UI sends HH:MM
_TIME_RE = re.compile(r"^(\d{2}):(\d{2})(?::(\d{2}))?$")


def parse_time(text: str) -> int:
    """Convert "HH:MM" (or "HH:MM:SS") to minutes since midnight."""
    match = _TIME_RE.match(text or "")
    if not match:
        raise InvalidTimeError(f"Invalid time '{text}', expected HH:MM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidTimeError(f"Invalid time '{text}', out of range")
    return hours * 60 + minutes


def format_time(total_minutes: int) -> str:
    total_minutes %= MINUTES_PER_DAY
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def normalize_time(text: str) -> str:
    """Drop seconds and validate: "09:05:00" -> "09:05"."""
    return format_time(parse_time(text))


def add_minutes(time: str, minutes: int) -> str:
    """Add a minute offset, wrapping at 24h. add_minutes("23:30", 90) == "01:00"."""
    return format_time(parse_time(time) + minutes)


def minutes_between(start: str, end: str) -> int:
    """Minutes from start to end, clamped at zero (no day-aware subtraction)."""
    return max(0, parse_time(end) - parse_time(start))


def is_lunch_window(arrival_time: str) -> bool:
    """True if arrival falls within [12:00, 13:30] inclusive."""
    arrival = parse_time(arrival_time)
    return parse_time(LUNCH_WINDOW_START) <= arrival <= parse_time(LUNCH_WINDOW_END)
