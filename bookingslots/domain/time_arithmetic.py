"""
Minute-of-day arithmetic and the overlap predicate.

All times inside the engine are plain integers counting minutes since
midnight. Conversion to and from "HH:MM" strings only happens at the edges.
"""

import re
from dataclasses import dataclass

from .exceptions import InvalidTimeFormat

# SQL TIME columns come back as HH:MM:SS; the seconds are ignored.
_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")


def minutes_of_day(value: str) -> int:
    """
    Parse an "HH:MM" string into minutes since midnight.

    Raises:
        InvalidTimeFormat: If the string is malformed or out of range
    """
    match = _TIME_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise InvalidTimeFormat(f"Invalid time format: {value!r} (expected HH:MM)")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if not 0 <= hours <= 23:
        raise InvalidTimeFormat(f"Hour must be between 0 and 23, got {hours}")
    if not 0 <= minutes <= 59:
        raise InvalidTimeFormat(f"Minute must be between 0 and 59, got {minutes}")

    return hours * 60 + minutes


def time_string(minutes: int) -> str:
    """Format minutes since midnight as zero-padded "HH:MM" (never negative)."""
    minutes = max(0, minutes)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def add_minutes(minutes: int, delta: int) -> int:
    return minutes + delta


def subtract_minutes(minutes: int, delta: int) -> int:
    """Subtract ``delta`` minutes, clamping at midnight."""
    return max(0, minutes - delta)


def overlaps(start1: int, end1: int, start2: int, end2: int) -> bool:
    """
    Half-open interval overlap test.

    Touching endpoints (end1 == start2) are not a conflict.
    """
    return start1 < end2 and start2 < end1


def overlap_minutes(start1: int, end1: int, start2: int, end2: int) -> int:
    """Return the length of the intersection of two intervals, 0 if disjoint."""
    return max(0, min(end1, end2) - max(start1, start2))


@dataclass(frozen=True)
class TimeInterval:
    """
    Immutable half-open interval ``[start, end)`` in minutes of day.

    Invariant: start must be before end.
    """
    start: int
    end: int

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(
                f"Start {time_string(self.start)} must be before end {time_string(self.end)}"
            )

    @classmethod
    def parse(cls, start: str, end: str) -> "TimeInterval":
        """Build an interval from two "HH:MM" strings."""
        return cls(start=minutes_of_day(start), end=minutes_of_day(end))

    def duration_minutes(self) -> int:
        return self.end - self.start

    def overlaps(self, other: "TimeInterval") -> bool:
        """Check if this interval overlaps with another."""
        return overlaps(self.start, self.end, other.start, other.end)

    def overlap_minutes(self, other: "TimeInterval") -> int:
        return overlap_minutes(self.start, self.end, other.start, other.end)

    def padded(self, before: int, after: int) -> "TimeInterval":
        """
        Widen the interval by ``before`` and ``after`` minutes.

        The start is floored at midnight.
        """
        return TimeInterval(
            start=subtract_minutes(self.start, before),
            end=add_minutes(self.end, after),
        )

    def __str__(self) -> str:
        return f"{time_string(self.start)} - {time_string(self.end)}"
