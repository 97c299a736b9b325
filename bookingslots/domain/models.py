"""
Domain models for businesses, their schedules and computed slots.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, FrozenSet, List

from .time_arithmetic import TimeInterval, time_string


class BusinessType(str, Enum):
    """Allocation model of a business."""
    CAPACITY = "capacity"  # shared resource, e.g. a dining room
    STAFF = "staff"        # personal calendars per staff member


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    @property
    def occupies_time(self) -> bool:
        """Only pending and confirmed bookings block a slot."""
        return self in (BookingStatus.PENDING, BookingStatus.CONFIRMED)


@dataclass(frozen=True)
class Scope:
    """
    Owner of a working-hours rule or override.

    A scope without a staff member is business-wide.
    """
    business_id: int
    staff_member_id: int | None = None

    @property
    def is_business_wide(self) -> bool:
        return self.staff_member_id is None

    def __str__(self) -> str:
        if self.is_business_wide:
            return f"business {self.business_id}"
        return f"staff {self.staff_member_id} of business {self.business_id}"


@dataclass(frozen=True)
class Business:
    id: int
    type: BusinessType
    advance_booking_days: int = 30
    active: bool = True

    def __post_init__(self):
        if self.advance_booking_days < 0:
            raise ValueError("advance_booking_days must not be negative")


@dataclass(frozen=True)
class Service:
    """
    A bookable service offered by a business.

    ``capacity`` only matters for capacity-based businesses.
    """
    id: int
    business_id: int
    duration_minutes: int
    buffer_before_minutes: int = 0
    buffer_after_minutes: int = 0
    capacity: int = 1
    requires_staff: bool = False
    active: bool = True

    def __post_init__(self):
        if self.duration_minutes <= 0:
            raise ValueError("duration_minutes must be greater than zero")
        if self.buffer_before_minutes < 0 or self.buffer_after_minutes < 0:
            raise ValueError("buffers must not be negative")
        if self.capacity <= 0:
            raise ValueError("capacity must be greater than zero")

    @property
    def occupied_minutes(self) -> int:
        """Duration plus both buffers: the length of a staff-based slot."""
        return self.duration_minutes + self.buffer_before_minutes + self.buffer_after_minutes


@dataclass(frozen=True)
class StaffMember:
    id: int
    business_id: int
    active: bool = True
    service_ids: FrozenSet[int] = field(default_factory=frozenset)

    def can_perform(self, service_id: int) -> bool:
        return service_id in self.service_ids


@dataclass(frozen=True)
class WorkingHoursRule:
    """Recurring weekly opening hours (0 = Sunday)."""
    scope: Scope
    day_of_week: int
    window: TimeInterval
    active: bool = True

    def __post_init__(self):
        if self.day_of_week not in range(7):
            raise ValueError(f"day_of_week must be between 0 and 6, got {self.day_of_week}")


@dataclass(frozen=True)
class Override:
    """
    Date-specific exception to the weekly rule.

    Either ``closed`` is set or ``window`` holds replacement hours.
    """
    scope: Scope
    date: date
    closed: bool = False
    window: TimeInterval | None = None

    def __post_init__(self):
        if not self.closed and self.window is None:
            raise ValueError("An open override needs replacement hours")


@dataclass(frozen=True)
class ExistingBooking:
    """
    A reservation made elsewhere, carrying its own service's buffers.
    """
    business_id: int
    service_id: int
    date: date
    interval: TimeInterval
    staff_member_id: int | None = None
    party_size: int = 1
    status: BookingStatus = BookingStatus.CONFIRMED
    buffer_before_minutes: int = 0
    buffer_after_minutes: int = 0

    @property
    def occupies_time(self) -> bool:
        return self.status.occupies_time

    def buffered_interval(self) -> TimeInterval:
        return self.interval.padded(self.buffer_before_minutes, self.buffer_after_minutes)


@dataclass(frozen=True)
class TimeSlot:
    """
    A computed slot. Never persisted.
    """
    interval: TimeInterval
    staff_member_id: int | None = None
    available: bool = True

    @property
    def start(self) -> str:
        return time_string(self.interval.start)

    @property
    def end(self) -> str:
        return time_string(self.interval.end)

    def sort_key(self) -> tuple:
        # Slots without staff sort first; they only occur on the capacity path.
        staff_key = -1 if self.staff_member_id is None else self.staff_member_id
        return (self.interval.start, staff_key)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"start": self.start, "end": self.end}
        if self.staff_member_id is not None:
            data["staffMemberId"] = self.staff_member_id
        data["available"] = self.available
        return data


@dataclass(frozen=True)
class AvailabilityResult:
    """Slots computed for one date."""
    date: date
    slots: List[TimeSlot] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "slots": [slot.to_dict() for slot in self.slots],
        }
