"""
Domain layer - Pure availability logic without external dependencies.
"""

from .conflict_filter import ConflictFilter
from .models import (
    AvailabilityResult,
    BookingStatus,
    Business,
    BusinessType,
    ExistingBooking,
    Override,
    Scope,
    Service,
    StaffMember,
    TimeSlot,
    WorkingHoursRule,
)
from .slot_generator import SlotGrid, generate_slots
from .time_arithmetic import TimeInterval

__all__ = [
    "AvailabilityResult",
    "BookingStatus",
    "Business",
    "BusinessType",
    "ConflictFilter",
    "ExistingBooking",
    "Override",
    "Scope",
    "Service",
    "SlotGrid",
    "StaffMember",
    "TimeInterval",
    "TimeSlot",
    "WorkingHoursRule",
    "generate_slots",
]
