"""
Resolve candidate slots against existing bookings.

Two policies live here because the two business types treat a clash
differently:

- capacity-based slots are annotated, never dropped: a slot is available
  while the party sizes of overlapping bookings stay below the capacity;
- staff-based slots are dropped as soon as their occupied interval clashes
  with a buffered booking of the same staff member.

Pure domain logic: no I/O happens here.
"""

from typing import Dict, Iterable, List, Sequence

from .models import ExistingBooking, TimeSlot
from .time_arithmetic import TimeInterval


class ConflictFilter:
    """
    Applies booking conflicts to candidate slots.

    ``min_conflict_overlap_minutes`` sets how much a staff slot must overlap
    a booking before it counts as a clash. 0 means any overlap at all.
    """

    def __init__(self, min_conflict_overlap_minutes: int = 0):
        if min_conflict_overlap_minutes < 0:
            raise ValueError("min_conflict_overlap_minutes must not be negative")
        self.min_conflict_overlap_minutes = min_conflict_overlap_minutes

    def annotate_capacity(
        self,
        candidates: Iterable[TimeInterval],
        bookings: Sequence[ExistingBooking],
        capacity: int,
    ) -> List[TimeSlot]:
        """
        Tag every candidate with its availability under a shared capacity.

        Args:
            candidates: Slot intervals, in output order
            bookings: Bookings of the same business, service and date
            capacity: Maximum concurrent party size

        Returns:
            One TimeSlot per candidate, in the same order
        """
        occupying = [booking for booking in bookings if booking.occupies_time]
        slots: List[TimeSlot] = []

        for candidate in candidates:
            used_capacity = self.used_capacity(candidate, occupying)
            slots.append(
                TimeSlot(interval=candidate, available=used_capacity < capacity)
            )

        return slots

    @staticmethod
    def used_capacity(slot: TimeInterval, bookings: Iterable[ExistingBooking]) -> int:
        """Sum the party sizes of bookings overlapping ``slot``."""
        return sum(
            booking.party_size
            for booking in bookings
            if booking.occupies_time and slot.overlaps(booking.interval)
        )

    def remove_staff_conflicts(
        self,
        candidates: Iterable[TimeSlot],
        bookings: Sequence[ExistingBooking],
    ) -> List[TimeSlot]:
        """
        Drop candidates that clash with a buffered booking of their staff member.

        The candidate's interval already includes its own buffers; each
        booking is widened by the buffers of the service it was made for.
        Candidates without a staff member are invalid and dropped as well.
        """
        busy_by_staff = self._buffered_intervals_by_staff(bookings)

        return [
            slot
            for slot in candidates
            if slot.staff_member_id is not None
            and not self._clashes(slot.interval, busy_by_staff.get(slot.staff_member_id, []))
        ]

    def conflicts(self, slot: TimeInterval, busy: TimeInterval) -> bool:
        """Check whether ``slot`` clashes with one busy interval."""
        if not slot.overlaps(busy):
            return False
        return slot.overlap_minutes(busy) >= self.min_conflict_overlap_minutes

    def _clashes(self, slot: TimeInterval, busy_intervals: Iterable[TimeInterval]) -> bool:
        return any(self.conflicts(slot, busy) for busy in busy_intervals)

    @staticmethod
    def _buffered_intervals_by_staff(
        bookings: Iterable[ExistingBooking],
    ) -> Dict[int, List[TimeInterval]]:
        busy: Dict[int, List[TimeInterval]] = {}
        for booking in bookings:
            if booking.staff_member_id is None or not booking.occupies_time:
                continue
            busy.setdefault(booking.staff_member_id, []).append(booking.buffered_interval())
        return busy
