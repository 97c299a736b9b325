"""
Tests for candidate slot generation.
"""

import pytest

from bookingslots.domain.slot_generator import generate_slots
from bookingslots.domain.time_arithmetic import TimeInterval, minutes_of_day


class TestGenerateSlots:
    """Tests for generate_slots / SlotGrid."""

    def test_grid_over_working_day(self):
        """30-minute slots every 15 minutes between 09:00 and 17:00."""
        grid = generate_slots(minutes_of_day("09:00"), minutes_of_day("17:00"), 30)
        slots = list(grid)

        assert len(slots) == 31
        assert slots[0] == TimeInterval.parse("09:00", "09:30")
        assert slots[-1] == TimeInterval.parse("16:30", "17:00")
        assert all(b.start - a.start == 15 for a, b in zip(slots, slots[1:]))

    def test_last_slot_must_fit_window(self):
        """A slot running past the window end is not generated."""
        slots = list(generate_slots(540, 600, 40))

        assert [slot.start for slot in slots] == [540, 555]
        assert all(slot.end <= 600 for slot in slots)

    def test_anchored_at_window_start(self):
        """The grid starts exactly at the window start, not at :00/:15."""
        slots = list(generate_slots(minutes_of_day("09:10"), minutes_of_day("10:00"), 20))

        assert [str(slot) for slot in slots] == ["09:10 - 09:30", "09:25 - 09:45", "09:40 - 10:00"]

    def test_window_shorter_than_slot(self):
        grid = generate_slots(540, 560, 30)

        assert list(grid) == []
        assert len(grid) == 0

    def test_custom_stride(self):
        slots = list(generate_slots(540, 660, 60, stride_minutes=30))

        assert [slot.start for slot in slots] == [540, 570, 600]

    def test_restartable_and_deterministic(self):
        """Iterating twice, or building twice, yields the same sequence."""
        grid = generate_slots(540, 1020, 45)

        assert list(grid) == list(grid)
        assert list(grid) == list(generate_slots(540, 1020, 45))
        assert len(grid) == len(list(grid))

    @pytest.mark.parametrize("length, stride", [(0, 15), (-30, 15), (30, 0)])
    def test_rejects_non_positive_sizes(self, length, stride):
        with pytest.raises(ValueError):
            generate_slots(540, 1020, length, stride_minutes=stride)
