"""
Candidate slot generation over a working-hours window.
"""

from dataclasses import dataclass
from typing import Iterator

from .time_arithmetic import TimeInterval

DEFAULT_STRIDE_MINUTES = 15


@dataclass(frozen=True)
class SlotGrid:
    """
    Fixed-length slots laid out over a window at a fixed stride.

    The grid is anchored at the window start, not at a clock grid: a window
    opening at 09:10 yields 09:10, 09:25, ... A slot is only part of the grid
    if it ends at or before the window end. Iterating twice yields the same
    sequence.
    """
    window_start: int
    window_end: int
    slot_length_minutes: int
    stride_minutes: int = DEFAULT_STRIDE_MINUTES

    def __post_init__(self):
        if self.slot_length_minutes <= 0:
            raise ValueError("slot_length_minutes must be greater than zero")
        if self.stride_minutes <= 0:
            raise ValueError("stride_minutes must be greater than zero")

    def __iter__(self) -> Iterator[TimeInterval]:
        current = self.window_start
        while current + self.slot_length_minutes <= self.window_end:
            yield TimeInterval(start=current, end=current + self.slot_length_minutes)
            current += self.stride_minutes

    def __len__(self) -> int:
        room = self.window_end - self.window_start - self.slot_length_minutes
        if room < 0:
            return 0
        return room // self.stride_minutes + 1


def generate_slots(
    window_start: int,
    window_end: int,
    slot_length_minutes: int,
    stride_minutes: int = DEFAULT_STRIDE_MINUTES,
) -> SlotGrid:
    """
    Build the candidate grid for one window.

    Args:
        window_start: Opening time in minutes of day
        window_end: Closing time in minutes of day
        slot_length_minutes: Length of each slot
        stride_minutes: Distance between consecutive slot starts

    Returns:
        A restartable, ordered ``SlotGrid``
    """
    return SlotGrid(
        window_start=window_start,
        window_end=window_end,
        slot_length_minutes=slot_length_minutes,
        stride_minutes=stride_minutes,
    )
