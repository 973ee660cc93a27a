"""
Pure interview-slot arithmetic.

Nothing here touches the database: callers pass a snapshot of the company's
slot-holding interviews for a date and get back conflicts or free slots.
Intervals are half-open, ``[start, end)``, so back-to-back interviews do not
conflict.
"""

from dataclasses import dataclass
from datetime import time
from typing import Iterable, Sequence

from core.utils.datetime import (
    add_minutes,
    format_time,
    minutes_of_day,
    parse_time,
    time_from_minutes,
)


@dataclass(frozen=True)
class BookedSlot:
    """An existing interview's occupied window."""

    interview_id: str
    start_time: time
    end_time: time


@dataclass(frozen=True)
class TimeSlot:
    start_time: time
    end_time: time

    def to_dict(self) -> dict[str, str]:
        return {
            "start_time": format_time(self.start_time),
            "end_time": format_time(self.end_time),
        }


def compute_end_time(start_time: time, duration: int) -> time:
    """End of an interview; raises ``ValueError`` for non-positive durations or past midnight."""
    if duration <= 0:
        raise ValueError("Interview duration must be positive")
    return add_minutes(start_time, duration)


def overlaps(start_a: time, end_a: time, start_b: time, end_b: time) -> bool:
    return start_a < end_b and end_a > start_b


def find_conflicts(
    start_time: time,
    end_time: time,
    booked: Iterable[BookedSlot],
    exclude_id: str | None = None,
) -> list[str]:
    """Ids of booked interviews overlapping ``[start_time, end_time)``."""
    return [
        slot.interview_id
        for slot in booked
        if slot.interview_id != exclude_id
        and overlaps(start_time, end_time, slot.start_time, slot.end_time)
    ]


def generate_available_slots(
    booked: Sequence[BookedSlot],
    duration: int,
    business_start: str | time = "09:00",
    business_end: str | time = "18:00",
    granularity: int = 30,
) -> list[TimeSlot]:
    """
    Enumerate free slots of ``duration`` minutes inside business hours.

    Candidate starts step by ``granularity`` from ``business_start``; a
    candidate is kept when it ends no later than ``business_end`` and
    overlaps no booked interview.

    Returns:
        Slots in chronological order
    """
    if duration <= 0 or granularity <= 0:
        raise ValueError("Duration and granularity must be positive")

    window_start = minutes_of_day(parse_time(business_start))
    window_end = minutes_of_day(parse_time(business_end))

    slots = []
    cursor = window_start
    while cursor + duration <= window_end:
        slot_start = time_from_minutes(cursor)
        slot_end = add_minutes(slot_start, duration)
        if not find_conflicts(slot_start, slot_end, booked):
            slots.append(TimeSlot(slot_start, slot_end))
        cursor += granularity

    return slots
