"""Tests for slot arithmetic: conflicts and available slots."""

from datetime import time

import pytest

from core.workflow.scheduling import (
    BookedSlot,
    TimeSlot,
    compute_end_time,
    find_conflicts,
    generate_available_slots,
    overlaps,
)


def booked(interview_id, start, end):
    return BookedSlot(interview_id, time.fromisoformat(start), time.fromisoformat(end))


class TestOverlap:

    @pytest.mark.parametrize("a,b,expected", [
        (("10:00", "10:30"), ("10:15", "10:45"), True),
        (("10:00", "10:30"), ("09:45", "10:05"), True),
        (("10:00", "11:00"), ("10:15", "10:30"), True),
        (("10:00", "10:30"), ("10:30", "11:00"), False),
        (("10:30", "11:00"), ("10:00", "10:30"), False),
        (("09:00", "09:30"), ("14:00", "14:30"), False),
    ])
    def test_half_open_intervals(self, a, b, expected):
        args = [time.fromisoformat(v) for v in (*a, *b)]
        assert overlaps(*args) is expected


class TestFindConflicts:

    def test_reports_every_overlapping_interview(self):
        slots = [
            booked("INT-a", "10:00", "10:30"),
            booked("INT-b", "10:30", "11:00"),
            booked("INT-c", "13:00", "13:30"),
        ]
        conflicts = find_conflicts(time(10, 15), time(10, 45), slots)
        assert conflicts == ["INT-a", "INT-b"]

    def test_excludes_the_interview_being_moved(self):
        slots = [booked("INT-a", "10:00", "10:30")]
        assert find_conflicts(time(10, 0), time(10, 30), slots, exclude_id="INT-a") == []

    def test_no_bookings(self):
        assert find_conflicts(time(10, 0), time(10, 30), []) == []


class TestComputeEndTime:

    def test_adds_duration(self):
        assert compute_end_time(time(10, 0), 30) == time(10, 30)
        assert compute_end_time(time(23, 0), 45) == time(23, 45)

    @pytest.mark.parametrize("duration", [0, -15])
    def test_rejects_non_positive_duration(self, duration):
        with pytest.raises(ValueError):
            compute_end_time(time(10, 0), duration)

    def test_rejects_crossing_midnight(self):
        with pytest.raises(ValueError):
            compute_end_time(time(23, 45), 30)


class TestAvailableSlots:

    def test_empty_calendar_fills_business_hours(self):
        slots = generate_available_slots([], 30)
        assert len(slots) == 18
        assert slots[0] == TimeSlot(time(9, 0), time(9, 30))
        assert slots[-1] == TimeSlot(time(17, 30), time(18, 0))

    def test_booked_interview_removes_overlapping_candidates(self):
        slots = generate_available_slots([booked("INT-a", "10:00", "10:30")], 30)
        starts = [s.start_time for s in slots]
        assert time(10, 0) not in starts
        assert time(9, 30) in starts
        assert time(10, 30) in starts
        assert len(slots) == 17

    def test_longer_duration_blocks_neighbouring_starts(self):
        slots = generate_available_slots([booked("INT-a", "10:00", "10:30")], 60)
        starts = [s.start_time for s in slots]
        assert time(9, 30) not in starts
        assert time(9, 0) in starts
        assert time(10, 30) in starts
        assert slots[-1].end_time == time(18, 0)

    def test_slots_are_chronological(self):
        slots = generate_available_slots(
            [booked("INT-b", "15:00", "16:00"), booked("INT-a", "09:00", "09:30")], 30
        )
        starts = [s.start_time for s in slots]
        assert starts == sorted(starts)

    def test_custom_window_and_granularity(self):
        slots = generate_available_slots(
            [], 45, business_start="08:00", business_end="10:00", granularity=15
        )
        assert [s.to_dict() for s in slots] == [
            {"start_time": "08:00", "end_time": "08:45"},
            {"start_time": "08:15", "end_time": "09:00"},
            {"start_time": "08:30", "end_time": "09:15"},
            {"start_time": "08:45", "end_time": "09:30"},
            {"start_time": "09:00", "end_time": "09:45"},
            {"start_time": "09:15", "end_time": "10:00"},
        ]

    def test_duration_longer_than_window(self):
        assert generate_available_slots([], 600) == []

    def test_rejects_bad_granularity(self):
        with pytest.raises(ValueError):
            generate_available_slots([], 30, granularity=0)
