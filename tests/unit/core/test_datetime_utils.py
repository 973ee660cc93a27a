"""Tests for datetime helpers."""

from datetime import date, datetime, time, timedelta, timezone

import pytest

from core.utils.datetime import (
    add_minutes,
    days_between,
    format_time,
    isoformat,
    parse_date,
    parse_time,
)


class TestParsing:

    @pytest.mark.parametrize("raw,expected", [
        ("09:30", time(9, 30)),
        (" 14:05 ", time(14, 5)),
        ("10:00:00", time(10, 0)),
    ])
    def test_parse_time(self, raw, expected):
        assert parse_time(raw) == expected

    def test_parse_time_drops_seconds_from_objects(self):
        assert parse_time(time(9, 30, 42)) == time(9, 30)

    @pytest.mark.parametrize("raw", ["9.30", "25:00", "", "noon"])
    def test_parse_time_rejects_garbage(self, raw):
        with pytest.raises(ValueError):
            parse_time(raw)

    def test_parse_date(self):
        assert parse_date("2025-03-10") == date(2025, 3, 10)
        assert parse_date(datetime(2025, 3, 10, 8, 0)) == date(2025, 3, 10)

    def test_parse_date_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_date("10/03/2025")


class TestArithmetic:

    def test_add_minutes(self):
        assert add_minutes(time(9, 45), 30) == time(10, 15)

    def test_add_minutes_refuses_to_wrap(self):
        with pytest.raises(ValueError):
            add_minutes(time(23, 50), 15)

    def test_days_between_mixes_naive_and_aware(self):
        start = datetime(2025, 3, 1, 12, 0)
        end = datetime(2025, 3, 4, 0, 0, tzinfo=timezone.utc)
        assert days_between(start, end) == pytest.approx(2.5)

    def test_days_between_same_instant(self):
        moment = datetime.now(timezone.utc)
        assert days_between(moment, moment + timedelta(hours=6)) == pytest.approx(0.25)


class TestFormatting:

    def test_format_time(self):
        assert format_time(time(7, 5)) == "07:05"
        assert format_time(None) is None

    def test_isoformat_marks_naive_values_as_utc(self):
        assert isoformat(datetime(2025, 3, 10, 10, 0)) == "2025-03-10T10:00:00+00:00"
        assert isoformat(date(2025, 3, 10)) == "2025-03-10"
        assert isoformat(None) is None
