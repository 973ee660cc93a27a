"""Datetime utilities for common operations."""

from datetime import datetime, date, time, timedelta, timezone
from typing import Optional


def now() -> datetime:
    """Get current datetime in UTC."""
    return datetime.now(timezone.utc)


def today() -> date:
    """Get current date in UTC."""
    return datetime.now(timezone.utc).date()


def parse_time(value: str | time) -> time:
    """
    Parse a wall-clock time such as "09:30" or "09:30:00".

    Args:
        value: Time string or time object

    Returns:
        Parsed time

    Raises:
        ValueError: If the string is not a valid time
    """
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)

    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(value.strip(), fmt).time()
        except ValueError:
            continue

    raise ValueError(f"Invalid time format: {value!r}, expected HH:MM")


def parse_date(value: str | date) -> date:
    """
    Parse an ISO date ("2025-03-10").

    Raises:
        ValueError: If the string is not a valid date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip())


def minutes_of_day(value: time) -> int:
    """Minutes elapsed since midnight."""
    return value.hour * 60 + value.minute


def time_from_minutes(minutes: int) -> time:
    """
    Build a time from minutes since midnight.

    Raises:
        ValueError: If the value falls outside a single day
    """
    if minutes < 0 or minutes >= 24 * 60:
        raise ValueError("Time must fall within a single day")
    return time(hour=minutes // 60, minute=minutes % 60)


def add_minutes(value: time, minutes: int) -> time:
    """
    Add minutes to a wall-clock time without wrapping past midnight.

    Args:
        value: Start time
        minutes: Number of minutes to add

    Returns:
        New time

    Raises:
        ValueError: If the result crosses midnight
    """
    return time_from_minutes(minutes_of_day(value) + minutes)


def format_time(value: Optional[time]) -> Optional[str]:
    """Format a time as HH:MM."""
    return value.strftime("%H:%M") if value else None


def isoformat(value: Optional[datetime | date]) -> Optional[str]:
    """ISO string for a date or datetime, treating naive datetimes as UTC."""
    if value is None:
        return None
    if isinstance(value, datetime) and value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def days_between(start: datetime, end: datetime) -> float:
    """
    Fractional number of days between two datetimes.

    Naive values are treated as UTC so rows read back from stores that drop
    the offset compare cleanly with aware ones.
    """
    if start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)
    if end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)
    return (end - start) / timedelta(days=1)
