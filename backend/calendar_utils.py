"""Working-day and date-range helpers.

Weekends are always excluded and no holiday calendar is consulted; holidays
are recorded as approved availability periods instead.
"""
from datetime import date, timedelta
from typing import Iterator

from schemas import DateRange

SATURDAY = 5


def is_working_day(day: date) -> bool:
    return day.weekday() < SATURDAY


def working_days(start: date, end: date) -> int:
    """Count Monday-Friday days between start and end, both inclusive."""
    if end < start:
        return 0
    total_days = (end - start).days + 1
    full_weeks, remainder = divmod(total_days, 7)
    count = full_weeks * 5
    # Walk the leftover days of the last partial week
    for offset in range(remainder):
        if is_working_day(start + timedelta(days=full_weeks * 7 + offset)):
            count += 1
    return count


def iter_working_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        if is_working_day(current):
            yield current
        current += timedelta(days=1)


def overlap(range_a: DateRange, range_b: DateRange) -> DateRange | None:
    """Return the intersection of two inclusive ranges, or None if disjoint."""
    start = max(range_a.start, range_b.start)
    end = min(range_a.end, range_b.end)
    if start > end:
        return None
    return DateRange(start=start, end=end)


def week_bounds(day: date) -> DateRange:
    """Get the Sunday-Saturday week containing day."""
    days_since_sunday = (day.weekday() + 1) % 7
    sunday = day - timedelta(days=days_since_sunday)
    return DateRange(start=sunday, end=sunday + timedelta(days=6))


def trailing_window(time_range: str, today: date | None = None) -> DateRange:
    """Window ending today for a "week", "month" or "quarter" listing.

    Unknown ranges fall back to a week.
    """
    today = today or date.today()
    if time_range == "month":
        start = _months_back(today, 1)
    elif time_range == "quarter":
        start = _months_back(today, 3)
    else:
        start = today - timedelta(days=7)
    return DateRange(start=start, end=today)


def _months_back(day: date, months: int) -> date:
    year, month = divmod(day.year * 12 + (day.month - 1) - months, 12)
    month += 1
    # Clamp to the last valid day, e.g. May 31 -> Feb 28
    for candidate in (day.day, 30, 29, 28):
        try:
            return date(year, month, candidate)
        except ValueError:
            continue
    return date(year, month, 28)
