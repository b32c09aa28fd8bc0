"""
Calendar period arithmetic.

All functions operate on civil dates; months are calendar months.
"""

import calendar
from datetime import date
from typing import List, Tuple


def clamp(value: int, low: int, high: int) -> int:
    """Clamp value into the inclusive range [low, high]."""
    return max(low, min(value, high))


def month_bounds(day: date) -> Tuple[date, date]:
    """First and last day of the calendar month containing day."""
    last_day = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last_day)


def add_months(day: date, months: int) -> date:
    """Shift a date by whole months, clamping to the target month's length.

    2024-01-31 + 1 month is 2024-02-29; 2024-02-29 + 12 months is 2025-02-28.
    """
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def months_between(start: date, end: date) -> int:
    """Number of complete months from start to end (negative if end < start).

    A month is complete only once the day-of-month is reached again, so
    2025-01-31 to 2025-02-28 is 0 months.
    """
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if months > 0 and end.day < start.day:
        months -= 1
    elif months < 0 and end.day > start.day:
        months += 1
    return months


def recent_months(today: date, count: int) -> List[date]:
    """First-of-month dates for the last `count` months, oldest first.

    The final entry is the month containing today.
    """
    if count < 1:
        raise ValueError("count must be >= 1")
    first = today.replace(day=1)
    return [add_months(first, -offset) for offset in range(count - 1, -1, -1)]
