"""Calendar month helpers shared by balance sheets, generation and reports.

Months are identified by their first day (date(2025, 3, 1)) in storage and by
"YYYY-MM" keys at the API and CLI boundary.
"""

import calendar
import re
from dataclasses import dataclass
from datetime import date

from src.services.errors import ValidationError

MONTH_KEY_PATTERN = re.compile(r"^(\d{4})-(\d{2})(?:-01)?$")


@dataclass(frozen=True)
class MonthRange:
    """Inclusive date bounds of a calendar month."""

    start: date
    end: date

    @property
    def key(self) -> str:
        return month_key(self.start)

    def __contains__(self, value: date) -> bool:
        return self.start <= value <= self.end


def month_start(value: date) -> date:
    """First day of the month containing value."""
    return value.replace(day=1)


def month_end(value: date) -> date:
    """Last day of the month containing value."""
    last_day = calendar.monthrange(value.year, value.month)[1]
    return value.replace(day=last_day)


def month_range(value: date) -> MonthRange:
    return MonthRange(start=month_start(value), end=month_end(value))


def add_months(value: date, months: int) -> date:
    """First day of the month `months` away from value's month."""
    index = value.year * 12 + (value.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def months_in_range(start: date, end: date) -> list[date]:
    """First day of every month touched by the inclusive range.

    A contract from Jan 15 to Mar 3 yields Jan 1, Feb 1 and Mar 1.
    Returns an empty list when end falls in an earlier month than start.

    Args:
        start: Range start date
        end: Range end date

    Returns:
        List of first-of-month dates in ascending order
    """
    months = []
    current = month_start(start)
    last = month_start(end)
    while current <= last:
        months.append(current)
        current = add_months(current, 1)
    return months


def month_key(value: date) -> str:
    """'YYYY-MM' key for the month containing value."""
    return f"{value.year:04d}-{value.month:02d}"


def parse_month(value: str) -> date:
    """Parse 'YYYY-MM' (or 'YYYY-MM-01') into the month's first day.

    Raises:
        ValidationError: If value is not a valid month
    """
    match = MONTH_KEY_PATTERN.match(value.strip()) if value else None
    if not match:
        raise ValidationError(f"Invalid month {value!r}, expected YYYY-MM")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month {value!r}, month must be 01-12")
    return date(year, month, 1)


__all__ = [
    "MonthRange",
    "add_months",
    "month_end",
    "month_key",
    "month_range",
    "month_start",
    "months_in_range",
    "parse_month",
]
