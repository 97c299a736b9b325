"""
Calendar helpers shared by the whole pipeline.

Every day-of-week lookup and date validation goes through this module so
that the weekday convention (0 = Sunday) lives in exactly one place.
"""

import re
from datetime import date

import pendulum

from .exceptions import InvalidInput

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def day_of_week(value: date) -> int:
    """Return the day of week for ``value`` with Sunday as 0 and Saturday as 6."""
    return value.isoweekday() % 7


def is_valid_calendar_date(value: str) -> bool:
    """Check that ``value`` is a real calendar date written as YYYY-MM-DD."""
    if not isinstance(value, str) or not _DATE_PATTERN.match(value):
        return False
    try:
        pendulum.from_format(value, "YYYY-MM-DD")
    except ValueError:
        return False
    return True


def parse_calendar_date(value: str | date) -> date:
    """
    Turn a YYYY-MM-DD string (or an existing date) into a ``date``.

    Raises:
        InvalidInput: If the value is not a valid calendar date
    """
    if isinstance(value, date):
        return date(value.year, value.month, value.day)

    if not is_valid_calendar_date(value):
        raise InvalidInput(f"Valid date required (YYYY-MM-DD), got {value!r}")

    parsed = pendulum.from_format(value, "YYYY-MM-DD")
    return date(parsed.year, parsed.month, parsed.day)


def today(timezone: str) -> date:
    """Return the current calendar date in ``timezone``."""
    now = pendulum.today(timezone)
    return date(now.year, now.month, now.day)


def horizon_end(start: date, days: int) -> date:
    """Return the last bookable date, ``days`` after ``start``."""
    return pendulum.Date(start.year, start.month, start.day).add(days=days)
