# File: utils/dt_utils.py
"""Calendar-date utilities for finschedule.

Pure Python date functions that work on tenant-local `datetime.date` values.
Nothing here knows about rules, periods or instructions, so every function
can be unit tested on its own.

Uses standard library `datetime`/`calendar` plus `dateutil.relativedelta`
for month arithmetic and nth-weekday lookup.

Functions:
    - dt_now_utc: Current UTC datetime (run timestamps only)
    - dt_parse_date: Parse date strings
    - dt_as_date: Normalize str/date/datetime input to a date
    - days_in_month: Length of a calendar month
    - clamp_month_day: Resolve a day-of-month selector inside a month
    - start_of_week: Monday of the week containing a date
    - weeks_between: Whole weeks between the weeks of two dates
    - months_between: Calendar months between two dates
    - years_between: Calendar years between two dates
    - nth_weekday_of_month: The nth (or last) given weekday of a month
    - weekday_ordinal: Ordinal position of a date's weekday in its month
    - in_date_window: Inclusive window membership
"""

from __future__ import annotations

from calendar import monthrange
from datetime import UTC, date, datetime, timedelta
import logging

from dateutil.relativedelta import relativedelta
from dateutil.rrule import FR, MO, SA, SU, TH, TU, WE

# Module-level logger
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to keep utils free of package imports)
# ==============================================================================

# "last" selector for day-of-month and weekday ordinals
LAST = -1

# dateutil weekday objects indexed like date.weekday()
RRULE_WEEKDAYS = (MO, TU, WE, TH, FR, SA, SU)

DAYS_PER_WEEK = 7
MONTHS_PER_YEAR = 12


# ==============================================================================
# Current Date/Time
# ==============================================================================


def dt_now_utc() -> datetime:
    """Return the current datetime in UTC (timezone-aware).

    Only used for run timestamps; schedule decisions always receive an
    explicit `today`.
    """
    return datetime.now(UTC)


# ==============================================================================
# Parsing
# ==============================================================================


def dt_parse_date(date_str: str | None) -> date | None:
    """Safely parse a date string into a `datetime.date`.

    Accepts formats:
    - "2025-04-07" (ISO format)
    - "2025-04-07T10:00:00" (ISO datetime, time dropped)
    - "07 April 2025" / "07 Apr 2025" (stored display format)
    - "2025/04/07"

    Args:
        date_str: Date string to parse, or None

    Returns:
        datetime.date or None if parsing fails.
    """
    if not date_str or not isinstance(date_str, str):
        return None

    text = date_str.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass

    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass

    for fmt in ("%d %B %Y", "%d %b %Y", "%Y/%m/%d"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    _LOGGER.debug("dt_parse_date: Unparseable date string %r", date_str)
    return None


def dt_as_date(value: str | date | datetime | None) -> date | None:
    """Normalize a string, date or datetime into a `datetime.date`.

    Datetimes keep their own calendar date; no timezone conversion happens.

    Returns:
        The date, or None when the input is empty or unparseable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return dt_parse_date(value)
    return None


# ==============================================================================
# Month / Week Arithmetic
# ==============================================================================


def days_in_month(year: int, month: int) -> int:
    """Return the number of days in a month (28-31)."""
    return monthrange(year, month)[1]


def clamp_month_day(year: int, month: int, day: int) -> date:
    """Resolve a day-of-month selector inside a specific month.

    Days past the end of the month clamp to the month's last day, and
    `LAST` (-1) always means the last day.

    Examples:
        clamp_month_day(2024, 2, 31) → date(2024, 2, 29)
        clamp_month_day(2023, 2, 29) → date(2023, 2, 28)
        clamp_month_day(2024, 4, -1) → date(2024, 4, 30)
    """
    last_day = days_in_month(year, month)
    if day == LAST or day > last_day:
        return date(year, month, last_day)
    return date(year, month, day)


def start_of_week(day: date) -> date:
    """Return the Monday of the week containing `day`."""
    return day - timedelta(days=day.weekday())


def weeks_between(first: date, second: date) -> int:
    """Whole weeks between the Monday-started weeks containing two dates.

    Two dates in the same week are 0 weeks apart regardless of weekday.
    Negative when `second` is in an earlier week.
    """
    return (start_of_week(second) - start_of_week(first)).days // DAYS_PER_WEEK


def months_between(first: date, second: date) -> int:
    """Calendar months from `first`'s month to `second`'s month."""
    return (second.year - first.year) * MONTHS_PER_YEAR + (second.month - first.month)


def years_between(first: date, second: date) -> int:
    """Calendar years from `first`'s year to `second`'s year."""
    return second.year - first.year


def nth_weekday_of_month(
    year: int, month: int, weekday: int, ordinal: int
) -> date | None:
    """Return the `ordinal`-th `weekday` of a month.

    Args:
        year: Calendar year
        month: Calendar month (1-12)
        weekday: Weekday index (0=Monday, 6=Sunday)
        ordinal: 1-5 counting from the start of the month, or negative
            counting from the end (-1 = last)

    Returns:
        The matching date, or None when the month has no such weekday
        (e.g. a fifth Monday) or the arguments are out of range.

    Examples:
        nth_weekday_of_month(2024, 1, 4, -1) → date(2024, 1, 26)  # last Friday
        nth_weekday_of_month(2024, 2, 0, 1) → date(2024, 2, 5)   # first Monday
    """
    if not 0 <= weekday <= 6 or ordinal == 0:
        return None

    rrule_day = RRULE_WEEKDAYS[weekday]
    first_of_month = date(year, month, 1)
    if ordinal > 0:
        result = first_of_month + relativedelta(weekday=rrule_day(+ordinal))
    else:
        # day=31 clamps to the month's last day before walking backwards
        result = first_of_month + relativedelta(day=31, weekday=rrule_day(ordinal))

    if result.month != month or result.year != year:
        return None
    return result


def weekday_ordinal(day: date) -> tuple[int, bool]:
    """Return the position of `day`'s weekday within its month.

    Returns:
        (ordinal, is_last): ordinal counts from 1 at the start of the month;
        is_last is True when no later same weekday exists in the month.

    Example:
        weekday_ordinal(date(2024, 1, 26)) → (4, True)
    """
    ordinal = (day.day - 1) // DAYS_PER_WEEK + 1
    is_last = day.day + DAYS_PER_WEEK > days_in_month(day.year, day.month)
    return ordinal, is_last


# ==============================================================================
# Windows
# ==============================================================================


def in_date_window(day: date, first: date, last: date | None) -> bool:
    """Return True when `first <= day <= last` (open-ended when last is None)."""
    if day < first:
        return False
    return last is None or day <= last
