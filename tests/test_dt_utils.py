"""Unit tests for utils/dt_utils.py calendar helpers."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from finschedule.utils.dt_utils import (
    clamp_month_day,
    dt_as_date,
    dt_parse_date,
    in_date_window,
    months_between,
    nth_weekday_of_month,
    weekday_ordinal,
    weeks_between,
    years_between,
)


class TestParsing:
    """Tests for dt_parse_date and dt_as_date."""

    @pytest.mark.parametrize(
        "text",
        ["2025-04-07", "2025-04-07T10:00:00", "07 April 2025", "07 Apr 2025", "2025/04/07"],
    )
    def test_accepted_formats(self, text: str) -> None:
        """Every supported format parses to the same date."""
        assert dt_parse_date(text) == date(2025, 4, 7)

    @pytest.mark.parametrize("text", [None, "", "next tuesday"])
    def test_unparseable(self, text: str | None) -> None:
        """Bad input returns None instead of raising."""
        assert dt_parse_date(text) is None

    def test_as_date(self) -> None:
        """Dates, datetimes and strings normalize to a date."""
        assert dt_as_date(date(2024, 1, 1)) == date(2024, 1, 1)
        assert dt_as_date(datetime(2024, 1, 1, 23, 59)) == date(2024, 1, 1)
        assert dt_as_date("2024-01-01") == date(2024, 1, 1)
        assert dt_as_date(None) is None


class TestMonthArithmetic:
    """Tests for clamping and calendar distances."""

    @pytest.mark.parametrize(
        ("year", "month", "day", "expected"),
        [
            (2024, 2, 31, date(2024, 2, 29)),
            (2023, 2, 29, date(2023, 2, 28)),
            (2024, 4, -1, date(2024, 4, 30)),
            (2024, 4, 12, date(2024, 4, 12)),
        ],
    )
    def test_clamp_month_day(self, year: int, month: int, day: int, expected: date) -> None:
        """Overflowing days clamp to the month's last day."""
        assert clamp_month_day(year, month, day) == expected

    def test_weeks_between_uses_monday_weeks(self) -> None:
        """Sunday and the following Monday are one week apart."""
        assert weeks_between(date(2024, 1, 1), date(2024, 1, 7)) == 0
        assert weeks_between(date(2024, 1, 7), date(2024, 1, 8)) == 1

    def test_months_and_years_between(self) -> None:
        """Distances count calendar boundaries, not elapsed days."""
        assert months_between(date(2024, 1, 31), date(2024, 2, 1)) == 1
        assert months_between(date(2023, 11, 15), date(2024, 2, 15)) == 3
        assert years_between(date(2024, 12, 31), date(2025, 1, 1)) == 1


class TestWeekdayOrdinals:
    """Tests for nth_weekday_of_month and weekday_ordinal."""

    @pytest.mark.parametrize(
        ("args", "expected"),
        [
            ((2024, 1, 4, -1), date(2024, 1, 26)),
            ((2024, 2, 4, -1), date(2024, 2, 23)),
            ((2024, 2, 0, 1), date(2024, 2, 5)),
            ((2024, 1, 0, 1), date(2024, 1, 1)),
            ((2024, 2, 0, 5), None),
            ((2024, 1, 0, 0), None),
        ],
    )
    def test_nth_weekday_of_month(self, args: tuple[int, int, int, int], expected: date | None) -> None:
        """First/last and missing fifth weekdays."""
        assert nth_weekday_of_month(*args) == expected

    def test_weekday_ordinal(self) -> None:
        """Position of a date's weekday inside its month."""
        assert weekday_ordinal(date(2024, 1, 26)) == (4, True)
        assert weekday_ordinal(date(2024, 1, 1)) == (1, False)


class TestWindows:
    """Tests for in_date_window."""

    def test_in_date_window(self) -> None:
        """Inclusive, open-ended without an end."""
        assert in_date_window(date(2024, 1, 1), date(2024, 1, 1), date(2024, 1, 1))
        assert not in_date_window(date(2023, 12, 31), date(2024, 1, 1), None)
