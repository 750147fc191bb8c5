"""Unit tests for holiday_engine.py HolidayRescheduleValidator and WorkingDays."""

from __future__ import annotations

from datetime import date

import pytest

from finschedule import const
from finschedule.engines.holiday_engine import HolidayRescheduleValidator, WorkingDays
from finschedule.exceptions import HolidayRescheduleError, MalformedRuleError

# Saturday 10 August 2024 to Monday 12 August 2024
HOLIDAY_FROM = date(2024, 8, 10)
HOLIDAY_TO = date(2024, 8, 12)


@pytest.fixture
def validator() -> HolidayRescheduleValidator:
    """Return a validator with the default seven-day buffer."""
    return HolidayRescheduleValidator()


class TestWorkingDays:
    """Tests for WorkingDays.from_rule."""

    def test_default_is_monday_to_friday(self) -> None:
        """No rule means the weekday default."""
        assert WorkingDays.from_rule().weekdays == frozenset(range(5))

    def test_custom_rule(self) -> None:
        """Multi-value BYDAY lists are accepted here."""
        working = WorkingDays.from_rule("FREQ=WEEKLY;INTERVAL=1;BYDAY=MO,TU,WE,TH,FR,SA")

        assert working.is_working_day(date(2024, 8, 17))  # Saturday
        assert not working.is_working_day(date(2024, 8, 18))  # Sunday

    @pytest.mark.parametrize(
        "text",
        [
            "FREQ=DAILY;BYDAY=MO",
            "FREQ=WEEKLY;INTERVAL=1",
            "FREQ=WEEKLY;BYDAY=MO,XX",
        ],
    )
    def test_invalid_rules(self, text: str) -> None:
        """Working-day rules must be weekly with known days."""
        with pytest.raises(MalformedRuleError):
            WorkingDays.from_rule(text)


class TestValidate:
    """Tests for HolidayRescheduleValidator.validate."""

    def test_working_day_before_holiday(self, validator: HolidayRescheduleValidator) -> None:
        """Monday 5 August is accepted."""
        validator.validate(HOLIDAY_FROM, HOLIDAY_TO, date(2024, 8, 5))
        assert validator.is_valid(HOLIDAY_FROM, HOLIDAY_TO, date(2024, 8, 5))

    def test_inside_holiday(self, validator: HolidayRescheduleValidator) -> None:
        """A date within the holiday is rejected."""
        with pytest.raises(HolidayRescheduleError) as exc_info:
            validator.validate(HOLIDAY_FROM, HOLIDAY_TO, date(2024, 8, 11))

        assert exc_info.value.code == const.ERROR_HOLIDAY_RESCHEDULE_IN_WINDOW
        assert exc_info.value.rescheduled_to == date(2024, 8, 11)

    def test_not_working_day(self, validator: HolidayRescheduleValidator) -> None:
        """Saturday 17 August is not a working day."""
        with pytest.raises(HolidayRescheduleError) as exc_info:
            validator.validate(HOLIDAY_FROM, HOLIDAY_TO, date(2024, 8, 17))

        assert exc_info.value.code == const.ERROR_HOLIDAY_RESCHEDULE_NOT_WORKING_DAY

    def test_custom_working_days(self, validator: HolidayRescheduleValidator) -> None:
        """Saturday is fine for a six-day tenant."""
        working = WorkingDays.from_rule("FREQ=WEEKLY;BYDAY=MO,TU,WE,TH,FR,SA")
        assert validator.is_valid(HOLIDAY_FROM, HOLIDAY_TO, date(2024, 8, 17), working)

    @pytest.mark.parametrize(
        ("rescheduled_to", "valid"),
        [
            (date(2024, 8, 2), False),
            (date(2024, 8, 5), True),
            (date(2024, 8, 19), True),
            (date(2024, 8, 20), False),
        ],
    )
    def test_buffer_edges(
        self, validator: HolidayRescheduleValidator, rescheduled_to: date, valid: bool
    ) -> None:
        """Working days up to seven days either side are accepted."""
        assert validator.is_valid(HOLIDAY_FROM, HOLIDAY_TO, rescheduled_to) is valid

    def test_out_of_range_code(self, validator: HolidayRescheduleValidator) -> None:
        """Too far away carries its own code."""
        with pytest.raises(HolidayRescheduleError) as exc_info:
            validator.validate(HOLIDAY_FROM, HOLIDAY_TO, date(2024, 8, 20))

        assert exc_info.value.code == const.ERROR_HOLIDAY_RESCHEDULE_OUT_OF_RANGE

    def test_buffer_override(self) -> None:
        """The buffer is configurable per validator and per call."""
        narrow = HolidayRescheduleValidator(buffer_days=3)

        assert not narrow.is_valid(HOLIDAY_FROM, HOLIDAY_TO, date(2024, 8, 6))
        assert narrow.is_valid(HOLIDAY_FROM, HOLIDAY_TO, date(2024, 8, 7))
        assert narrow.is_valid(HOLIDAY_FROM, HOLIDAY_TO, date(2024, 8, 6), buffer_days=7)

    def test_reversed_holiday(self, validator: HolidayRescheduleValidator) -> None:
        """A holiday ending before it starts is rejected."""
        with pytest.raises(HolidayRescheduleError) as exc_info:
            validator.validate(HOLIDAY_TO, HOLIDAY_FROM, date(2024, 8, 5))

        assert exc_info.value.code == const.ERROR_HOLIDAY_INVALID_RANGE
