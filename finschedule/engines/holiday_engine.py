"""Holiday Engine - validation of holiday repayment reschedule dates.

When a holiday is declared, repayments falling inside it are moved to an
alternate date. That date must be a working day outside the holiday and no
further than a few days from it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from .. import const
from ..exceptions import HolidayRescheduleError, MalformedRuleError
from .rule_codec import RecurrenceRuleCodec, normalize_weekday
from .schedule_engine import ScheduleEvaluator


@dataclass(frozen=True)
class WorkingDays:
    """The weekdays a tenant does business on (date.weekday() indexes)."""

    weekdays: frozenset[int]

    @classmethod
    def from_rule(cls, rule_string: str | None = None) -> WorkingDays:
        """Parse a tenant working-days rule.

        The rule is weekly with a comma-separated BYDAY list, e.g.
        "FREQ=WEEKLY;INTERVAL=1;BYDAY=MO,TU,WE,TH,FR". None or blank uses
        the Monday to Friday default.

        Raises:
            MalformedRuleError: Not weekly, no BYDAY, or an unknown day.
        """
        if rule_string is None or not rule_string.strip():
            rule_string = const.DEFAULT_WORKING_DAYS_RULE

        fields = RecurrenceRuleCodec.split_parts(rule_string)
        if fields.get(const.RULE_KEY_FREQ) != const.FREQUENCY_WEEKLY:
            raise MalformedRuleError("working days rule must be weekly", rule_string)
        raw_days = fields.get(const.RULE_KEY_BYDAY)
        if not raw_days:
            raise MalformedRuleError("working days rule needs BYDAY", rule_string)

        weekdays: set[int] = set()
        for token in raw_days.split(","):
            code = normalize_weekday(token)
            if code is None:
                raise MalformedRuleError(f"unrecognized BYDAY {token!r}", rule_string)
            weekdays.add(const.WEEKDAY_CODES.index(code))
        return cls(frozenset(weekdays))

    def is_working_day(self, day: date) -> bool:
        return day.weekday() in self.weekdays


class HolidayRescheduleValidator:
    """Validate the alternate repayment date of a holiday."""

    def __init__(
        self,
        buffer_days: int = const.HOLIDAY_RESCHEDULE_BUFFER_DAYS,
        evaluator: ScheduleEvaluator | None = None,
    ) -> None:
        """Initialize the validator.

        Args:
            buffer_days: How far (in days) before the holiday start or after
                its end the alternate date may lie.
            evaluator: Provides the date-window primitives.
        """
        self.buffer_days = buffer_days
        self.evaluator = evaluator or ScheduleEvaluator()

    def validate(
        self,
        holiday_from: date,
        holiday_to: date,
        rescheduled_to: date,
        working_days: WorkingDays | None = None,
        buffer_days: int | None = None,
    ) -> None:
        """Raise HolidayRescheduleError unless `rescheduled_to` is acceptable.

        Checks, in order: the holiday range itself, the date falling inside
        the holiday, the date not being a working day, and the date lying
        outside [holiday_from - buffer, holiday_to + buffer].
        """
        if buffer_days is None:
            buffer_days = self.buffer_days
        if working_days is None:
            working_days = WorkingDays.from_rule()

        if holiday_to < holiday_from:
            raise HolidayRescheduleError(
                const.ERROR_HOLIDAY_INVALID_RANGE,
                f"Holiday end {holiday_to} is before its start {holiday_from}",
                rescheduled_to,
            )
        if self.evaluator.in_window(rescheduled_to, holiday_from, holiday_to):
            raise HolidayRescheduleError(
                const.ERROR_HOLIDAY_RESCHEDULE_IN_WINDOW,
                f"Repayments cannot be rescheduled to {rescheduled_to}, which is "
                f"within the holiday {holiday_from} - {holiday_to}",
                rescheduled_to,
            )
        if not working_days.is_working_day(rescheduled_to):
            raise HolidayRescheduleError(
                const.ERROR_HOLIDAY_RESCHEDULE_NOT_WORKING_DAY,
                f"Repayments cannot be rescheduled to {rescheduled_to}, which is "
                "not a working day",
                rescheduled_to,
            )
        if not self.evaluator.within_buffer(
            rescheduled_to, holiday_from, holiday_to, buffer_days
        ):
            raise HolidayRescheduleError(
                const.ERROR_HOLIDAY_RESCHEDULE_OUT_OF_RANGE,
                f"Repayments cannot be rescheduled to {rescheduled_to}, more than "
                f"{buffer_days} days from the holiday {holiday_from} - {holiday_to}",
                rescheduled_to,
            )

    def is_valid(
        self,
        holiday_from: date,
        holiday_to: date,
        rescheduled_to: date,
        working_days: WorkingDays | None = None,
        buffer_days: int | None = None,
    ) -> bool:
        """Boolean form of validate()."""
        try:
            self.validate(
                holiday_from, holiday_to, rescheduled_to, working_days, buffer_days
            )
        except HolidayRescheduleError as err:
            const.LOGGER.debug("HolidayReschedule: Rejected %s (%s)", rescheduled_to, err.code)
            return False
        return True
