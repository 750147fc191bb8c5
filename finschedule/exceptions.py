"""Exceptions raised by the finschedule engines.

Every engine failure is an exception value with no partial side effects.
All of them derive from ScheduleError so callers can isolate one schedule's
failure without catching unrelated errors.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .type_defs import SchedulePeriod


class ScheduleError(Exception):
    """Base class for all recurrence engine errors."""


class MalformedRuleError(ScheduleError, ValueError):
    """Raised when a rule string or rule value cannot be understood.

    Attributes:
        rule_string: The offending rule text (empty when built from fields)
        reason: Short description of what is wrong
    """

    def __init__(self, reason: str, rule_string: str | None = None) -> None:
        """Initialize MalformedRuleError.

        Args:
            reason: Short description of what is wrong
            rule_string: The offending rule text, if any
        """
        self.rule_string = rule_string or ""
        self.reason = reason
        if rule_string:
            super().__init__(f"Malformed recurrence rule {rule_string!r}: {reason}")
        else:
            super().__init__(f"Malformed recurrence rule: {reason}")


class UnsupportedFrequencyError(ScheduleError, ValueError):
    """Raised when a rule carries a frequency the evaluator cannot handle."""

    def __init__(self, frequency: Any) -> None:
        """Initialize UnsupportedFrequencyError.

        Args:
            frequency: The unsupported frequency value
        """
        self.frequency = frequency
        super().__init__(f"Unsupported recurrence frequency: {frequency!r}")


class ScheduleExhaustedError(ScheduleError):
    """Raised when no occurrence is found within the probe limit.

    Callers treat this as "no next occurrence", not as a crash.

    Attributes:
        probed_days: Consecutive days probed without a match
        found: Occurrences produced before giving up
        last_probed: The last date examined
    """

    def __init__(self, probed_days: int, found: int, last_probed: date) -> None:
        """Initialize ScheduleExhaustedError.

        Args:
            probed_days: Consecutive days probed without a match
            found: Occurrences produced before giving up
            last_probed: The last date examined
        """
        self.probed_days = probed_days
        self.found = found
        self.last_probed = last_probed
        super().__init__(
            f"No occurrence within {probed_days} days "
            f"(found={found}, last_probed={last_probed.isoformat()})"
        )


class AmbiguousHistoryError(ScheduleError):
    """Raised (or logged) when more than one schedule period claims a date.

    Attributes:
        owner_id: Owner whose history overlaps
        on_date: The date claimed more than once
        periods: Every period claiming the date, in resolution order
    """

    def __init__(
        self,
        owner_id: str,
        on_date: date,
        periods: tuple[SchedulePeriod, ...],
    ) -> None:
        """Initialize AmbiguousHistoryError.

        Args:
            owner_id: Owner whose history overlaps
            on_date: The date claimed more than once
            periods: Every period claiming the date, in resolution order
        """
        self.owner_id = owner_id
        self.on_date = on_date
        self.periods = periods
        super().__init__(
            f"{len(periods)} schedule periods of owner {owner_id} claim "
            f"{on_date.isoformat()}"
        )


class ScheduleEditError(ScheduleError, ValueError):
    """Raised when an owner edit would break schedule invariants."""


class HolidayRescheduleError(ScheduleError, ValueError):
    """Raised when a holiday's alternate repayment date is not acceptable.

    Attributes:
        code: Dotted error code (const.ERROR_HOLIDAY_*)
        rescheduled_to: The rejected date
    """

    def __init__(self, code: str, message: str, rescheduled_to: date | None) -> None:
        """Initialize HolidayRescheduleError.

        Args:
            code: Dotted error code
            message: Human-readable message
            rescheduled_to: The rejected date
        """
        self.code = code
        self.rescheduled_to = rescheduled_to
        super().__init__(message)


class StandingInstructionRunError(ScheduleError):
    """Raised at the end of a batch run when any instruction failed.

    Attributes:
        failures: Failed run results, in processing order
    """

    def __init__(self, failures: list[Any]) -> None:
        """Initialize StandingInstructionRunError.

        Args:
            failures: Failed run results
        """
        self.failures = failures
        details = "; ".join(
            f"{failure.instruction_id}: {failure.error}" for failure in failures
        )
        super().__init__(
            f"{len(failures)} standing instruction(s) failed: {details}"
        )
