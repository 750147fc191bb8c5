"""Type definitions for finschedule data structures.

Two kinds of types live here:

1. **Frozen dataclasses for value objects** handed between engines:
   RecurrenceRule, SchedulePeriod, ScheduleOwner, StandingInstruction,
   LoanDues. They are immutable; edits return new values, which keeps
   concurrent readers safe without locking.

2. **TypedDict for stored rows** (fixed keys known at design time) that
   persistence adapters pass to data_builders.py: PeriodRow,
   StandingInstructionRow.

IMPORTANT: This file must NOT import from engines/ or managers/.
Only import from const.py, exceptions.py and typing machinery.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import NotRequired, TypedDict

from . import const
from .exceptions import MalformedRuleError

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

OwnerId = str
InstructionId = str
ISODate = str  # ISO 8601 date string "2024-01-31"
RuleString = str  # "FREQ=WEEKLY;BYDAY=MONDAY"


# =============================================================================
# Recurrence Rule
# =============================================================================

# Day selectors each frequency understands
_FREQUENCY_SELECTORS: dict[str, frozenset[str]] = {
    const.FREQUENCY_DAILY: frozenset(),
    const.FREQUENCY_WEEKLY: frozenset({"weekday"}),
    const.FREQUENCY_MONTHLY: frozenset({"weekday", "month_day", "nth_weekday_ordinal"}),
    const.FREQUENCY_YEARLY: frozenset({"month_day", "month_of_year"}),
}


@dataclass(frozen=True)
class RecurrenceRule:
    """Structured description of how a schedule repeats.

    Attributes:
        frequency: FREQUENCY_* constant
        interval: Repeat every N frequency units (>= 1)
        weekday: Weekday code (MONDAY..SUNDAY); weekly rules default to the
            start date's weekday when unset
        month_day: Day of month 1-31 or MONTH_DAY_LAST (-1); clamps to the
            month's length
        nth_weekday_ordinal: 1-4 or ORDINAL_LAST (-1), paired with weekday
        month_of_year: 1-12 for yearly rules

    The frequency is upper-cased on construction but not checked against
    the supported set; the evaluator rejects frequencies it does not
    support.
    """

    frequency: str
    interval: int = 1
    weekday: str | None = None
    month_day: int | None = None
    nth_weekday_ordinal: int | None = None
    month_of_year: int | None = None

    def __post_init__(self) -> None:
        """Validate field ranges and selector combinations."""
        if isinstance(self.frequency, str):
            object.__setattr__(self, "frequency", self.frequency.strip().upper())

        if isinstance(self.interval, bool) or not isinstance(self.interval, int):
            raise MalformedRuleError(f"interval must be an integer, got {self.interval!r}")
        if self.interval < 1:
            raise MalformedRuleError(f"interval must be at least 1, got {self.interval}")

        if self.weekday is not None and self.weekday not in const.WEEKDAY_CODES:
            raise MalformedRuleError(f"unknown weekday code {self.weekday!r}")

        if self.month_day is not None and not (
            self.month_day == const.MONTH_DAY_LAST
            or 1 <= self.month_day <= const.MONTH_DAY_MAX
        ):
            raise MalformedRuleError(f"month day out of range: {self.month_day}")

        if self.nth_weekday_ordinal is not None:
            if self.nth_weekday_ordinal not in const.VALID_ORDINALS:
                raise MalformedRuleError(
                    f"weekday ordinal out of range: {self.nth_weekday_ordinal}"
                )
            if self.weekday is None:
                raise MalformedRuleError("weekday ordinal requires a weekday")
            if self.month_day is not None:
                raise MalformedRuleError(
                    "monthly rule cannot use both a month day and a weekday ordinal"
                )

        if self.month_of_year is not None and not (
            1 <= self.month_of_year <= const.MONTHS_PER_YEAR
        ):
            raise MalformedRuleError(f"month of year out of range: {self.month_of_year}")

        self._check_selectors()

    def _check_selectors(self) -> None:
        """Reject day selectors the rule's frequency does not use."""
        allowed = _FREQUENCY_SELECTORS.get(self.frequency)
        if allowed is None:
            return
        for name in ("weekday", "month_day", "nth_weekday_ordinal", "month_of_year"):
            if getattr(self, name) is not None and name not in allowed:
                raise MalformedRuleError(
                    f"{self.frequency.lower()} rules do not use {name}"
                )
        if (
            self.frequency == const.FREQUENCY_MONTHLY
            and self.weekday is not None
            and self.nth_weekday_ordinal is None
        ):
            raise MalformedRuleError("monthly weekday requires a weekday ordinal")

    @property
    def uses_nth_weekday(self) -> bool:
        """True when the rule selects the nth weekday of the month."""
        return self.nth_weekday_ordinal is not None and self.weekday is not None

    @property
    def weekday_index(self) -> int | None:
        """Weekday as date.weekday() index, or None when unset."""
        if self.weekday is None:
            return None
        return const.WEEKDAY_CODES.index(self.weekday)

    def same_cadence(self, other: RecurrenceRule | None) -> bool:
        """True when `other` has the same frequency and interval."""
        if other is None:
            return False
        return self.frequency == other.frequency and self.interval == other.interval


# =============================================================================
# Schedule Periods and Owners
# =============================================================================


@dataclass(frozen=True)
class SchedulePeriod:
    """A time-bounded recurrence rule.

    A period with `rule=None` is a single, non-repeating occurrence at
    `effective_from`. `effective_to` is inclusive; None means open-ended.
    """

    rule: RecurrenceRule | None
    effective_from: date
    effective_to: date | None = None

    def __post_init__(self) -> None:
        """Reject periods that end before they start."""
        if self.effective_to is not None and self.effective_to < self.effective_from:
            raise ValueError(
                f"period ends ({self.effective_to}) before it starts "
                f"({self.effective_from})"
            )

    @property
    def is_repeating(self) -> bool:
        """True when the period carries a recurrence rule."""
        return self.rule is not None

    def contains(self, on_date: date) -> bool:
        """Start-inclusive, end-inclusive-if-set membership test."""
        if on_date < self.effective_from:
            return False
        return self.effective_to is None or on_date <= self.effective_to

    def closed(self, effective_to: date) -> SchedulePeriod:
        """Return a copy of this period ending on `effective_to`."""
        return replace(self, effective_to=effective_to)


@dataclass(frozen=True)
class ScheduleOwner:
    """A meeting calendar or standing instruction holding schedule periods.

    Attributes:
        owner_id: Identifier used in logs and error messages
        current: The active period
        history: Superseded periods, oldest first, non-overlapping
    """

    owner_id: OwnerId
    current: SchedulePeriod
    history: tuple[SchedulePeriod, ...] = field(default_factory=tuple)

    @property
    def periods(self) -> tuple[SchedulePeriod, ...]:
        """History followed by the current period (resolution order)."""
        return (*self.history, self.current)

    @property
    def start_date(self) -> date:
        """Earliest date any period of this owner covers."""
        return min(period.effective_from for period in self.periods)


# =============================================================================
# Standing Instructions
# =============================================================================


@dataclass(frozen=True)
class LoanDues:
    """Externally computed dues of the loan a standing instruction pays into."""

    due_date: date | None
    total_due_amount: Decimal


@dataclass(frozen=True)
class StandingInstruction:
    """A recurring instruction to move funds or pay loan dues.

    Attributes:
        instruction_id: Stored identifier
        name: Display name used in transfer descriptions
        recurrence_type: RECURRENCE_TYPE_* constant
        instruction_type: INSTRUCTION_TYPE_* constant
        amount: Configured fixed amount (None for pure dues transfers)
        schedule: Owner holding the instruction's schedule periods; its
            current period starts at the instruction's valid-from date
        to_loan_account: True when the destination is a loan account
        valid_till: Last date the instruction may run (inclusive)
    """

    instruction_id: InstructionId
    name: str
    recurrence_type: str
    instruction_type: str
    amount: Decimal | None
    schedule: ScheduleOwner
    to_loan_account: bool = False
    valid_till: date | None = None

    @property
    def valid_from(self) -> date:
        """First date the instruction may run."""
        return self.schedule.current.effective_from

    @property
    def needs_dues(self) -> bool:
        """True when the loan's dues data drives the date or the amount."""
        if not self.to_loan_account:
            return False
        return (
            self.recurrence_type == const.RECURRENCE_TYPE_DUES
            or self.instruction_type == const.INSTRUCTION_TYPE_DUES_AMOUNT
        )


# =============================================================================
# Stored Rows (persistence adapter boundary)
# =============================================================================


class PeriodRow(TypedDict):
    """A stored calendar or calendar-history row."""

    recurrence: NotRequired[RuleString | None]
    start_date: ISODate
    end_date: NotRequired[ISODate | None]


class StandingInstructionRow(TypedDict):
    """A stored standing instruction row."""

    id: InstructionId
    name: str
    recurrence_type: str
    instruction_type: str
    amount: NotRequired[str | float | None]
    valid_from: ISODate
    valid_till: NotRequired[ISODate | None]
    recurrence: NotRequired[RuleString | None]
    to_loan_account: NotRequired[bool]
