"""Stored-row to value-object builders.

This module is the SINGLE SOURCE OF TRUTH for turning persisted calendar,
calendar-history and standing-instruction rows into the frozen value objects
the engines work with.

### Validation
Row shapes are checked with voluptuous schemas. Dates are coerced through
`dt_utils.dt_as_date`, amounts to `Decimal`. Any schema failure surfaces as
`EntityValidationError` naming the offending field.

### Rule strings
Stored rule strings are decoded by `RecurrenceRuleCodec`. A malformed rule
is NOT a row-shape problem: `MalformedRuleError` propagates unchanged.

Consumers:
- persistence adapters loading calendars and standing instructions
- StandingInstructionManager callers preparing a batch run
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

import voluptuous as vol

from . import const
from .engines.rule_codec import RecurrenceRuleCodec, normalize_weekday, weekday_code
from .type_defs import (
    OwnerId,
    PeriodRow,
    RecurrenceRule,
    ScheduleOwner,
    SchedulePeriod,
    StandingInstruction,
    StandingInstructionRow,
)
from .utils.dt_utils import dt_as_date

# ==============================================================================
# EXCEPTIONS
# ==============================================================================


class EntityValidationError(Exception):
    """Validation error with field-specific information.

    Attributes:
        field: The DATA_* key (or rule field name) that failed validation
        message: What is wrong with it

    Example:
        raise EntityValidationError(
            field=const.DATA_INSTRUCTION_AMOUNT,
            message="amount must not be negative",
        )
    """

    def __init__(self, field: str, message: str) -> None:
        """Initialize EntityValidationError.

        Args:
            field: The key of the field that failed validation
            message: Human-readable description of the failure
        """
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


# ==============================================================================
# COERCION HELPERS
# ==============================================================================


def _coerce_date(value: Any) -> date:
    """Voluptuous validator: str/date/datetime to date."""
    result = dt_as_date(value)
    if result is None:
        raise vol.Invalid(f"invalid date {value!r}")
    return result


def _coerce_amount(value: Any) -> Decimal:
    """Voluptuous validator: a non-negative finite Decimal.

    Floats go through str() so 10.1 becomes Decimal("10.1").
    """
    if isinstance(value, bool):
        raise vol.Invalid(f"invalid amount {value!r}")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as err:
        raise vol.Invalid(f"invalid amount {value!r}") from err
    if not amount.is_finite() or amount < 0:
        raise vol.Invalid(f"amount must be a non-negative number, got {value!r}")
    return amount


PERIOD_ROW_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_PERIOD_RECURRENCE, default=None): vol.Any(None, str),
        vol.Required(const.DATA_PERIOD_START_DATE): _coerce_date,
        vol.Optional(const.DATA_PERIOD_END_DATE, default=None): vol.Any(
            None, _coerce_date
        ),
    },
    extra=vol.REMOVE_EXTRA,
)

STANDING_INSTRUCTION_ROW_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_INSTRUCTION_ID): vol.Coerce(str),
        vol.Required(const.DATA_INSTRUCTION_NAME): vol.All(str, vol.Length(min=1)),
        vol.Required(const.DATA_INSTRUCTION_RECURRENCE_TYPE): vol.All(
            str, str.lower, vol.In(const.RECURRENCE_TYPE_OPTIONS)
        ),
        vol.Required(const.DATA_INSTRUCTION_TYPE): vol.All(
            str, str.lower, vol.In(const.INSTRUCTION_TYPE_OPTIONS)
        ),
        vol.Optional(const.DATA_INSTRUCTION_AMOUNT, default=None): vol.Any(
            None, _coerce_amount
        ),
        vol.Required(const.DATA_INSTRUCTION_VALID_FROM): _coerce_date,
        vol.Optional(const.DATA_INSTRUCTION_VALID_TILL, default=None): vol.Any(
            None, _coerce_date
        ),
        vol.Optional(const.DATA_INSTRUCTION_RECURRENCE, default=None): vol.Any(
            None, str
        ),
        vol.Optional(const.DATA_INSTRUCTION_TO_LOAN_ACCOUNT, default=False): vol.Boolean(),
    },
    extra=vol.REMOVE_EXTRA,
)


def _validate(schema: vol.Schema, row: Mapping[str, Any]) -> dict[str, Any]:
    """Run a schema and map voluptuous errors to EntityValidationError."""
    try:
        return schema(dict(row))
    except vol.Invalid as err:
        field = str(err.path[0]) if err.path else "row"
        raise EntityValidationError(field, err.msg) from err


# ==============================================================================
# RULES
# ==============================================================================


def build_rule(
    frequency: str | None,
    interval: int | str | None = 1,
    weekday: str | int | None = None,
    month_day: int | str | None = None,
    nth_weekday_ordinal: int | str | None = None,
    month_of_year: int | str | None = None,
    start_date: date | None = None,
) -> RecurrenceRule | None:
    """Build a rule from loosely typed form or column values.

    Selectors the frequency does not use are dropped. For monthly rules a
    valid weekday ordinal selects nth-weekday mode (taking the weekday from
    `start_date` when none is given); an ordinal outside 1-4/-1 falls back to
    day-of-month mode. `month_day` accepts "last".

    The frequency itself is not validated here; an unsupported one is
    reported by the evaluator.

    Returns:
        The rule, or None when `frequency` is empty (no repetition).

    Raises:
        EntityValidationError: A field cannot be parsed.
        MalformedRuleError: The parsed fields do not form a valid rule.
    """
    if frequency is None or not str(frequency).strip():
        return None
    freq = str(frequency).strip().upper()

    parsed_interval = 1 if interval is None else _to_int("interval", interval)
    parsed_weekday = _parse_weekday(weekday)
    parsed_month_day = _parse_month_day(month_day)
    parsed_ordinal = (
        None
        if nth_weekday_ordinal is None
        else _to_int("nth_weekday_ordinal", nth_weekday_ordinal)
    )
    parsed_month = None if month_of_year is None else _to_int("month_of_year", month_of_year)

    if freq == const.FREQUENCY_DAILY:
        return RecurrenceRule(freq, parsed_interval)

    if freq == const.FREQUENCY_WEEKLY:
        return RecurrenceRule(freq, parsed_interval, weekday=parsed_weekday)

    if freq == const.FREQUENCY_MONTHLY:
        if parsed_ordinal in const.VALID_ORDINALS:
            if parsed_weekday is None and start_date is not None:
                parsed_weekday = weekday_code(start_date.weekday())
            if parsed_weekday is not None:
                return RecurrenceRule(
                    freq,
                    parsed_interval,
                    weekday=parsed_weekday,
                    nth_weekday_ordinal=parsed_ordinal,
                )
        elif parsed_ordinal is not None:
            const.LOGGER.debug(
                "build_rule: Ordinal %s out of range, using day-of-month mode",
                parsed_ordinal,
            )
        return RecurrenceRule(freq, parsed_interval, month_day=parsed_month_day)

    if freq == const.FREQUENCY_YEARLY:
        return RecurrenceRule(
            freq,
            parsed_interval,
            month_day=parsed_month_day,
            month_of_year=parsed_month,
        )

    # Unknown frequency: keep what was given for the evaluator to reject
    return RecurrenceRule(freq, parsed_interval)


def _to_int(field: str, value: int | str) -> int:
    if isinstance(value, bool):
        raise EntityValidationError(field, f"expected a whole number, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as err:
        raise EntityValidationError(
            field, f"expected a whole number, got {value!r}"
        ) from err


def _parse_weekday(value: str | int | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        if 0 <= value < const.DAYS_PER_WEEK:
            return weekday_code(value)
    elif isinstance(value, str):
        code = normalize_weekday(value)
        if code is not None:
            return code
    raise EntityValidationError("weekday", f"unknown weekday {value!r}")


def _parse_month_day(value: int | str | None) -> int | None:
    if value is None:
        return None
    if isinstance(value, str) and value.strip().lower() == "last":
        return const.MONTH_DAY_LAST
    return _to_int("month_day", value)


# ==============================================================================
# SCHEDULE PERIODS AND OWNERS
# ==============================================================================


def build_period(row: PeriodRow | Mapping[str, Any]) -> SchedulePeriod:
    """Build a SchedulePeriod from a stored calendar or history row.

    Raises:
        EntityValidationError: Row shape or date range is invalid.
        MalformedRuleError: The stored rule string cannot be decoded.
    """
    data = _validate(PERIOD_ROW_SCHEMA, row)
    start = data[const.DATA_PERIOD_START_DATE]
    end = data[const.DATA_PERIOD_END_DATE]
    if end is not None and end < start:
        raise EntityValidationError(
            const.DATA_PERIOD_END_DATE, f"end date {end} is before start date {start}"
        )
    rule = RecurrenceRuleCodec.decode(data[const.DATA_PERIOD_RECURRENCE])
    return SchedulePeriod(rule, start, end)


def build_owner(
    owner_id: OwnerId,
    current_row: PeriodRow | Mapping[str, Any],
    history_rows: Iterable[PeriodRow | Mapping[str, Any]] = (),
) -> ScheduleOwner:
    """Build a ScheduleOwner from its current row and calendar history rows.

    History rows may arrive in any order; they are sorted oldest first.
    """
    history = sorted(
        (build_period(row) for row in history_rows),
        key=lambda period: period.effective_from,
    )
    return ScheduleOwner(owner_id, build_period(current_row), tuple(history))


# ==============================================================================
# STANDING INSTRUCTIONS
# ==============================================================================


def build_standing_instruction(
    row: StandingInstructionRow | Mapping[str, Any],
    history_rows: Iterable[PeriodRow | Mapping[str, Any]] = (),
) -> StandingInstruction:
    """Build a StandingInstruction from its stored row.

    The instruction's current schedule period runs from `valid_from` to
    `valid_till` with the row's recurrence; `history_rows` are earlier
    periods of the same schedule.

    Raises:
        EntityValidationError: Row shape is invalid, validity dates are
            reversed, a periodic instruction has no recurrence, or a fixed
            amount instruction has no amount.
        MalformedRuleError: The stored rule string cannot be decoded.
    """
    data = _validate(STANDING_INSTRUCTION_ROW_SCHEMA, row)
    instruction_id = data[const.DATA_INSTRUCTION_ID]
    valid_from = data[const.DATA_INSTRUCTION_VALID_FROM]
    valid_till = data[const.DATA_INSTRUCTION_VALID_TILL]
    recurrence_type = data[const.DATA_INSTRUCTION_RECURRENCE_TYPE]
    instruction_type = data[const.DATA_INSTRUCTION_TYPE]
    amount = data[const.DATA_INSTRUCTION_AMOUNT]

    if valid_till is not None and valid_till < valid_from:
        raise EntityValidationError(
            const.DATA_INSTRUCTION_VALID_TILL,
            f"valid till {valid_till} is before valid from {valid_from}",
        )
    if (
        recurrence_type == const.RECURRENCE_TYPE_PERIODIC
        and not (data[const.DATA_INSTRUCTION_RECURRENCE] or "").strip()
    ):
        raise EntityValidationError(
            const.DATA_INSTRUCTION_RECURRENCE,
            "periodic instructions need a recurrence rule",
        )
    if instruction_type == const.INSTRUCTION_TYPE_FIXED_AMOUNT and amount is None:
        raise EntityValidationError(
            const.DATA_INSTRUCTION_AMOUNT, "fixed amount instructions need an amount"
        )

    rule = RecurrenceRuleCodec.decode(data[const.DATA_INSTRUCTION_RECURRENCE])
    history = sorted(
        (build_period(history_row) for history_row in history_rows),
        key=lambda period: period.effective_from,
    )
    schedule = ScheduleOwner(
        owner_id=instruction_id,
        current=SchedulePeriod(rule, valid_from, valid_till),
        history=tuple(history),
    )
    return StandingInstruction(
        instruction_id=instruction_id,
        name=data[const.DATA_INSTRUCTION_NAME],
        recurrence_type=recurrence_type,
        instruction_type=instruction_type,
        amount=amount,
        schedule=schedule,
        to_loan_account=data[const.DATA_INSTRUCTION_TO_LOAN_ACCOUNT],
        valid_till=valid_till,
    )
