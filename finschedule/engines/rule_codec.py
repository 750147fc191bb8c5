"""Recurrence Rule Codec for finschedule.

Converts between the typed `RecurrenceRule` value and the compact rule
string stored with calendars and standing instructions:

    FREQ=<X>[;INTERVAL=<n>][;BYDAY=<day>][;BYMONTHDAY=<d>][;BYSETPOS=<n>]
    [;BYMONTH=<m>]

Only a constrained RFC 5545 subset is understood: one FREQ, INTERVAL, a
single BYDAY value, BYMONTHDAY, BYSETPOS and (yearly rules) BYMONTH.
Engines never touch raw strings; this module is the only boundary.
"""

from __future__ import annotations

from typing import ClassVar

from .. import const
from ..exceptions import MalformedRuleError
from ..type_defs import RecurrenceRule


def weekday_code(index: int) -> str:
    """Return the weekday code for a date.weekday() index."""
    return const.WEEKDAY_CODES[index]


def normalize_weekday(value: str) -> str | None:
    """Return the canonical weekday code for a full name or RFC alias."""
    token = value.strip().upper()
    if token in const.WEEKDAY_CODES:
        return token
    return const.WEEKDAY_ALIASES.get(token)


class RecurrenceRuleCodec:
    """Encode, decode and describe recurrence rules.

    All methods are static; the codec holds no state.
    """

    # Keys the decoder understands; anything else is ignored
    KNOWN_KEYS: ClassVar[frozenset[str]] = frozenset(
        {
            const.RULE_KEY_FREQ,
            const.RULE_KEY_INTERVAL,
            const.RULE_KEY_BYDAY,
            const.RULE_KEY_BYMONTHDAY,
            const.RULE_KEY_BYSETPOS,
            const.RULE_KEY_BYMONTH,
        }
    )

    # =========================================================================
    # Encoding
    # =========================================================================

    @staticmethod
    def encode(rule: RecurrenceRule | None) -> str:
        """Encode a rule to its compact string form.

        Args:
            rule: Rule to encode, or None for a non-repeating schedule.

        Returns:
            Rule string (e.g., "FREQ=MONTHLY;BYSETPOS=-1;BYDAY=FRIDAY"),
            or "" for None.
        """
        if rule is None:
            return ""

        parts = [f"{const.RULE_KEY_FREQ}={rule.frequency}"]
        if rule.interval > 1:
            parts.append(f"{const.RULE_KEY_INTERVAL}={rule.interval}")

        if rule.frequency == const.FREQUENCY_WEEKLY:
            if rule.weekday:
                parts.append(f"{const.RULE_KEY_BYDAY}={rule.weekday}")
        elif rule.frequency == const.FREQUENCY_MONTHLY:
            if rule.uses_nth_weekday:
                parts.append(f"{const.RULE_KEY_BYSETPOS}={rule.nth_weekday_ordinal}")
                parts.append(f"{const.RULE_KEY_BYDAY}={rule.weekday}")
            elif rule.month_day is not None:
                parts.append(f"{const.RULE_KEY_BYMONTHDAY}={rule.month_day}")
        elif rule.frequency == const.FREQUENCY_YEARLY:
            if rule.month_of_year is not None:
                parts.append(f"{const.RULE_KEY_BYMONTH}={rule.month_of_year}")
            if rule.month_day is not None:
                parts.append(f"{const.RULE_KEY_BYMONTHDAY}={rule.month_day}")

        return const.RULE_PART_SEPARATOR.join(parts)

    # =========================================================================
    # Decoding
    # =========================================================================

    @staticmethod
    def decode(rule_string: str | None) -> RecurrenceRule | None:
        """Decode a rule string into a RecurrenceRule.

        Args:
            rule_string: Stored rule text. Empty or None means the schedule
                does not repeat.

        Returns:
            The decoded rule, or None for "no repetition".

        Raises:
            MalformedRuleError: Unknown FREQ, missing FREQ, non-numeric
                numeric fields, interval below 1, or an unrecognized BYDAY.
        """
        if rule_string is None or not rule_string.strip():
            return None

        fields = RecurrenceRuleCodec.split_parts(rule_string)

        raw_freq = fields.get(const.RULE_KEY_FREQ)
        if raw_freq is None:
            raise MalformedRuleError("missing FREQ", rule_string)
        if raw_freq not in const.FREQUENCY_OPTIONS:
            raise MalformedRuleError(f"unrecognized FREQ {raw_freq!r}", rule_string)

        interval = 1
        if const.RULE_KEY_INTERVAL in fields:
            interval = RecurrenceRuleCodec._to_int(
                fields[const.RULE_KEY_INTERVAL], const.RULE_KEY_INTERVAL, rule_string
            )
            if interval < 1:
                raise MalformedRuleError(f"INTERVAL must be >= 1, got {interval}", rule_string)

        weekday: str | None = None
        if const.RULE_KEY_BYDAY in fields:
            raw_day = fields[const.RULE_KEY_BYDAY]
            weekday = normalize_weekday(raw_day)
            if weekday is None:
                raise MalformedRuleError(f"unrecognized BYDAY {raw_day!r}", rule_string)

        month_day: int | None = None
        if const.RULE_KEY_BYMONTHDAY in fields:
            month_day = RecurrenceRuleCodec._to_int(
                fields[const.RULE_KEY_BYMONTHDAY], const.RULE_KEY_BYMONTHDAY, rule_string
            )

        ordinal: int | None = None
        if const.RULE_KEY_BYSETPOS in fields:
            ordinal = RecurrenceRuleCodec._to_int(
                fields[const.RULE_KEY_BYSETPOS], const.RULE_KEY_BYSETPOS, rule_string
            )
            if ordinal not in const.VALID_ORDINALS:
                # Invalid ordinals fall back to day-of-month mode
                const.LOGGER.debug(
                    "RuleCodec: Ignoring BYSETPOS=%s in %r, using day-of-month mode",
                    ordinal,
                    rule_string,
                )
                ordinal = None

        month_of_year: int | None = None
        if const.RULE_KEY_BYMONTH in fields:
            month_of_year = RecurrenceRuleCodec._to_int(
                fields[const.RULE_KEY_BYMONTH], const.RULE_KEY_BYMONTH, rule_string
            )

        # Keep only the selectors each frequency understands
        if raw_freq == const.FREQUENCY_MONTHLY:
            if ordinal is None or weekday is None:
                ordinal = None
                weekday = None
            else:
                month_day = None
            month_of_year = None
        elif raw_freq == const.FREQUENCY_YEARLY:
            weekday = None
            ordinal = None
        else:
            if raw_freq == const.FREQUENCY_DAILY:
                weekday = None
            month_day = None
            ordinal = None
            month_of_year = None

        try:
            return RecurrenceRule(
                frequency=raw_freq,
                interval=interval,
                weekday=weekday,
                month_day=month_day,
                nth_weekday_ordinal=ordinal,
                month_of_year=month_of_year,
            )
        except MalformedRuleError as err:
            raise MalformedRuleError(err.reason, rule_string) from err

    @staticmethod
    def split_parts(rule_string: str) -> dict[str, str]:
        """Split a rule string into upper-cased KEY -> VALUE pairs."""
        text = rule_string.strip()
        if text.upper().startswith(const.RULE_PREFIX):
            text = text[len(const.RULE_PREFIX) :]

        fields: dict[str, str] = {}
        for part in text.split(const.RULE_PART_SEPARATOR):
            part = part.strip()
            if not part:
                continue
            key, sep, value = part.partition(const.RULE_VALUE_SEPARATOR)
            key = key.strip().upper()
            value = value.strip().upper()
            if not sep or not key or not value:
                raise MalformedRuleError(f"expected KEY=VALUE, got {part!r}", rule_string)
            if key not in RecurrenceRuleCodec.KNOWN_KEYS:
                const.LOGGER.debug("RuleCodec: Ignoring unsupported key %s", key)
                continue
            if key in fields:
                raise MalformedRuleError(f"duplicate {key}", rule_string)
            fields[key] = value
        return fields

    @staticmethod
    def _to_int(value: str, key: str, rule_string: str) -> int:
        """Parse an integer rule value or raise MalformedRuleError."""
        try:
            return int(value)
        except ValueError as err:
            raise MalformedRuleError(f"{key} is not a number: {value!r}", rule_string) from err

    # =========================================================================
    # Human-readable rendering
    # =========================================================================

    @staticmethod
    def describe(rule: RecurrenceRule | None) -> str:
        """Render a rule as a short English sentence.

        Examples:
            FREQ=DAILY → "Daily"
            FREQ=WEEKLY;INTERVAL=2;BYDAY=MONDAY → "Every 2 weeks on Monday"
            FREQ=MONTHLY;BYSETPOS=-1;BYDAY=FRIDAY → "Monthly on the last Friday"
            FREQ=MONTHLY;BYMONTHDAY=-1 → "Monthly on the last day"
            None → "Once"
        """
        if rule is None:
            return "Once"

        _, plural = const.FREQUENCY_UNITS.get(
            rule.frequency, (rule.frequency.lower(), rule.frequency.lower())
        )
        if rule.interval == 1:
            text = rule.frequency.capitalize()
        else:
            text = f"Every {rule.interval} {plural}"

        weekday_name = rule.weekday.capitalize() if rule.weekday else None
        if rule.frequency == const.FREQUENCY_WEEKLY and weekday_name:
            text += f" on {weekday_name}"
        elif rule.frequency == const.FREQUENCY_MONTHLY:
            if rule.uses_nth_weekday:
                ordinal = const.ORDINAL_LABELS[rule.nth_weekday_ordinal]  # type: ignore[index]
                text += f" on the {ordinal} {weekday_name}"
            elif rule.month_day is not None:
                text += f" on {_describe_month_day(rule.month_day)}"
        elif rule.frequency == const.FREQUENCY_YEARLY:
            if rule.month_of_year is not None:
                text += f" in {_MONTH_NAMES[rule.month_of_year - 1]}"
            if rule.month_day is not None:
                text += f" on {_describe_month_day(rule.month_day)}"
        return text


_MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def _describe_month_day(month_day: int) -> str:
    if month_day == const.MONTH_DAY_LAST:
        return "the last day"
    return f"day {month_day}"
