"""Unit tests for rule_codec.py RecurrenceRuleCodec and RecurrenceRule checks.

Test Categories:
- Encoding of each frequency
- Decoding, normalization and rejection of bad rule strings
- decode(encode(rule)) identity
- Human-readable descriptions
- RecurrenceRule construction invariants
"""

from __future__ import annotations

import pytest

from finschedule import const
from finschedule.engines.rule_codec import RecurrenceRuleCodec
from finschedule.exceptions import MalformedRuleError
from finschedule.type_defs import RecurrenceRule

LAST_FRIDAY = RecurrenceRule(
    const.FREQUENCY_MONTHLY,
    weekday=const.WEEKDAY_FRIDAY,
    nth_weekday_ordinal=const.ORDINAL_LAST,
)


# =============================================================================
# Encoding
# =============================================================================


class TestEncode:
    """Tests for RecurrenceRuleCodec.encode."""

    @pytest.mark.parametrize(
        ("rule", "expected"),
        [
            (RecurrenceRule(const.FREQUENCY_DAILY), "FREQ=DAILY"),
            (RecurrenceRule(const.FREQUENCY_DAILY, interval=3), "FREQ=DAILY;INTERVAL=3"),
            (
                RecurrenceRule(const.FREQUENCY_WEEKLY, weekday=const.WEEKDAY_MONDAY),
                "FREQ=WEEKLY;BYDAY=MONDAY",
            ),
            (RecurrenceRule(const.FREQUENCY_MONTHLY, month_day=31), "FREQ=MONTHLY;BYMONTHDAY=31"),
            (LAST_FRIDAY, "FREQ=MONTHLY;BYSETPOS=-1;BYDAY=FRIDAY"),
            (
                RecurrenceRule(const.FREQUENCY_YEARLY, month_day=15, month_of_year=3),
                "FREQ=YEARLY;BYMONTH=3;BYMONTHDAY=15",
            ),
        ],
    )
    def test_encode(self, rule: RecurrenceRule, expected: str) -> None:
        """Each frequency emits only the keys it uses."""
        assert RecurrenceRuleCodec.encode(rule) == expected

    def test_interval_one_is_omitted(self) -> None:
        """INTERVAL only appears when greater than 1."""
        rule = RecurrenceRule(const.FREQUENCY_MONTHLY, interval=2, month_day=5)
        assert RecurrenceRuleCodec.encode(rule) == "FREQ=MONTHLY;INTERVAL=2;BYMONTHDAY=5"

    def test_none_encodes_to_empty(self) -> None:
        """A non-repeating schedule has no rule string."""
        assert RecurrenceRuleCodec.encode(None) == ""


# =============================================================================
# Decoding
# =============================================================================


class TestDecode:
    """Tests for RecurrenceRuleCodec.decode."""

    @pytest.mark.parametrize("text", [None, "", "   "])
    def test_empty_means_no_repetition(self, text: str | None) -> None:
        """Empty input decodes to None."""
        assert RecurrenceRuleCodec.decode(text) is None

    def test_case_insensitive_with_prefix_and_alias(self) -> None:
        """RRULE: prefix, lowercase and two-letter weekdays are accepted."""
        rule = RecurrenceRuleCodec.decode("rrule:freq=weekly;byday=mo")
        assert rule == RecurrenceRule(const.FREQUENCY_WEEKLY, weekday=const.WEEKDAY_MONDAY)

    def test_last_friday(self) -> None:
        """BYSETPOS with BYDAY selects nth-weekday mode."""
        assert RecurrenceRuleCodec.decode("FREQ=MONTHLY;BYSETPOS=-1;BYDAY=FRIDAY") == LAST_FRIDAY

    def test_invalid_setpos_falls_back_to_month_day(self) -> None:
        """BYSETPOS=0 is dropped along with BYDAY; BYMONTHDAY is kept."""
        rule = RecurrenceRuleCodec.decode("FREQ=MONTHLY;BYSETPOS=0;BYDAY=FRIDAY;BYMONTHDAY=15")
        assert rule == RecurrenceRule(const.FREQUENCY_MONTHLY, month_day=15)

    def test_setpos_wins_over_month_day(self) -> None:
        """A valid ordinal clears BYMONTHDAY."""
        rule = RecurrenceRuleCodec.decode("FREQ=MONTHLY;BYMONTHDAY=15;BYSETPOS=2;BYDAY=TU")
        assert rule == RecurrenceRule(
            const.FREQUENCY_MONTHLY, weekday=const.WEEKDAY_TUESDAY, nth_weekday_ordinal=2
        )

    def test_selectors_unused_by_frequency_are_dropped(self) -> None:
        """Weekly rules ignore BYMONTHDAY; daily rules ignore BYDAY."""
        assert RecurrenceRuleCodec.decode("FREQ=WEEKLY;BYMONTHDAY=5") == RecurrenceRule(
            const.FREQUENCY_WEEKLY
        )
        assert RecurrenceRuleCodec.decode("FREQ=DAILY;BYDAY=MONDAY") == RecurrenceRule(
            const.FREQUENCY_DAILY
        )

    def test_unknown_keys_are_ignored(self) -> None:
        """Unsupported RFC keys do not fail decoding."""
        assert RecurrenceRuleCodec.decode("FREQ=DAILY;WKST=MO") == RecurrenceRule(
            const.FREQUENCY_DAILY
        )

    def test_unknown_frequency_is_rejected(self) -> None:
        """FORTNIGHTLY is not a frequency."""
        with pytest.raises(MalformedRuleError) as exc_info:
            RecurrenceRuleCodec.decode("FREQ=FORTNIGHTLY")

        assert exc_info.value.rule_string == "FREQ=FORTNIGHTLY"
        assert "FORTNIGHTLY" in str(exc_info.value)

    @pytest.mark.parametrize(
        "text",
        [
            "INTERVAL=2",
            "FREQ=DAILY;INTERVAL=0",
            "FREQ=DAILY;INTERVAL=x",
            "FREQ=DAILY;INTERVAL",
            "FREQ=WEEKLY;BYDAY=FUNDAY",
            "FREQ=WEEKLY;BYDAY=MO,TU",
            "FREQ=MONTHLY;BYMONTHDAY=32",
            "FREQ=MONTHLY;BYSETPOS=first;BYDAY=MO",
            "FREQ=YEARLY;BYMONTH=13",
            "FREQ=DAILY;FREQ=WEEKLY",
        ],
    )
    def test_malformed(self, text: str) -> None:
        """Each of these rule strings is rejected."""
        with pytest.raises(MalformedRuleError):
            RecurrenceRuleCodec.decode(text)

    def test_malformed_is_a_value_error(self) -> None:
        """Callers catching ValueError also catch malformed rules."""
        with pytest.raises(ValueError):
            RecurrenceRuleCodec.decode("FREQ=HOURLY")

    @pytest.mark.parametrize(
        "rule",
        [
            RecurrenceRule(const.FREQUENCY_DAILY, interval=7),
            RecurrenceRule(const.FREQUENCY_WEEKLY),
            RecurrenceRule(const.FREQUENCY_WEEKLY, interval=2, weekday=const.WEEKDAY_SUNDAY),
            RecurrenceRule(const.FREQUENCY_MONTHLY),
            RecurrenceRule(const.FREQUENCY_MONTHLY, month_day=const.MONTH_DAY_LAST),
            LAST_FRIDAY,
            RecurrenceRule(const.FREQUENCY_YEARLY, interval=2, month_of_year=2, month_day=29),
        ],
    )
    def test_decode_inverts_encode(self, rule: RecurrenceRule) -> None:
        """Encoding then decoding returns an equal rule."""
        assert RecurrenceRuleCodec.decode(RecurrenceRuleCodec.encode(rule)) == rule


# =============================================================================
# Descriptions
# =============================================================================


class TestDescribe:
    """Tests for RecurrenceRuleCodec.describe."""

    @pytest.mark.parametrize(
        ("rule", "expected"),
        [
            (None, "Once"),
            (RecurrenceRule(const.FREQUENCY_DAILY), "Daily"),
            (
                RecurrenceRule(const.FREQUENCY_WEEKLY, interval=2, weekday=const.WEEKDAY_MONDAY),
                "Every 2 weeks on Monday",
            ),
            (LAST_FRIDAY, "Monthly on the last Friday"),
            (
                RecurrenceRule(
                    const.FREQUENCY_MONTHLY, weekday=const.WEEKDAY_TUESDAY, nth_weekday_ordinal=2
                ),
                "Monthly on the second Tuesday",
            ),
            (RecurrenceRule(const.FREQUENCY_MONTHLY, month_day=31), "Monthly on day 31"),
            (RecurrenceRule(const.FREQUENCY_MONTHLY, month_day=-1), "Monthly on the last day"),
            (
                RecurrenceRule(const.FREQUENCY_YEARLY, month_day=15, month_of_year=3),
                "Yearly in March on day 15",
            ),
        ],
    )
    def test_describe(self, rule: RecurrenceRule | None, expected: str) -> None:
        """Rules render as short English phrases."""
        assert RecurrenceRuleCodec.describe(rule) == expected


# =============================================================================
# RecurrenceRule invariants
# =============================================================================


class TestRecurrenceRule:
    """Construction-time checks on RecurrenceRule."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"frequency": const.FREQUENCY_DAILY, "interval": 0},
            {"frequency": const.FREQUENCY_DAILY, "interval": True},
            {"frequency": const.FREQUENCY_WEEKLY, "weekday": "FUNDAY"},
            {"frequency": const.FREQUENCY_MONTHLY, "month_day": 0},
            {"frequency": const.FREQUENCY_MONTHLY, "month_day": -2},
            {
                "frequency": const.FREQUENCY_MONTHLY,
                "weekday": const.WEEKDAY_MONDAY,
                "nth_weekday_ordinal": 5,
            },
            {"frequency": const.FREQUENCY_MONTHLY, "nth_weekday_ordinal": 1},
            {
                "frequency": const.FREQUENCY_MONTHLY,
                "weekday": const.WEEKDAY_MONDAY,
                "nth_weekday_ordinal": 1,
                "month_day": 3,
            },
            {"frequency": const.FREQUENCY_MONTHLY, "weekday": const.WEEKDAY_MONDAY},
            {"frequency": const.FREQUENCY_WEEKLY, "month_day": 3},
            {"frequency": const.FREQUENCY_DAILY, "weekday": const.WEEKDAY_MONDAY},
            {"frequency": const.FREQUENCY_YEARLY, "month_of_year": 0},
        ],
    )
    def test_invalid_rules(self, kwargs: dict) -> None:
        """Out-of-range or contradictory selectors are rejected."""
        with pytest.raises(MalformedRuleError):
            RecurrenceRule(**kwargs)

    def test_unknown_frequency_is_constructible(self) -> None:
        """Frequency membership is left to the evaluator."""
        rule = RecurrenceRule("FORTNIGHTLY")
        assert rule.frequency == "FORTNIGHTLY"

    def test_frequency_is_normalized(self) -> None:
        """Lower-case frequencies compare equal and survive encode/decode."""
        rule = RecurrenceRule(" weekly", weekday=const.WEEKDAY_MONDAY)

        assert rule.frequency == const.FREQUENCY_WEEKLY
        assert rule == RecurrenceRule(const.FREQUENCY_WEEKLY, weekday=const.WEEKDAY_MONDAY)
        assert RecurrenceRuleCodec.decode(RecurrenceRuleCodec.encode(rule)) == rule

    def test_lower_case_frequency_checks_selectors(self) -> None:
        """Selector checks apply after normalization."""
        with pytest.raises(MalformedRuleError):
            RecurrenceRule("daily", weekday=const.WEEKDAY_MONDAY)

    def test_same_cadence(self) -> None:
        """Cadence compares frequency and interval only."""
        monday = RecurrenceRule(const.FREQUENCY_WEEKLY, weekday=const.WEEKDAY_MONDAY)
        friday = RecurrenceRule(const.FREQUENCY_WEEKLY, weekday=const.WEEKDAY_FRIDAY)
        fortnight = RecurrenceRule(const.FREQUENCY_WEEKLY, interval=2)

        assert monday.same_cadence(friday)
        assert not monday.same_cadence(fortnight)
        assert not monday.same_cadence(None)
