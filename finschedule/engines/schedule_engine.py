"""Schedule Engine for finschedule.

Two cooperating pieces:
- `ScheduleEvaluator` decides whether one candidate date is an occurrence of
  a rule anchored at a start date.
- `OccurrenceGenerator` produces bounded, lazy, restartable sequences of
  occurrence dates by probing the evaluator one calendar day at a time.

Month and year arithmetic goes through `utils.dt_utils` (calendar plus
`dateutil.relativedelta`), so "day 31" clamps to the last day of shorter
months instead of skipping them.

IMPORTANT: This module must NOT import from history_engine.py or the
managers. Only import from const.py, type_defs.py, exceptions.py, utils/
and rule_codec.py.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import date, timedelta
from typing import ClassVar

from .. import const
from ..exceptions import ScheduleExhaustedError, UnsupportedFrequencyError
from ..type_defs import RecurrenceRule
from ..utils.dt_utils import (
    clamp_month_day,
    in_date_window,
    months_between,
    nth_weekday_of_month,
    weeks_between,
    years_between,
)
from .rule_codec import RecurrenceRuleCodec

# A frequency handler returns the elapsed period index when the candidate
# matches the rule, or None when it does not.
PeriodMatcher = Callable[[RecurrenceRule, date, date], "int | None"]


class ScheduleEvaluator:
    """Decide whether a date is a valid occurrence of a recurrence rule.

    Stateless; a single instance can be shared by every caller.

    Handles all supported frequencies:
    - DAILY: every `interval` days from the start date
    - WEEKLY: one weekday, every `interval` Monday-started weeks
    - MONTHLY: clamped day-of-month, or nth/last weekday of the month
    - YEARLY: clamped day-of-month inside one month of the year
    """

    _MATCHERS: ClassVar[dict[str, str]] = {
        const.FREQUENCY_DAILY: "_match_daily",
        const.FREQUENCY_WEEKLY: "_match_weekly",
        const.FREQUENCY_MONTHLY: "_match_monthly",
        const.FREQUENCY_YEARLY: "_match_yearly",
    }

    def is_occurrence(
        self,
        rule: RecurrenceRule | None,
        start_date: date,
        candidate_date: date,
        skip_first_period: bool = False,
        min_gap_days: int | None = None,
        end_date: date | None = None,
    ) -> bool:
        """Check whether `candidate_date` is an occurrence of `rule`.

        Args:
            rule: Rule to evaluate; None means a single occurrence at
                `start_date`.
            start_date: Anchor date of the schedule period.
            candidate_date: Date being tested.
            skip_first_period: Exclude occurrences in the first interval
                period (index 0) so a schedule's first computed period does
                not collide with its creation date. Repeating rules only.
            min_gap_days: Extra lower bound on `candidate - start` in days.
            end_date: Inclusive end of the owning period, if any.

        Returns:
            True when the candidate is an occurrence.

        Raises:
            UnsupportedFrequencyError: The rule's frequency is not handled.
        """
        if candidate_date < start_date:
            return False
        if end_date is not None and candidate_date > end_date:
            return False
        if min_gap_days is not None and (candidate_date - start_date).days < min_gap_days:
            return False

        if rule is None:
            return candidate_date == start_date

        period_index = self.period_index(rule, start_date, candidate_date)
        if period_index is None:
            return False
        if skip_first_period and period_index == 0:
            return False
        return True

    def period_index(
        self, rule: RecurrenceRule, start_date: date, candidate_date: date
    ) -> int | None:
        """Return how many intervals separate a matching candidate from start.

        Returns:
            The elapsed period index (0 for the first period), or None when
            the candidate is not an occurrence. Candidates before the start
            date never match.

        Raises:
            UnsupportedFrequencyError: The rule's frequency is not handled.
        """
        matcher_name = self._MATCHERS.get(rule.frequency)
        if matcher_name is None:
            raise UnsupportedFrequencyError(rule.frequency)
        if candidate_date < start_date:
            return None
        matcher: PeriodMatcher = getattr(self, matcher_name)
        return matcher(rule, start_date, candidate_date)

    # =========================================================================
    # Date-window primitives
    # =========================================================================

    @staticmethod
    def in_window(candidate_date: date, first: date, last: date | None) -> bool:
        """Inclusive window membership (open-ended when `last` is None)."""
        return in_date_window(candidate_date, first, last)

    @staticmethod
    def within_buffer(
        candidate_date: date, first: date, last: date, buffer_days: int
    ) -> bool:
        """True when the candidate lies within `buffer_days` of [first, last]."""
        return in_date_window(
            candidate_date,
            first - timedelta(days=buffer_days),
            last + timedelta(days=buffer_days),
        )

    # =========================================================================
    # Private: per-frequency matchers
    # =========================================================================

    @staticmethod
    def _match_daily(rule: RecurrenceRule, start: date, candidate: date) -> int | None:
        elapsed = (candidate - start).days
        if elapsed % rule.interval:
            return None
        return elapsed // rule.interval

    @staticmethod
    def _match_weekly(rule: RecurrenceRule, start: date, candidate: date) -> int | None:
        weekday = rule.weekday_index
        if weekday is None:
            weekday = start.weekday()
        if candidate.weekday() != weekday:
            return None

        weeks = weeks_between(start, candidate)
        if weeks % rule.interval:
            return None
        return weeks // rule.interval

    @staticmethod
    def _match_monthly(rule: RecurrenceRule, start: date, candidate: date) -> int | None:
        months = months_between(start, candidate)
        if months % rule.interval:
            return None

        if rule.uses_nth_weekday:
            target = nth_weekday_of_month(
                candidate.year,
                candidate.month,
                rule.weekday_index,  # type: ignore[arg-type]
                rule.nth_weekday_ordinal,  # type: ignore[arg-type]
            )
        else:
            month_day = rule.month_day if rule.month_day is not None else start.day
            target = clamp_month_day(candidate.year, candidate.month, month_day)

        if candidate != target:
            return None
        return months // rule.interval

    @staticmethod
    def _match_yearly(rule: RecurrenceRule, start: date, candidate: date) -> int | None:
        years = years_between(start, candidate)
        if years % rule.interval:
            return None

        month = rule.month_of_year or start.month
        if candidate.month != month:
            return None

        month_day = rule.month_day if rule.month_day is not None else start.day
        if candidate != clamp_month_day(candidate.year, month, month_day):
            return None
        return years // rule.interval


# =============================================================================
# Occurrence generation
# =============================================================================


@dataclass(frozen=True)
class OccurrenceSequence:
    """A finite, restartable, lazily produced sequence of occurrence dates.

    Every iteration starts over from `first_probe`; nothing is cached.
    Iteration stops after `count` occurrences, after `until_date`, or after
    `end_date`, whichever comes first. A run of `max_probe_days` consecutive
    non-matching days raises ScheduleExhaustedError. OccurrenceGenerator
    sets that limit no lower than the rule's longest possible gap.
    """

    evaluator: ScheduleEvaluator
    rule: RecurrenceRule | None
    start_date: date
    first_probe: date
    count: int | None = None
    until_date: date | None = None
    end_date: date | None = None
    skip_first_period: bool = False
    min_gap_days: int | None = None
    max_probe_days: int = const.MAX_PROBE_DAYS

    def __iter__(self) -> Iterator[date]:
        """Probe one day at a time and yield each occurrence."""
        if self.count == 0:
            return

        last_probe = self._last_probe()
        if self.rule is None:
            # Non-repeating: the start date is the only candidate
            if self.first_probe <= self.start_date and (
                last_probe is None or self.start_date <= last_probe
            ):
                yield self.start_date
            return

        found = 0
        misses = 0
        current = self.first_probe
        while last_probe is None or current <= last_probe:
            if self.evaluator.is_occurrence(
                self.rule,
                self.start_date,
                current,
                skip_first_period=self.skip_first_period,
                min_gap_days=self.min_gap_days,
                end_date=self.end_date,
            ):
                yield current
                found += 1
                misses = 0
                if self.count is not None and found >= self.count:
                    return
            else:
                misses += 1
                if misses >= self.max_probe_days:
                    const.LOGGER.warning(
                        "OccurrenceSequence: No occurrence of %s within %d days after %s",
                        RecurrenceRuleCodec.encode(self.rule),
                        misses,
                        current - timedelta(days=misses - 1),
                    )
                    raise ScheduleExhaustedError(misses, found, current)
            current += timedelta(days=1)

    def to_list(self) -> list[date]:
        """Materialize the whole sequence."""
        return list(self)

    def first(self) -> date | None:
        """Return the first occurrence, or None when the sequence is empty."""
        return next(iter(self), None)

    def _last_probe(self) -> date | None:
        """Latest date worth probing, from until_date and end_date."""
        bounds = [d for d in (self.until_date, self.end_date) if d is not None]
        return min(bounds) if bounds else None


class OccurrenceGenerator:
    """Produce occurrence sequences using a ScheduleEvaluator.

    Two canonical usages:
    - count-bounded: "next N occurrences from today"
    - date-bounded: "all occurrences between start and until_date"
    """

    def __init__(
        self,
        evaluator: ScheduleEvaluator | None = None,
        max_probe_days: int | None = None,
    ) -> None:
        """Initialize the generator.

        Args:
            evaluator: Evaluator to probe with (a fresh one by default).
            max_probe_days: Consecutive non-matching days tolerated before a
                sequence raises ScheduleExhaustedError. When omitted, each
                sequence allows MAX_PROBE_DAYS or the rule's longest gap,
                whichever is larger, so sparse rules such as
                FREQ=YEARLY;INTERVAL=11 keep producing dates. An explicit
                value is used as given.
        """
        if max_probe_days is not None and max_probe_days < 1:
            raise ValueError("max_probe_days must be at least 1")
        self.evaluator = evaluator or ScheduleEvaluator()
        self.max_probe_days = max_probe_days

    @staticmethod
    def longest_gap_days(
        rule: RecurrenceRule | None,
        skip_first_period: bool = False,
        min_gap_days: int | None = None,
    ) -> int:
        """Upper bound on consecutive non-matching days for a rule.

        Covers the gap between two occurrences, plus the skipped first
        period and the minimum gap before the first one.
        """
        if rule is None:
            return 1
        period_days = const.FREQUENCY_MAX_PERIOD_DAYS.get(rule.frequency, 1)
        periods = rule.interval + 1
        if skip_first_period:
            periods += rule.interval
        return period_days * periods + (min_gap_days or 0)

    def probe_limit(
        self,
        rule: RecurrenceRule | None,
        skip_first_period: bool = False,
        min_gap_days: int | None = None,
    ) -> int:
        """Probe limit for one sequence of `rule`."""
        if self.max_probe_days is not None:
            return self.max_probe_days
        return max(
            const.MAX_PROBE_DAYS,
            self.longest_gap_days(rule, skip_first_period, min_gap_days),
        )

    def generate(
        self,
        rule: RecurrenceRule | None,
        start_date: date,
        from_date: date | None = None,
        count: int | None = None,
        until_date: date | None = None,
        *,
        end_date: date | None = None,
        skip_first_period: bool = False,
        min_gap_days: int | None = None,
    ) -> OccurrenceSequence:
        """Build an occurrence sequence.

        Args:
            rule: Rule to expand (None for a single occurrence at start).
            start_date: Anchor date of the schedule period.
            from_date: First date to probe; probing starts at
                max(start_date, from_date).
            count: Stop after this many occurrences.
            until_date: Stop after this date (inclusive).
            end_date: Inclusive end of the owning period.
            skip_first_period: Passed through to the evaluator.
            min_gap_days: Passed through to the evaluator.

        Returns:
            A lazy, restartable OccurrenceSequence.

        Raises:
            ValueError: Neither count nor until_date given, or count < 0.
        """
        if count is None and until_date is None:
            raise ValueError("generate() needs a count or an until_date")
        if count is not None and count < 0:
            raise ValueError(f"count must not be negative, got {count}")

        first_probe = start_date if from_date is None else max(start_date, from_date)
        return OccurrenceSequence(
            evaluator=self.evaluator,
            rule=rule,
            start_date=start_date,
            first_probe=first_probe,
            count=count,
            until_date=until_date,
            end_date=end_date,
            skip_first_period=skip_first_period,
            min_gap_days=min_gap_days,
            max_probe_days=self.probe_limit(rule, skip_first_period, min_gap_days),
        )

    def next_occurrences(
        self,
        rule: RecurrenceRule | None,
        start_date: date,
        from_date: date,
        count: int = const.DEFAULT_NEXT_OCCURRENCES,
        end_date: date | None = None,
    ) -> list[date]:
        """Return up to `count` occurrences on or after `from_date`.

        Exhaustion is treated as "no further occurrences": whatever was found
        before the probe limit is returned.
        """
        sequence = self.generate(
            rule, start_date, from_date=from_date, count=count, end_date=end_date
        )
        occurrences: list[date] = []
        try:
            for occurrence in sequence:
                occurrences.append(occurrence)
        except ScheduleExhaustedError as err:
            const.LOGGER.debug(
                "OccurrenceGenerator: Stopped after %d occurrences: %s",
                len(occurrences),
                err,
            )
        return occurrences

    def next_occurrence(
        self,
        rule: RecurrenceRule | None,
        start_date: date,
        after: date,
        inclusive: bool = False,
        end_date: date | None = None,
    ) -> date | None:
        """Return the first occurrence after (or on, if inclusive) `after`.

        Returns None when the schedule has ended or is exhausted.
        """
        from_date = after if inclusive else after + timedelta(days=1)
        found = self.next_occurrences(
            rule, start_date, from_date, count=1, end_date=end_date
        )
        return found[0] if found else None

    def previous_occurrence(
        self,
        rule: RecurrenceRule | None,
        start_date: date,
        on_or_before: date,
        end_date: date | None = None,
    ) -> date | None:
        """Return the most recent occurrence on or before a date.

        Probes backwards at most the sequence probe limit; returns None when
        nothing matches.
        """
        current = on_or_before if end_date is None else min(on_or_before, end_date)
        limit = self.probe_limit(rule)
        probes = 0
        while current >= start_date and probes < limit:
            if self.evaluator.is_occurrence(rule, start_date, current, end_date=end_date):
                return current
            current -= timedelta(days=1)
            probes += 1
        return None


# =============================================================================
# Module-level convenience functions
# =============================================================================


def calculate_next_occurrences(
    rule_string: str | None,
    start_date: date,
    from_date: date,
    count: int = const.DEFAULT_NEXT_OCCURRENCES,
    end_date: date | None = None,
) -> list[date]:
    """Decode a stored rule string and list its next occurrences.

    Convenience for calendar views that hold the raw stored rule.

    Raises:
        MalformedRuleError: The stored rule cannot be decoded.
    """
    rule = RecurrenceRuleCodec.decode(rule_string)
    return OccurrenceGenerator().next_occurrences(
        rule, start_date, from_date, count=count, end_date=end_date
    )
