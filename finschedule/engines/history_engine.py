"""Schedule History Engine for finschedule.

Answers "which rule applied on this date" for owners whose schedule was
edited over time, lists occurrences across the whole history, and performs
the two owner edits (supersede a rule, move a meeting) by returning new
ScheduleOwner values.

Resolution order is history (oldest first) then the current period; the
first period containing the date wins. Overlaps are data-integrity issues:
they are reported, never silently merged.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, timedelta

from .. import const
from ..exceptions import AmbiguousHistoryError, ScheduleEditError
from ..type_defs import RecurrenceRule, ScheduleOwner, SchedulePeriod
from ..utils.dt_utils import clamp_month_day, weekday_ordinal
from .rule_codec import RecurrenceRuleCodec, weekday_code
from .schedule_engine import OccurrenceGenerator, ScheduleEvaluator


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving an owner's schedule on one date.

    Attributes:
        period: The first period claiming the date (or the current period
            when none does)
        conflict: Set when more than one period claims the date
    """

    period: SchedulePeriod
    conflict: AmbiguousHistoryError | None = None

    @property
    def rule(self) -> RecurrenceRule | None:
        """Rule of the resolved period."""
        return self.period.rule


def rederive_rule(rule: RecurrenceRule | None, new_date: date) -> RecurrenceRule | None:
    """Re-anchor a rule's day selectors on a moved meeting date.

    Frequency and interval are kept; the weekday, day-of-month or weekday
    ordinal the rule uses are recomputed from `new_date`. Selectors the rule
    left unset stay unset (they already follow the period start).
    """
    if rule is None:
        return None

    if rule.frequency == const.FREQUENCY_WEEKLY and rule.weekday is not None:
        return replace(rule, weekday=weekday_code(new_date.weekday()))

    if rule.frequency == const.FREQUENCY_MONTHLY:
        if rule.uses_nth_weekday:
            ordinal, is_last = weekday_ordinal(new_date)
            if is_last and (
                rule.nth_weekday_ordinal == const.ORDINAL_LAST
                or ordinal > const.ORDINAL_MAX
            ):
                ordinal = const.ORDINAL_LAST
            return replace(
                rule,
                weekday=weekday_code(new_date.weekday()),
                nth_weekday_ordinal=ordinal,
            )
        if rule.month_day is not None:
            return replace(rule, month_day=_rederive_month_day(rule.month_day, new_date))
        return rule

    if rule.frequency == const.FREQUENCY_YEARLY:
        return replace(
            rule,
            month_of_year=new_date.month if rule.month_of_year is not None else None,
            month_day=(
                _rederive_month_day(rule.month_day, new_date)
                if rule.month_day is not None
                else None
            ),
        )

    return rule


def _rederive_month_day(month_day: int, new_date: date) -> int:
    """Keep "last day" when the new date is a month end, else use its day."""
    is_month_end = new_date == clamp_month_day(
        new_date.year, new_date.month, const.MONTH_DAY_LAST
    )
    if month_day == const.MONTH_DAY_LAST and is_month_end:
        return const.MONTH_DAY_LAST
    return new_date.day


class ScheduleHistoryResolver:
    """Resolve, list and edit schedule periods of an owner.

    Stateless apart from the evaluator and generator it delegates to.
    """

    def __init__(
        self,
        evaluator: ScheduleEvaluator | None = None,
        generator: OccurrenceGenerator | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            evaluator: Evaluator for single-date checks.
            generator: Generator for occurrence listings; defaults to one
                sharing `evaluator`.
        """
        self.evaluator = evaluator or ScheduleEvaluator()
        self.generator = generator or OccurrenceGenerator(self.evaluator)

    # =========================================================================
    # Resolution
    # =========================================================================

    def resolve(self, owner: ScheduleOwner, on_date: date) -> Resolution:
        """Pick the period applicable on `on_date`.

        History is scanned before the current period and the first period
        containing the date wins. When nothing claims the date the current
        period is returned, so a date before any period simply evaluates as
        "not an occurrence".
        """
        claiming = tuple(period for period in owner.periods if period.contains(on_date))
        if not claiming:
            return Resolution(owner.current)
        conflict = None
        if len(claiming) > 1:
            conflict = AmbiguousHistoryError(owner.owner_id, on_date, claiming)
        return Resolution(claiming[0], conflict)

    def period_effective_on(
        self, owner: ScheduleOwner, on_date: date, strict: bool = False
    ) -> SchedulePeriod:
        """Return the period in effect on a date.

        Raises:
            AmbiguousHistoryError: Only with strict=True, when periods overlap.
        """
        resolution = self.resolve(owner, on_date)
        if resolution.conflict is not None:
            if strict:
                raise resolution.conflict
            const.LOGGER.warning(
                "ScheduleHistory: %s; using period starting %s",
                resolution.conflict,
                resolution.period.effective_from,
            )
        return resolution.period

    def rule_effective_on(
        self, owner: ScheduleOwner, on_date: date, strict: bool = False
    ) -> RecurrenceRule | None:
        """Return the rule in effect on a date (None for a one-off period)."""
        return self.period_effective_on(owner, on_date, strict=strict).rule

    def is_occurrence_on(
        self,
        owner: ScheduleOwner,
        on_date: date,
        skip_first_period: bool = False,
        min_gap_days: int | None = None,
        strict: bool = False,
    ) -> bool:
        """Resolve the period for `on_date`, then evaluate against it."""
        period = self.period_effective_on(owner, on_date, strict=strict)
        return self.evaluator.is_occurrence(
            period.rule,
            period.effective_from,
            on_date,
            skip_first_period=skip_first_period,
            min_gap_days=min_gap_days,
            end_date=period.effective_to,
        )

    # =========================================================================
    # Listing
    # =========================================================================

    def occurrences(
        self,
        owner: ScheduleOwner,
        from_date: date,
        until_date: date,
        include_history: bool = True,
    ) -> list[date]:
        """List every occurrence in [from_date, until_date], oldest first.

        Each period contributes the occurrences of its own rule inside its
        own effective window, so a past meeting keeps the date its rule gave
        it at the time.

        Raises:
            ScheduleExhaustedError: A period's rule finds nothing for longer
                than the generator's probe limit.
        """
        if until_date < from_date:
            return []

        periods = owner.periods if include_history else (owner.current,)
        found: set[date] = set()
        for period in periods:
            window_end = until_date
            if period.effective_to is not None:
                window_end = min(window_end, period.effective_to)
            if window_end < max(from_date, period.effective_from):
                continue
            sequence = self.generator.generate(
                period.rule,
                period.effective_from,
                from_date=from_date,
                until_date=window_end,
                end_date=period.effective_to,
            )
            found.update(sequence)
        return sorted(found)

    # =========================================================================
    # Owner edits
    # =========================================================================

    def supersede(
        self,
        owner: ScheduleOwner,
        new_rule: RecurrenceRule | None,
        edit_date: date,
        lock_cadence: bool = False,
    ) -> ScheduleOwner:
        """Replace the current rule from `edit_date` onwards.

        The current period is closed the day before `edit_date` and moved to
        history; a new current period with `new_rule` starts on `edit_date`.

        Args:
            owner: Owner being edited
            new_rule: Rule of the new current period
            edit_date: First date the new rule applies
            lock_cadence: Reject a change of frequency or interval (calendars
                with active loans synced to their meetings)

        Raises:
            ScheduleEditError: edit_date not after the current start, outside
                the current period, or a locked cadence change.
        """
        current = owner.current
        self._check_edit_date(owner, edit_date)
        if lock_cadence and not _same_cadence(current.rule, new_rule):
            raise ScheduleEditError(
                f"Owner {owner.owner_id}: cannot change "
                f"{RecurrenceRuleCodec.describe(current.rule)!r} to "
                f"{RecurrenceRuleCodec.describe(new_rule)!r} while cadence is locked"
            )

        const.LOGGER.debug(
            "ScheduleHistory: Owner %s superseded %r with %r from %s",
            owner.owner_id,
            RecurrenceRuleCodec.encode(current.rule),
            RecurrenceRuleCodec.encode(new_rule),
            edit_date,
        )
        return self._replace_current(
            owner,
            closed_on=edit_date - timedelta(days=1),
            new_period=SchedulePeriod(new_rule, edit_date, current.effective_to),
        )

    def move_meeting(
        self, owner: ScheduleOwner, present_date: date, new_date: date
    ) -> ScheduleOwner:
        """Move the schedule's meeting on `present_date` to `new_date`.

        The current period is closed the day before `present_date`; the new
        current period starts on `new_date` with its day selectors
        re-derived from `new_date`, so later meetings follow the moved one.

        Raises:
            ScheduleEditError: present_date is not a scheduled occurrence of
                the current period, is its first day, or new_date is earlier
                than present_date.
        """
        current = owner.current
        self._check_edit_date(owner, present_date)
        if new_date < present_date:
            raise ScheduleEditError(
                f"Owner {owner.owner_id}: new meeting date {new_date} is before "
                f"the present meeting date {present_date}"
            )
        if current.effective_to is not None and new_date > current.effective_to:
            raise ScheduleEditError(
                f"Owner {owner.owner_id}: schedule ended on {current.effective_to}"
            )
        if not self.evaluator.is_occurrence(
            current.rule,
            current.effective_from,
            present_date,
            end_date=current.effective_to,
        ):
            raise ScheduleEditError(
                f"Owner {owner.owner_id}: {present_date} is not a scheduled meeting date"
            )

        new_rule = rederive_rule(current.rule, new_date)
        const.LOGGER.debug(
            "ScheduleHistory: Owner %s meeting moved %s -> %s (%r)",
            owner.owner_id,
            present_date,
            new_date,
            RecurrenceRuleCodec.encode(new_rule),
        )
        return self._replace_current(
            owner,
            closed_on=present_date - timedelta(days=1),
            new_period=SchedulePeriod(new_rule, new_date, current.effective_to),
        )

    @staticmethod
    def _check_edit_date(owner: ScheduleOwner, edit_date: date) -> None:
        current = owner.current
        if edit_date <= current.effective_from:
            raise ScheduleEditError(
                f"Owner {owner.owner_id}: edit date {edit_date} must be after the "
                f"current period start {current.effective_from}"
            )
        if current.effective_to is not None and edit_date > current.effective_to:
            raise ScheduleEditError(
                f"Owner {owner.owner_id}: schedule ended on {current.effective_to}"
            )

    @staticmethod
    def _replace_current(
        owner: ScheduleOwner, closed_on: date, new_period: SchedulePeriod
    ) -> ScheduleOwner:
        return replace(
            owner,
            current=new_period,
            history=(*owner.history, owner.current.closed(closed_on)),
        )


def _same_cadence(old: RecurrenceRule | None, new: RecurrenceRule | None) -> bool:
    if old is None or new is None:
        return old is new
    return old.same_cadence(new)
