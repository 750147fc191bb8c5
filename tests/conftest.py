"""Shared fixtures for finschedule tests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from decimal import Decimal

import pytest

from finschedule import const
from finschedule.engines.history_engine import ScheduleHistoryResolver
from finschedule.engines.schedule_engine import OccurrenceGenerator, ScheduleEvaluator
from finschedule.type_defs import (
    RecurrenceRule,
    ScheduleOwner,
    SchedulePeriod,
    StandingInstruction,
)

WEEKLY_MONDAY = RecurrenceRule(const.FREQUENCY_WEEKLY, weekday=const.WEEKDAY_MONDAY)
MONTHLY_15TH = RecurrenceRule(const.FREQUENCY_MONTHLY, month_day=15)


@pytest.fixture
def evaluator() -> ScheduleEvaluator:
    """Return a fresh evaluator."""
    return ScheduleEvaluator()


@pytest.fixture
def generator(evaluator: ScheduleEvaluator) -> OccurrenceGenerator:
    """Return a generator sharing the evaluator fixture."""
    return OccurrenceGenerator(evaluator)


@pytest.fixture
def resolver(evaluator: ScheduleEvaluator) -> ScheduleHistoryResolver:
    """Return a history resolver sharing the evaluator fixture."""
    return ScheduleHistoryResolver(evaluator)


@pytest.fixture
def edited_owner() -> ScheduleOwner:
    """Weekly Mondays until 2024-05-31, then the 15th of each month."""
    return ScheduleOwner(
        owner_id="calendar-1",
        current=SchedulePeriod(MONTHLY_15TH, date(2024, 6, 1)),
        history=(SchedulePeriod(WEEKLY_MONDAY, date(2024, 1, 1), date(2024, 5, 31)),),
    )


@pytest.fixture
def make_instruction() -> Callable[..., StandingInstruction]:
    """Return a factory for standing instructions with sensible defaults."""

    def _make(
        instruction_id: str = "si-1",
        recurrence_type: str = const.RECURRENCE_TYPE_PERIODIC,
        instruction_type: str = const.INSTRUCTION_TYPE_FIXED_AMOUNT,
        amount: Decimal | None = Decimal("100.00"),
        rule: RecurrenceRule | None = WEEKLY_MONDAY,
        valid_from: date = date(2024, 1, 1),
        valid_till: date | None = None,
        to_loan_account: bool = False,
        history: tuple[SchedulePeriod, ...] = (),
    ) -> StandingInstruction:
        return StandingInstruction(
            instruction_id=instruction_id,
            name=f"Instruction {instruction_id}",
            recurrence_type=recurrence_type,
            instruction_type=instruction_type,
            amount=amount,
            schedule=ScheduleOwner(
                instruction_id,
                SchedulePeriod(rule, valid_from, valid_till),
                history,
            ),
            to_loan_account=to_loan_account,
            valid_till=valid_till,
        )

    return _make
