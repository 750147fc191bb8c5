# File: __init__.py
"""finschedule - recurring-schedule computation for a microfinance platform.

Decides whether a date is an occurrence of a stored recurrence rule,
generates occurrence dates for meeting calendars and repayment schedules,
resolves which rule applied on a date when a schedule was edited over time,
and decides whether a standing instruction is due today.

Layout:
- engines/: pure computation (codec, evaluator, generator, history, dues,
  holidays)
- managers/: orchestration with injected side effects (batch runs)
- data_builders: stored rows to value objects
"""

from __future__ import annotations

from .data_builders import (
    EntityValidationError,
    build_owner,
    build_period,
    build_rule,
    build_standing_instruction,
)
from .engines import (
    DueDecision,
    DuePeriodCalculator,
    HolidayRescheduleValidator,
    OccurrenceGenerator,
    OccurrenceSequence,
    RecurrenceRuleCodec,
    Resolution,
    ScheduleEvaluator,
    ScheduleHistoryResolver,
    WorkingDays,
)
from .exceptions import (
    AmbiguousHistoryError,
    HolidayRescheduleError,
    MalformedRuleError,
    ScheduleEditError,
    ScheduleError,
    ScheduleExhaustedError,
    StandingInstructionRunError,
    UnsupportedFrequencyError,
)
from .managers import RunReport, RunResult, StandingInstructionManager, TransferRequest
from .type_defs import (
    LoanDues,
    RecurrenceRule,
    ScheduleOwner,
    SchedulePeriod,
    StandingInstruction,
)

__all__ = [
    "AmbiguousHistoryError",
    "DueDecision",
    "DuePeriodCalculator",
    "EntityValidationError",
    "HolidayRescheduleError",
    "HolidayRescheduleValidator",
    "LoanDues",
    "MalformedRuleError",
    "OccurrenceGenerator",
    "OccurrenceSequence",
    "RecurrenceRule",
    "RecurrenceRuleCodec",
    "Resolution",
    "RunReport",
    "RunResult",
    "ScheduleEditError",
    "ScheduleError",
    "ScheduleEvaluator",
    "ScheduleExhaustedError",
    "ScheduleHistoryResolver",
    "ScheduleOwner",
    "SchedulePeriod",
    "StandingInstruction",
    "StandingInstructionManager",
    "StandingInstructionRunError",
    "TransferRequest",
    "UnsupportedFrequencyError",
    "WorkingDays",
    "build_owner",
    "build_period",
    "build_rule",
    "build_standing_instruction",
]
