"""Engine modules for finschedule.

Contains the pure computation engines:
- rule_codec: Rule string encoding, decoding and rendering
- schedule_engine: Occurrence tests and occurrence generation
- history_engine: Effective-period resolution and owner edits
- transfer_engine: Standing instruction due/amount decisions
- holiday_engine: Holiday reschedule date validation
"""

# Use relative imports within package to avoid mypy module resolution issues
from .history_engine import Resolution, ScheduleHistoryResolver, rederive_rule
from .holiday_engine import HolidayRescheduleValidator, WorkingDays
from .rule_codec import RecurrenceRuleCodec
from .schedule_engine import (
    OccurrenceGenerator,
    OccurrenceSequence,
    ScheduleEvaluator,
    calculate_next_occurrences,
)
from .transfer_engine import DueDecision, DuePeriodCalculator

__all__ = [
    "DueDecision",
    "DuePeriodCalculator",
    "HolidayRescheduleValidator",
    "OccurrenceGenerator",
    "OccurrenceSequence",
    "RecurrenceRuleCodec",
    "Resolution",
    "ScheduleEvaluator",
    "ScheduleHistoryResolver",
    "WorkingDays",
    "calculate_next_occurrences",
    "rederive_rule",
]
