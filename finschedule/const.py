# File: const.py
"""Constants for the finschedule recurrence engine.

This file centralizes frequency names, weekday codes, rule-string keys,
iteration limits, standing-instruction types and status labels so every
engine, manager and builder speaks the same vocabulary.
"""

import logging

# ------------------------------------------------------------------------------------------------
# General
# ------------------------------------------------------------------------------------------------
LOGGER = logging.getLogger(__package__)

# ------------------------------------------------------------------------------------------------
# Frequencies
# ------------------------------------------------------------------------------------------------
FREQUENCY_DAILY = "DAILY"
FREQUENCY_WEEKLY = "WEEKLY"
FREQUENCY_MONTHLY = "MONTHLY"
FREQUENCY_YEARLY = "YEARLY"

FREQUENCY_OPTIONS = (
    FREQUENCY_DAILY,
    FREQUENCY_WEEKLY,
    FREQUENCY_MONTHLY,
    FREQUENCY_YEARLY,
)

# Unit names used in human-readable descriptions
FREQUENCY_UNITS = {
    FREQUENCY_DAILY: ("day", "days"),
    FREQUENCY_WEEKLY: ("week", "weeks"),
    FREQUENCY_MONTHLY: ("month", "months"),
    FREQUENCY_YEARLY: ("year", "years"),
}

# ------------------------------------------------------------------------------------------------
# Weekdays (index follows date.weekday(): 0=Monday, 6=Sunday)
# ------------------------------------------------------------------------------------------------
WEEKDAY_MONDAY = "MONDAY"
WEEKDAY_TUESDAY = "TUESDAY"
WEEKDAY_WEDNESDAY = "WEDNESDAY"
WEEKDAY_THURSDAY = "THURSDAY"
WEEKDAY_FRIDAY = "FRIDAY"
WEEKDAY_SATURDAY = "SATURDAY"
WEEKDAY_SUNDAY = "SUNDAY"

WEEKDAY_CODES = (
    WEEKDAY_MONDAY,
    WEEKDAY_TUESDAY,
    WEEKDAY_WEDNESDAY,
    WEEKDAY_THURSDAY,
    WEEKDAY_FRIDAY,
    WEEKDAY_SATURDAY,
    WEEKDAY_SUNDAY,
)

# RFC 5545 two-letter aliases accepted on decode
WEEKDAY_ALIASES = {
    "MO": WEEKDAY_MONDAY,
    "TU": WEEKDAY_TUESDAY,
    "WE": WEEKDAY_WEDNESDAY,
    "TH": WEEKDAY_THURSDAY,
    "FR": WEEKDAY_FRIDAY,
    "SA": WEEKDAY_SATURDAY,
    "SU": WEEKDAY_SUNDAY,
}

DAYS_PER_WEEK = 7
MONTHS_PER_YEAR = 12

# ------------------------------------------------------------------------------------------------
# Day selectors
# ------------------------------------------------------------------------------------------------
# BYMONTHDAY=-1 / BYSETPOS=-1 both mean "last"
MONTH_DAY_LAST = -1
MONTH_DAY_MAX = 31
ORDINAL_LAST = -1
ORDINAL_MAX = 4
VALID_ORDINALS = (1, 2, 3, 4, ORDINAL_LAST)

ORDINAL_LABELS = {
    1: "first",
    2: "second",
    3: "third",
    4: "fourth",
    ORDINAL_LAST: "last",
}

# ------------------------------------------------------------------------------------------------
# Rule string keys
# ------------------------------------------------------------------------------------------------
RULE_PREFIX = "RRULE:"
RULE_PART_SEPARATOR = ";"
RULE_VALUE_SEPARATOR = "="
RULE_KEY_FREQ = "FREQ"
RULE_KEY_INTERVAL = "INTERVAL"
RULE_KEY_BYDAY = "BYDAY"
RULE_KEY_BYMONTHDAY = "BYMONTHDAY"
RULE_KEY_BYSETPOS = "BYSETPOS"
RULE_KEY_BYMONTH = "BYMONTH"

# ------------------------------------------------------------------------------------------------
# Limits and defaults
# ------------------------------------------------------------------------------------------------
# Ten years of consecutive non-matching days before a sequence gives up
MAX_PROBE_DAYS = 3653

# Longest calendar span of one period per frequency; a rule's probe limit
# never drops below the longest gap its interval allows
FREQUENCY_MAX_PERIOD_DAYS = {
    FREQUENCY_DAILY: 1,
    FREQUENCY_WEEKLY: 7,
    FREQUENCY_MONTHLY: 31,
    FREQUENCY_YEARLY: 366,
}

# "Next ten meetings" calendar view
DEFAULT_NEXT_OCCURRENCES = 10

# Holiday reschedule dates must sit within this many days of the holiday
HOLIDAY_RESCHEDULE_BUFFER_DAYS = 7

# Tenant working days when no rule is configured
DEFAULT_WORKING_DAYS_RULE = "FREQ=WEEKLY;INTERVAL=1;BYDAY=MO,TU,WE,TH,FR"

# ------------------------------------------------------------------------------------------------
# Standing instructions
# ------------------------------------------------------------------------------------------------
RECURRENCE_TYPE_PERIODIC = "periodic"
RECURRENCE_TYPE_DUES = "dues"
RECURRENCE_TYPE_ONE_OFF = "one_off"

RECURRENCE_TYPE_OPTIONS = (
    RECURRENCE_TYPE_PERIODIC,
    RECURRENCE_TYPE_DUES,
    RECURRENCE_TYPE_ONE_OFF,
)

INSTRUCTION_TYPE_FIXED_AMOUNT = "fixed_amount"
INSTRUCTION_TYPE_DUES_AMOUNT = "dues_amount"

INSTRUCTION_TYPE_OPTIONS = (
    INSTRUCTION_TYPE_FIXED_AMOUNT,
    INSTRUCTION_TYPE_DUES_AMOUNT,
)

# Run outcome labels recorded per instruction
RUN_STATUS_SUCCESS = "success"
RUN_STATUS_FAILED = "failed"
RUN_STATUS_NOT_DUE = "not_due"
RUN_STATUS_ERROR = "error"

# ------------------------------------------------------------------------------------------------
# Stored row keys (persistence adapter boundary)
# ------------------------------------------------------------------------------------------------
DATA_PERIOD_RECURRENCE = "recurrence"
DATA_PERIOD_START_DATE = "start_date"
DATA_PERIOD_END_DATE = "end_date"

DATA_INSTRUCTION_ID = "id"
DATA_INSTRUCTION_NAME = "name"
DATA_INSTRUCTION_RECURRENCE_TYPE = "recurrence_type"
DATA_INSTRUCTION_TYPE = "instruction_type"
DATA_INSTRUCTION_AMOUNT = "amount"
DATA_INSTRUCTION_VALID_FROM = "valid_from"
DATA_INSTRUCTION_VALID_TILL = "valid_till"
DATA_INSTRUCTION_RECURRENCE = "recurrence"
DATA_INSTRUCTION_TO_LOAN_ACCOUNT = "to_loan_account"

# ------------------------------------------------------------------------------------------------
# Holiday reschedule error codes
# ------------------------------------------------------------------------------------------------
ERROR_HOLIDAY_INVALID_RANGE = "holiday.to.date.before.from.date"
ERROR_HOLIDAY_RESCHEDULE_IN_WINDOW = "repayments.rescheduled.to.within.holiday.dates"
ERROR_HOLIDAY_RESCHEDULE_NOT_WORKING_DAY = "repayments.rescheduled.to.not.working.day"
ERROR_HOLIDAY_RESCHEDULE_OUT_OF_RANGE = "repayments.rescheduled.to.out.of.range"
