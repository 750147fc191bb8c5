"""Transfer Engine - due-date and amount decisions for standing instructions.

Pure decision logic: given an instruction, today's date and (for loan-bound
instructions) the loan's dues, decide whether a transfer is due and for how
much. Nothing here moves money; StandingInstructionManager acts on the
decisions.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from .. import const
from ..type_defs import LoanDues, StandingInstruction
from .history_engine import ScheduleHistoryResolver


@dataclass(frozen=True)
class DueDecision:
    """Whether an instruction is due today, and the amount to move."""

    instruction_id: str
    due: bool
    amount: Decimal | None

    @property
    def should_transfer(self) -> bool:
        """True when the instruction is due and there is something to move."""
        return self.due and self.amount is not None and self.amount > 0


class DuePeriodCalculator:
    """Decide whether standing instructions are due on a given day."""

    def __init__(self, resolver: ScheduleHistoryResolver | None = None) -> None:
        """Initialize with the resolver used for periodic instructions."""
        self.resolver = resolver or ScheduleHistoryResolver()

    def is_due_today(
        self,
        instruction: StandingInstruction,
        today: date,
        dues: LoanDues | None = None,
    ) -> bool:
        """Return True when the instruction should run on `today`.

        - periodic: the schedule period in effect today has an occurrence
          today
        - dues: the loan's next due date is today (False without dues)
        - one-off: today is the instruction's start date

        Nothing is due after `valid_till`.

        Raises:
            ValueError: Unknown recurrence type.
            UnsupportedFrequencyError: The effective rule cannot be evaluated.
        """
        if instruction.valid_till is not None and today > instruction.valid_till:
            return False

        recurrence_type = instruction.recurrence_type
        if recurrence_type == const.RECURRENCE_TYPE_PERIODIC:
            return self.resolver.is_occurrence_on(instruction.schedule, today)
        if recurrence_type == const.RECURRENCE_TYPE_DUES:
            return dues is not None and dues.due_date == today
        if recurrence_type == const.RECURRENCE_TYPE_ONE_OFF:
            return today == instruction.schedule.current.effective_from
        raise ValueError(f"Unknown recurrence type: {recurrence_type!r}")

    @staticmethod
    def transfer_amount(
        instruction: StandingInstruction, dues: LoanDues | None = None
    ) -> Decimal | None:
        """Return the amount to transfer.

        A dues-amount instruction into a loan account pays the loan's
        outstanding dues instead of its configured amount. Without dues
        there is nothing to pay, so the amount is None and no transfer
        happens.
        """
        if (
            instruction.instruction_type == const.INSTRUCTION_TYPE_DUES_AMOUNT
            and instruction.to_loan_account
        ):
            return None if dues is None else dues.total_due_amount
        return instruction.amount

    def evaluate(
        self,
        instruction: StandingInstruction,
        today: date,
        dues: LoanDues | None = None,
    ) -> DueDecision:
        """Combine the due check and the amount into one decision."""
        due = self.is_due_today(instruction, today, dues)
        amount = self.transfer_amount(instruction, dues)
        const.LOGGER.debug(
            "DuePeriod: Instruction %s on %s: due=%s amount=%s",
            instruction.instruction_id,
            today,
            due,
            amount,
        )
        return DueDecision(instruction.instruction_id, due, amount)
