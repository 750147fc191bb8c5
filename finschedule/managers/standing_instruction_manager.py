"""Standing Instruction Manager - daily batch run of standing instructions.

ARCHITECTURE:
- StandingInstructionManager = orchestration (looks up dues, asks the
  engine, calls the injected transfer, records outcomes)
- DuePeriodCalculator = pure "is it due, how much" decisions
- Callers inject the dues lookup, the transfer callable and the clock

Each instruction is processed independently: one instruction's engine error
or failed transfer is logged and recorded, and the run moves on. Callers
decide whether a run with failures is itself a failure via
RunReport.raise_for_failures().
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from .. import const
from ..engines.transfer_engine import DuePeriodCalculator
from ..exceptions import StandingInstructionRunError
from ..type_defs import LoanDues, StandingInstruction
from ..utils.dt_utils import dt_now_utc


@dataclass(frozen=True)
class TransferRequest:
    """A transfer the manager asks the injected transfer callable to make."""

    instruction_id: str
    name: str
    amount: Decimal
    transfer_date: date
    to_loan_account: bool = False

    @property
    def description(self) -> str:
        return f"Standing instruction {self.name} ({self.instruction_id})"


@dataclass(frozen=True)
class RunResult:
    """Outcome of one instruction in a batch run.

    Attributes:
        instruction_id: Instruction processed
        status: RUN_STATUS_* constant
        timestamp: When the outcome was recorded (injected clock)
        amount: Amount decided by the engine, if it got that far
        error: Error text for failed and errored instructions
    """

    instruction_id: str
    status: str
    timestamp: datetime
    amount: Decimal | None = None
    error: str | None = None

    @property
    def is_failure(self) -> bool:
        return self.status in (const.RUN_STATUS_FAILED, const.RUN_STATUS_ERROR)


@dataclass
class RunReport:
    """All outcomes of one batch run, in processing order."""

    run_date: date
    results: list[RunResult] = field(default_factory=list)

    @property
    def transferred(self) -> list[RunResult]:
        return [r for r in self.results if r.status == const.RUN_STATUS_SUCCESS]

    @property
    def failures(self) -> list[RunResult]:
        return [r for r in self.results if r.is_failure]

    def raise_for_failures(self) -> None:
        """Raise StandingInstructionRunError when any instruction failed."""
        failures = self.failures
        if failures:
            raise StandingInstructionRunError(failures)


DuesLookup = Callable[[StandingInstruction], "LoanDues | None"]
TransferCallable = Callable[[TransferRequest], object]
Clock = Callable[[], datetime]


class StandingInstructionManager:
    """Run the standing instructions due on a day.

    Responsibilities:
    - Fetch loan dues for loan-bound dues instructions
    - Ask DuePeriodCalculator for a decision per instruction
    - Call the transfer callable for instructions that should transfer
    - Record a timestamped RunResult for every instruction

    NOT responsible for:
    - Moving money (injected transfer callable)
    - Persisting run history (callers store the RunReport)
    """

    def __init__(
        self,
        transfer: TransferCallable,
        dues_lookup: DuesLookup | None = None,
        clock: Clock = dt_now_utc,
        calculator: DuePeriodCalculator | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            transfer: Performs a transfer; raising marks the instruction failed
            dues_lookup: Returns the loan dues for a loan-bound instruction
            clock: Timestamp source for run results
            calculator: Decision engine (a default one when omitted)
        """
        self._transfer = transfer
        self._dues_lookup = dues_lookup
        self._clock = clock
        self._calculator = calculator or DuePeriodCalculator()

    def run(self, instructions: Iterable[StandingInstruction], today: date) -> RunReport:
        """Process every instruction for `today` and report the outcomes."""
        report = RunReport(run_date=today)
        for instruction in instructions:
            report.results.append(self._process(instruction, today))

        const.LOGGER.info(
            "StandingInstructionManager: Run for %s processed %d instructions "
            "(%d transferred, %d failed)",
            today,
            len(report.results),
            len(report.transferred),
            len(report.failures),
        )
        return report

    def _process(self, instruction: StandingInstruction, today: date) -> RunResult:
        instruction_id = instruction.instruction_id
        if instruction.needs_dues and self._dues_lookup is None:
            const.LOGGER.error(
                "StandingInstructionManager: Instruction %s needs loan dues but "
                "no dues lookup is configured",
                instruction_id,
            )
            return self._result(
                instruction_id,
                const.RUN_STATUS_ERROR,
                error="no dues lookup configured for a loan dues instruction",
            )

        try:
            dues = self._lookup_dues(instruction, today)
            decision = self._calculator.evaluate(instruction, today, dues)
        except Exception as err:
            const.LOGGER.exception(
                "StandingInstructionManager: Error evaluating instruction %s",
                instruction_id,
            )
            return self._result(instruction_id, const.RUN_STATUS_ERROR, error=str(err))

        if not decision.should_transfer:
            return self._result(
                instruction_id, const.RUN_STATUS_NOT_DUE, amount=decision.amount
            )

        request = TransferRequest(
            instruction_id=instruction_id,
            name=instruction.name,
            amount=decision.amount,  # type: ignore[arg-type]
            transfer_date=today,
            to_loan_account=instruction.to_loan_account,
        )
        try:
            self._transfer(request)
        except Exception as err:
            const.LOGGER.exception(
                "StandingInstructionManager: Transfer failed for instruction %s",
                instruction_id,
            )
            return self._result(
                instruction_id,
                const.RUN_STATUS_FAILED,
                amount=decision.amount,
                error=str(err),
            )

        const.LOGGER.debug(
            "StandingInstructionManager: Transferred %s for instruction %s",
            decision.amount,
            instruction_id,
        )
        return self._result(
            instruction_id, const.RUN_STATUS_SUCCESS, amount=decision.amount
        )

    def _lookup_dues(self, instruction: StandingInstruction, today: date) -> LoanDues | None:
        """Fetch dues when they drive today's decision.

        Dues-recurrence instructions need dues to know their due date.
        Other dues-amount instructions only need them once they are due.
        """
        if self._dues_lookup is None or not instruction.needs_dues:
            return None
        if (
            instruction.recurrence_type != const.RECURRENCE_TYPE_DUES
            and not self._calculator.is_due_today(instruction, today)
        ):
            return None

        dues = self._dues_lookup(instruction)
        if dues is None:
            const.LOGGER.warning(
                "StandingInstructionManager: No dues found for instruction %s",
                instruction.instruction_id,
            )
        return dues

    def _result(
        self,
        instruction_id: str,
        status: str,
        amount: Decimal | None = None,
        error: str | None = None,
    ) -> RunResult:
        return RunResult(
            instruction_id=instruction_id,
            status=status,
            timestamp=self._clock(),
            amount=amount,
            error=error,
        )
