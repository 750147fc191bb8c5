"""Manager modules for finschedule.

Managers orchestrate workflows and coordinate between engines.
They own side effects (through injected callables) and error isolation.
"""

from .standing_instruction_manager import (
    RunReport,
    RunResult,
    StandingInstructionManager,
    TransferRequest,
)

__all__ = [
    "RunReport",
    "RunResult",
    "StandingInstructionManager",
    "TransferRequest",
]
