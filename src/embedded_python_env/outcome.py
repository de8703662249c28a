"""Operation outcomes.

Three kinds of result leave an operation:
- SUCCESS: the step completed
- RECOVERABLE: the step failed, the cause was logged, the caller may continue
- fatal failures are never returned, they are raised (see exceptions.py)
"""

from dataclasses import dataclass
from enum import Enum


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    RECOVERABLE = "recoverable"


@dataclass(frozen=True)
class Outcome:
    """Result of a provisioning operation.

    Attributes:
        status: SUCCESS or RECOVERABLE
        message: Short description of what happened
        skipped: True when an idempotence check made the operation a no-op
    """

    status: OutcomeStatus
    message: str = ""
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS

    @classmethod
    def success(cls, message: str = "", skipped: bool = False) -> "Outcome":
        return cls(status=OutcomeStatus.SUCCESS, message=message, skipped=skipped)

    @classmethod
    def recoverable(cls, message: str) -> "Outcome":
        return cls(status=OutcomeStatus.RECOVERABLE, message=message)
