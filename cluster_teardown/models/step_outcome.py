"""Step outcome model.

Result of a single teardown step attempt with its reason and metadata.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from .plan import TeardownStep

PREREQUISITE_FAILED = "prerequisite failed"
CANCELLED = "cancelled"
PROVIDER_UNREACHABLE = "provider unreachable"
ABORTED = "aborted"


class StepStatus(Enum):
    """Individual step outcome status."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class StepOutcome:
    """Step outcome entity.

    Created when the executor attempts (or declines to attempt) a step and
    immutable afterwards.

    Validation rules:
        - status=succeeded: no reason or error_code
        - status=failed: requires reason
        - status=skipped: requires reason

    Attributes:
        step: Step this outcome belongs to
        status: Outcome status
        reason: Why the step failed or was skipped (optional)
        error_code: Error taxonomy code if failed (optional)
        detail: Extra information for succeeded steps, e.g. "already gone" (optional)
        timestamp: When the outcome was recorded (UTC)
    """

    step: TeardownStep
    status: StepStatus
    reason: Optional[str] = None
    error_code: Optional[str] = None
    detail: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)

    @classmethod
    def succeeded(cls, step: TeardownStep, detail: Optional[str] = None) -> StepOutcome:
        return cls(step=step, status=StepStatus.SUCCEEDED, detail=detail)

    @classmethod
    def failed(cls, step: TeardownStep, reason: str, error_code: Optional[str] = None) -> StepOutcome:
        return cls(step=step, status=StepStatus.FAILED, reason=reason, error_code=error_code)

    @classmethod
    def skipped(cls, step: TeardownStep, reason: str) -> StepOutcome:
        return cls(step=step, status=StepStatus.SKIPPED, reason=reason)

    def validate(self) -> bool:
        """Validate outcome invariants.

        Returns:
            True if validation passes

        Raises:
            ValueError: If any validation rule fails
        """
        if self.status == StepStatus.FAILED:
            if not self.reason:
                raise ValueError("Failed status requires reason")
        elif self.status == StepStatus.SKIPPED:
            if not self.reason:
                raise ValueError("Skipped status requires reason")
        elif self.status == StepStatus.SUCCEEDED:
            if self.reason or self.error_code:
                raise ValueError("Succeeded status cannot have reason or error code")

        return True
