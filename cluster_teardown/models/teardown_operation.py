"""Teardown operation model.

Represents a complete teardown run with metadata and execution context.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class OperationMode(Enum):
    """Operation execution mode."""

    DRY_RUN = "dry-run"
    EXECUTE = "execute"


class OperationStatus(Enum):
    """Operation execution status with state transitions."""

    PLANNED = "planned"
    EXECUTING = "executing"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class TeardownOperation:
    """Teardown operation entity.

    Tracks the overall progress and status of one cluster teardown.

    State transitions:
        planned → executing → completed (all resources deleted)
        planned → executing → partial (some resources failed or skipped)
        planned → executing → failed (no resource deleted)
        planned → executing → cancelled (operator interrupted the run)

    Attributes:
        operation_id: Unique identifier for the operation
        cluster: Cluster identifier the resources were matched against
        timestamp: When operation was initiated (UTC)
        mode: dry-run or execute
        status: Current execution status
        total_resources: Total resources matched for deletion
        succeeded_count: Number of resources deleted (default: 0)
        failed_count: Number of resources with a failed step (default: 0)
        skipped_count: Number of resources not attempted (default: 0)
        cloud: clouds.yaml entry used for credentials (optional)
        started_at: When execution started (optional, execute mode only)
        completed_at: When execution completed (optional)
        duration_seconds: Total execution duration (optional)
    """

    operation_id: str
    cluster: str
    timestamp: datetime
    mode: OperationMode
    status: OperationStatus
    total_resources: int
    succeeded_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    cloud: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None

    def validate(self) -> bool:
        """Validate operation invariants.

        Validation rules:
            - succeeded_count + failed_count + skipped_count == total_resources
              (execute mode)
            - completed_at must be after started_at
            - dry-run mode must have planned status

        Returns:
            True if validation passes

        Raises:
            ValueError: If any validation rule fails
        """
        if self.mode == OperationMode.EXECUTE:
            if self.succeeded_count + self.failed_count + self.skipped_count != self.total_resources:
                raise ValueError("Resource counts don't match total")

        if self.completed_at and self.started_at:
            if self.completed_at < self.started_at:
                raise ValueError("Completion time before start time")

        if self.mode == OperationMode.DRY_RUN and self.status != OperationStatus.PLANNED:
            raise ValueError("Dry-run mode must have planned status")

        return True
