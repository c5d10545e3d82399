"""Audit storage for teardown operations.

Stores and retrieves audit logs in YAML format for compliance and troubleshooting.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

import yaml

from ..models.step_outcome import StepOutcome
from ..models.teardown_operation import TeardownOperation


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() + "Z" if value else None


class AuditStorage:
    """Audit log storage and retrieval.

    Stores teardown operation audit logs as YAML files organized by year/month.
    Supports querying operations by date range and retrieving detailed operation logs.

    Storage structure:
        ~/.cluster-teardown/audit-logs/
            2026/
                10/
                    operation-op_123.yaml
                    operation-op_456.yaml

    Attributes:
        storage_dir: Base directory for audit logs
    """

    def __init__(self, storage_dir: Optional[str] = None) -> None:
        """Initialize audit storage.

        Args:
            storage_dir: Base directory for audit logs (default: ~/.cluster-teardown/audit-logs)
        """
        if storage_dir is None:
            storage_dir = str(Path.home() / ".cluster-teardown" / "audit-logs")

        self.storage_dir = Path(storage_dir).expanduser()
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def log_operation(self, operation: TeardownOperation, outcomes: list[StepOutcome]) -> Path:
        """Log teardown operation to audit storage.

        Creates YAML file with operation metadata and every step outcome.
        Overwrites existing log if operation ID already exists.

        Args:
            operation: Teardown operation to log
            outcomes: Step outcomes of this operation, in execution order

        Returns:
            Path of the written audit file
        """
        year = operation.timestamp.year
        month = operation.timestamp.month
        year_month_dir = self.storage_dir / str(year) / f"{month:02d}"
        year_month_dir.mkdir(parents=True, exist_ok=True)

        audit_data = {
            "metadata": {
                "version": "1.0",
                "log_type": "cluster_teardown",
                "created_at": datetime.utcnow().isoformat() + "Z",
            },
            "operation": {
                "operation_id": operation.operation_id,
                "cluster": operation.cluster,
                "timestamp": operation.timestamp.isoformat() + "Z",
                "cloud": operation.cloud,
                "mode": operation.mode.value,
                "status": operation.status.value,
                "total_resources": operation.total_resources,
                "succeeded_count": operation.succeeded_count,
                "failed_count": operation.failed_count,
                "skipped_count": operation.skipped_count,
                "started_at": _isoformat(operation.started_at),
                "completed_at": _isoformat(operation.completed_at),
                "duration_seconds": operation.duration_seconds,
            },
            "outcomes": [
                {
                    "resource_kind": outcome.step.owner.kind.value,
                    "resource_id": outcome.step.owner.id,
                    "resource_name": outcome.step.owner.name,
                    "step_index": outcome.step.index,
                    "action": outcome.step.action.value,
                    "target_id": outcome.step.target_id,
                    "status": outcome.status.value,
                    "reason": outcome.reason,
                    "error_code": outcome.error_code,
                    "detail": outcome.detail,
                    "timestamp": outcome.timestamp.isoformat() + "Z",
                }
                for outcome in outcomes
            ],
        }

        audit_file = year_month_dir / f"operation-{operation.operation_id}.yaml"
        with open(audit_file, "w") as f:
            yaml.dump(audit_data, f, default_flow_style=False, sort_keys=False)

        return audit_file

    def get_operation(self, operation_id: str) -> Optional[dict]:
        """Retrieve operation audit log by ID.

        Args:
            operation_id: Operation ID to retrieve

        Returns:
            Audit log dictionary if found, None otherwise
        """
        for audit_file in self.storage_dir.glob(f"*/*/operation-{operation_id}.yaml"):
            with open(audit_file, "r") as f:
                return yaml.safe_load(f)

        return None

    def query_operations(self, since: Optional[datetime] = None, until: Optional[datetime] = None) -> list[dict]:
        """Query operations within date range.

        Args:
            since: Start date (inclusive), None for all
            until: End date (inclusive), None for all

        Returns:
            List of operation audit logs matching criteria, oldest first
        """
        results = []

        for year_dir in sorted(self.storage_dir.glob("*")):
            if not year_dir.is_dir():
                continue

            for month_dir in sorted(year_dir.glob("*")):
                if not month_dir.is_dir():
                    continue

                for audit_file in sorted(month_dir.glob("operation-*.yaml")):
                    with open(audit_file, "r") as f:
                        audit_data = yaml.safe_load(f)

                    timestamp = datetime.fromisoformat(audit_data["operation"]["timestamp"].rstrip("Z"))

                    if since and timestamp < since:
                        continue
                    if until and timestamp > until:
                        continue

                    results.append(audit_data)

        results.sort(key=lambda data: data["operation"]["timestamp"])
        return results
