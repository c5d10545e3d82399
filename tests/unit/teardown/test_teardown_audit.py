"""Tests for AuditStorage class.

Test coverage for audit log storage and retrieval with YAML format.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest
import yaml

from cluster_teardown.models.plan import StepAction, TeardownStep
from cluster_teardown.models.resource import ResourceKind, ResourceRef
from cluster_teardown.models.step_outcome import StepOutcome
from cluster_teardown.models.teardown_operation import OperationMode, OperationStatus, TeardownOperation
from cluster_teardown.teardown.audit import AuditStorage


def make_operation(operation_id: str, timestamp: datetime, cluster: str = "demo") -> TeardownOperation:
    return TeardownOperation(
        operation_id=operation_id,
        cluster=cluster,
        timestamp=timestamp,
        mode=OperationMode.EXECUTE,
        status=OperationStatus.PARTIAL,
        total_resources=2,
        succeeded_count=1,
        failed_count=1,
        cloud="staging",
        started_at=timestamp,
        completed_at=timestamp,
        duration_seconds=0.0,
    )


class TestAuditStorage:
    """Test suite for AuditStorage class."""

    @pytest.fixture
    def audit_storage(self, tmp_path: Path) -> AuditStorage:
        """Create AuditStorage instance with temp directory."""
        return AuditStorage(storage_dir=str(tmp_path / "audit-logs"))

    def test_init_creates_storage_directory(self, tmp_path: Path) -> None:
        """Test initialization creates audit-logs directory if missing."""
        storage_dir = tmp_path / "nested" / "audit-logs"

        AuditStorage(storage_dir=str(storage_dir))

        assert storage_dir.is_dir()

    def test_log_operation_writes_yaml(self, audit_storage: AuditStorage) -> None:
        """Test logging writes operation and outcomes under year/month."""
        router = ResourceRef(ResourceKind.ROUTER, "r1", "demo-router")
        remove = TeardownStep(owner=router, action=StepAction.REMOVE_ROUTER_SUBNET, index=0, target_id="s1")
        operation = make_operation("op_123", datetime(2026, 10, 18, 9, 30, 0))
        outcomes = [StepOutcome.failed(remove, "conflict", "DependencyStillPresent")]

        path = audit_storage.log_operation(operation, outcomes)

        assert path == audit_storage.storage_dir / "2026" / "10" / "operation-op_123.yaml"
        with open(path) as f:
            data = yaml.safe_load(f)

        assert data["metadata"]["log_type"] == "cluster_teardown"
        assert data["operation"]["cluster"] == "demo"
        assert data["operation"]["cloud"] == "staging"
        assert data["operation"]["status"] == "partial"
        assert data["operation"]["timestamp"] == "2026-10-18T09:30:00Z"
        assert data["outcomes"] == [
            {
                "resource_kind": "router",
                "resource_id": "r1",
                "resource_name": "demo-router",
                "step_index": 0,
                "action": "remove router interface to subnet",
                "target_id": "s1",
                "status": "failed",
                "reason": "conflict",
                "error_code": "DependencyStillPresent",
                "detail": None,
                "timestamp": outcomes[0].timestamp.isoformat() + "Z",
            }
        ]

    def test_get_operation(self, audit_storage: AuditStorage) -> None:
        """Test retrieving an operation by ID."""
        audit_storage.log_operation(make_operation("op_abc", datetime(2026, 9, 1, 8, 0, 0)), [])

        data = audit_storage.get_operation("op_abc")

        assert data is not None
        assert data["operation"]["operation_id"] == "op_abc"
        assert audit_storage.get_operation("op_missing") is None

    def test_query_operations_by_date(self, audit_storage: AuditStorage) -> None:
        """Test querying operations within a date range, oldest first."""
        audit_storage.log_operation(make_operation("op_3", datetime(2026, 10, 5)), [])
        audit_storage.log_operation(make_operation("op_1", datetime(2026, 8, 1)), [])
        audit_storage.log_operation(make_operation("op_2", datetime(2026, 9, 15)), [])

        all_ops = audit_storage.query_operations()
        recent = audit_storage.query_operations(since=datetime(2026, 9, 1))
        window = audit_storage.query_operations(since=datetime(2026, 9, 1), until=datetime(2026, 9, 30))

        assert [d["operation"]["operation_id"] for d in all_ops] == ["op_1", "op_2", "op_3"]
        assert [d["operation"]["operation_id"] for d in recent] == ["op_2", "op_3"]
        assert [d["operation"]["operation_id"] for d in window] == ["op_2"]

    def test_query_empty_storage(self, audit_storage: AuditStorage) -> None:
        """Test querying an empty storage returns no operations."""
        assert audit_storage.query_operations() == []
