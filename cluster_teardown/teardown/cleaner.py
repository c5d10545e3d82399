"""Cluster cleaner for teardown operations.

Main orchestrator for cluster teardown with preview and execution modes.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime
from typing import Callable, Optional

import yaml

from ..errors import ProviderUnreachable, TeardownError
from ..models.plan import TeardownPlan
from ..models.resource import ResourceKind, ResourceRef
from ..models.step_outcome import StepOutcome, StepStatus
from ..models.teardown_operation import OperationMode, OperationStatus, TeardownOperation
from ..providers import InventoryProvider, MutationProvider
from .audit import AuditStorage
from .dependency import DependencyResolver
from .executor import TeardownExecutor
from .matcher import DEFAULT_SECURITY_GROUP, ResourceMatcher
from .planner import TeardownPlanner
from .report import TeardownReport

logger = logging.getLogger(__name__)


class ClusterCleaner:
    """Cluster teardown orchestrator.

    Coordinates matching, dependency resolution, planning, execution and audit
    logging. Supports both preview (dry-run) and execution modes.

    Attributes:
        inventory: Inventory provider for discovery
        mutator: Mutation provider for destructive calls
        audit_storage: Audit storage for operation logs (optional)
        cloud: Cloud name recorded in audit logs (optional)
        matcher: Resource matcher
        planner: Teardown planner
    """

    def __init__(
        self,
        inventory: InventoryProvider,
        mutator: MutationProvider,
        audit_storage: Optional[AuditStorage] = None,
        default_security_group: str = DEFAULT_SECURITY_GROUP,
        cloud: Optional[str] = None,
    ) -> None:
        """Initialize cluster cleaner.

        Args:
            inventory: Inventory provider
            mutator: Mutation provider
            audit_storage: Audit storage for logging (optional)
            default_security_group: Reserved security group name never deleted
            cloud: Cloud name recorded in audit logs (optional)
        """
        self.inventory = inventory
        self.mutator = mutator
        self.audit_storage = audit_storage
        self.cloud = cloud
        self.matcher = ResourceMatcher(inventory, default_security_group=default_security_group)
        self.planner = TeardownPlanner()

    def preview(self, identifier: str) -> TeardownPlan:
        """Build the teardown plan for a cluster without deleting anything.

        A kind whose inventory cannot be read is recorded as unreachable in the
        plan and the other kinds are still planned.

        Args:
            identifier: Cluster identifier (substring of resource names)

        Returns:
            TeardownPlan (empty if nothing matches)

        Raises:
            ValueError: If identifier is empty
            ProviderUnreachable: If no kind could be listed at all
        """
        if not identifier:
            raise ValueError("Cluster identifier must not be empty")

        matches: dict[ResourceKind, list[ResourceRef]] = {}
        unreachable: dict[ResourceKind, str] = {}
        warnings: list[str] = []

        for kind in ResourceKind.teardown_order():
            try:
                matches[kind] = self.matcher.find(kind, identifier)
            except TeardownError as e:
                logger.warning(f"Could not list {kind.label.lower()}: {e}")
                unreachable[kind] = str(e)
                warnings.append(f"could not list {kind.label.lower()}: {e}")

        if len(unreachable) == len(ResourceKind.teardown_order()):
            raise ProviderUnreachable(f"Could not list any resources: {next(iter(unreachable.values()))}")

        resolver = DependencyResolver(self.inventory)
        prerequisites = {ref: resolver.resolve(ref) for refs in matches.values() for ref in refs}
        warnings.extend(resolver.warnings)

        plan = self.planner.build(
            identifier,
            matches,
            prerequisites=prerequisites,
            warnings=warnings,
            unreachable=unreachable,
        )
        logger.info(f"Planned {len(plan)} step(s) for {len(plan.resources)} resource(s) matching '{identifier}'")
        return plan

    def record_preview(self, plan: TeardownPlan) -> TeardownOperation:
        """Create (and audit) a dry-run operation for a plan.

        Args:
            plan: Plan that was previewed

        Returns:
            TeardownOperation in planned status
        """
        operation = TeardownOperation(
            operation_id=f"op_{uuid.uuid4()}",
            cluster=plan.identifier,
            timestamp=datetime.utcnow(),
            mode=OperationMode.DRY_RUN,
            status=OperationStatus.PLANNED,
            total_resources=len(plan.resources),
            cloud=self.cloud,
        )
        operation.validate()

        if self.audit_storage is not None:
            try:
                self.audit_storage.log_operation(operation, [])
            except (OSError, yaml.YAMLError) as e:
                logger.error(f"Could not write audit log for dry run {operation.operation_id}: {e}")

        return operation

    def execute(
        self,
        plan: TeardownPlan,
        confirmed: bool = False,
        cancel_event: Optional[threading.Event] = None,
        on_outcome: Optional[Callable[[StepOutcome], None]] = None,
    ) -> tuple[TeardownOperation, TeardownReport]:
        """Execute a teardown plan.

        Args:
            plan: Plan returned by preview()
            confirmed: Must be True to proceed with deletion
            cancel_event: Cooperative cancellation signal (optional)
            on_outcome: Progress callback for every recorded outcome (optional)

        Returns:
            Tuple of (operation, report)

        Raises:
            ValueError: If not confirmed
        """
        if not confirmed:
            raise ValueError("Deletion requires explicit confirmation. Set confirmed=True or use --yes flag.")

        started_at = datetime.utcnow()
        executor = TeardownExecutor(cancel_event=cancel_event, on_outcome=on_outcome)
        report = executor.run(plan, self.mutator)

        operation = self._build_operation(plan, report, started_at)
        operation.validate()

        if self.audit_storage is not None and not plan.is_empty:
            try:
                self.audit_storage.log_operation(operation, report.outcomes)
            except (OSError, yaml.YAMLError) as e:
                logger.error(f"Could not write audit log for operation {operation.operation_id}: {e}")
                report.warnings.append(f"could not write audit log: {e}")

        return operation, report

    def _build_operation(self, plan: TeardownPlan, report: TeardownReport, started_at: datetime) -> TeardownOperation:
        totals = report.totals()

        if report.cancelled:
            status = OperationStatus.CANCELLED
        elif totals["failed"] > 0 or totals["skipped"] > 0:
            status = OperationStatus.PARTIAL if totals["succeeded"] > 0 else OperationStatus.FAILED
        else:
            status = OperationStatus.COMPLETED

        completed_at = report.completed_at or datetime.utcnow()

        return TeardownOperation(
            operation_id=f"op_{uuid.uuid4()}",
            cluster=plan.identifier,
            timestamp=started_at,
            mode=OperationMode.EXECUTE,
            status=status,
            total_resources=totals["matched"],
            succeeded_count=totals[StepStatus.SUCCEEDED.value],
            failed_count=totals[StepStatus.FAILED.value],
            skipped_count=totals[StepStatus.SKIPPED.value],
            cloud=self.cloud,
            started_at=started_at,
            completed_at=completed_at,
            duration_seconds=(completed_at - started_at).total_seconds(),
        )
