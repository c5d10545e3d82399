"""Teardown plan execution.

Runs every step of a plan in order and records an outcome for each. A failing
step never aborts the run.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from ..errors import ProviderUnreachable, ResourceNotFound, TeardownError
from ..models.plan import StepAction, TeardownPlan, TeardownStep
from ..models.resource import ResourceKind
from ..models.step_outcome import (
    ABORTED,
    CANCELLED,
    PREREQUISITE_FAILED,
    PROVIDER_UNREACHABLE,
    StepOutcome,
    StepStatus,
)
from ..providers import MutationProvider
from .report import TeardownReport

logger = logging.getLogger(__name__)


class TeardownExecutor:
    """Executes a teardown plan with record-and-continue semantics.

    Steps run strictly in plan order, so no step of a kind starts before every
    step of the preceding kinds has an outcome. Within a resource, a step whose
    required steps did not succeed is skipped. A ProviderUnreachable error skips
    the remaining steps of the current kind only. Cancellation is checked before
    every step; once requested, all remaining steps are skipped. An interrupt
    raised during a call fails that step and cancels the rest of the run.

    Attributes:
        cancel_event: Cooperative cancellation signal (optional)
        on_outcome: Callback invoked with every recorded outcome (optional)
    """

    # Terminal delete per kind: kind -> mutation provider method
    DELETE_METHODS = {
        ResourceKind.INSTANCE: "delete_instance",
        ResourceKind.LOAD_BALANCER: "delete_load_balancer_cascade",
        ResourceKind.ROUTER: "delete_router",
        ResourceKind.NETWORK: "delete_network",
        ResourceKind.SECURITY_GROUP: "delete_security_group",
    }

    def __init__(
        self,
        cancel_event: Optional[threading.Event] = None,
        on_outcome: Optional[Callable[[StepOutcome], None]] = None,
    ) -> None:
        self.cancel_event = cancel_event
        self.on_outcome = on_outcome

    def run(self, plan: TeardownPlan, mutator: MutationProvider) -> TeardownReport:
        """Execute a plan.

        Args:
            plan: Plan to execute
            mutator: Mutation provider issuing the destructive calls

        Returns:
            TeardownReport with one outcome per planned step
        """
        report = TeardownReport(identifier=plan.identifier, warnings=list(plan.warnings))

        for kind in ResourceKind.teardown_order():
            unreachable_reason: Optional[str] = None

            for resource_plan in plan.for_kind(kind):
                statuses: dict[int, StepStatus] = {}

                for step in resource_plan.steps:
                    if report.cancelled or self._cancel_requested():
                        if not report.cancelled:
                            logger.warning("Cancellation requested, skipping remaining steps")
                        report.cancelled = True
                        outcome = StepOutcome.skipped(step, CANCELLED)
                    elif unreachable_reason is not None:
                        outcome = StepOutcome.skipped(step, PROVIDER_UNREACHABLE)
                    elif any(statuses.get(index) is not StepStatus.SUCCEEDED for index in step.requires):
                        outcome = StepOutcome.skipped(step, PREREQUISITE_FAILED)
                    else:
                        try:
                            outcome = self._attempt(step, mutator)
                        except KeyboardInterrupt:
                            logger.warning(f"Interrupted during {step.describe()} for {step.owner}, aborting teardown")
                            report.cancelled = True
                            outcome = StepOutcome.failed(step, reason=ABORTED, error_code="KeyboardInterrupt")
                        if outcome.error_code == ProviderUnreachable.error_code:
                            unreachable_reason = outcome.reason
                            logger.error(f"{kind.label}: provider unreachable, skipping remaining steps of this kind")

                    statuses[step.index] = outcome.status
                    self._record(report, outcome)

        report.completed_at = datetime.utcnow()
        return report

    def _attempt(self, step: TeardownStep, mutator: MutationProvider) -> StepOutcome:
        """Attempt one step and turn any error into an outcome."""
        logger.info(f"{step.owner.kind.value} {step.owner}: {step.describe()}")

        try:
            self._dispatch(step, mutator)
        except ResourceNotFound:
            return StepOutcome.succeeded(step, detail="already gone")
        except TeardownError as e:
            logger.warning(f"{step.owner.kind.value} {step.owner}: {step.describe()} failed: {e}")
            return StepOutcome.failed(step, reason=str(e) or e.error_code, error_code=e.error_code)
        except Exception as e:
            logger.error(f"Unexpected error during {step.describe()} for {step.owner}: {e}")
            return StepOutcome.failed(step, reason=f"Unexpected error: {e}", error_code=type(e).__name__)

        return StepOutcome.succeeded(step)

    def _dispatch(self, step: TeardownStep, mutator: MutationProvider) -> None:
        owner = step.owner

        if step.action is StepAction.DELETE:
            getattr(mutator, self.DELETE_METHODS[owner.kind])(owner.id)
        elif step.action is StepAction.DISASSOCIATE_FLOATING_IP:
            mutator.disassociate_floating_ip(step.port_id, step.target_id)
        elif step.action is StepAction.REMOVE_ROUTER_SUBNET:
            mutator.remove_router_subnet(owner.id, step.target_id)
        elif step.action is StepAction.CLEAR_EXTERNAL_GATEWAY:
            mutator.clear_external_gateway(owner.id)
        elif step.action is StepAction.DELETE_PORT:
            mutator.delete_port(step.target_id)
        elif step.action is StepAction.DELETE_SUBNET:
            mutator.delete_subnet(step.target_id)
        else:
            raise ValueError(f"Unsupported step action: {step.action}")

    def _cancel_requested(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def _record(self, report: TeardownReport, outcome: StepOutcome) -> None:
        report.record(outcome)
        if self.on_outcome is not None:
            self.on_outcome(outcome)
