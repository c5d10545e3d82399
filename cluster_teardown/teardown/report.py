"""Teardown report: aggregation of step outcomes."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..models.resource import ResourceKind, ResourceRef
from ..models.step_outcome import StepOutcome, StepStatus

SUMMARY_KEYS = ("matched", "succeeded", "failed", "skipped")


def group_by_resource(outcomes: Iterable[StepOutcome]) -> dict[ResourceRef, list[StepOutcome]]:
    """Group outcomes by owning resource, preserving first-seen order."""
    grouped: dict[ResourceRef, list[StepOutcome]] = {}
    for outcome in outcomes:
        grouped.setdefault(outcome.step.owner, []).append(outcome)
    return grouped


def resource_status(outcomes: Iterable[StepOutcome]) -> StepStatus:
    """Derive the status of a resource from its step outcomes.

    A resource succeeded if its terminal delete succeeded, failed if any of its
    steps failed, and was skipped otherwise.
    """
    outcomes = list(outcomes)
    if any(o.status is StepStatus.FAILED for o in outcomes):
        return StepStatus.FAILED

    terminal = [o for o in outcomes if o.step.action.is_terminal]
    if terminal and terminal[-1].status is StepStatus.SUCCEEDED:
        return StepStatus.SUCCEEDED

    return StepStatus.SKIPPED


def summarize(outcomes: Iterable[StepOutcome]) -> dict[ResourceKind, dict[str, int]]:
    """Count resources per kind and status.

    Args:
        outcomes: Step outcomes in execution order

    Returns:
        Dictionary of kind -> {matched, succeeded, failed, skipped}, in teardown
        order, containing only kinds that have outcomes
    """
    counts: dict[ResourceKind, dict[str, int]] = {}

    for ref, ref_outcomes in group_by_resource(outcomes).items():
        kind_counts = counts.setdefault(ref.kind, {key: 0 for key in SUMMARY_KEYS})
        kind_counts["matched"] += 1
        kind_counts[resource_status(ref_outcomes).value] += 1

    return {kind: counts[kind] for kind in ResourceKind.teardown_order() if kind in counts}


@dataclass
class TeardownReport:
    """Outcome log of one teardown run.

    Outcomes are only appended by the executor that owns the run; everything
    else reads.

    Attributes:
        identifier: Cluster identifier
        outcomes: Step outcomes in execution order
        warnings: Warnings carried over from planning
        started_at: When execution started (UTC)
        completed_at: When execution completed (UTC)
        cancelled: Whether cancellation was requested during the run
    """

    identifier: str
    outcomes: list[StepOutcome] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None
    cancelled: bool = False

    def record(self, outcome: StepOutcome) -> None:
        outcome.validate()
        self.outcomes.append(outcome)

    def summarize(self) -> dict[ResourceKind, dict[str, int]]:
        return summarize(self.outcomes)

    def totals(self) -> dict[str, int]:
        """Resource counts over all kinds."""
        totals = {key: 0 for key in SUMMARY_KEYS}
        for kind_counts in self.summarize().values():
            for key in SUMMARY_KEYS:
                totals[key] += kind_counts[key]
        return totals

    @property
    def failed_outcomes(self) -> list[StepOutcome]:
        return [o for o in self.outcomes if o.status is StepStatus.FAILED]

    @property
    def has_failures(self) -> bool:
        return bool(self.failed_outcomes)

    @property
    def is_empty(self) -> bool:
        return not self.outcomes

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()
