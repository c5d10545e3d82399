"""Teardown plan construction."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Optional

from ..models.plan import ResourcePlan, StepAction, TeardownPlan, TeardownStep
from ..models.resource import ResourceKind, ResourceRef


class TeardownPlanner:
    """Builds an immutable, deterministic teardown plan.

    Kinds follow ResourceKind.teardown_order(); resources keep the order the
    matcher returned them in; each resource gets its resolved prerequisite steps
    followed by the terminal delete, which requires every prerequisite. The
    planner performs no I/O.
    """

    def build(
        self,
        identifier: str,
        matches_by_kind: Mapping[ResourceKind, Sequence[ResourceRef]],
        prerequisites: Optional[Mapping[ResourceRef, Sequence[TeardownStep]]] = None,
        warnings: Sequence[str] = (),
        unreachable: Optional[Mapping[ResourceKind, str]] = None,
    ) -> TeardownPlan:
        """Build a teardown plan.

        Args:
            identifier: Cluster identifier the matches were made for
            matches_by_kind: Matched resources per kind, in matcher order
            prerequisites: Resolved prerequisite steps per resource (optional)
            warnings: Resolution warnings to carry into the plan
            unreachable: Kinds whose inventory could not be read, with reason

        Returns:
            TeardownPlan grouped by kind, then resource

        Raises:
            ValueError: If prerequisite steps do not belong to their resource or
                are not indexed 0..n-1 in order
        """
        prerequisites = prerequisites or {}
        resource_plans: list[ResourcePlan] = []

        for kind in ResourceKind.teardown_order():
            for ref in matches_by_kind.get(kind, ()):
                prefix = tuple(prerequisites.get(ref, ()))
                self._check_prefix(ref, prefix)

                terminal = TeardownStep(
                    owner=ref,
                    action=StepAction.DELETE,
                    index=len(prefix),
                    requires=tuple(step.index for step in prefix),
                )
                resource_plans.append(ResourcePlan(ref=ref, steps=prefix + (terminal,)))

        return TeardownPlan(
            identifier=identifier,
            resources=tuple(resource_plans),
            warnings=tuple(warnings),
            unreachable=dict(unreachable or {}),
        )

    def _check_prefix(self, ref: ResourceRef, prefix: tuple[TeardownStep, ...]) -> None:
        for position, step in enumerate(prefix):
            if step.owner != ref:
                raise ValueError(f"Step {step.describe()} belongs to {step.owner}, not {ref}")
            if step.index != position:
                raise ValueError(f"Step {step.describe()} of {ref} has index {step.index}, expected {position}")
            if step.action.is_terminal:
                raise ValueError(f"Prerequisite steps of {ref} must not include a delete")
            if any(required >= step.index for required in step.requires):
                raise ValueError(f"Step {step.describe()} of {ref} requires a later step")
