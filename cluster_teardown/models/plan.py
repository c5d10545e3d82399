"""Teardown plan models.

A plan is built once per run and handed to the executor unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

from .resource import ResourceKind, ResourceRef


class StepAction(Enum):
    """Action performed by a single teardown step."""

    DISASSOCIATE_FLOATING_IP = "disassociate floating IP"
    REMOVE_ROUTER_SUBNET = "remove router interface to subnet"
    CLEAR_EXTERNAL_GATEWAY = "clear external gateway"
    DELETE_PORT = "delete port"
    DELETE_SUBNET = "delete subnet"
    DELETE = "delete"

    @property
    def is_terminal(self) -> bool:
        return self is StepAction.DELETE


@dataclass(frozen=True)
class TeardownStep:
    """Single destructive operation on behalf of an owning resource.

    Attributes:
        owner: Resource this step belongs to
        action: Action to perform
        index: Position of the step within the owner's steps (0-based)
        target_id: Sub-resource acted upon (subnet, port or floating IP id)
        port_id: Port the floating IP is bound to (floating IP steps only)
        requires: Indices of steps of the same owner that must succeed first
    """

    owner: ResourceRef
    action: StepAction
    index: int
    target_id: Optional[str] = None
    port_id: Optional[str] = None
    requires: tuple[int, ...] = ()

    def describe(self) -> str:
        """Return a short human-readable description of the step."""
        if self.action.is_terminal:
            if self.owner.kind is ResourceKind.LOAD_BALANCER:
                return "delete load balancer (cascade)"
            return f"delete {self.owner.kind.value.replace('_', ' ')}"
        if self.target_id:
            return f"{self.action.value} {self.target_id}"
        return self.action.value


@dataclass(frozen=True)
class ResourcePlan:
    """Ordered steps for one resource, ending with its terminal delete."""

    ref: ResourceRef
    steps: tuple[TeardownStep, ...]


@dataclass(frozen=True)
class TeardownPlan:
    """Ordered teardown plan grouped by kind, then resource.

    Attributes:
        identifier: Cluster identifier the plan was built for
        resources: Resource plans in execution order
        warnings: Non-fatal problems found while resolving dependencies
        unreachable: Kinds whose inventory could not be read, with the reason
    """

    identifier: str
    resources: tuple[ResourcePlan, ...] = ()
    warnings: tuple[str, ...] = ()
    unreachable: dict[ResourceKind, str] = field(default_factory=dict)

    def __iter__(self) -> Iterator[TeardownStep]:
        for resource_plan in self.resources:
            yield from resource_plan.steps

    def __len__(self) -> int:
        return sum(len(rp.steps) for rp in self.resources)

    @property
    def is_empty(self) -> bool:
        return not self.resources

    def for_kind(self, kind: ResourceKind) -> list[ResourcePlan]:
        """Return resource plans of a kind, in plan order."""
        return [rp for rp in self.resources if rp.ref.kind is kind]

    def matched_by_kind(self) -> dict[ResourceKind, list[ResourceRef]]:
        """Return matched resources grouped by kind (kinds without matches omitted)."""
        grouped: dict[ResourceKind, list[ResourceRef]] = {}
        for resource_plan in self.resources:
            grouped.setdefault(resource_plan.ref.kind, []).append(resource_plan.ref)
        return grouped
