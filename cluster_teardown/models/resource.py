"""Resource kind and reference models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ResourceKind(Enum):
    """Resource kinds handled by a cluster teardown.

    Declaration order is the fixed deletion precedence: a kind is never processed
    before a kind listed above it. Routers precede networks because router
    interfaces reference subnets.
    """

    INSTANCE = "instance"
    LOAD_BALANCER = "load_balancer"
    ROUTER = "router"
    NETWORK = "network"
    SECURITY_GROUP = "security_group"

    @classmethod
    def teardown_order(cls) -> list[ResourceKind]:
        """Return all kinds in deletion precedence order."""
        return list(cls)

    @property
    def label(self) -> str:
        """Human-readable plural label (e.g. "Load Balancers")."""
        return _LABELS[self]


_LABELS = {
    ResourceKind.INSTANCE: "Instances",
    ResourceKind.LOAD_BALANCER: "Load Balancers",
    ResourceKind.ROUTER: "Routers",
    ResourceKind.NETWORK: "Networks",
    ResourceKind.SECURITY_GROUP: "Security Groups",
}


@dataclass(frozen=True)
class ResourceRef:
    """Reference to a provider resource.

    Identity is the (kind, id) pair. The display name is only used for matching
    and display, so it is excluded from equality and hashing.

    Attributes:
        kind: Resource kind
        id: Provider-assigned identifier
        name: Display name as reported by the provider
    """

    kind: ResourceKind
    id: str
    name: str = field(default="", compare=False)

    def __str__(self) -> str:
        return f"{self.name} ({self.id})" if self.name else self.id
