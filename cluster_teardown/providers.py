"""Provider interfaces consumed by the teardown engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .models.resource import ResourceKind, ResourceRef


class InventoryProvider(ABC):
    """Read-only access to provider resources.

    Implementations return empty results for zero matches instead of raising, and
    raise ProviderUnreachable when the provider API cannot be reached at all.
    """

    @abstractmethod
    def list_resources(self, kind: ResourceKind) -> List[ResourceRef]:
        """List all resources of a kind, in provider order.

        Args:
            kind: Resource kind to list

        Returns:
            List of resource references (empty list if none exist)
        """
        pass

    @abstractmethod
    def describe(self, kind: ResourceKind, resource_id: str) -> Optional[Dict[str, Any]]:
        """Return the kind-specific detail record of a resource.

        Routers carry "external_gateway_info", load balancers "vip_port_id".

        Args:
            kind: Resource kind
            resource_id: Provider-assigned identifier

        Returns:
            Detail dictionary, or None if the resource does not exist
        """
        pass

    @abstractmethod
    def list_ports(
        self,
        router_id: Optional[str] = None,
        network_id: Optional[str] = None,
        device_owner: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """List ports as dictionaries with "id", "device_owner" and "fixed_ips"."""
        pass

    @abstractmethod
    def list_subnets(self, network_id: str) -> List[Dict[str, Any]]:
        """List subnets of a network as dictionaries with "id" and "name"."""
        pass

    @abstractmethod
    def list_floating_ips(self, port_id: str) -> List[Dict[str, Any]]:
        """List floating IPs bound to a port as dictionaries with "id" and "floating_ip_address"."""
        pass


class MutationProvider(ABC):
    """Kind-specific destructive operations.

    Every operation is idempotent on retry. A resource that is already gone is
    signalled with ResourceNotFound; a rejected delete because of remaining
    dependents with DependencyStillPresent; connectivity or authentication
    problems with ProviderUnreachable; everything else with MutationFailed.
    """

    @abstractmethod
    def delete_instance(self, instance_id: str) -> None:
        pass

    @abstractmethod
    def delete_load_balancer_cascade(self, load_balancer_id: str) -> None:
        pass

    @abstractmethod
    def disassociate_floating_ip(self, port_id: str, floating_ip_id: str) -> None:
        pass

    @abstractmethod
    def remove_router_subnet(self, router_id: str, subnet_id: str) -> None:
        pass

    @abstractmethod
    def clear_external_gateway(self, router_id: str) -> None:
        pass

    @abstractmethod
    def delete_router(self, router_id: str) -> None:
        pass

    @abstractmethod
    def delete_port(self, port_id: str) -> None:
        pass

    @abstractmethod
    def delete_subnet(self, subnet_id: str) -> None:
        pass

    @abstractmethod
    def delete_network(self, network_id: str) -> None:
        pass

    @abstractmethod
    def delete_security_group(self, security_group_id: str) -> None:
        pass
