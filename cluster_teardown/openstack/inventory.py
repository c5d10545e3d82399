"""OpenStack inventory provider backed by openstacksdk."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from openstack.connection import Connection

from ..errors import ResourceNotFound
from ..models.resource import ResourceKind, ResourceRef
from ..providers import InventoryProvider
from .client import classify_sdk_error

logger = logging.getLogger(__name__)


class OpenStackInventory(InventoryProvider):
    """Lists and describes cluster resources through the compute, network and
    load-balancer proxies of an SDK connection."""

    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def list_resources(self, kind: ResourceKind) -> List[ResourceRef]:
        listers: Dict[ResourceKind, Callable[[], Iterable[Any]]] = {
            ResourceKind.INSTANCE: self.conn.compute.servers,
            ResourceKind.LOAD_BALANCER: self.conn.load_balancer.load_balancers,
            ResourceKind.ROUTER: self.conn.network.routers,
            ResourceKind.NETWORK: self.conn.network.networks,
            ResourceKind.SECURITY_GROUP: self.conn.network.security_groups,
        }

        resources = self._call(lambda: list(listers[kind]()))
        logger.debug(f"Listed {len(resources)} {kind.value} resource(s)")
        return [ResourceRef(kind=kind, id=r.id, name=r.name or "") for r in resources]

    def describe(self, kind: ResourceKind, resource_id: str) -> Optional[Dict[str, Any]]:
        getters: Dict[ResourceKind, Callable[[str], Any]] = {
            ResourceKind.INSTANCE: self.conn.compute.get_server,
            ResourceKind.LOAD_BALANCER: self.conn.load_balancer.get_load_balancer,
            ResourceKind.ROUTER: self.conn.network.get_router,
            ResourceKind.NETWORK: self.conn.network.get_network,
            ResourceKind.SECURITY_GROUP: self.conn.network.get_security_group,
        }

        try:
            resource = self._call(lambda: getters[kind](resource_id))
        except ResourceNotFound:
            return None

        detail: Dict[str, Any] = {"id": resource.id, "name": resource.name}
        if kind is ResourceKind.ROUTER:
            detail["external_gateway_info"] = resource.external_gateway_info
        elif kind is ResourceKind.LOAD_BALANCER:
            detail["vip_port_id"] = resource.vip_port_id
        return detail

    def list_ports(
        self,
        router_id: Optional[str] = None,
        network_id: Optional[str] = None,
        device_owner: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        query = {}
        if router_id:
            query["device_id"] = router_id
        if network_id:
            query["network_id"] = network_id
        if device_owner:
            query["device_owner"] = device_owner

        ports = self._call(lambda: list(self.conn.network.ports(**query)))
        return [
            {
                "id": port.id,
                "name": port.name,
                "device_owner": port.device_owner or "",
                "fixed_ips": port.fixed_ips,
            }
            for port in ports
        ]

    def list_subnets(self, network_id: str) -> List[Dict[str, Any]]:
        subnets = self._call(lambda: list(self.conn.network.subnets(network_id=network_id)))
        return [{"id": subnet.id, "name": subnet.name} for subnet in subnets]

    def list_floating_ips(self, port_id: str) -> List[Dict[str, Any]]:
        floating_ips = self._call(lambda: list(self.conn.network.ips(port_id=port_id)))
        return [{"id": fip.id, "floating_ip_address": fip.floating_ip_address} for fip in floating_ips]

    def _call(self, fn: Callable[[], Any]) -> Any:
        """Run an SDK call, re-raising failures as teardown errors."""
        try:
            return fn()
        except Exception as e:
            raise classify_sdk_error(e) from e
