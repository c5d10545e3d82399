"""Dependency resolution for teardown steps.

Discovers the sub-resources that have to be detached or deleted before a matched
resource itself can be deleted.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any, Callable, Optional, TypeVar

from ..errors import MalformedMetadata
from ..models.plan import StepAction, TeardownStep
from ..models.resource import ResourceKind, ResourceRef
from ..providers import InventoryProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")

ROUTER_INTERFACE_OWNER = "network:router_interface"
NETWORK_SERVICE_OWNER_PREFIX = "network:"

# CLI rendering of fixed IPs: [{'subnet_id': '...', 'ip_address': '...'}]
_SUBNET_ID_PATTERN = re.compile(r"subnet_id'?\s*[:=]\s*'([^']+)'")


def parse_subnet_ids(fixed_ips: Any) -> list[str]:
    """Extract subnet IDs from a port's fixed-IP metadata.

    Accepts the SDK form (list of mappings) and the CLI string form.

    Args:
        fixed_ips: Fixed-IP metadata of a port

    Returns:
        Subnet IDs in metadata order, without duplicates

    Raises:
        MalformedMetadata: If no subnet ID can be extracted
    """
    subnet_ids: list[str] = []

    if isinstance(fixed_ips, str):
        subnet_ids = _SUBNET_ID_PATTERN.findall(fixed_ips)
    elif isinstance(fixed_ips, (list, tuple)):
        for entry in fixed_ips:
            if isinstance(entry, Mapping) and entry.get("subnet_id"):
                subnet_ids.append(str(entry["subnet_id"]))

    if not subnet_ids:
        raise MalformedMetadata(f"no subnet_id in fixed IPs {fixed_ips!r}")

    return list(dict.fromkeys(subnet_ids))


def _gateway_is_set(gateway_info: Any) -> bool:
    return bool(gateway_info) and gateway_info != "None"


class DependencyResolver:
    """Resolves the prerequisite steps of a resource.

    Sibling prerequisites are independent: a failed subnet removal does not
    prevent the gateway from being cleared. Only the terminal delete (added by
    the planner) and subnet deletions, which name the ports on them, declare
    requirements.

    Lookup failures never abort resolution. They degrade to "absent" and are
    collected in `warnings`.

    Attributes:
        inventory: Inventory provider for sub-resource lookups
        warnings: Warnings recorded during resolution
    """

    def __init__(self, inventory: InventoryProvider) -> None:
        self.inventory = inventory
        self.warnings: list[str] = []

    def resolve(self, ref: ResourceRef) -> tuple[TeardownStep, ...]:
        """Resolve the prerequisite steps of a resource.

        Args:
            ref: Matched resource

        Returns:
            Ordered prerequisite steps, excluding the terminal delete
        """
        resolvers: dict[ResourceKind, Callable[[ResourceRef], list[TeardownStep]]] = {
            ResourceKind.ROUTER: self._resolve_router,
            ResourceKind.NETWORK: self._resolve_network,
            ResourceKind.LOAD_BALANCER: self._resolve_load_balancer,
        }

        resolver = resolvers.get(ref.kind)
        if resolver is None:
            return ()

        steps = resolver(ref)
        logger.debug(f"Resolved {len(steps)} prerequisite step(s) for {ref.kind.value} {ref}")
        return tuple(steps)

    def _resolve_router(self, ref: ResourceRef) -> list[TeardownStep]:
        steps: list[TeardownStep] = []
        subnet_ids: list[str] = []

        ports = self._lookup(
            ref,
            "list router interfaces",
            lambda: self.inventory.list_ports(router_id=ref.id, device_owner=ROUTER_INTERFACE_OWNER),
            default=[],
        )
        for port in ports:
            try:
                port_subnets = parse_subnet_ids(port.get("fixed_ips"))
            except MalformedMetadata as e:
                self._warn(ref, f"skipping interface port {port.get('id')}: {e}")
                continue
            for subnet_id in port_subnets:
                if subnet_id not in subnet_ids:
                    subnet_ids.append(subnet_id)

        for subnet_id in subnet_ids:
            steps.append(
                TeardownStep(owner=ref, action=StepAction.REMOVE_ROUTER_SUBNET, index=len(steps), target_id=subnet_id)
            )

        detail = self._lookup(
            ref,
            "read external gateway info",
            lambda: self.inventory.describe(ResourceKind.ROUTER, ref.id),
            default=None,
        )
        if detail and _gateway_is_set(detail.get("external_gateway_info")):
            steps.append(TeardownStep(owner=ref, action=StepAction.CLEAR_EXTERNAL_GATEWAY, index=len(steps)))

        return steps

    def _resolve_network(self, ref: ResourceRef) -> list[TeardownStep]:
        steps: list[TeardownStep] = []
        port_steps_by_subnet: dict[str, list[int]] = {}

        ports = self._lookup(
            ref,
            "list network ports",
            lambda: self.inventory.list_ports(network_id=ref.id),
            default=[],
        )
        for port in ports:
            # DHCP, router and floating IP ports go away with their owners
            if (port.get("device_owner") or "").startswith(NETWORK_SERVICE_OWNER_PREFIX):
                continue
            if not port.get("id"):
                self._warn(ref, f"skipping port without id: {port!r}")
                continue

            step = TeardownStep(owner=ref, action=StepAction.DELETE_PORT, index=len(steps), target_id=port["id"])
            steps.append(step)

            try:
                for subnet_id in parse_subnet_ids(port.get("fixed_ips")):
                    port_steps_by_subnet.setdefault(subnet_id, []).append(step.index)
            except MalformedMetadata:
                logger.debug(f"Port {port['id']} has no fixed IPs")

        subnets = self._lookup(
            ref,
            "list subnets",
            lambda: self.inventory.list_subnets(ref.id),
            default=[],
        )
        for subnet in subnets:
            subnet_id = subnet.get("id")
            if not subnet_id:
                self._warn(ref, f"skipping subnet without id: {subnet!r}")
                continue
            steps.append(
                TeardownStep(
                    owner=ref,
                    action=StepAction.DELETE_SUBNET,
                    index=len(steps),
                    target_id=subnet_id,
                    requires=tuple(port_steps_by_subnet.get(subnet_id, ())),
                )
            )

        return steps

    def _resolve_load_balancer(self, ref: ResourceRef) -> list[TeardownStep]:
        steps: list[TeardownStep] = []

        detail = self._lookup(
            ref,
            "read VIP port",
            lambda: self.inventory.describe(ResourceKind.LOAD_BALANCER, ref.id),
            default=None,
        )
        vip_port_id = detail.get("vip_port_id") if detail else None
        if not vip_port_id:
            return steps

        floating_ips = self._lookup(
            ref,
            f"list floating IPs of VIP port {vip_port_id}",
            lambda: self.inventory.list_floating_ips(vip_port_id),
            default=[],
        )
        for fip in floating_ips:
            if not fip.get("id"):
                continue
            steps.append(
                TeardownStep(
                    owner=ref,
                    action=StepAction.DISASSOCIATE_FLOATING_IP,
                    index=len(steps),
                    target_id=fip["id"],
                    port_id=vip_port_id,
                )
            )

        return steps

    def _lookup(self, ref: ResourceRef, what: str, fn: Callable[[], T], default: Optional[T]) -> Optional[T]:
        """Run a sub-resource lookup, treating any failure as absent."""
        try:
            return fn()
        except Exception as e:
            self._warn(ref, f"could not {what}: {e}")
            return default

    def _warn(self, ref: ResourceRef, message: str) -> None:
        warning = f"{ref.kind.value} {ref}: {message}"
        logger.warning(warning)
        self.warnings.append(warning)
