"""OpenStack mutation provider.

Maps teardown operations to openstacksdk calls with retry and error
classification.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from openstack.connection import Connection

from ..errors import DependencyStillPresent, ProviderUnreachable, ResourceNotFound
from ..providers import MutationProvider
from .client import classify_sdk_error

logger = logging.getLogger(__name__)


class OpenStackMutator(MutationProvider):
    """OpenStack mutation orchestrator.

    Issues destructive calls through an SDK connection. Conflicts (HTTP 409, e.g.
    a load balancer still in PENDING_UPDATE or a network with ports being
    released) are retried with exponential backoff before being reported as
    DependencyStillPresent.
    """

    # Mutation method mapping: operation -> (proxy, sdk method)
    MUTATION_METHODS = {
        "delete_instance": ("compute", "delete_server"),
        "delete_load_balancer_cascade": ("load_balancer", "delete_load_balancer"),
        "disassociate_floating_ip": ("network", "update_ip"),
        "remove_router_subnet": ("network", "remove_interface_from_router"),
        "clear_external_gateway": ("network", "update_router"),
        "delete_router": ("network", "delete_router"),
        "delete_port": ("network", "delete_port"),
        "delete_subnet": ("network", "delete_subnet"),
        "delete_network": ("network", "delete_network"),
        "delete_security_group": ("network", "delete_security_group"),
    }

    def __init__(self, conn: Connection, max_retries: int = 3) -> None:
        """Initialize mutator.

        Args:
            conn: OpenStack SDK connection
            max_retries: Maximum number of attempts on conflicts (default: 3)
        """
        self.conn = conn
        self.max_retries = max(1, max_retries)

    def delete_instance(self, instance_id: str) -> None:
        self._mutate("delete_instance", instance_id, ignore_missing=False)

    def delete_load_balancer_cascade(self, load_balancer_id: str) -> None:
        self._mutate("delete_load_balancer_cascade", load_balancer_id, ignore_missing=False, cascade=True)

    def disassociate_floating_ip(self, port_id: str, floating_ip_id: str) -> None:
        logger.debug(f"Unbinding floating IP {floating_ip_id} from port {port_id}")
        self._mutate("disassociate_floating_ip", floating_ip_id, port_id=None)

    def remove_router_subnet(self, router_id: str, subnet_id: str) -> None:
        self._mutate("remove_router_subnet", router_id, subnet_id=subnet_id)

    def clear_external_gateway(self, router_id: str) -> None:
        self._mutate("clear_external_gateway", router_id, external_gateway_info={})

    def delete_router(self, router_id: str) -> None:
        self._mutate("delete_router", router_id, ignore_missing=False)

    def delete_port(self, port_id: str) -> None:
        self._mutate("delete_port", port_id, ignore_missing=False)

    def delete_subnet(self, subnet_id: str) -> None:
        self._mutate("delete_subnet", subnet_id, ignore_missing=False)

    def delete_network(self, network_id: str) -> None:
        self._mutate("delete_network", network_id, ignore_missing=False)

    def delete_security_group(self, security_group_id: str) -> None:
        self._mutate("delete_security_group", security_group_id, ignore_missing=False)

    def _mutate(self, operation: str, resource_id: str, **params: Any) -> None:
        """Run a mutation, retrying on conflicts.

        Args:
            operation: Key into MUTATION_METHODS
            resource_id: Identifier passed as the first SDK argument
            **params: Extra SDK keyword arguments

        Raises:
            ResourceNotFound: Resource already gone
            DependencyStillPresent: Conflict persisted through all retries
            ProviderUnreachable: API not reachable or credentials rejected
            MutationFailed: Any other failure
        """
        service, method = self.MUTATION_METHODS[operation]

        for attempt in range(self.max_retries):
            try:
                self._attempt_mutation(service, method, resource_id, params)
                logger.info(f"{operation} succeeded for {resource_id}")
                return
            except DependencyStillPresent as e:
                if attempt < self.max_retries - 1:
                    wait_time = 2**attempt
                    logger.debug(
                        f"Conflict on {operation} for {resource_id}, "
                        f"retrying in {wait_time}s (attempt {attempt + 1}/{self.max_retries})"
                    )
                    time.sleep(wait_time)
                    continue
                error_msg = f"{operation} for {resource_id} still conflicting after {self.max_retries} attempts: {e}"
                logger.error(error_msg)
                raise DependencyStillPresent(error_msg) from e

    def _attempt_mutation(self, service: str, method: str, resource_id: str, params: dict[str, Any]) -> None:
        """Attempt a single SDK call and classify its failure."""
        proxy = getattr(self.conn, service)

        try:
            getattr(proxy, method)(resource_id, **params)
        except Exception as e:
            error = classify_sdk_error(e)
            if isinstance(error, ResourceNotFound):
                logger.info(f"Resource {resource_id} already deleted")
            elif isinstance(error, ProviderUnreachable):
                logger.error(f"OpenStack unreachable during {method} for {resource_id}: {error}")
            elif not isinstance(error, DependencyStillPresent):
                logger.error(f"Failed {method} for {resource_id}: {error.error_code} - {error}")
            raise error from e
