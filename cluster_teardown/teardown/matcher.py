"""Cluster identifier matching."""

from __future__ import annotations

import logging

from ..models.resource import ResourceKind, ResourceRef
from ..providers import InventoryProvider

logger = logging.getLogger(__name__)

DEFAULT_SECURITY_GROUP = "default"


class ResourceMatcher:
    """Selects the resources of a cluster by display name.

    Matching is a case-sensitive substring test. The provider's reserved default
    security group is never matched.

    Attributes:
        inventory: Inventory provider to list resources from
        default_security_group: Reserved security group name to exclude
    """

    def __init__(self, inventory: InventoryProvider, default_security_group: str = DEFAULT_SECURITY_GROUP) -> None:
        self.inventory = inventory
        self.default_security_group = default_security_group

    def find(self, kind: ResourceKind, identifier: str) -> list[ResourceRef]:
        """Find resources of a kind whose name contains the identifier.

        Args:
            kind: Resource kind to search
            identifier: Non-empty cluster identifier

        Returns:
            Matching resources in provider order, without duplicates (may be empty)

        Raises:
            ValueError: If identifier is empty
            TeardownError: If the inventory cannot be listed
        """
        if not identifier:
            raise ValueError("Cluster identifier must not be empty")

        matches: list[ResourceRef] = []
        seen: set[ResourceRef] = set()

        for ref in self.inventory.list_resources(kind):
            if identifier not in ref.name:
                continue
            if kind is ResourceKind.SECURITY_GROUP and ref.name == self.default_security_group:
                continue
            if ref in seen:
                continue
            seen.add(ref)
            matches.append(ref)

        logger.debug(f"Matched {len(matches)} {kind.value} resource(s) for '{identifier}'")
        return matches
