"""OpenStack implementations of the inventory and mutation providers."""

from __future__ import annotations

from .client import create_connection, verify_connection
from .inventory import OpenStackInventory
from .mutator import OpenStackMutator

__all__ = [
    "create_connection",
    "verify_connection",
    "OpenStackInventory",
    "OpenStackMutator",
]
