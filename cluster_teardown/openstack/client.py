"""OpenStack connection factory and SDK error classification."""

from __future__ import annotations

import logging
from typing import Optional

import openstack
from keystoneauth1 import exceptions as ks_exceptions
from openstack import exceptions as os_exceptions
from openstack.connection import Connection

from ..errors import (
    DependencyStillPresent,
    MutationFailed,
    ProviderUnreachable,
    ResourceNotFound,
    TeardownError,
)

logger = logging.getLogger(__name__)

# keystoneauth failures that mean the API cannot be used at all
UNREACHABLE_ERRORS = (
    ks_exceptions.ConnectFailure,
    ks_exceptions.DiscoveryFailure,
    ks_exceptions.AuthorizationFailure,
    ks_exceptions.Unauthorized,
    ks_exceptions.EndpointNotFound,
    os_exceptions.EndpointNotFound,
)


def create_connection(cloud: Optional[str] = None, api_timeout: Optional[float] = None) -> Connection:
    """Create an OpenStack SDK connection.

    Credentials come from clouds.yaml (when a cloud name is given) or the usual
    OS_* environment variables.

    Args:
        cloud: Name of the cloud in clouds.yaml (optional)
        api_timeout: Timeout in seconds for every API call (optional)

    Returns:
        Connected openstack.connection.Connection

    Raises:
        ProviderUnreachable: If the cloud configuration cannot be loaded
    """
    try:
        if cloud:
            return openstack.connect(cloud=cloud, api_timeout=api_timeout)
        return openstack.connect(api_timeout=api_timeout)
    except os_exceptions.ConfigException as e:
        raise ProviderUnreachable(f"Cannot load cloud configuration: {e}")


def verify_connection(conn: Connection) -> Optional[str]:
    """Authenticate once so a dead endpoint is detected before any listing.

    Args:
        conn: OpenStack connection

    Returns:
        Current project ID

    Raises:
        ProviderUnreachable: If authentication or endpoint discovery fails
    """
    try:
        conn.authorize()
    except Exception as e:
        raise ProviderUnreachable(f"Unable to authenticate against OpenStack: {e}")

    return conn.current_project_id


def classify_sdk_error(error: Exception) -> TeardownError:
    """Map an SDK or keystoneauth exception onto the teardown error taxonomy.

    Args:
        error: Exception raised by an SDK call

    Returns:
        Matching TeardownError instance (not raised)
    """
    if isinstance(error, TeardownError):
        return error

    if isinstance(error, os_exceptions.NotFoundException):
        return ResourceNotFound(str(error))

    if isinstance(error, os_exceptions.ConflictException):
        return DependencyStillPresent(str(error))

    if isinstance(error, UNREACHABLE_ERRORS):
        return ProviderUnreachable(str(error))

    if isinstance(error, os_exceptions.HttpException):
        status_code = getattr(error, "status_code", None)
        if status_code == 409:
            return DependencyStillPresent(str(error))
        if status_code == 401:
            return ProviderUnreachable(str(error))
        if status_code:
            return MutationFailed(str(error), error_code=f"HTTP{status_code}")

    return MutationFailed(str(error), error_code=type(error).__name__)
