"""Error taxonomy for teardown operations.

Providers raise these exceptions; the executor turns them into step outcomes so
they never escape a teardown run.
"""

from __future__ import annotations

from typing import Optional


class TeardownError(Exception):
    """Base class for all teardown errors.

    Attributes:
        error_code: Short machine-readable code recorded in step outcomes
    """

    error_code = "TeardownError"

    def __init__(self, message: str, error_code: Optional[str] = None) -> None:
        super().__init__(message)
        if error_code:
            self.error_code = error_code


class ResourceNotFound(TeardownError):
    """Resource vanished between listing and mutation (treated as success)."""

    error_code = "NotFound"


class DependencyStillPresent(TeardownError):
    """Provider rejected a mutation because dependent resources still exist."""

    error_code = "DependencyStillPresent"


class ProviderUnreachable(TeardownError):
    """Provider API cannot be reached or authenticated against."""

    error_code = "ProviderUnreachable"


class MalformedMetadata(TeardownError):
    """A sub-resource reference could not be parsed."""

    error_code = "MalformedMetadata"


class MutationFailed(TeardownError):
    """Any other provider-side failure of a mutation call."""

    error_code = "MutationFailed"
