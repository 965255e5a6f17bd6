"""Infra client error types.

Ownership and polling failures get their own types so callers can tell
"not mine" from "doesn't exist" from "transport failure". Everything coming
from the cluster itself stays a kubernetes-asyncio ``ApiException``.
"""

from __future__ import annotations

from typing import Any

from kubernetes_asyncio.client import ApiException


class InfraClientError(Exception):
    """Base error for all infra client exceptions."""

    code: str = "internal_error"
    message: str = "An internal error occurred"

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.__class__.message
        self.details = details or {}
        super().__init__(self.message)


class InvalidVolumeError(InfraClientError):
    """DataVolume is not owned by this client (prefix or labels mismatch)."""

    code = "invalid_volume"
    message = "invalid volume name"


class WaitTimeoutError(InfraClientError):
    """Volume did not converge before the deadline.

    Note: Named to avoid shadowing Python's builtin TimeoutError.
    """

    code = "timeout"
    message = "timed out waiting for the condition"


class NoReadyPodError(InfraClientError):
    """No ready pod is backing a service."""

    code = "no_ready_pod"
    message = "no ready pod listening on the service"


def is_not_found(exc: BaseException) -> bool:
    """Whether exc is a 404 from the cluster API."""
    return isinstance(exc, ApiException) and exc.status == 404


def is_already_exists(exc: BaseException) -> bool:
    """Whether exc is a 409 from the cluster API."""
    return isinstance(exc, ApiException) and exc.status == 409
