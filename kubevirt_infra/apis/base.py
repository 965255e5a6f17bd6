"""Downstream API capabilities - infrastructure abstraction.

Each capability is a narrow interface over one remote API. The facade owns
one of each and never hands them out, so tests can substitute fakes per
capability.

These classes do NOT handle:
- Ownership checks (facade)
- Retry/backoff (transport)
- Polling (facade + Poller)

Errors from the cluster are raised as kubernetes-asyncio ``ApiException``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ClusterApi(ABC):
    """Generic Kubernetes API, consumed read-only."""

    @abstractmethod
    async def server_version(self) -> dict[str, Any]:
        """Fetch the API server version (minimal liveness request)."""
        ...

    @abstractmethod
    async def read_service(self, namespace: str, name: str) -> Any:
        """Read a Service object.

        Returns:
            Object exposing ``spec.selector`` (a V1Service)
        """
        ...

    @abstractmethod
    async def list_pods(self, namespace: str, *, label_selector: str = "") -> list[Any]:
        """List Pods in a namespace.

        Args:
            namespace: Namespace to list
            label_selector: Kubernetes label selector (``k=v,k2=v2``)

        Returns:
            List of V1Pod objects
        """
        ...


class VirtualizationApi(ABC):
    """KubeVirt VirtualMachineInstance API."""

    @abstractmethod
    async def list_instances(self, namespace: str) -> list[dict[str, Any]]:
        """List raw VMI objects in a namespace."""
        ...

    @abstractmethod
    async def get_instance(self, namespace: str, name: str) -> dict[str, Any]:
        """Get a raw VMI object."""
        ...

    @abstractmethod
    async def add_volume(self, namespace: str, name: str, body: dict[str, Any]) -> None:
        """Hotplug a volume into a VMI.

        Args:
            namespace: VMI namespace
            name: VMI name
            body: AddVolumeOptions JSON
        """
        ...

    @abstractmethod
    async def remove_volume(self, namespace: str, name: str, body: dict[str, Any]) -> None:
        """Hot-unplug a volume from a VMI.

        Args:
            namespace: VMI namespace
            name: VMI name
            body: RemoveVolumeOptions JSON
        """
        ...


class DataImportApi(ABC):
    """CDI DataVolume API."""

    @abstractmethod
    async def create(self, namespace: str, body: dict[str, Any]) -> dict[str, Any]:
        """Create a DataVolume and return the stored object."""
        ...

    @abstractmethod
    async def get(self, namespace: str, name: str) -> dict[str, Any]:
        """Get a raw DataVolume object."""
        ...

    @abstractmethod
    async def delete(self, namespace: str, name: str) -> None:
        """Delete a DataVolume by name."""
        ...
