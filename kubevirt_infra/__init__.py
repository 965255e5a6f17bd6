"""KubeVirt infra cluster client.

A facade over the Kubernetes, KubeVirt and CDI APIs that guards DataVolume
ownership and waits for volume hotplug to converge.
"""

from importlib.metadata import PackageNotFoundError, version as _pkg_version

from kubevirt_infra.client import InfraClusterClient, build_client
from kubevirt_infra.errors import (
    InfraClientError,
    InvalidVolumeError,
    NoReadyPodError,
    WaitTimeoutError,
    is_already_exists,
    is_not_found,
)
from kubevirt_infra.ownership import OwnershipPolicy, contains_labels, has_owned_prefix
from kubevirt_infra.polling import Poller, PollState
from kubevirt_infra.types import (
    AddVolumeOptions,
    DataVolume,
    PodInfo,
    RemoveVolumeOptions,
    VirtualMachineInstance,
    VolumePhase,
    VolumeStatus,
)

__all__ = [
    # Client
    "InfraClusterClient",
    "build_client",
    # Ownership
    "OwnershipPolicy",
    "contains_labels",
    "has_owned_prefix",
    # Polling
    "Poller",
    "PollState",
    # Types
    "AddVolumeOptions",
    "DataVolume",
    "PodInfo",
    "RemoveVolumeOptions",
    "VirtualMachineInstance",
    "VolumePhase",
    "VolumeStatus",
    # Errors
    "InfraClientError",
    "InvalidVolumeError",
    "NoReadyPodError",
    "WaitTimeoutError",
    "is_already_exists",
    "is_not_found",
]

try:
    __version__ = _pkg_version("kubevirt-infra-client")
except PackageNotFoundError:
    __version__ = "unknown"
