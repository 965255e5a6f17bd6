"""Typed views of the KubeVirt / CDI objects the client deals with.

The downstream APIs speak plain JSON dicts (custom resources). These
dataclasses pick out the fields this client needs and keep the rest in
``raw`` so nothing is lost when a caller wants more.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

CDI_GROUP = "cdi.kubevirt.io"
CDI_VERSION = "v1beta1"
DATAVOLUME_PLURAL = "datavolumes"

KUBEVIRT_GROUP = "kubevirt.io"
KUBEVIRT_VERSION = "v1"
VMI_PLURAL = "virtualmachineinstances"


class VolumePhase(str, Enum):
    """Hotplug volume phases reported in VMI status.volumeStatus."""

    PENDING = "Pending"
    BOUND = "Bound"
    ATTACHED_TO_NODE = "AttachedToNode"
    MOUNTED_TO_POD = "MountedToPod"
    UNMOUNTED_FROM_POD = "UnMountedFromPod"
    READY = "Ready"  # Terminal attach phase


@dataclass
class VolumeStatus:
    """One entry of a VMI's volume status list."""

    name: str
    phase: str | None = None  # Raw phase; unknown phases are kept as-is
    target: str | None = None
    reason: str | None = None
    message: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VolumeStatus:
        return cls(
            name=data.get("name", ""),
            phase=data.get("phase"),
            target=data.get("target"),
            reason=data.get("reason"),
            message=data.get("message"),
        )


@dataclass
class VirtualMachineInstance:
    """Observed state of a running VM, owned by the virtualization API."""

    name: str
    namespace: str
    phase: str | None = None
    labels: dict[str, str] = field(default_factory=dict)
    volume_status: list[VolumeStatus] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VirtualMachineInstance:
        metadata = data.get("metadata") or {}
        status = data.get("status") or {}
        return cls(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", ""),
            phase=status.get("phase"),
            labels=metadata.get("labels") or {},
            volume_status=[
                VolumeStatus.from_dict(vs) for vs in status.get("volumeStatus") or []
            ],
            raw=data,
        )

    def has_volume(self, volume_name: str) -> bool:
        """Whether any volume status entry carries this name, whatever its phase."""
        return any(vs.name == volume_name for vs in self.volume_status)

    def has_ready_volume(self, volume_name: str) -> bool:
        """Whether the named volume is reported in the Ready phase."""
        return any(
            vs.name == volume_name and vs.phase == VolumePhase.READY
            for vs in self.volume_status
        )


@dataclass
class DataVolume:
    """CDI DataVolume (the storage provisioning request this client guards)."""

    name: str
    namespace: str | None = None
    labels: dict[str, str] = field(default_factory=dict)
    spec: dict[str, Any] = field(default_factory=dict)
    status: dict[str, Any] | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DataVolume:
        metadata = data.get("metadata") or {}
        return cls(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace"),
            labels=metadata.get("labels") or {},
            spec=data.get("spec") or {},
            status=data.get("status"),
            raw=data,
        )

    def to_body(self, namespace: str | None = None) -> dict[str, Any]:
        """Build the custom resource body for a create request."""
        metadata: dict[str, Any] = {"name": self.name}
        ns = namespace or self.namespace
        if ns:
            metadata["namespace"] = ns
        if self.labels:
            metadata["labels"] = dict(self.labels)
        return {
            "apiVersion": f"{CDI_GROUP}/{CDI_VERSION}",
            "kind": "DataVolume",
            "metadata": metadata,
            "spec": self.spec,
        }


@dataclass
class AddVolumeOptions:
    """Hotplug request: attach a DataVolume to a running VMI."""

    name: str
    data_volume_name: str | None = None  # Defaults to name
    bus: str = "scsi"
    serial: str | None = None
    dry_run: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        disk: dict[str, Any] = {"name": self.name, "disk": {"bus": self.bus}}
        if self.serial:
            disk["serial"] = self.serial
        body: dict[str, Any] = {
            "name": self.name,
            "disk": disk,
            "volumeSource": {
                "dataVolume": {
                    "name": self.data_volume_name or self.name,
                    "hotpluggable": True,
                },
            },
        }
        if self.dry_run:
            body["dryRun"] = list(self.dry_run)
        return body


@dataclass
class RemoveVolumeOptions:
    """Hot-unplug request: detach a volume from a running VMI."""

    name: str
    dry_run: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"name": self.name}
        if self.dry_run:
            body["dryRun"] = list(self.dry_run)
        return body


@dataclass
class PodInfo:
    """Read-only view of a Pod backing a Service."""

    name: str
    namespace: str
    phase: str | None = None
    pod_ip: str | None = None
    ready: bool = False
    labels: dict[str, str] = field(default_factory=dict)
