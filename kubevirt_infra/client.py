"""InfraClusterClient - single entry point to the infra cluster.

Wraps the Kubernetes, KubeVirt and CDI APIs behind one interface. On top of
plain delegation it adds two things:
- Ownership gating for DataVolumes (see kubevirt_infra.ownership)
- Convergence polling for volume hotplug / hot-unplug

Errors from the cluster are never wrapped or retried here. The only local
recovery is the idempotent delete (a missing volume counts as deleted).
"""

from __future__ import annotations

import asyncio
import time
from types import TracebackType

import structlog
import yaml
from kubernetes_asyncio import client, config
from kubernetes_asyncio.client import ApiClient

from kubevirt_infra.apis import (
    ClusterApi,
    DataImportApi,
    K8sClusterApi,
    K8sDataImportApi,
    K8sVirtualizationApi,
    VirtualizationApi,
)
from kubevirt_infra.config import Settings, get_settings
from kubevirt_infra.errors import NoReadyPodError, is_not_found
from kubevirt_infra.ownership import OwnershipPolicy
from kubevirt_infra.polling import Clock, Poller, Sleep
from kubevirt_infra.types import (
    AddVolumeOptions,
    DataVolume,
    PodInfo,
    RemoveVolumeOptions,
    VirtualMachineInstance,
)

logger = structlog.get_logger()


class InfraClusterClient:
    """Facade over the infra cluster APIs.

    Holds only immutable state (policy, poll interval, API handles), so one
    instance can be shared by concurrent tasks.

    Example:
        async with await build_client() as infra:
            dv = await infra.create_volume("tenant-a", DataVolume(name="pvc-disk", ...))
            await infra.add_volume_to_vm("tenant-a", "vm-1", AddVolumeOptions(name=dv.name))
            await infra.wait_for_volume_attached("tenant-a", "vm-1", dv.name, timeout=120)
    """

    def __init__(
        self,
        cluster: ClusterApi,
        virtualization: VirtualizationApi,
        data_import: DataImportApi,
        *,
        policy: OwnershipPolicy,
        poll_interval: float = 1.0,
        volume_timeout: float = 120.0,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
        api_client: ApiClient | None = None,
    ) -> None:
        """Initialize the facade.

        Args:
            cluster: Generic Kubernetes API capability
            virtualization: KubeVirt VMI capability
            data_import: CDI DataVolume capability
            policy: Ownership rules for DataVolumes
            poll_interval: Seconds between convergence samples
            volume_timeout: Default attach/detach wait budget in seconds
            clock: Monotonic time source for polling
            sleep: Async sleep used between samples
            api_client: Shared ApiClient to close on close(), if owned
        """
        self._cluster = cluster
        self._virtualization = virtualization
        self._data_import = data_import
        self._policy = policy
        self._poll_interval = poll_interval
        self._volume_timeout = volume_timeout
        self._clock = clock
        self._sleep = sleep
        self._api_client = api_client
        self._log = logger.bind(component="infra_client")

    @property
    def policy(self) -> OwnershipPolicy:
        return self._policy

    async def close(self) -> None:
        """Close the underlying API client, if this facade owns one."""
        if self._api_client is not None:
            await self._api_client.close()
            self._api_client = None

    async def __aenter__(self) -> InfraClusterClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def ping(self) -> None:
        """Perform a minimal request against the cluster API.

        Any transport error propagates as-is.
        """
        await self._cluster.server_version()

    # Virtual machines

    async def list_virtual_machines(self, namespace: str) -> list[VirtualMachineInstance]:
        items = await self._virtualization.list_instances(namespace)
        return [VirtualMachineInstance.from_dict(item) for item in items]

    async def get_virtual_machine(self, namespace: str, name: str) -> VirtualMachineInstance:
        data = await self._virtualization.get_instance(namespace, name)
        return VirtualMachineInstance.from_dict(data)

    async def add_volume_to_vm(
        self, namespace: str, vm_name: str, options: AddVolumeOptions
    ) -> None:
        """Hotplug a DataVolume into a running VM."""
        self._log.info("infra.add_volume", namespace=namespace, vm=vm_name, volume=options.name)
        await self._virtualization.add_volume(namespace, vm_name, options.to_dict())

    async def remove_volume_from_vm(
        self, namespace: str, vm_name: str, options: RemoveVolumeOptions
    ) -> None:
        """Hot-unplug a volume from a running VM."""
        self._log.info("infra.remove_volume", namespace=namespace, vm=vm_name, volume=options.name)
        await self._virtualization.remove_volume(namespace, vm_name, options.to_dict())

    async def wait_for_volume_attached(
        self, namespace: str, vm_name: str, volume_name: str, timeout: float | None = None
    ) -> None:
        """Wait until the VM reports the volume in the Ready phase.

        Raises:
            WaitTimeoutError: volume not ready within timeout
            ApiException: VMI fetch failed (not retried)
        """

        async def attached() -> bool:
            vmi = await self.get_virtual_machine(namespace, vm_name)
            return vmi.has_ready_volume(volume_name)

        await self._poller(namespace, vm_name, volume_name, timeout, "attach").run(attached)

    async def wait_for_volume_detached(
        self, namespace: str, vm_name: str, volume_name: str, timeout: float | None = None
    ) -> None:
        """Wait until the VM no longer reports the volume, whatever its phase.

        Raises:
            WaitTimeoutError: volume still present after timeout
            ApiException: VMI fetch failed (not retried)
        """

        async def detached() -> bool:
            vmi = await self.get_virtual_machine(namespace, vm_name)
            return not vmi.has_volume(volume_name)

        await self._poller(namespace, vm_name, volume_name, timeout, "detach").run(detached)

    def _poller(
        self, namespace: str, vm_name: str, volume_name: str, timeout: float | None, wait: str
    ) -> Poller:
        return Poller(
            interval=self._poll_interval,
            timeout=self._volume_timeout if timeout is None else timeout,
            clock=self._clock,
            sleep=self._sleep,
            details={"wait": wait, "namespace": namespace, "vm": vm_name, "volume": volume_name},
        )

    # Data volumes

    async def create_volume(self, namespace: str, data_volume: DataVolume) -> DataVolume:
        """Create a DataVolume.

        Only the name prefix is checked; a bad name never reaches the cluster.

        Raises:
            InvalidVolumeError: name lacks the owned prefix
            ApiException: create failed (409 if it already exists)
        """
        if not self._policy.owns_name(data_volume.name):
            self._log.warning("infra.volume.rejected", op="create", name=data_volume.name)
            raise self._policy.violation(data_volume.name)

        self._log.info("infra.create_volume", namespace=namespace, name=data_volume.name)
        created = await self._data_import.create(namespace, data_volume.to_body(namespace))
        return DataVolume.from_dict(created)

    async def get_volume(self, namespace: str, name: str) -> DataVolume:
        """Get a DataVolume owned by this client.

        Raises:
            ApiException: fetch failed (404 if missing)
            InvalidVolumeError: volume exists but is not owned
        """
        data = await self._data_import.get(namespace, name)
        volume = DataVolume.from_dict(data)
        if not self._policy.owns(volume.name, volume.labels):
            self._log.warning("infra.volume.rejected", op="get", namespace=namespace, name=name)
            raise self._policy.violation(volume.name)
        return volume

    async def delete_volume(self, namespace: str, name: str) -> None:
        """Delete an owned DataVolume; a missing one counts as deleted.

        Raises:
            InvalidVolumeError: volume exists but is not owned
            ApiException: lookup or delete failed
        """
        try:
            volume = await self.get_volume(namespace, name)
        except Exception as e:
            if is_not_found(e):
                self._log.debug("infra.delete_volume.not_found", namespace=namespace, name=name)
                return
            raise

        self._log.info("infra.delete_volume", namespace=namespace, name=volume.name)
        await self._data_import.delete(namespace, volume.name)

    # Services

    async def find_ready_pod(self, namespace: str, service_name: str) -> PodInfo:
        """Find a running, ready pod behind a service.

        Raises:
            ApiException: service or pod lookup failed
            NoReadyPodError: service has no selector, or no matching pod is ready
        """
        service = await self._cluster.read_service(namespace, service_name)
        selector = (service.spec.selector if service.spec else None) or {}
        if not selector:
            # An empty selector would list every pod in the namespace
            raise NoReadyPodError(
                "service has no pod selector",
                details={"namespace": namespace, "service": service_name},
            )
        label_selector = ",".join(f"{k}={v}" for k, v in selector.items())

        pods = await self._cluster.list_pods(namespace, label_selector=label_selector)
        for pod in pods:
            if pod.status is None or pod.status.phase != "Running":
                continue
            for condition in pod.status.conditions or []:
                if condition.type == "Ready" and condition.status == "True":
                    return PodInfo(
                        name=pod.metadata.name,
                        namespace=pod.metadata.namespace or namespace,
                        phase=pod.status.phase,
                        pod_ip=pod.status.pod_ip,
                        ready=True,
                        labels=pod.metadata.labels or {},
                    )

        raise NoReadyPodError(details={"namespace": namespace, "service": service_name})


async def build_client(settings: Settings | None = None) -> InfraClusterClient:
    """Build an InfraClusterClient from settings.

    Loads the kube config (inline kubeconfig, kubeconfig file or in-cluster),
    creates one shared ApiClient and wraps it into the three API capabilities.
    The returned client owns the ApiClient; close it when done.
    """
    if settings is None:
        settings = get_settings()
    cluster_cfg = settings.cluster
    log = logger.bind(component="infra_client")

    configuration = client.Configuration()
    if cluster_cfg.kubeconfig_data:
        await config.load_kube_config_from_dict(
            yaml.safe_load(cluster_cfg.kubeconfig_data),
            context=cluster_cfg.context,
            client_configuration=configuration,
        )
        log.info("k8s.config.loaded", source="inline")
    elif cluster_cfg.kubeconfig:
        await config.load_kube_config(
            config_file=cluster_cfg.kubeconfig,
            context=cluster_cfg.context,
            client_configuration=configuration,
        )
        log.info("k8s.config.loaded", source="kubeconfig", path=cluster_cfg.kubeconfig)
    else:
        config.load_incluster_config(client_configuration=configuration)
        log.info("k8s.config.loaded", source="incluster")

    api_client = ApiClient(configuration=configuration)
    policy = OwnershipPolicy(
        name_prefix=settings.volume_name_prefix,
        required_labels=settings.ownership.infra_labels,
    )
    return InfraClusterClient(
        K8sClusterApi(api_client),
        K8sVirtualizationApi(api_client),
        K8sDataImportApi(api_client),
        policy=policy,
        poll_interval=settings.polling.interval,
        volume_timeout=settings.polling.volume_timeout,
        api_client=api_client,
    )
