"""Downstream API implementations using kubernetes-asyncio.

KubeVirt and CDI objects are custom resources, so they go through
CustomObjectsApi. Volume hotplug uses the KubeVirt subresource API
(subresources.kubevirt.io), which has no generated client; those calls go
straight through ApiClient.call_api.
"""

from __future__ import annotations

from typing import Any

import structlog
from kubernetes_asyncio import client
from kubernetes_asyncio.client import ApiClient

from kubevirt_infra.apis.base import ClusterApi, DataImportApi, VirtualizationApi
from kubevirt_infra.types import (
    CDI_GROUP,
    CDI_VERSION,
    DATAVOLUME_PLURAL,
    KUBEVIRT_GROUP,
    KUBEVIRT_VERSION,
    VMI_PLURAL,
)

logger = structlog.get_logger()

SUBRESOURCE_PATH = (
    "/apis/subresources.kubevirt.io/v1/namespaces/{namespace}"
    "/virtualmachineinstances/{name}/{action}"
)


class K8sClusterApi(ClusterApi):
    """Core Kubernetes API (version probe, services, pods)."""

    def __init__(self, api_client: ApiClient) -> None:
        self._api_client = api_client
        self._log = logger.bind(api="cluster")

    async def server_version(self) -> dict[str, Any]:
        version = await client.VersionApi(self._api_client).get_code()
        return {"major": version.major, "minor": version.minor, "git_version": version.git_version}

    async def read_service(self, namespace: str, name: str) -> Any:
        v1 = client.CoreV1Api(self._api_client)
        return await v1.read_namespaced_service(name=name, namespace=namespace)

    async def list_pods(self, namespace: str, *, label_selector: str = "") -> list[Any]:
        v1 = client.CoreV1Api(self._api_client)

        self._log.debug("k8s.list_pods", namespace=namespace, label_selector=label_selector)

        pod_list = await v1.list_namespaced_pod(
            namespace=namespace,
            label_selector=label_selector,
        )
        return list(pod_list.items)


class K8sVirtualizationApi(VirtualizationApi):
    """KubeVirt VMI API."""

    def __init__(self, api_client: ApiClient) -> None:
        self._api_client = api_client
        self._log = logger.bind(api="kubevirt")

    async def list_instances(self, namespace: str) -> list[dict[str, Any]]:
        api = client.CustomObjectsApi(self._api_client)
        result = await api.list_namespaced_custom_object(
            group=KUBEVIRT_GROUP,
            version=KUBEVIRT_VERSION,
            namespace=namespace,
            plural=VMI_PLURAL,
        )
        return list(result.get("items") or [])

    async def get_instance(self, namespace: str, name: str) -> dict[str, Any]:
        api = client.CustomObjectsApi(self._api_client)
        return await api.get_namespaced_custom_object(
            group=KUBEVIRT_GROUP,
            version=KUBEVIRT_VERSION,
            namespace=namespace,
            plural=VMI_PLURAL,
            name=name,
        )

    async def add_volume(self, namespace: str, name: str, body: dict[str, Any]) -> None:
        await self._put_subresource(namespace, name, "addvolume", body)

    async def remove_volume(self, namespace: str, name: str, body: dict[str, Any]) -> None:
        await self._put_subresource(namespace, name, "removevolume", body)

    async def _put_subresource(
        self, namespace: str, name: str, action: str, body: dict[str, Any]
    ) -> None:
        self._log.debug("k8s.vmi.subresource", namespace=namespace, vmi=name, action=action)

        # No response type: the reply body is dropped, non-2xx still raises ApiException
        await self._api_client.call_api(
            SUBRESOURCE_PATH,
            "PUT",
            path_params={"namespace": namespace, "name": name, "action": action},
            header_params={"Content-Type": "application/json", "Accept": "application/json"},
            body=body,
            auth_settings=["BearerToken"],
            _return_http_data_only=True,
        )


class K8sDataImportApi(DataImportApi):
    """CDI DataVolume API."""

    def __init__(self, api_client: ApiClient) -> None:
        self._api_client = api_client
        self._log = logger.bind(api="cdi")

    async def create(self, namespace: str, body: dict[str, Any]) -> dict[str, Any]:
        api = client.CustomObjectsApi(self._api_client)
        return await api.create_namespaced_custom_object(
            group=CDI_GROUP,
            version=CDI_VERSION,
            namespace=namespace,
            plural=DATAVOLUME_PLURAL,
            body=body,
        )

    async def get(self, namespace: str, name: str) -> dict[str, Any]:
        api = client.CustomObjectsApi(self._api_client)
        return await api.get_namespaced_custom_object(
            group=CDI_GROUP,
            version=CDI_VERSION,
            namespace=namespace,
            plural=DATAVOLUME_PLURAL,
            name=name,
        )

    async def delete(self, namespace: str, name: str) -> None:
        api = client.CustomObjectsApi(self._api_client)
        await api.delete_namespaced_custom_object(
            group=CDI_GROUP,
            version=CDI_VERSION,
            namespace=namespace,
            plural=DATAVOLUME_PLURAL,
            name=name,
        )
