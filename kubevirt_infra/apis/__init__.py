"""Downstream API layer - infrastructure abstraction."""

from kubevirt_infra.apis.base import ClusterApi, DataImportApi, VirtualizationApi
from kubevirt_infra.apis.k8s import K8sClusterApi, K8sDataImportApi, K8sVirtualizationApi

__all__ = [
    "ClusterApi",
    "DataImportApi",
    "K8sClusterApi",
    "K8sDataImportApi",
    "K8sVirtualizationApi",
    "VirtualizationApi",
]
