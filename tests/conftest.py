"""Shared fixtures for infra client tests."""

from __future__ import annotations

import pytest

from kubevirt_infra.client import InfraClusterClient
from kubevirt_infra.ownership import OwnershipPolicy
from tests.fakes import (
    FakeClock,
    FakeClusterApi,
    FakeDataImportApi,
    FakeVirtualizationApi,
    make_data_volume,
)

TEST_NAMESPACE = "test-namespace"
VALID_DATA_VOLUME = "pvc-valid-data-volume"
NOLABEL_DATA_VOLUME = "pvc-nolabel-data-volume"
WRONG_PREFIX_DATA_VOLUME = "test-volume"
INFRA_LABELS = {"test": "test"}


@pytest.fixture
def policy() -> OwnershipPolicy:
    return OwnershipPolicy(name_prefix="pvc-", required_labels=INFRA_LABELS)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cluster_api() -> FakeClusterApi:
    return FakeClusterApi()


@pytest.fixture
def virt_api() -> FakeVirtualizationApi:
    return FakeVirtualizationApi()


@pytest.fixture
def cdi_api() -> FakeDataImportApi:
    return FakeDataImportApi(
        make_data_volume(VALID_DATA_VOLUME, dict(INFRA_LABELS)),
        make_data_volume(NOLABEL_DATA_VOLUME, None),
        make_data_volume(WRONG_PREFIX_DATA_VOLUME, dict(INFRA_LABELS)),
    )


@pytest.fixture
def infra(cluster_api, virt_api, cdi_api, policy, clock) -> InfraClusterClient:
    return InfraClusterClient(
        cluster_api,
        virt_api,
        cdi_api,
        policy=policy,
        poll_interval=1.0,
        clock=clock,
        sleep=clock.sleep,
    )
