"""Selects the cluster resolver and service factory for the management cluster's provider."""

from __future__ import annotations

from typing import Any

from kubernetes import client

from ..cluster import AWSClusterGetter, AzureClusterGetter
from ..cluster.base import ClusterGetter
from ..config import ManagementCluster
from ..constants import PROVIDER_AWS, PROVIDER_AZURE
from ..utils.errors import UnsupportedProviderError
from .aws import AWSServiceFactory
from .azure import AzureServiceFactory
from .base import ServiceFactory


def get_cluster_getter(
    management_cluster: ManagementCluster,
    api: client.CustomObjectsApi,
    core_api: client.CoreV1Api,
) -> ClusterGetter:
    """Return the infrastructure record reader for the provider.

    Raises:
        UnsupportedProviderError: If no adapter handles the provider
    """
    if management_cluster.provider == PROVIDER_AWS:
        return AWSClusterGetter(api, management_cluster)
    if management_cluster.provider == PROVIDER_AZURE:
        return AzureClusterGetter(api, core_api, management_cluster)
    raise UnsupportedProviderError(management_cluster.provider)


def get_service_factory(
    management_cluster: ManagementCluster,
    core_api: client.CoreV1Api,
    stopped: Any = None,
) -> ServiceFactory:
    """Return the adapter factory for the provider.

    Raises:
        UnsupportedProviderError: If no adapter handles the provider
    """
    if management_cluster.provider == PROVIDER_AWS:
        return AWSServiceFactory(stopped)
    if management_cluster.provider == PROVIDER_AZURE:
        return AzureServiceFactory(core_api, stopped)
    raise UnsupportedProviderError(management_cluster.provider)
