"""Builds Azure adapters from the identity configured for the management cluster."""

from __future__ import annotations

from typing import Any

from azure.core.credentials import TokenCredential
from azure.identity import ClientSecretCredential, ManagedIdentityCredential, WorkloadIdentityCredential
from azure.mgmt.network import NetworkManagementClient
from azure.mgmt.privatedns import PrivateDnsManagementClient
from azure.mgmt.storage import StorageManagementClient
from kubernetes import client as k8s_client

from ...cluster.azure import (
    IDENTITY_MANUAL_SERVICE_PRINCIPAL,
    IDENTITY_USER_ASSIGNED_MSI,
    IDENTITY_WORKLOAD_IDENTITY,
)
from ...cluster.base import AzureCluster, Cluster
from ...utils.errors import ClusterResolutionError
from .access import AzureAccessRoleService
from .storage import AzureObjectStorageService


def get_credential(cluster: AzureCluster) -> TokenCredential:
    """Build a credential for the cluster's identity type.

    Raises:
        ClusterResolutionError: If the identity type is not supported
    """
    if cluster.identity_type == IDENTITY_USER_ASSIGNED_MSI:
        return ManagedIdentityCredential(client_id=cluster.client_id)
    if cluster.identity_type == IDENTITY_MANUAL_SERVICE_PRINCIPAL:
        return ClientSecretCredential(
            tenant_id=cluster.tenant_id,
            client_id=cluster.client_id,
            client_secret=cluster.client_secret,
        )
    if cluster.identity_type == IDENTITY_WORKLOAD_IDENTITY:
        return WorkloadIdentityCredential(tenant_id=cluster.tenant_id, client_id=cluster.client_id)
    raise ClusterResolutionError(f"unsupported identity type {cluster.identity_type!r}")


class AzureServiceFactory:
    """Creates fresh management clients for every invocation."""

    def __init__(self, core_api: k8s_client.CoreV1Api, stopped: Any = None) -> None:
        self.core_api = core_api
        self.stopped = stopped

    @staticmethod
    def _azure_cluster(cluster: Cluster) -> AzureCluster:
        if not isinstance(cluster, AzureCluster):
            raise ClusterResolutionError(f"cluster {cluster.name} is not an Azure cluster")
        return cluster

    def new_object_storage_service(self, cluster: Cluster) -> AzureObjectStorageService:
        azure_cluster = self._azure_cluster(cluster)
        credential = get_credential(azure_cluster)
        subscription_id = azure_cluster.subscription_id
        return AzureObjectStorageService(
            storage_client=StorageManagementClient(credential, subscription_id),
            network_client=NetworkManagementClient(credential, subscription_id),
            dns_client=PrivateDnsManagementClient(credential, subscription_id),
            core_api=self.core_api,
            cluster=azure_cluster,
            stopped=self.stopped,
        )

    def new_access_role_service(self, cluster: Cluster) -> AzureAccessRoleService:
        return AzureAccessRoleService(self._azure_cluster(cluster))
