"""Azure management cluster resolution from CAPZ infrastructure records."""

from __future__ import annotations

import logging
from typing import Any

from kubernetes import client

from ..config import ManagementCluster
from ..constants import (
    AZURE_CLUSTER_IDENTITY_PLURAL,
    AZURE_CLUSTER_PLURAL,
    AZURE_CLUSTER_VERSION,
    CAPI_INFRA_GROUP,
)
from ..utils.errors import ClusterResolutionError
from ..utils.secrets import get_secret_value
from .base import AzureCluster, nested_get, string_map

logger = logging.getLogger(__name__)

IDENTITY_USER_ASSIGNED_MSI = "UserAssignedMSI"
IDENTITY_MANUAL_SERVICE_PRINCIPAL = "ManualServicePrincipal"
IDENTITY_WORKLOAD_IDENTITY = "WorkloadIdentity"

CLIENT_SECRET_KEY = "clientSecret"


class AzureClusterGetter:
    """Reads the AzureCluster, its AzureClusterIdentity and, if needed, the client secret."""

    def __init__(
        self,
        api: client.CustomObjectsApi,
        core_api: client.CoreV1Api,
        management_cluster: ManagementCluster,
    ) -> None:
        self.api = api
        self.core_api = core_api
        self.management_cluster = management_cluster

    def get_cluster(self) -> AzureCluster:
        mc = self.management_cluster
        cluster = self._get_cluster_cr()

        identity_name = nested_get(cluster, "spec", "identityRef", "name")
        if not identity_name:
            raise ClusterResolutionError(
                f"missing management cluster identityRef for cluster {mc.namespace}/{mc.name}"
            )
        identity_namespace = nested_get(cluster, "spec", "identityRef", "namespace") or mc.namespace

        identity = self._get_cluster_identity(identity_name, identity_namespace)
        identity_ref = f"AzureClusterIdentity {identity_namespace}/{identity_name}"

        tags = string_map(nested_get(cluster, "spec", "additionalTags"))
        if not tags:
            logger.info(f"No cluster tags found on AzureCluster {mc.namespace}/{mc.name}")

        resource_group = self._required(cluster, f"AzureCluster {mc.namespace}/{mc.name}", "resourceGroup")
        subscription_id = self._required(cluster, f"AzureCluster {mc.namespace}/{mc.name}", "subscriptionID")
        identity_type = self._required(identity, identity_ref, "type")

        client_id = ""
        tenant_id = ""
        client_secret = ""
        if identity_type == IDENTITY_USER_ASSIGNED_MSI:
            client_id = self._required(identity, identity_ref, "clientID")
        elif identity_type == IDENTITY_MANUAL_SERVICE_PRINCIPAL:
            tenant_id = self._required(identity, identity_ref, "tenantID")
            client_id = self._required(identity, identity_ref, "clientID")
            secret_name = self._required(identity, identity_ref, "clientSecret", "name")
            secret_namespace = self._required(identity, identity_ref, "clientSecret", "namespace")
            client_secret = self._get_client_secret(secret_namespace, secret_name, identity_ref)
        elif identity_type == IDENTITY_WORKLOAD_IDENTITY:
            tenant_id = self._required(identity, identity_ref, "tenantID")
            client_id = self._required(identity, identity_ref, "clientID")
        else:
            raise ClusterResolutionError(f"unsupported identity type {identity_type} in {identity_ref}")

        return AzureCluster(
            name=mc.name,
            namespace=mc.namespace,
            region=mc.region,
            base_domain=mc.base_domain,
            tags=tags,
            resource_group=resource_group,
            subscription_id=subscription_id,
            identity_type=identity_type,
            client_id=client_id,
            tenant_id=tenant_id,
            client_secret=client_secret,
        )

    @staticmethod
    def _required(obj: dict[str, Any], ref: str, *path: str) -> str:
        value = nested_get(obj, "spec", *path)
        if not value or not isinstance(value, str):
            raise ClusterResolutionError(f"missing or incorrect {'.'.join(path)} in {ref}")
        return value

    def _get_cluster_cr(self) -> dict[str, Any]:
        mc = self.management_cluster
        try:
            return self.api.get_namespaced_custom_object(
                group=CAPI_INFRA_GROUP,
                version=AZURE_CLUSTER_VERSION,
                namespace=mc.namespace,
                plural=AZURE_CLUSTER_PLURAL,
                name=mc.name,
            )
        except client.exceptions.ApiException as e:
            raise ClusterResolutionError(
                f"missing management cluster AzureCluster CR for cluster {mc.name} "
                f"in namespace {mc.namespace}: {e.reason}"
            ) from e

    def _get_cluster_identity(self, name: str, namespace: str) -> dict[str, Any]:
        mc = self.management_cluster
        try:
            return self.api.get_namespaced_custom_object(
                group=CAPI_INFRA_GROUP,
                version=AZURE_CLUSTER_VERSION,
                namespace=namespace,
                plural=AZURE_CLUSTER_IDENTITY_PLURAL,
                name=name,
            )
        except client.exceptions.ApiException as e:
            raise ClusterResolutionError(
                f"missing management cluster identity AzureClusterIdentity CR {namespace}/{name} "
                f"for cluster {mc.namespace}/{mc.name}: {e.reason}"
            ) from e

    def _get_client_secret(self, namespace: str, name: str, identity_ref: str) -> str:
        try:
            return get_secret_value(self.core_api, namespace, name, CLIENT_SECRET_KEY)
        except (client.exceptions.ApiException, KeyError) as e:
            raise ClusterResolutionError(
                f"failed to get client secret {namespace}/{name} for {identity_ref}"
            ) from e
