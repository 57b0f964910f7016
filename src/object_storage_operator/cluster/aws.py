"""AWS management cluster resolution from CAPA infrastructure records."""

from __future__ import annotations

import logging
from typing import Any

from kubernetes import client

from ..config import ManagementCluster
from ..constants import (
    AWS_CLUSTER_PLURAL,
    AWS_CLUSTER_ROLE_IDENTITY_PLURAL,
    AWS_CLUSTER_VERSION,
    CAPI_INFRA_GROUP,
)
from ..utils.errors import ClusterResolutionError
from .base import AWSCluster, nested_get, string_map

logger = logging.getLogger(__name__)


class AWSClusterGetter:
    """Reads the AWSCluster and its AWSClusterRoleIdentity."""

    def __init__(self, api: client.CustomObjectsApi, management_cluster: ManagementCluster) -> None:
        self.api = api
        self.management_cluster = management_cluster

    def get_cluster(self) -> AWSCluster:
        mc = self.management_cluster
        cluster = self._get_cluster_cr()

        identity_name = nested_get(cluster, "spec", "identityRef", "name")
        if not identity_name:
            raise ClusterResolutionError(
                f"missing management cluster identityRef for cluster {mc.namespace}/{mc.name}"
            )

        identity = self._get_cluster_identity(identity_name)
        role_arn = nested_get(identity, "spec", "roleARN")
        if not role_arn:
            raise ClusterResolutionError(
                f"missing role ARN in AWSClusterRoleIdentity {identity_name} "
                f"for cluster {mc.namespace}/{mc.name}"
            )

        tags = string_map(nested_get(cluster, "spec", "additionalTags"))
        if not tags:
            logger.info(f"No cluster tags found on AWSCluster {mc.namespace}/{mc.name}")

        return AWSCluster(
            name=mc.name,
            namespace=mc.namespace,
            region=mc.region,
            base_domain=mc.base_domain,
            tags=tags,
            role_arn=role_arn,
        )

    def _get_cluster_cr(self) -> dict[str, Any]:
        mc = self.management_cluster
        try:
            return self.api.get_namespaced_custom_object(
                group=CAPI_INFRA_GROUP,
                version=AWS_CLUSTER_VERSION,
                namespace=mc.namespace,
                plural=AWS_CLUSTER_PLURAL,
                name=mc.name,
            )
        except client.exceptions.ApiException as e:
            raise ClusterResolutionError(
                f"missing management cluster AWSCluster CR for cluster {mc.name} "
                f"in namespace {mc.namespace}: {e.reason}"
            ) from e

    def _get_cluster_identity(self, identity_name: str) -> dict[str, Any]:
        mc = self.management_cluster
        try:
            # AWSClusterRoleIdentity is cluster scoped
            return self.api.get_cluster_custom_object(
                group=CAPI_INFRA_GROUP,
                version=AWS_CLUSTER_VERSION,
                plural=AWS_CLUSTER_ROLE_IDENTITY_PLURAL,
                name=identity_name,
            )
        except client.exceptions.ApiException as e:
            raise ClusterResolutionError(
                f"missing management cluster identity AWSClusterRoleIdentity CR {identity_name} "
                f"for cluster {mc.namespace}/{mc.name}: {e.reason}"
            ) from e
