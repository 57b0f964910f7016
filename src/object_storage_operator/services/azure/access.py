"""Azure access-role adapter."""

from __future__ import annotations

import logging

from ...cluster.base import AzureCluster
from ...models import Bucket

logger = logging.getLogger(__name__)


class AzureAccessRoleService:
    """Role assignments on the container scope are not managed yet.

    Workloads read the bucket with the account key written to the bucket's secret.
    """

    def __init__(self, cluster: AzureCluster) -> None:
        self.cluster = cluster

    def configure_role(self, bucket: Bucket) -> None:
        logger.info(f"Access roles are not managed on Azure, skipping role for bucket {bucket.spec.name}")

    def delete_role(self, bucket: Bucket) -> None:
        logger.info(f"Access roles are not managed on Azure, skipping role for bucket {bucket.spec.name}")
