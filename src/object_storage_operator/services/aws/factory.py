"""Builds S3 and IAM adapters from a role assumed for the current invocation."""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ...cluster.base import AWSCluster, Cluster
from ...utils.errors import ClusterResolutionError
from .iam import IAMAccessRoleService
from .s3 import S3ObjectStorageService

logger = logging.getLogger(__name__)

SESSION_NAME = "object-storage-operator"


class AWSServiceFactory:
    """Assumes the cluster role once per service and hands the session's clients to the adapters."""

    def __init__(self, stopped: Any = None) -> None:
        self.stopped = stopped
        self.config = Config(retries={"mode": "standard"})

    def _session(self, cluster: Cluster) -> boto3.session.Session:
        if not isinstance(cluster, AWSCluster):
            raise ClusterResolutionError(f"cluster {cluster.name} is not an AWS cluster")

        sts = boto3.client("sts", region_name=cluster.region, config=self.config)
        try:
            response = sts.assume_role(RoleArn=cluster.role_arn, RoleSessionName=SESSION_NAME)
        except (BotoCoreError, ClientError) as e:
            raise ClusterResolutionError(
                f"failed to assume role {cluster.role_arn} for cluster {cluster.name}: {e}"
            ) from e

        credentials = response["Credentials"]
        return boto3.session.Session(
            aws_access_key_id=credentials["AccessKeyId"],
            aws_secret_access_key=credentials["SecretAccessKey"],
            aws_session_token=credentials["SessionToken"],
            region_name=cluster.region,
        )

    def new_object_storage_service(self, cluster: Cluster) -> S3ObjectStorageService:
        session = self._session(cluster)
        return S3ObjectStorageService(session.client("s3", config=self.config), cluster, self.stopped)

    def new_access_role_service(self, cluster: Cluster) -> IAMAccessRoleService:
        session = self._session(cluster)
        return IAMAccessRoleService(session.client("iam", config=self.config), cluster, self.stopped)
