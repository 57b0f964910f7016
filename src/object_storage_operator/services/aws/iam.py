"""IAM access-role adapter binding a service account to a bucket via OIDC."""

from __future__ import annotations

import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from ... import metrics
from ...cluster.base import AWSCluster
from ...models import Bucket
from ...utils.cancellation import check_cancelled
from ...utils.errors import ProviderOperationError, is_aws_not_found
from ..tags import merged_tags, to_aws_tag_list
from .policies import render_role_policy, render_trust_policy

logger = logging.getLogger(__name__)

ROLE_DESCRIPTION = "Role for Giant Swarm managed object storage access"


class IAMAccessRoleService:
    """Creates, updates and deletes the IAM role of a bucket."""

    def __init__(self, client: Any, cluster: AWSCluster, stopped: Any = None) -> None:
        self.client = client
        self.cluster = cluster
        self.account_id = cluster.account_id
        self.stopped = stopped

    def _record(self, operation: str, result: str) -> None:
        metrics.access_role_operations_total.labels(provider="aws", operation=operation, result=result).inc()

    def _fail(self, bucket: Bucket, operation: str, message: str, error: Exception) -> ProviderOperationError:
        self._record(operation, "error")
        return ProviderOperationError(bucket.spec.name, operation, f"{message}: {error}")

    def oidc_domain(self) -> str:
        """Issuer of the cluster's service account tokens."""
        if self.cluster.is_china_region:
            return (
                f"s3.{self.cluster.region}.amazonaws.com.cn/"
                f"{self.account_id}-g8s-{self.cluster.name}-oidc-pod-identity-v3"
            )
        return f"irsa.{self.cluster.name}.{self.cluster.base_domain}"

    def get_role(self, role_name: str) -> dict[str, Any] | None:
        """Get an IAM role.

        Returns:
            The role, or None if it does not exist
        """
        try:
            response = self.client.get_role(RoleName=role_name)
        except (BotoCoreError, ClientError) as e:
            if is_aws_not_found(e):
                logger.info(f"IAM role {role_name} does not exist")
                return None
            raise
        return response["Role"]

    def configure_role(self, bucket: Bucket) -> None:
        access_role = bucket.spec.access_role
        role_name = access_role.role_name

        try:
            role = self.get_role(role_name)
        except (BotoCoreError, ClientError) as e:
            raise self._fail(bucket, "configure", f"failed to get IAM role {role_name}", e) from e

        tags = merged_tags(bucket, self.cluster)
        trust_policy = render_trust_policy(
            account_id=self.account_id,
            oidc_domain=self.oidc_domain(),
            service_account_name=access_role.service_account_name,
            service_account_namespace=access_role.service_account_namespace,
            partition=self.cluster.partition,
        )

        if role is None:
            try:
                self.client.create_role(
                    RoleName=role_name,
                    AssumeRolePolicyDocument=trust_policy,
                    Description=ROLE_DESCRIPTION,
                    Tags=to_aws_tag_list(tags),
                )
            except (BotoCoreError, ClientError) as e:
                raise self._fail(bucket, "configure", f"failed to create IAM role {role_name}", e) from e
            logger.info(f"Created IAM role {role_name}")
        else:
            try:
                self.client.update_assume_role_policy(RoleName=role_name, PolicyDocument=trust_policy)
            except (BotoCoreError, ClientError) as e:
                raise self._fail(
                    bucket, "configure", f"failed to update assume role policy for IAM role {role_name}", e
                ) from e
            self._replace_tags_if_changed(bucket, role, tags)

        check_cancelled(self.stopped, f"putting policy on IAM role {role_name}")
        role_policy = render_role_policy(
            bucket.spec.name,
            access_role.extra_bucket_names,
            partition=self.cluster.partition,
        )
        try:
            self.client.put_role_policy(
                RoleName=role_name,
                PolicyName=role_name,
                PolicyDocument=role_policy,
            )
        except (BotoCoreError, ClientError) as e:
            raise self._fail(bucket, "configure", f"failed to put IAM role policy for role {role_name}", e) from e
        self._record("configure", "success")

    def _replace_tags_if_changed(self, bucket: Bucket, role: dict[str, Any], tags: dict[str, str]) -> None:
        """Untag everything and retag when the tag set differs."""
        role_name = bucket.spec.access_role.role_name
        current = {tag["Key"]: tag["Value"] for tag in role.get("Tags", [])}
        if current == tags:
            return

        try:
            if current:
                self.client.untag_role(RoleName=role_name, TagKeys=list(current))
            if tags:
                self.client.tag_role(RoleName=role_name, Tags=to_aws_tag_list(tags))
        except (BotoCoreError, ClientError) as e:
            raise self._fail(bucket, "configure", f"failed to retag IAM role {role_name}", e) from e
        logger.info(f"Replaced tags on IAM role {role_name}")

    def delete_role(self, bucket: Bucket) -> None:
        role_name = bucket.spec.access_role.role_name

        try:
            role = self.get_role(role_name)
        except (BotoCoreError, ClientError) as e:
            raise self._fail(bucket, "delete", f"failed to get IAM role {role_name} for deletion", e) from e
        if role is None:
            logger.info(f"IAM role {role_name} does not exist, skipping deletion")
            return

        try:
            self._clean_policies(role_name)
        except (BotoCoreError, ClientError) as e:
            raise self._fail(bucket, "delete", f"failed to clean policies of IAM role {role_name}", e) from e

        check_cancelled(self.stopped, f"removing instance profile of IAM role {role_name}")
        try:
            self.client.remove_role_from_instance_profile(InstanceProfileName=role_name, RoleName=role_name)
        except (BotoCoreError, ClientError) as e:
            if not is_aws_not_found(e):
                raise self._fail(
                    bucket, "delete", f"failed to remove role {role_name} from instance profile", e
                ) from e
            logger.info(f"No instance profile attached to IAM role {role_name}, skipping")

        try:
            self.client.delete_instance_profile(InstanceProfileName=role_name)
        except (BotoCoreError, ClientError) as e:
            if not is_aws_not_found(e):
                raise self._fail(bucket, "delete", f"failed to delete instance profile {role_name}", e) from e
            logger.info(f"No instance profile {role_name} to delete, skipping")

        try:
            self.client.delete_role(RoleName=role_name)
        except (BotoCoreError, ClientError) as e:
            raise self._fail(bucket, "delete", f"failed to delete IAM role {role_name}", e) from e
        self._record("delete", "success")
        logger.info(f"Deleted IAM role {role_name}")

    def _clean_policies(self, role_name: str) -> None:
        """Detach managed policies and delete inline policies; IAM refuses to delete a role that has any."""
        attached = self.client.get_paginator("list_attached_role_policies")
        for page in attached.paginate(RoleName=role_name):
            for policy in page.get("AttachedPolicies", []):
                self.client.detach_role_policy(RoleName=role_name, PolicyArn=policy["PolicyArn"])
                logger.info(f"Detached policy {policy['PolicyName']} from IAM role {role_name}")

        inline = self.client.get_paginator("list_role_policies")
        for page in inline.paginate(RoleName=role_name):
            for policy_name in page.get("PolicyNames", []):
                self.client.delete_role_policy(RoleName=role_name, PolicyName=policy_name)
                logger.info(f"Deleted inline policy {policy_name} from IAM role {role_name}")
