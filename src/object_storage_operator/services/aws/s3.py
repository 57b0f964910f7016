"""S3 object storage adapter."""

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
from .policies import render_bucket_policy

logger = logging.getLogger(__name__)

# Region where CreateBucket rejects an explicit location constraint
DEFAULT_REGION = "us-east-1"
LIFECYCLE_RULE_ID = "Expiration"


class S3ObjectStorageService:
    """Bucket lifecycle against S3 using an assumed-role client."""

    def __init__(self, client: Any, cluster: AWSCluster, stopped: Any = None) -> None:
        self.client = client
        self.cluster = cluster
        self.stopped = stopped

    def _record(self, operation: str, result: str) -> None:
        metrics.bucket_operations_total.labels(provider="aws", operation=operation, result=result).inc()

    def exists_bucket(self, bucket: Bucket) -> bool:
        name = bucket.spec.name
        try:
            self.client.head_bucket(Bucket=name)
        except (BotoCoreError, ClientError) as e:
            if is_aws_not_found(e):
                return False
            self._record("exists", "error")
            raise ProviderOperationError(
                name, "exists", f"failed to check existence of S3 bucket {name}: {e}"
            ) from e
        return True

    def create_bucket(self, bucket: Bucket) -> None:
        name = bucket.spec.name
        region = self.cluster.region
        params: dict[str, Any] = {"Bucket": name}
        if region != DEFAULT_REGION:
            params["CreateBucketConfiguration"] = {"LocationConstraint": region}

        try:
            self.client.create_bucket(**params)
        except (BotoCoreError, ClientError) as e:
            self._record("create", "error")
            raise ProviderOperationError(
                name, "create", f"failed to create S3 bucket {name} in region {region}: {e}"
            ) from e
        self._record("create", "success")
        logger.info(f"Created S3 bucket {name} in region {region}")

    def update_bucket(self, bucket: Bucket) -> None:
        """S3 buckets have no mutable container-level settings here."""
        return None

    def delete_bucket(self, bucket: Bucket) -> None:
        """Empty the bucket page by page, then delete it."""
        name = bucket.spec.name
        paginator = self.client.get_paginator("list_objects_v2")

        try:
            for page in paginator.paginate(Bucket=name):
                check_cancelled(self.stopped, f"emptying S3 bucket {name}")
                objects = [{"Key": obj["Key"]} for obj in page.get("Contents", [])]
                if objects:
                    self.client.delete_objects(Bucket=name, Delete={"Objects": objects, "Quiet": True})
        except (BotoCoreError, ClientError) as e:
            self._record("delete", "error")
            raise ProviderOperationError(
                name, "delete", f"failed to empty S3 bucket {name} for deletion: {e}"
            ) from e

        try:
            self.client.delete_bucket(Bucket=name)
        except (BotoCoreError, ClientError) as e:
            self._record("delete", "error")
            raise ProviderOperationError(name, "delete", f"failed to delete S3 bucket {name}: {e}") from e
        self._record("delete", "success")
        logger.info(f"Deleted S3 bucket {name}")

    def configure_bucket(self, bucket: Bucket) -> None:
        """Apply lifecycle rules, the TLS-only bucket policy and tags."""
        self._set_lifecycle_rules(bucket)
        check_cancelled(self.stopped, "setting bucket policy")
        self._set_bucket_policy(bucket)
        check_cancelled(self.stopped, "setting bucket tags")
        self._set_tags(bucket)
        self._record("configure", "success")

    def _set_lifecycle_rules(self, bucket: Bucket) -> None:
        name = bucket.spec.name
        expiration = bucket.spec.expiration_policy
        try:
            if expiration is not None:
                self.client.put_bucket_lifecycle_configuration(
                    Bucket=name,
                    LifecycleConfiguration={
                        "Rules": [
                            {
                                "ID": LIFECYCLE_RULE_ID,
                                "Status": "Enabled",
                                "Filter": {"Prefix": ""},
                                "Expiration": {"Days": expiration.days},
                            }
                        ]
                    },
                )
                logger.info(f"Set {expiration.days} day expiration on S3 bucket {name}")
            else:
                self.client.delete_bucket_lifecycle(Bucket=name)
        except (BotoCoreError, ClientError) as e:
            if expiration is None and is_aws_not_found(e):
                return
            self._record("configure", "error")
            raise ProviderOperationError(
                name, "configure", f"failed to set lifecycle rules for S3 bucket {name}: {e}"
            ) from e

    def _set_bucket_policy(self, bucket: Bucket) -> None:
        name = bucket.spec.name
        try:
            self.client.put_bucket_policy(
                Bucket=name,
                Policy=render_bucket_policy(name, partition=self.cluster.partition),
            )
        except (BotoCoreError, ClientError) as e:
            self._record("configure", "error")
            raise ProviderOperationError(
                name, "configure", f"failed to set bucket policy for S3 bucket {name}: {e}"
            ) from e

    def _set_tags(self, bucket: Bucket) -> None:
        name = bucket.spec.name
        tags = merged_tags(bucket, self.cluster)
        try:
            if tags:
                self.client.put_bucket_tagging(Bucket=name, Tagging={"TagSet": to_aws_tag_list(tags)})
            else:
                # S3 rejects an empty tag set
                self.client.delete_bucket_tagging(Bucket=name)
        except (BotoCoreError, ClientError) as e:
            self._record("configure", "error")
            raise ProviderOperationError(
                name, "configure", f"failed to set tags for S3 bucket {name}: {e}"
            ) from e
