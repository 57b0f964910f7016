"""Builder for Bucket models."""

from __future__ import annotations

from typing import Any

from ..constants import RECLAIM_POLICY_RETAIN
from ..models import (
    AccessRole,
    Bucket,
    BucketSpec,
    BucketStatus,
    BucketTag,
    ExpirationPolicy,
)


def create_bucket_spec(spec: dict[str, Any]) -> BucketSpec:
    """Create a BucketSpec from the record's spec.

    Args:
        spec: Bucket CRD spec

    Returns:
        Parsed bucket spec
    """
    expiration = spec.get("expirationPolicy")
    expiration_policy = None
    if expiration and expiration.get("days") is not None:
        expiration_policy = ExpirationPolicy(days=int(expiration["days"]))

    role = spec.get("accessRole")
    access_role = None
    if role:
        access_role = AccessRole(
            role_name=role.get("roleName", ""),
            service_account_name=role.get("serviceAccountName", ""),
            service_account_namespace=role.get("serviceAccountNamespace", ""),
            extra_bucket_names=list(role.get("extraBucketNames") or []),
        )

    tags = [
        BucketTag(key=tag.get("key", ""), value=tag.get("value", ""))
        for tag in spec.get("tags") or []
    ]

    return BucketSpec(
        name=spec.get("name", ""),
        expiration_policy=expiration_policy,
        reclaim_policy=spec.get("reclaimPolicy") or RECLAIM_POLICY_RETAIN,
        access_role=access_role,
        tags=tags,
    )


def create_bucket_status(status: dict[str, Any] | None) -> BucketStatus:
    status = status or {}
    return BucketStatus(
        bucket_ready=bool(status.get("bucketReady", False)),
        bucket_id=status.get("bucketID", ""),
        bucket_azure_role_assignment_id=status.get("bucketAzureRoleAssignmentID", ""),
    )


def create_bucket_from_body(body: dict[str, Any]) -> Bucket:
    """Create a Bucket model from a full Kubernetes object.

    Args:
        body: Bucket object as returned by the API server

    Returns:
        Parsed bucket
    """
    metadata = body.get("metadata", {})
    return Bucket(
        name=metadata.get("name", ""),
        namespace=metadata.get("namespace", "default"),
        uid=metadata.get("uid", ""),
        deletion_timestamp=metadata.get("deletionTimestamp"),
        finalizers=list(metadata.get("finalizers") or []),
        spec=create_bucket_spec(body.get("spec") or {}),
        status=create_bucket_status(body.get("status")),
        body=body,
    )
