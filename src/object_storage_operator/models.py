"""Models for Bucket records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .constants import RECLAIM_POLICY_DELETE, RECLAIM_POLICY_RETAIN


@dataclass
class BucketTag:
    """A single key/value tag from the bucket spec."""

    key: str
    value: str


@dataclass
class ExpirationPolicy:
    """Number of days after which objects expire."""

    days: int


@dataclass
class AccessRole:
    """Workload identity that is granted access to the bucket."""

    role_name: str = ""
    service_account_name: str = ""
    service_account_namespace: str = ""
    extra_bucket_names: list[str] = field(default_factory=list)


@dataclass
class BucketSpec:
    """Desired state of a bucket."""

    name: str
    expiration_policy: ExpirationPolicy | None = None
    reclaim_policy: str = RECLAIM_POLICY_RETAIN
    access_role: AccessRole | None = None
    tags: list[BucketTag] = field(default_factory=list)


@dataclass
class BucketStatus:
    """Observed state of a bucket, owned by the operator."""

    bucket_ready: bool = False
    bucket_id: str = ""
    bucket_azure_role_assignment_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Render the status in its stored field names."""
        status: dict[str, Any] = {
            "bucketReady": self.bucket_ready,
            "bucketID": self.bucket_id,
        }
        if self.bucket_azure_role_assignment_id:
            status["bucketAzureRoleAssignmentID"] = self.bucket_azure_role_assignment_id
        return status


@dataclass
class Bucket:
    """A Bucket record: metadata, spec and status."""

    name: str
    namespace: str
    spec: BucketSpec
    status: BucketStatus = field(default_factory=BucketStatus)
    uid: str = ""
    deletion_timestamp: str | None = None
    finalizers: list[str] = field(default_factory=list)
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def meta(self) -> dict[str, Any]:
        return {"name": self.name, "namespace": self.namespace, "uid": self.uid}

    @property
    def marked_for_deletion(self) -> bool:
        return bool(self.deletion_timestamp)

    @property
    def reclaim_on_delete(self) -> bool:
        return self.spec.reclaim_policy == RECLAIM_POLICY_DELETE

    @property
    def has_access_role(self) -> bool:
        return self.spec.access_role is not None and bool(self.spec.access_role.role_name)

    def resolved_tags(self) -> dict[str, str]:
        """Bucket tags keyed last-wins, with empty keys or values dropped."""
        tags: dict[str, str] = {}
        for tag in self.spec.tags:
            if tag.key and tag.value:
                tags[tag.key] = tag.value
        return tags
