"""Provider-agnostic interfaces implemented by each cloud adapter."""

from __future__ import annotations

from typing import Protocol

from ..cluster.base import Cluster
from ..models import Bucket


class ObjectStorageService(Protocol):
    """Bucket lifecycle operations against one cloud provider."""

    def exists_bucket(self, bucket: Bucket) -> bool:
        """Check whether the bucket exists.

        Returns:
            False only when the provider reports the bucket as not found

        Raises:
            ProviderOperationError: For any other failure, including permission errors
        """
        ...

    def create_bucket(self, bucket: Bucket) -> None:
        """Create the bucket."""
        ...

    def update_bucket(self, bucket: Bucket) -> None:
        """Update the bucket. May be a no-op where buckets are immutable."""
        ...

    def delete_bucket(self, bucket: Bucket) -> None:
        """Delete the bucket together with everything it contains."""
        ...

    def configure_bucket(self, bucket: Bucket) -> None:
        """Apply lifecycle, policy and tags. Must be idempotent."""
        ...


class AccessRoleService(Protocol):
    """Workload access-role operations against one cloud provider."""

    def configure_role(self, bucket: Bucket) -> None:
        """Create or update the bucket's access role."""
        ...

    def delete_role(self, bucket: Bucket) -> None:
        """Delete the bucket's access role. An absent role is not an error."""
        ...


class ServiceFactory(Protocol):
    """Builds provider services from a freshly resolved cluster context."""

    def new_object_storage_service(self, cluster: Cluster) -> ObjectStorageService:
        ...

    def new_access_role_service(self, cluster: Cluster) -> AccessRoleService:
        ...
