"""Resolved management cluster context shared by the storage adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from ..utils.errors import ClusterResolutionError


@dataclass(frozen=True)
class Cluster:
    """Connection context for the management cluster.

    Recomputed on every reconcile invocation; never cached.
    """

    name: str
    namespace: str
    region: str
    base_domain: str
    tags: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class AWSCluster(Cluster):
    """AWS cluster context with the role to assume for provider calls."""

    role_arn: str = ""

    @property
    def account_id(self) -> str:
        """Account id parsed from the role ARN (arn:partition:iam::ACCOUNT:role/NAME)."""
        parts = self.role_arn.split(":")
        if len(parts) < 6 or not parts[4]:
            raise ClusterResolutionError(f"cannot parse account id from role ARN {self.role_arn!r}")
        return parts[4]

    @property
    def is_china_region(self) -> bool:
        return self.region.startswith("cn-")

    @property
    def partition(self) -> str:
        return "aws-cn" if self.is_china_region else "aws"


@dataclass(frozen=True)
class AzureCluster(Cluster):
    """Azure cluster context with the identity used for provider calls."""

    resource_group: str = ""
    subscription_id: str = ""
    identity_type: str = ""
    client_id: str = ""
    tenant_id: str = ""
    client_secret: str = field(default="", repr=False)

    @property
    def vnet_name(self) -> str:
        return f"{self.name}-vnet"


class ClusterGetter(Protocol):
    """Resolves the management cluster context from infrastructure records."""

    def get_cluster(self) -> Cluster:
        """Resolve the cluster context.

        Raises:
            ClusterResolutionError: If a record or a required field is missing
        """
        ...


def nested_get(obj: dict[str, Any], *path: str) -> Any:
    """Walk nested dicts, returning None when any key is missing."""
    current: Any = obj
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def string_map(value: Any) -> dict[str, str]:
    """Coerce an additionalTags-style map to str -> str, dropping empty entries."""
    if not isinstance(value, dict):
        return {}
    return {str(k): str(v) for k, v in value.items() if k and v is not None and v != ""}
