"""Tag set composition shared by the adapters."""

from __future__ import annotations

from ..cluster.base import Cluster
from ..models import Bucket


def merged_tags(bucket: Bucket, cluster: Cluster) -> dict[str, str]:
    """Bucket tags merged with the cluster's additional tags.

    Empty keys or values are dropped. Cluster tags win over bucket tags with the same key.
    """
    tags = bucket.resolved_tags()
    for key, value in cluster.tags.items():
        if key and value:
            tags[key] = value
    return tags


def to_aws_tag_list(tags: dict[str, str]) -> list[dict[str, str]]:
    return [{"Key": key, "Value": value} for key, value in tags.items()]
