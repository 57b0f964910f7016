"""Management cluster context resolution."""

from .aws import AWSClusterGetter
from .azure import AzureClusterGetter
from .base import AWSCluster, AzureCluster, Cluster, ClusterGetter

__all__ = [
    "AWSCluster",
    "AWSClusterGetter",
    "AzureCluster",
    "AzureClusterGetter",
    "Cluster",
    "ClusterGetter",
]
