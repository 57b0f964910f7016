"""Detects whether the management cluster uses private networking."""

from __future__ import annotations

import logging
from typing import Any

import yaml
from kubernetes import client

from ...cluster.base import Cluster
from ...utils.errors import is_k8s_not_found

logger = logging.getLogger(__name__)

CLUSTER_VALUES_KEY = "values"
PRIVATE_MODE = "private"


def cluster_values_name(cluster: Cluster) -> str:
    return f"{cluster.name}-cluster-values"


def is_private_cluster(core_api: client.CoreV1Api, cluster: Cluster) -> bool:
    """Read the cluster values config map and report whether connectivity is private.

    A missing config map, or values whose connectivity section is not a mapping, mean
    the cluster is not private. Any other API error or invalid YAML propagates.
    """
    name = cluster_values_name(cluster)
    try:
        config_map = core_api.read_namespaced_config_map(name=name, namespace=cluster.namespace)
    except client.exceptions.ApiException as e:
        if is_k8s_not_found(e):
            logger.info(f"Config map {cluster.namespace}/{name} not found, treating cluster as public")
            return False
        raise

    raw = (config_map.data or {}).get(CLUSTER_VALUES_KEY)
    if not raw:
        return False

    values: Any = yaml.safe_load(raw)
    if not isinstance(values, dict):
        return False
    network: Any = values
    for key in ("global", "connectivity", "network"):
        network = network.get(key)
        if not isinstance(network, dict):
            if network is not None:
                logger.info(f"Config map {cluster.namespace}/{name} has no {key} mapping, treating cluster as public")
            return False
    return network.get("mode") == PRIVATE_MODE or network.get("private") is True
