"""Shared utilities for handlers."""

from __future__ import annotations

from kubernetes import client, config

_loaded = False


def load_k8s_config() -> None:
    """Load in-cluster configuration, falling back to the local kube config."""
    global _loaded
    if _loaded:
        return
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()
    _loaded = True


def get_k8s_client() -> client.CustomObjectsApi:
    """Get Kubernetes CustomObjectsApi client."""
    load_k8s_config()
    return client.CustomObjectsApi()


def get_core_client() -> client.CoreV1Api:
    """Get Kubernetes CoreV1Api client for secrets and config maps."""
    load_k8s_config()
    return client.CoreV1Api()
