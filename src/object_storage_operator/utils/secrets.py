"""Utilities for managing Kubernetes secrets."""

from __future__ import annotations

import base64
from typing import Any

from kubernetes import client

from ..constants import FIELD_MANAGER
from .errors import is_k8s_not_found


def _decode(value: str | bytes) -> str:
    if isinstance(value, bytes):
        value = value.decode("utf-8")
    return base64.b64decode(value).decode("utf-8")


def get_secret_value(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
    key: str,
) -> str:
    """Get a value from a Kubernetes secret.

    Args:
        api: Kubernetes API client
        namespace: Namespace of the secret
        secret_name: Name of the secret
        key: Key in the secret

    Returns:
        Decoded secret value

    Raises:
        KeyError: If the key is not present in the secret
        client.exceptions.ApiException: If the secret cannot be read
    """
    secret = api.read_namespaced_secret(name=secret_name, namespace=namespace)
    data = secret.data or {}
    if key not in data:
        raise KeyError(f"key {key!r} not found in secret {namespace}/{secret_name}")
    return _decode(data[key])


def upsert_secret(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
    data: dict[str, str],
    labels: dict[str, str] | None = None,
    finalizers: list[str] | None = None,
) -> None:
    """Create a secret, or replace its data, labels and finalizers if it exists.

    Args:
        api: Kubernetes API client
        namespace: Namespace for the secret
        secret_name: Name of the secret
        data: Secret data (will be base64 encoded)
        labels: Labels to set on the secret
        finalizers: Finalizers to set on the secret
    """
    secret = client.V1Secret(
        metadata=client.V1ObjectMeta(
            name=secret_name,
            namespace=namespace,
            labels=labels or {},
            finalizers=finalizers or [],
        ),
        type="Opaque",
        data={k: base64.b64encode(v.encode("utf-8")).decode("utf-8") for k, v in data.items()},
    )

    try:
        api.create_namespaced_secret(namespace=namespace, body=secret, field_manager=FIELD_MANAGER)
    except client.exceptions.ApiException as e:
        if e.status != 409:
            raise
        api.patch_namespaced_secret(
            name=secret_name,
            namespace=namespace,
            body=secret,
            field_manager=FIELD_MANAGER,
        )


def remove_secret_finalizer(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
    finalizer: str,
) -> None:
    """Remove a finalizer from a secret. A missing secret is not an error."""
    try:
        secret = api.read_namespaced_secret(name=secret_name, namespace=namespace)
    except client.exceptions.ApiException as e:
        if is_k8s_not_found(e):
            return
        raise

    finalizers: list[str] = list(secret.metadata.finalizers or [])
    if finalizer not in finalizers:
        return
    finalizers.remove(finalizer)

    body: dict[str, Any] = {"metadata": {"finalizers": finalizers}}
    api.patch_namespaced_secret(
        name=secret_name,
        namespace=namespace,
        body=body,
        field_manager=FIELD_MANAGER,
    )


def delete_secret(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
) -> None:
    """Delete a Kubernetes secret. A missing secret is not an error."""
    try:
        api.delete_namespaced_secret(name=secret_name, namespace=namespace)
    except client.exceptions.ApiException as e:
        if not is_k8s_not_found(e):
            raise
