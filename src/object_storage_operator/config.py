"""Operator configuration read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .utils.errors import ConfigurationError


@dataclass(frozen=True)
class ManagementCluster:
    """The management cluster the operator provisions storage for."""

    name: str
    namespace: str
    provider: str
    region: str
    base_domain: str


def _require(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ConfigurationError(f"environment variable {name} is required")
    return value


def load_management_cluster() -> ManagementCluster:
    """Build the management cluster description from MANAGEMENT_CLUSTER_* variables.

    Raises:
        ConfigurationError: If a required variable is missing or empty
    """
    return ManagementCluster(
        name=_require("MANAGEMENT_CLUSTER_NAME"),
        namespace=_require("MANAGEMENT_CLUSTER_NAMESPACE"),
        provider=_require("MANAGEMENT_CLUSTER_PROVIDER"),
        region=_require("MANAGEMENT_CLUSTER_REGION"),
        base_domain=_require("MANAGEMENT_CLUSTER_BASE_DOMAIN"),
    )


def resync_interval_seconds() -> float:
    return float(os.getenv("RESYNC_INTERVAL_SECONDS", "300"))


def metrics_port() -> int:
    return int(os.getenv("METRICS_PORT", "8080"))


def log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO")
