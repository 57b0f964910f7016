"""Main entry point for the Object Storage Operator."""

from __future__ import annotations

from typing import Any

import kopf

from . import health
from . import logging as structured_logging
from .config import load_management_cluster, log_level, metrics_port
from .handlers import bucket  # noqa: F401  registers the Bucket handlers


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, logger: Any, **_: Any) -> None:
    """Configure the operator."""
    structured_logging.setup_structured_logging(log_level())

    # Fail fast on missing management cluster settings
    management_cluster = load_management_cluster()
    logger.info(
        f"Managing buckets for cluster {management_cluster.namespace}/{management_cluster.name} "
        f"on provider {management_cluster.provider} in {management_cluster.region}"
    )

    # Progress lives in annotations so it never races the status patches
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()

    settings.posting.level = 0
    settings.networking.request_timeout = 30.0
    settings.execution.max_workers = 4

    health.start_http_server(metrics_port())
    health.mark_ready()


@kopf.on.cleanup()
def shutdown(logger: Any, **_: Any) -> None:
    """Report not-ready while the operator drains its handlers."""
    health.mark_not_ready()
    logger.info("Operator shutting down")
