"""Base handler class with common functionality for custom resource handlers."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, TypeVar

from kubernetes import client

from .. import metrics
from ..constants import API_GROUP, API_VERSION, CONTROLLER_NAME, FIELD_MANAGER, FINALIZER
from ..logging import log_resource_event
from ..utils.errors import is_k8s_not_found, sanitize_exception
from ..utils.events import emit_reconcile_failed, emit_reconcile_started

T = TypeVar("T")


class BaseHandler:
    """Base class for custom resource handlers.

    Finalizer and status changes are written straight to the API server rather than
    through kopf's deferred patch, so they are persisted before the next provider call.
    """

    def __init__(self, kind: str, plural: str, api: client.CustomObjectsApi):
        """Initialize base handler.

        Args:
            kind: The Kubernetes resource kind (e.g., "Bucket")
            plural: Plural resource name used in API paths
            api: Client for the custom resources
        """
        self.kind = kind
        self.plural = plural
        self.api = api
        self.logger = logging.getLogger(__name__)

    def _get_resource_context(self, meta: dict[str, Any]) -> dict[str, Any]:
        return {
            "name": meta.get("name", "unknown"),
            "namespace": meta.get("namespace", "default"),
            "uid": meta.get("uid", "unknown"),
        }

    def _log(
        self,
        level: int,
        meta: dict[str, Any],
        message: str,
        event: str,
        reason: str,
        **kwargs: Any,
    ) -> None:
        ctx = self._get_resource_context(meta)
        log_resource_event(
            self.logger,
            controller=CONTROLLER_NAME,
            resource_kind=self.kind,
            resource_name=ctx["name"],
            namespace=ctx["namespace"],
            uid=ctx["uid"],
            event=event,
            reason=reason,
            message=message,
            level=level,
            **kwargs,
        )

    def log_info(
        self,
        meta: dict[str, Any],
        message: str,
        event: str = "info",
        reason: str = "Info",
        **kwargs: Any,
    ) -> None:
        """Log an info-level structured log message.

        Args:
            meta: Kubernetes resource metadata
            message: Log message
            event: Event type (default: "info")
            reason: Reason for the event (default: "Info")
            **kwargs: Additional fields to include in the log
        """
        self._log(logging.INFO, meta, message, event, reason, **kwargs)

    def log_error(
        self,
        meta: dict[str, Any],
        message: str,
        error: Exception | None = None,
        event: str = "error",
        reason: str = "Error",
        **kwargs: Any,
    ) -> None:
        """Log an error-level structured log message.

        Args:
            meta: Kubernetes resource metadata
            message: Log message
            error: Optional exception to include sanitized error details
            event: Event type (default: "error")
            reason: Reason for the event (default: "Error")
            **kwargs: Additional fields to include in the log
        """
        log_data = kwargs.copy()
        if error is not None:
            log_data["error"] = sanitize_exception(error)
            log_data["error_type"] = type(error).__name__
        self._log(logging.ERROR, meta, message, event, reason, **log_data)

    def get_resource(self, namespace: str, name: str) -> dict[str, Any] | None:
        """Read the resource, returning None if it no longer exists."""
        try:
            return self.api.get_namespaced_custom_object(
                group=API_GROUP,
                version=API_VERSION,
                namespace=namespace,
                plural=self.plural,
                name=name,
            )
        except client.exceptions.ApiException as e:
            if is_k8s_not_found(e):
                return None
            raise

    def _patch_finalizers(self, body: dict[str, Any], finalizers: list[str]) -> None:
        metadata = body.get("metadata", {})
        patch_metadata: dict[str, Any] = {"finalizers": finalizers}
        # Fail on conflict instead of overwriting finalizers added concurrently
        if metadata.get("resourceVersion"):
            patch_metadata["resourceVersion"] = metadata["resourceVersion"]

        updated = self.api.patch_namespaced_custom_object(
            group=API_GROUP,
            version=API_VERSION,
            namespace=metadata.get("namespace"),
            plural=self.plural,
            name=metadata.get("name"),
            body={"metadata": patch_metadata},
            field_manager=FIELD_MANAGER,
        )
        if isinstance(updated, dict) and updated.get("metadata"):
            body["metadata"] = updated["metadata"]
        else:
            metadata["finalizers"] = finalizers

    def ensure_finalizer(self, body: dict[str, Any]) -> bool:
        """Add the finalizer and persist it immediately.

        Returns:
            True if the finalizer had to be added
        """
        finalizers = list(body.get("metadata", {}).get("finalizers") or [])
        if FINALIZER in finalizers:
            return False
        finalizers.append(FINALIZER)
        self._patch_finalizers(body, finalizers)
        return True

    def remove_finalizer(self, body: dict[str, Any]) -> bool:
        """Remove the finalizer and persist the change immediately.

        Returns:
            True if the finalizer was present
        """
        finalizers = list(body.get("metadata", {}).get("finalizers") or [])
        if FINALIZER not in finalizers:
            return False
        finalizers.remove(FINALIZER)
        self._patch_finalizers(body, finalizers)
        return True

    def patch_status(self, body: dict[str, Any], status: dict[str, Any]) -> None:
        """Merge the given fields into the resource status."""
        metadata = body.get("metadata", {})
        self.api.patch_namespaced_custom_object_status(
            group=API_GROUP,
            version=API_VERSION,
            namespace=metadata.get("namespace"),
            plural=self.plural,
            name=metadata.get("name"),
            body={"status": status},
            field_manager=FIELD_MANAGER,
        )

    def reconcile_with_metrics(
        self,
        body: dict[str, Any],
        reconcile_fn: Callable[[], T],
    ) -> T:
        """Execute reconciliation with metrics, events and error logging.

        Args:
            body: The resource being reconciled
            reconcile_fn: Function to execute for reconciliation

        Returns:
            Whatever reconcile_fn returns
        """
        meta = body.get("metadata", {})
        emit_reconcile_started(body)
        metrics.reconcile_total.labels(kind=self.kind, result="started").inc()

        start_time = time.time()
        try:
            result = reconcile_fn()
            metrics.reconcile_total.labels(kind=self.kind, result="success").inc()
            return result
        except Exception as e:
            metrics.error_total.labels(kind=self.kind, error_type=type(e).__name__).inc()
            self.log_error(meta, "Reconciliation failed", error=e, reason="ReconciliationFailed")
            emit_reconcile_failed(body, f"Reconciliation failed: {sanitize_exception(e)}")
            metrics.reconcile_total.labels(kind=self.kind, result="error").inc()
            raise
        finally:
            duration = time.time() - start_time
            metrics.reconcile_duration_seconds.labels(kind=self.kind).observe(duration)
