"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_ACCESS_ROLE_CONFIGURED,
    EVENT_REASON_ACCESS_ROLE_DELETED,
    EVENT_REASON_BUCKET_CONFIGURED,
    EVENT_REASON_BUCKET_CREATED,
    EVENT_REASON_BUCKET_DELETED,
    EVENT_REASON_BUCKET_RETAINED,
    EVENT_REASON_BUCKET_UPDATED,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_STARTED,
)


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        body: Object the event is attached to (needs apiVersion, kind and metadata)
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        body,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_reconcile_started(body: dict[str, Any]) -> None:
    """Emit reconcile started event."""
    emit_event(body, EVENT_REASON_RECONCILE_STARTED, "Reconciliation started")


def emit_reconcile_failed(body: dict[str, Any], message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_bucket_created(body: dict[str, Any], bucket_name: str) -> None:
    emit_event(body, EVENT_REASON_BUCKET_CREATED, f"Bucket {bucket_name} created")


def emit_bucket_updated(body: dict[str, Any], bucket_name: str) -> None:
    emit_event(body, EVENT_REASON_BUCKET_UPDATED, f"Bucket {bucket_name} updated")


def emit_bucket_configured(body: dict[str, Any], bucket_name: str) -> None:
    emit_event(body, EVENT_REASON_BUCKET_CONFIGURED, f"Bucket {bucket_name} configured")


def emit_bucket_deleted(body: dict[str, Any], bucket_name: str) -> None:
    emit_event(body, EVENT_REASON_BUCKET_DELETED, f"Bucket {bucket_name} deleted")


def emit_bucket_retained(body: dict[str, Any], bucket_name: str) -> None:
    emit_event(
        body,
        EVENT_REASON_BUCKET_RETAINED,
        f"Bucket {bucket_name} retained by reclaim policy",
    )


def emit_access_role_configured(body: dict[str, Any], role_name: str) -> None:
    emit_event(body, EVENT_REASON_ACCESS_ROLE_CONFIGURED, f"Access role {role_name} configured")


def emit_access_role_deleted(body: dict[str, Any], role_name: str) -> None:
    emit_event(body, EVENT_REASON_ACCESS_ROLE_DELETED, f"Access role {role_name} deleted")
