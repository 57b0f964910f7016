"""Naming, tagging and polling helpers for the Azure adapters."""

from __future__ import annotations

import re
from typing import Any

from azure.core.exceptions import HttpResponseError, ResourceNotFoundError

from ...utils.cancellation import check_cancelled

STORAGE_ACCOUNT_NAME_MAX_LENGTH = 24
POLL_INTERVAL_SECONDS = 5.0

_NON_ALPHANUMERIC = re.compile(r"[^a-zA-Z0-9]")


def storage_account_name(bucket_name: str) -> str:
    """Derive the storage account name: alphanumerics only, at most 24 characters."""
    return _NON_ALPHANUMERIC.sub("", bucket_name)[:STORAGE_ACCOUNT_NAME_MAX_LENGTH]


def sanitize_tag_key(key: str) -> str:
    """Container metadata keys must be valid C# identifiers."""
    return key.replace("-", "_")


def sanitize_tags(tags: dict[str, str]) -> dict[str, str]:
    return {sanitize_tag_key(key): value for key, value in tags.items()}


def is_azure_not_found(error: Exception) -> bool:
    if isinstance(error, ResourceNotFoundError):
        return True
    return isinstance(error, HttpResponseError) and error.status_code == 404


def wait_for_poller(poller: Any, stopped: Any, step: str, interval: float = POLL_INTERVAL_SECONDS) -> Any:
    """Wait for a long-running operation to finish, checking for cancellation between waits.

    Args:
        poller: azure.core LROPoller
        stopped: Cancellation flag with ``is_set()``, or None
        step: Operation description for the cancellation error
        interval: Seconds to block on the poller between checks

    Returns:
        The poller's final result

    Raises:
        ReconcileCancelledError: If the flag is set before the operation completes
    """
    while not poller.done():
        check_cancelled(stopped, step)
        poller.wait(timeout=interval)
    return poller.result()
