"""Cooperative cancellation of reconcile invocations."""

from __future__ import annotations

from typing import Any

from .errors import ReconcileCancelledError


def check_cancelled(stopped: Any, step: str) -> None:
    """Raise if the caller has asked the invocation to stop.

    Args:
        stopped: A flag with ``is_set()`` (threading.Event or kopf's stopped flag), or None
        step: Name of the step about to run, used in the error message

    Raises:
        ReconcileCancelledError: If the flag is set
    """
    if stopped is not None and stopped.is_set():
        raise ReconcileCancelledError(f"reconcile cancelled before {step}")
