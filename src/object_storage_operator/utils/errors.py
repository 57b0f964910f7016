"""Operator exceptions and error sanitization utilities."""

from __future__ import annotations

import re
from typing import Any

from botocore.exceptions import ClientError
from kubernetes import client as k8s_client


class ObjectStorageError(Exception):
    """Base class for every error raised by the operator."""


class ConfigurationError(ObjectStorageError):
    """Operator configuration is missing or invalid."""


class ClusterResolutionError(ObjectStorageError):
    """Management cluster context or identity could not be resolved."""


class UnsupportedProviderError(ObjectStorageError):
    """The management cluster provider matches no storage adapter."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"unsupported provider {provider!r}")
        self.provider = provider


class ProviderOperationError(ObjectStorageError):
    """A cloud provider call failed while operating on a bucket or role."""

    def __init__(self, bucket_name: str, operation: str, message: str) -> None:
        super().__init__(message)
        self.bucket_name = bucket_name
        self.operation = operation


class ReconcileCancelledError(ObjectStorageError):
    """The reconcile invocation was cancelled by its caller."""


# AWS error codes meaning the target does not exist
AWS_NOT_FOUND_CODES = {
    "404",
    "NotFound",
    "NoSuchBucket",
    "NoSuchEntity",
    "NoSuchLifecycleConfiguration",
    "NoSuchTagSet",
}


def is_aws_not_found(error: Exception) -> bool:
    """Return True if a botocore error reports a missing resource."""
    if not isinstance(error, ClientError):
        return False
    return error.response.get("Error", {}).get("Code") in AWS_NOT_FOUND_CODES


def is_k8s_not_found(error: Exception) -> bool:
    """Return True if a Kubernetes API error is a 404."""
    return isinstance(error, k8s_client.exceptions.ApiException) and error.status == 404


# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    r"access[_\s]?key[_\s]?id[:\s]+([A-Z0-9]{20})",
    r"secret[_\s]?access[_\s]?key[:\s]+([A-Za-z0-9/+=]{40})",
    r"session[_\s]?token[:\s]+([A-Za-z0-9/+=]+)",
    r"account[_\s]?key[:\s]+([A-Za-z0-9/+=]+)",
    r"client[_\s]?secret[:\s]+([^\s,;\)]+)",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "access_key_id",
    "secret_access_key",
    "session_token",
    "accountkey",
    "account_key",
    "clientsecret",
    "client_secret",
    "password",
    "credentials",
    "token",
}


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message
    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(
            pattern,
            lambda m: m.group(0).replace(m.group(1), "[REDACTED]"),
            sanitized,
            flags=re.IGNORECASE,
        )
    return sanitized


def sanitize_exception(error: Exception) -> str:
    """Sanitize exception message."""
    return sanitize_error_message(str(error))


def sanitize_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """Sanitize dictionary by redacting sensitive fields.

    Args:
        data: Dictionary to sanitize
        sensitive_keys: Additional keys to redact (merged with SENSITIVE_FIELDS)

    Returns:
        Sanitized dictionary with sensitive values redacted
    """
    all_sensitive = SENSITIVE_FIELDS | (sensitive_keys or set())
    sanitized: dict[str, Any] = {}

    for key, value in data.items():
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in all_sensitive):
            sanitized[key] = "[REDACTED]"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value, sensitive_keys)
        elif isinstance(value, str):
            sanitized[key] = sanitize_error_message(value)
        else:
            sanitized[key] = value

    return sanitized
