"""Prometheus metrics for the Object Storage Operator."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "object_storage_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "object_storage_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
)

error_total = Counter(
    "object_storage_operator_error_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

# Provider operation metrics
bucket_operations_total = Counter(
    "object_storage_operator_bucket_operations_total",
    "Total number of bucket operations",
    ["provider", "operation", "result"],
)

access_role_operations_total = Counter(
    "object_storage_operator_access_role_operations_total",
    "Total number of access role operations",
    ["provider", "operation", "result"],
)

bucket_reconcile_delete_total = Counter(
    "object_storage_operator_bucket_reconcile_delete_total",
    "Total number of bucket deletion reconciliations",
    ["bucket", "namespace"],
)
