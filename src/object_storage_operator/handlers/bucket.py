"""Bucket handler: the finalizer-guarded reconcile state machine."""

from __future__ import annotations

from typing import Any, Callable

import kopf
from kubernetes import client

from .. import metrics
from ..builders.bucket import create_bucket_from_body
from ..cluster.base import Cluster, ClusterGetter
from ..config import ManagementCluster, load_management_cluster, resync_interval_seconds
from ..constants import API_GROUP_VERSION, FINALIZER, KIND_BUCKET, PLURAL_BUCKETS
from ..models import Bucket
from ..services.base import ObjectStorageService, ServiceFactory
from ..services.factory import get_cluster_getter, get_service_factory
from ..utils.cancellation import check_cancelled
from ..utils.errors import ConfigurationError, UnsupportedProviderError
from ..utils.events import (
    emit_access_role_configured,
    emit_access_role_deleted,
    emit_bucket_configured,
    emit_bucket_created,
    emit_bucket_deleted,
    emit_bucket_retained,
    emit_bucket_updated,
)
from .base import BaseHandler
from .shared import get_core_client, get_k8s_client

ClusterGetterFn = Callable[[ManagementCluster, client.CustomObjectsApi, client.CoreV1Api], ClusterGetter]
ServiceFactoryFn = Callable[[ManagementCluster, client.CoreV1Api, Any], ServiceFactory]


class BucketHandler(BaseHandler):
    """Converges one Bucket record toward its spec on each invocation.

    Every invocation re-derives what to do from the record and the provider's current
    state. Nothing is carried over between invocations.
    """

    def __init__(
        self,
        api: client.CustomObjectsApi,
        core_api: client.CoreV1Api,
        management_cluster: ManagementCluster,
        cluster_getter_fn: ClusterGetterFn = get_cluster_getter,
        service_factory_fn: ServiceFactoryFn = get_service_factory,
    ) -> None:
        super().__init__(KIND_BUCKET, PLURAL_BUCKETS, api)
        self.core_api = core_api
        self.management_cluster = management_cluster
        self.cluster_getter_fn = cluster_getter_fn
        self.service_factory_fn = service_factory_fn

    def reconcile(self, namespace: str, name: str, stopped: Any = None) -> float | None:
        """Reconcile one Bucket record.

        Args:
            namespace: Namespace of the record
            name: Name of the record
            stopped: Optional cancellation flag with ``is_set()``

        Returns:
            Seconds after which to reconcile again, or None to wait for the next event

        Raises:
            UnsupportedProviderError: If the management cluster provider has no adapter
            ClusterResolutionError: If the cluster context cannot be resolved
            ProviderOperationError: If a provider call fails
        """
        body = self.get_resource(namespace, name)
        if body is None:
            self.logger.info(f"Bucket {namespace}/{name} not found, nothing to do")
            return None

        bucket = create_bucket_from_body(body)
        return self.reconcile_with_metrics(body, lambda: self._reconcile(bucket, stopped))

    def _reconcile(self, bucket: Bucket, stopped: Any) -> float | None:
        if bucket.marked_for_deletion and FINALIZER not in bucket.finalizers:
            self.log_info(bucket.meta, "Finalizer already removed, nothing to clean up", reason="Deleting")
            return None

        cluster_getter = self.cluster_getter_fn(self.management_cluster, self.api, self.core_api)
        factory = self.service_factory_fn(self.management_cluster, self.core_api, stopped)

        cluster = cluster_getter.get_cluster()
        check_cancelled(stopped, "building storage service")
        storage = factory.new_object_storage_service(cluster)

        if bucket.marked_for_deletion:
            self._reconcile_delete(bucket, cluster, factory, storage, stopped)
        else:
            self._reconcile_normal(bucket, cluster, factory, storage, stopped)
        return None

    def _reconcile_normal(
        self,
        bucket: Bucket,
        cluster: Cluster,
        factory: ServiceFactory,
        storage: ObjectStorageService,
        stopped: Any,
    ) -> None:
        meta = bucket.meta
        if self.ensure_finalizer(bucket.body):
            self.log_info(meta, "Added finalizer", reason="FinalizerAdded", finalizer=FINALIZER)

        check_cancelled(stopped, f"checking bucket {bucket.spec.name}")
        if not storage.exists_bucket(bucket):
            storage.create_bucket(bucket)
            self.log_info(meta, f"Bucket {bucket.spec.name} created", reason="BucketCreated")
            emit_bucket_created(bucket.body, bucket.spec.name)
        else:
            storage.update_bucket(bucket)
            self.log_info(meta, f"Bucket {bucket.spec.name} updated", reason="BucketUpdated")
            emit_bucket_updated(bucket.body, bucket.spec.name)

        check_cancelled(stopped, f"configuring bucket {bucket.spec.name}")
        storage.configure_bucket(bucket)
        emit_bucket_configured(bucket.body, bucket.spec.name)

        if bucket.has_access_role:
            check_cancelled(stopped, f"configuring access role {bucket.spec.access_role.role_name}")
            access = factory.new_access_role_service(cluster)
            access.configure_role(bucket)
            self.log_info(
                meta,
                f"Access role {bucket.spec.access_role.role_name} configured",
                reason="AccessRoleConfigured",
            )
            emit_access_role_configured(bucket.body, bucket.spec.access_role.role_name)

        bucket.status.bucket_id = bucket.spec.name
        bucket.status.bucket_ready = True
        self.patch_status(bucket.body, bucket.status.to_dict())
        self.log_info(meta, f"Bucket {bucket.spec.name} ready", reason="BucketReady")

    def _reconcile_delete(
        self,
        bucket: Bucket,
        cluster: Cluster,
        factory: ServiceFactory,
        storage: ObjectStorageService,
        stopped: Any,
    ) -> None:
        meta = bucket.meta
        metrics.bucket_reconcile_delete_total.labels(bucket=bucket.name, namespace=bucket.namespace).inc()

        check_cancelled(stopped, f"checking bucket {bucket.spec.name}")
        exists = storage.exists_bucket(bucket)
        if not exists:
            self.log_info(meta, f"Bucket {bucket.spec.name} does not exist, skipping deletion", reason="Deleting")
        elif bucket.reclaim_on_delete:
            storage.delete_bucket(bucket)
            self.log_info(meta, f"Bucket {bucket.spec.name} deleted", reason="BucketDeleted")
            emit_bucket_deleted(bucket.body, bucket.spec.name)

            if bucket.has_access_role:
                check_cancelled(stopped, f"deleting access role {bucket.spec.access_role.role_name}")
                access = factory.new_access_role_service(cluster)
                access.delete_role(bucket)
                self.log_info(
                    meta,
                    f"Access role {bucket.spec.access_role.role_name} deleted",
                    reason="AccessRoleDeleted",
                )
                emit_access_role_deleted(bucket.body, bucket.spec.access_role.role_name)
        else:
            self.log_info(
                meta,
                f"Bucket {bucket.spec.name} retained by reclaim policy {bucket.spec.reclaim_policy}",
                reason="BucketRetained",
            )
            emit_bucket_retained(bucket.body, bucket.spec.name)

        self.remove_finalizer(bucket.body)
        self.log_info(meta, "Removed finalizer", reason="FinalizerRemoved", finalizer=FINALIZER)


_handler: BucketHandler | None = None


def get_handler() -> BucketHandler:
    """Build the handler on first use, once the operator has started."""
    global _handler
    if _handler is None:
        _handler = BucketHandler(
            api=get_k8s_client(),
            core_api=get_core_client(),
            management_cluster=load_management_cluster(),
        )
    return _handler


def run_reconcile(meta: dict[str, Any], stopped: Any = None) -> None:
    """Entry point shared by every kopf trigger."""
    try:
        get_handler().reconcile(meta["namespace"], meta["name"], stopped=stopped)
    except (UnsupportedProviderError, ConfigurationError) as e:
        raise kopf.PermanentError(str(e)) from e


@kopf.on.create(API_GROUP_VERSION, KIND_BUCKET)
@kopf.on.update(API_GROUP_VERSION, KIND_BUCKET)
@kopf.on.resume(API_GROUP_VERSION, KIND_BUCKET)
def handle_bucket(meta: dict[str, Any], **kwargs: Any) -> None:
    """Handle Bucket creation, changes and operator restarts."""
    run_reconcile(meta, kwargs.get("stopped"))


@kopf.timer(API_GROUP_VERSION, KIND_BUCKET, interval=resync_interval_seconds())
def resync_bucket(meta: dict[str, Any], stopped: Any, **kwargs: Any) -> None:
    """Periodically re-apply the bucket configuration to correct drift."""
    run_reconcile(meta, stopped)


@kopf.on.delete(API_GROUP_VERSION, KIND_BUCKET, optional=True)
def delete_bucket(meta: dict[str, Any], **kwargs: Any) -> None:
    """Handle Bucket deletion; the operator's own finalizer keeps the record until teardown is done."""
    run_reconcile(meta, kwargs.get("stopped"))
