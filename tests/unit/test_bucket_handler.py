"""Tests for the Bucket reconcile state machine."""

from __future__ import annotations

import copy
import threading
from typing import Any
from unittest.mock import patch

import kopf
import pytest
from kubernetes import client

from object_storage_operator.cluster.base import Cluster
from object_storage_operator.config import ManagementCluster
from object_storage_operator.constants import FINALIZER
from object_storage_operator.handlers import bucket as bucket_handlers
from object_storage_operator.handlers.bucket import BucketHandler, run_reconcile
from object_storage_operator.utils.errors import (
    ClusterResolutionError,
    ProviderOperationError,
    ReconcileCancelledError,
    UnsupportedProviderError,
)


class FakeApi:
    """In-memory stand-in for CustomObjectsApi that records writes to a shared log."""

    def __init__(self, calls: list[tuple[Any, ...]], body: dict[str, Any] | None) -> None:
        self.calls = calls
        self.body = body

    def get_namespaced_custom_object(self, **kwargs: Any) -> dict[str, Any]:
        if self.body is None:
            raise client.exceptions.ApiException(status=404, reason="Not Found")
        return copy.deepcopy(self.body)

    def patch_namespaced_custom_object(self, **kwargs: Any) -> dict[str, Any]:
        finalizers = kwargs["body"]["metadata"]["finalizers"]
        self.calls.append(("set_finalizers", list(finalizers)))
        self.body["metadata"]["finalizers"] = list(finalizers)
        return copy.deepcopy(self.body)

    def patch_namespaced_custom_object_status(self, **kwargs: Any) -> dict[str, Any]:
        status = kwargs["body"]["status"]
        self.calls.append(("patch_status", dict(status)))
        self.body.setdefault("status", {}).update(status)
        return copy.deepcopy(self.body)

    @property
    def finalizers(self) -> list[str]:
        return self.body["metadata"].get("finalizers") or []


class FakeStorage:
    def __init__(self, calls: list[tuple[Any, ...]], exists: bool = False) -> None:
        self.calls = calls
        self.exists = exists
        self.errors: dict[str, Exception] = {}

    def _call(self, operation: str, bucket: Any) -> None:
        self.calls.append((operation, bucket.spec.name))
        if operation in self.errors:
            raise self.errors[operation]

    def exists_bucket(self, bucket: Any) -> bool:
        self._call("exists_bucket", bucket)
        return self.exists

    def create_bucket(self, bucket: Any) -> None:
        self._call("create_bucket", bucket)

    def update_bucket(self, bucket: Any) -> None:
        self._call("update_bucket", bucket)

    def delete_bucket(self, bucket: Any) -> None:
        self._call("delete_bucket", bucket)

    def configure_bucket(self, bucket: Any) -> None:
        self._call("configure_bucket", bucket)


class FakeAccess:
    def __init__(self, calls: list[tuple[Any, ...]]) -> None:
        self.calls = calls

    def configure_role(self, bucket: Any) -> None:
        self.calls.append(("configure_role", bucket.spec.access_role.role_name))

    def delete_role(self, bucket: Any) -> None:
        self.calls.append(("delete_role", bucket.spec.access_role.role_name))


class FakeFactory:
    def __init__(self, storage: FakeStorage, access: FakeAccess) -> None:
        self.storage = storage
        self.access = access
        self.storage_builds = 0

    def new_object_storage_service(self, cluster: Cluster) -> FakeStorage:
        self.storage_builds += 1
        return self.storage

    def new_access_role_service(self, cluster: Cluster) -> FakeAccess:
        return self.access


class FakeGetter:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.resolved = 0

    def get_cluster(self) -> Cluster:
        self.resolved += 1
        if self.error is not None:
            raise self.error
        return Cluster(name="glippy", namespace="org-giantswarm", region="eu-west-1", base_domain="example.io")


MANAGEMENT_CLUSTER = ManagementCluster(
    name="glippy",
    namespace="org-giantswarm",
    provider="capa",
    region="eu-west-1",
    base_domain="example.io",
)


def make_body(
    spec: dict[str, Any] | None = None,
    finalizers: list[str] | None = None,
    deleting: bool = False,
) -> dict[str, Any]:
    metadata: dict[str, Any] = {
        "name": "my-bucket",
        "namespace": "monitoring",
        "uid": "uid-1",
        "finalizers": finalizers or [],
    }
    if deleting:
        metadata["deletionTimestamp"] = "2026-10-17T10:00:00Z"
    return {
        "apiVersion": "objectstorage.giantswarm.io/v1alpha1",
        "kind": "Bucket",
        "metadata": metadata,
        "spec": spec or {"name": "my-bucket-name"},
    }


@pytest.fixture(autouse=True)
def no_events():
    with patch("kopf.event"):
        yield


class Harness:
    def __init__(self, body: dict[str, Any] | None, exists: bool = False, getter_error: Exception | None = None):
        self.calls: list[tuple[Any, ...]] = []
        self.api = FakeApi(self.calls, body)
        self.storage = FakeStorage(self.calls, exists=exists)
        self.access = FakeAccess(self.calls)
        self.factory = FakeFactory(self.storage, self.access)
        self.getter = FakeGetter(getter_error)
        self.handler = BucketHandler(
            api=self.api,
            core_api=None,
            management_cluster=MANAGEMENT_CLUSTER,
            cluster_getter_fn=lambda mc, api, core: self.getter,
            service_factory_fn=lambda mc, core, stopped: self.factory,
        )

    def reconcile(self, stopped: Any = None) -> float | None:
        return self.handler.reconcile("monitoring", "my-bucket", stopped=stopped)

    def index(self, call: tuple[Any, ...]) -> int:
        return self.calls.index(call)

    def operations(self) -> list[Any]:
        return [call[0] for call in self.calls]


class TestNormalPath:
    """Tests for reconciling a live Bucket record."""

    def test_new_bucket_end_to_end(self):
        """Create, configure, then mark ready with the finalizer kept."""
        h = Harness(make_body())

        assert h.reconcile() is None

        assert h.operations() == [
            "set_finalizers",
            "exists_bucket",
            "create_bucket",
            "configure_bucket",
            "patch_status",
        ]
        assert h.calls[-1] == ("patch_status", {"bucketReady": True, "bucketID": "my-bucket-name"})
        assert FINALIZER in h.api.finalizers

    def test_finalizer_persisted_before_create(self):
        h = Harness(make_body())

        h.reconcile()

        assert h.index(("set_finalizers", [FINALIZER])) < h.index(("create_bucket", "my-bucket-name"))

    def test_existing_finalizer_not_rewritten(self):
        h = Harness(make_body(finalizers=["other", FINALIZER]), exists=True)

        h.reconcile()

        assert "set_finalizers" not in h.operations()

    def test_existing_bucket_is_updated_and_configured(self):
        h = Harness(make_body(finalizers=[FINALIZER]), exists=True)

        h.reconcile()

        assert h.operations() == ["exists_bucket", "update_bucket", "configure_bucket", "patch_status"]

    def test_configure_runs_every_reconcile(self):
        h = Harness(make_body(finalizers=[FINALIZER]), exists=True)

        h.reconcile()
        h.reconcile()

        assert h.operations().count("configure_bucket") == 2
        assert "create_bucket" not in h.operations()

    def test_access_role_configured_before_status(self):
        spec = {
            "name": "my-bucket-name",
            "accessRole": {
                "roleName": "loki-role",
                "serviceAccountName": "loki",
                "serviceAccountNamespace": "loki",
            },
        }
        h = Harness(make_body(spec=spec, finalizers=[FINALIZER]))

        h.reconcile()

        assert h.index(("configure_bucket", "my-bucket-name")) < h.index(("configure_role", "loki-role"))
        assert h.operations()[-1] == "patch_status"

    def test_access_role_without_name_is_skipped(self):
        spec = {"name": "my-bucket-name", "accessRole": {"serviceAccountName": "loki"}}
        h = Harness(make_body(spec=spec, finalizers=[FINALIZER]))

        h.reconcile()

        assert "configure_role" not in h.operations()

    def test_create_failure_leaves_finalizer_and_no_status(self):
        h = Harness(make_body())
        h.storage.errors["create_bucket"] = ProviderOperationError("my-bucket-name", "create", "boom")

        with pytest.raises(ProviderOperationError):
            h.reconcile()

        assert "patch_status" not in h.operations()
        assert FINALIZER in h.api.finalizers

    def test_configure_failure_prevents_ready(self):
        h = Harness(make_body(finalizers=[FINALIZER]), exists=True)
        h.storage.errors["configure_bucket"] = ProviderOperationError("my-bucket-name", "configure", "denied")

        with pytest.raises(ProviderOperationError):
            h.reconcile()

        assert "patch_status" not in h.operations()

    def test_exists_error_does_not_create(self):
        h = Harness(make_body(finalizers=[FINALIZER]))
        h.storage.errors["exists_bucket"] = ProviderOperationError("my-bucket-name", "exists", "AccessDenied")

        with pytest.raises(ProviderOperationError):
            h.reconcile()

        assert "create_bucket" not in h.operations()
        assert "update_bucket" not in h.operations()

    def test_cluster_resolution_failure_stops_before_provider_calls(self):
        h = Harness(make_body(), getter_error=ClusterResolutionError("missing identityRef"))

        with pytest.raises(ClusterResolutionError):
            h.reconcile()

        assert h.calls == []

    def test_cancelled_before_provider_calls(self):
        h = Harness(make_body(finalizers=[FINALIZER]))
        stopped = threading.Event()
        stopped.set()

        with pytest.raises(ReconcileCancelledError):
            h.reconcile(stopped=stopped)

        assert h.calls == []


class TestDeletePath:
    """Tests for reconciling a Bucket record marked for deletion."""

    def test_delete_policy_deletes_bucket_then_removes_finalizer(self):
        spec = {"name": "my-bucket-name", "reclaimPolicy": "Delete"}
        h = Harness(make_body(spec=spec, finalizers=[FINALIZER], deleting=True), exists=True)

        h.reconcile()

        assert h.operations() == ["exists_bucket", "delete_bucket", "set_finalizers"]
        assert h.index(("delete_bucket", "my-bucket-name")) < h.index(("set_finalizers", []))
        assert FINALIZER not in h.api.finalizers

    def test_delete_policy_also_deletes_access_role(self):
        spec = {
            "name": "my-bucket-name",
            "reclaimPolicy": "Delete",
            "accessRole": {"roleName": "loki-role"},
        }
        h = Harness(make_body(spec=spec, finalizers=[FINALIZER], deleting=True), exists=True)

        h.reconcile()

        assert h.operations() == ["exists_bucket", "delete_bucket", "delete_role", "set_finalizers"]

    @pytest.mark.parametrize("reclaim", ["Retain", None])
    def test_retain_keeps_bucket_but_removes_finalizer(self, reclaim):
        spec: dict[str, Any] = {"name": "my-bucket-name"}
        if reclaim:
            spec["reclaimPolicy"] = reclaim
        h = Harness(make_body(spec=spec, finalizers=[FINALIZER], deleting=True), exists=True)

        h.reconcile()

        assert "delete_bucket" not in h.operations()
        assert FINALIZER not in h.api.finalizers

    def test_absent_bucket_skips_provider_deletion(self):
        spec = {"name": "my-bucket-name", "reclaimPolicy": "Delete"}
        h = Harness(make_body(spec=spec, finalizers=[FINALIZER], deleting=True), exists=False)

        h.reconcile()

        assert h.operations() == ["exists_bucket", "set_finalizers"]

    def test_other_finalizers_are_kept(self):
        spec = {"name": "my-bucket-name", "reclaimPolicy": "Delete"}
        h = Harness(make_body(spec=spec, finalizers=["other", FINALIZER], deleting=True), exists=True)

        h.reconcile()

        assert h.api.finalizers == ["other"]

    def test_delete_failure_keeps_finalizer(self):
        spec = {"name": "my-bucket-name", "reclaimPolicy": "Delete"}
        h = Harness(make_body(spec=spec, finalizers=[FINALIZER], deleting=True), exists=True)
        h.storage.errors["delete_bucket"] = ProviderOperationError("my-bucket-name", "delete", "throttled")

        with pytest.raises(ProviderOperationError):
            h.reconcile()

        assert FINALIZER in h.api.finalizers

    def test_no_finalizer_means_nothing_to_do(self):
        h = Harness(make_body(spec={"name": "my-bucket-name", "reclaimPolicy": "Delete"}, deleting=True))

        h.reconcile()

        assert h.calls == []
        assert h.getter.resolved == 0
        assert h.factory.storage_builds == 0


class TestReconcileEntry:
    """Tests for the entry point shared by kopf triggers."""

    def test_missing_record_is_noop(self):
        h = Harness(None)

        assert h.reconcile() is None
        assert h.calls == []

    def test_unsupported_provider_is_permanent(self):
        def unsupported(*args: Any) -> Any:
            raise UnsupportedProviderError("capv")

        h = Harness(make_body())
        h.handler.cluster_getter_fn = unsupported

        with patch.object(bucket_handlers, "get_handler", return_value=h.handler):
            with pytest.raises(kopf.PermanentError, match="capv"):
                run_reconcile({"namespace": "monitoring", "name": "my-bucket"})

        assert h.calls == []

    def test_provider_errors_stay_retryable(self):
        h = Harness(make_body())
        h.storage.errors["create_bucket"] = ProviderOperationError("my-bucket-name", "create", "boom")

        with patch.object(bucket_handlers, "get_handler", return_value=h.handler):
            with pytest.raises(ProviderOperationError):
                run_reconcile({"namespace": "monitoring", "name": "my-bucket"})
