"""Azure object storage adapter: one storage account and one blob container per bucket."""

from __future__ import annotations

import logging
from typing import Any

from azure.core.exceptions import AzureError
from azure.mgmt.storage.models import (
    BlobContainer,
    DateAfterModification,
    Encryption,
    EncryptionService,
    EncryptionServices,
    ManagementPolicy,
    ManagementPolicyAction,
    ManagementPolicyBaseBlob,
    ManagementPolicyDefinition,
    ManagementPolicyFilter,
    ManagementPolicyRule,
    ManagementPolicySchema,
    Sku,
    StorageAccountCreateParameters,
)
from kubernetes import client as k8s_client

from ... import metrics
from ...cluster.base import AzureCluster
from ...constants import AZURE_SECRET_FINALIZER, LABEL_MANAGED_BY, MANAGED_BY_VALUE
from ...models import Bucket
from ...utils.cancellation import check_cancelled
from ...utils.errors import ProviderOperationError
from ...utils.secrets import delete_secret, remove_secret_finalizer, upsert_secret
from ..tags import merged_tags
from .network import is_private_cluster
from .private_endpoint import PrivateEndpointManager
from .utils import is_azure_not_found, sanitize_tags, storage_account_name, wait_for_poller

logger = logging.getLogger(__name__)

MANAGEMENT_POLICY_NAME = "default"
LIFECYCLE_RULE_NAME = "ExpirationLogging"
ACCESS_KEY_NAME = "key1"


class AzureObjectStorageService:
    """Bucket lifecycle against Azure Storage.

    The storage account is dedicated to the bucket so nothing else can share its keys.
    """

    def __init__(
        self,
        storage_client: Any,
        network_client: Any,
        dns_client: Any,
        core_api: k8s_client.CoreV1Api,
        cluster: AzureCluster,
        stopped: Any = None,
    ) -> None:
        self.storage_client = storage_client
        self.network_client = network_client
        self.dns_client = dns_client
        self.core_api = core_api
        self.cluster = cluster
        self.stopped = stopped
        self.private_endpoints = PrivateEndpointManager(self.network_client, self.dns_client, cluster, stopped)

    @property
    def resource_group(self) -> str:
        return self.cluster.resource_group

    def _record(self, operation: str, result: str) -> None:
        metrics.bucket_operations_total.labels(provider="azure", operation=operation, result=result).inc()

    def _fail(self, bucket: Bucket, operation: str, message: str, error: Exception) -> ProviderOperationError:
        self._record(operation, "error")
        return ProviderOperationError(bucket.spec.name, operation, f"{message}: {error}")

    def exists_bucket(self, bucket: Bucket) -> bool:
        """True only when both the storage account and the container exist."""
        account_name = storage_account_name(bucket.spec.name)
        try:
            self.storage_client.storage_accounts.get_properties(self.resource_group, account_name)
        except AzureError as e:
            if is_azure_not_found(e):
                return False
            raise self._fail(bucket, "exists", f"failed to get storage account {account_name}", e) from e

        try:
            self.storage_client.blob_containers.get(self.resource_group, account_name, bucket.spec.name)
        except AzureError as e:
            if is_azure_not_found(e):
                return False
            raise self._fail(bucket, "exists", f"failed to get storage container {bucket.spec.name}", e) from e
        return True

    def create_bucket(self, bucket: Bucket) -> None:
        self._ensure_bucket(bucket, "create")

    def update_bucket(self, bucket: Bucket) -> None:
        self._ensure_bucket(bucket, "update")

    def _ensure_bucket(self, bucket: Bucket, operation: str) -> None:
        """Upsert the account, the container, private networking and the access key secret."""
        name = bucket.spec.name
        account_name = storage_account_name(name)
        tags = sanitize_tags(merged_tags(bucket, self.cluster))
        private = is_private_cluster(self.core_api, self.cluster)

        try:
            self._upsert_storage_account(account_name, private, tags)
            check_cancelled(self.stopped, f"creating storage container {name}")
            self._upsert_container(account_name, name, tags)
            if private:
                check_cancelled(self.stopped, f"creating private endpoint {name}")
                self.private_endpoints.ensure(name, account_name, tags)
            check_cancelled(self.stopped, f"writing access key secret {name}")
            account_key = self._get_access_key(account_name)
        except AzureError as e:
            raise self._fail(bucket, operation, f"failed to {operation} Azure bucket {name}", e) from e
        if account_key is None:
            self._record(operation, "error")
            raise ProviderOperationError(
                name, operation, f"unable to retrieve access key {ACCESS_KEY_NAME!r} from storage account {account_name}"
            )

        upsert_secret(
            self.core_api,
            namespace=bucket.namespace,
            secret_name=name,
            data={"accountName": account_name, "accountKey": account_key},
            labels={LABEL_MANAGED_BY: MANAGED_BY_VALUE},
            finalizers=[AZURE_SECRET_FINALIZER],
        )
        self._record(operation, "success")
        logger.info(f"Storage account {account_name} and container {name} ready (private={private})")

    def _upsert_storage_account(self, account_name: str, private: bool, tags: dict[str, str]) -> None:
        parameters = StorageAccountCreateParameters(
            sku=Sku(name="Standard_LRS"),
            kind="BlobStorage",
            location=self.cluster.region,
            tags=tags,
            access_tier="Hot",
            encryption=Encryption(
                services=EncryptionServices(blob=EncryptionService(enabled=True, key_type="Account")),
                key_source="Microsoft.Storage",
            ),
            enable_https_traffic_only=True,
            minimum_tls_version="TLS1_2",
            allow_blob_public_access=False,
            allow_shared_key_access=True,
            public_network_access="Disabled" if private else "Enabled",
        )
        poller = self.storage_client.storage_accounts.begin_create(self.resource_group, account_name, parameters)
        wait_for_poller(poller, self.stopped, f"creating storage account {account_name}")

    def _upsert_container(self, account_name: str, container_name: str, tags: dict[str, str]) -> None:
        try:
            self.storage_client.blob_containers.get(self.resource_group, account_name, container_name)
        except AzureError as e:
            if not is_azure_not_found(e):
                raise
            self.storage_client.blob_containers.create(
                self.resource_group,
                account_name,
                container_name,
                BlobContainer(public_access="None", metadata=tags),
            )
            logger.info(f"Created storage container {container_name}")
            return

        self.storage_client.blob_containers.update(
            self.resource_group,
            account_name,
            container_name,
            BlobContainer(metadata=tags),
        )

    def _get_access_key(self, account_name: str) -> str | None:
        keys = self.storage_client.storage_accounts.list_keys(self.resource_group, account_name)
        for key in keys.keys or []:
            if key.key_name == ACCESS_KEY_NAME:
                return key.value
        return None

    def delete_bucket(self, bucket: Bucket) -> None:
        """Delete the endpoint wiring and the account, then release and delete the key secret."""
        name = bucket.spec.name
        account_name = storage_account_name(name)
        try:
            self.private_endpoints.delete(name, account_name)
            check_cancelled(self.stopped, f"deleting storage account {account_name}")
            # Deleting the account cascades to the container
            self.storage_client.storage_accounts.delete(self.resource_group, account_name)
        except AzureError as e:
            if not is_azure_not_found(e):
                raise self._fail(bucket, "delete", f"failed to delete storage account {account_name}", e) from e
        logger.info(f"Storage account {account_name} and container {name} deleted")

        remove_secret_finalizer(self.core_api, bucket.namespace, name, AZURE_SECRET_FINALIZER)
        delete_secret(self.core_api, bucket.namespace, name)
        self._record("delete", "success")

    def configure_bucket(self, bucket: Bucket) -> None:
        """Apply the expiration lifecycle rule and the container metadata tags."""
        name = bucket.spec.name
        account_name = storage_account_name(name)
        try:
            self._set_lifecycle_rule(bucket, account_name)
            check_cancelled(self.stopped, f"tagging storage container {name}")
            self.storage_client.blob_containers.update(
                self.resource_group,
                account_name,
                name,
                BlobContainer(metadata=sanitize_tags(merged_tags(bucket, self.cluster))),
            )
        except AzureError as e:
            raise self._fail(bucket, "configure", f"failed to configure Azure bucket {name}", e) from e
        self._record("configure", "success")

    def _get_management_policy(self, account_name: str) -> ManagementPolicy | None:
        try:
            return self.storage_client.management_policies.get(
                self.resource_group, account_name, MANAGEMENT_POLICY_NAME
            )
        except AzureError as e:
            if is_azure_not_found(e):
                return None
            raise

    def _set_lifecycle_rule(self, bucket: Bucket, account_name: str) -> None:
        """Keep our named rule in the account's management policy in sync with the expiration policy.

        Rules with other names are preserved.
        """
        current = self._get_management_policy(account_name)
        current_rules = (current.policy.rules if current and current.policy else None) or []
        rules = [rule for rule in current_rules if rule.name != LIFECYCLE_RULE_NAME]
        had_rule = len(rules) != len(current_rules)

        expiration = bucket.spec.expiration_policy
        if expiration is not None:
            rules.append(
                ManagementPolicyRule(
                    enabled=True,
                    name=LIFECYCLE_RULE_NAME,
                    type="Lifecycle",
                    definition=ManagementPolicyDefinition(
                        actions=ManagementPolicyAction(
                            base_blob=ManagementPolicyBaseBlob(
                                delete=DateAfterModification(days_after_modification_greater_than=expiration.days),
                            ),
                        ),
                        filters=ManagementPolicyFilter(blob_types=["blockBlob"]),
                    ),
                )
            )
        elif not had_rule:
            return

        if rules:
            self.storage_client.management_policies.create_or_update(
                self.resource_group,
                account_name,
                MANAGEMENT_POLICY_NAME,
                ManagementPolicy(policy=ManagementPolicySchema(rules=rules)),
            )
            return

        try:
            self.storage_client.management_policies.delete(self.resource_group, account_name, MANAGEMENT_POLICY_NAME)
        except AzureError as e:
            if not is_azure_not_found(e):
                raise
        logger.info(f"Removed lifecycle rule {LIFECYCLE_RULE_NAME} from storage account {account_name}")
