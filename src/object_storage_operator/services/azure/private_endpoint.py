"""Private endpoint, private DNS zone, VNet link and A-record provisioning."""

from __future__ import annotations

import logging
from typing import Any

from azure.core.exceptions import AzureError
from azure.mgmt.network.models import (
    PrivateEndpoint,
    PrivateLinkServiceConnection,
    Subnet,
)
from azure.mgmt.privatedns.models import (
    ARecord,
    PrivateZone,
    RecordSet,
    SubResource,
    VirtualNetworkLink,
)

from ...cluster.base import AzureCluster
from .utils import is_azure_not_found, wait_for_poller

logger = logging.getLogger(__name__)

# Zone name Azure resolves blob private links through
PRIVATE_ZONE_NAME = "privatelink.blob.core.windows.net"
VNET_LINK_NAME = "giantswarm-observability"
SUBNET_NAME = "node-subnet"
RECORD_TTL_SECONDS = 3600
GLOBAL_LOCATION = "Global"


class PrivateEndpointManager:
    """Wires a storage account into the cluster's virtual network."""

    def __init__(
        self,
        network_client: Any,
        dns_client: Any,
        cluster: AzureCluster,
        stopped: Any = None,
    ) -> None:
        self.network_client = network_client
        self.dns_client = dns_client
        self.cluster = cluster
        self.stopped = stopped

    @property
    def vnet_id(self) -> str:
        return (
            f"/subscriptions/{self.cluster.subscription_id}/resourceGroups/{self.cluster.resource_group}"
            f"/providers/Microsoft.Network/virtualNetworks/{self.cluster.vnet_name}"
        )

    @property
    def subnet_id(self) -> str:
        return f"{self.vnet_id}/subnets/{SUBNET_NAME}"

    def storage_account_id(self, account_name: str) -> str:
        return (
            f"/subscriptions/{self.cluster.subscription_id}/resourceGroups/{self.cluster.resource_group}"
            f"/providers/Microsoft.Storage/storageAccounts/{account_name}"
        )

    def ensure(self, bucket_name: str, account_name: str, tags: dict[str, str]) -> None:
        """Upsert the zone, the VNet link, the endpoint and its A-record."""
        self.upsert_private_zone(tags)
        self.upsert_virtual_network_link(tags)
        endpoint = self.upsert_private_endpoint(bucket_name, account_name, tags)
        self.upsert_a_record(account_name, endpoint, tags)

    def upsert_private_zone(self, tags: dict[str, str]) -> PrivateZone:
        poller = self.dns_client.private_zones.begin_create_or_update(
            self.cluster.resource_group,
            PRIVATE_ZONE_NAME,
            PrivateZone(location=GLOBAL_LOCATION, tags=tags),
        )
        return wait_for_poller(poller, self.stopped, f"creating private zone {PRIVATE_ZONE_NAME}")

    def upsert_virtual_network_link(self, tags: dict[str, str]) -> VirtualNetworkLink:
        poller = self.dns_client.virtual_network_links.begin_create_or_update(
            self.cluster.resource_group,
            PRIVATE_ZONE_NAME,
            VNET_LINK_NAME,
            VirtualNetworkLink(
                location=GLOBAL_LOCATION,
                registration_enabled=False,
                virtual_network=SubResource(id=self.vnet_id),
                tags=tags,
            ),
        )
        return wait_for_poller(poller, self.stopped, f"creating virtual network link {VNET_LINK_NAME}")

    def upsert_private_endpoint(self, bucket_name: str, account_name: str, tags: dict[str, str]) -> PrivateEndpoint:
        poller = self.network_client.private_endpoints.begin_create_or_update(
            self.cluster.resource_group,
            bucket_name,
            PrivateEndpoint(
                location=self.cluster.region,
                custom_network_interface_name=f"{bucket_name}-nodes-nic",
                private_link_service_connections=[
                    PrivateLinkServiceConnection(
                        name=bucket_name,
                        private_link_service_id=self.storage_account_id(account_name),
                        group_ids=["blob"],
                    )
                ],
                subnet=Subnet(id=self.subnet_id),
                tags=tags,
            ),
        )
        endpoint = wait_for_poller(poller, self.stopped, f"creating private endpoint {bucket_name}")
        logger.info(f"Private endpoint {bucket_name} ready")
        return endpoint

    def upsert_a_record(self, account_name: str, endpoint: PrivateEndpoint, tags: dict[str, str]) -> RecordSet:
        ips = [
            ip
            for dns_config in endpoint.custom_dns_configs or []
            for ip in dns_config.ip_addresses or []
        ]
        logger.info(f"Creating A record {account_name} for private endpoint {endpoint.name} with {ips}")
        return self.dns_client.record_sets.create_or_update(
            self.cluster.resource_group,
            PRIVATE_ZONE_NAME,
            "A",
            account_name,
            RecordSet(
                ttl=RECORD_TTL_SECONDS,
                a_records=[ARecord(ipv4_address=ip) for ip in ips],
                metadata=tags,
            ),
        )

    def delete(self, bucket_name: str, account_name: str) -> None:
        """Remove the bucket's endpoint and A-record; the zone and VNet link are shared."""
        try:
            poller = self.network_client.private_endpoints.begin_delete(
                self.cluster.resource_group, bucket_name
            )
            wait_for_poller(poller, self.stopped, f"deleting private endpoint {bucket_name}")
        except AzureError as e:
            if not is_azure_not_found(e):
                raise

        try:
            self.dns_client.record_sets.delete(
                self.cluster.resource_group, PRIVATE_ZONE_NAME, "A", account_name
            )
        except AzureError as e:
            if not is_azure_not_found(e):
                raise
