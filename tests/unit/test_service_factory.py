"""Tests for provider selection and adapter factories."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from object_storage_operator.cluster.base import AWSCluster, AzureCluster
from object_storage_operator.config import ManagementCluster
from object_storage_operator.services.aws.factory import AWSServiceFactory
from object_storage_operator.services.aws.iam import IAMAccessRoleService
from object_storage_operator.services.aws.s3 import S3ObjectStorageService
from object_storage_operator.services.azure.access import AzureAccessRoleService
from object_storage_operator.services.azure.factory import AzureServiceFactory, get_credential
from object_storage_operator.services.factory import get_cluster_getter, get_service_factory
from object_storage_operator.utils.errors import ClusterResolutionError, UnsupportedProviderError


def mc(provider: str) -> ManagementCluster:
    return ManagementCluster("glippy", "org-giantswarm", provider, "eu-west-1", "example.io")


def aws_cluster() -> AWSCluster:
    return AWSCluster(
        "glippy",
        "org-giantswarm",
        "eu-west-1",
        "example.io",
        role_arn="arn:aws:iam::123456789012:role/capa",
    )


def azure_cluster(identity_type: str, **kwargs) -> AzureCluster:
    return AzureCluster(
        "glippy",
        "org-giantswarm",
        "westeurope",
        "example.io",
        resource_group="glippy",
        subscription_id="sub-1",
        identity_type=identity_type,
        client_id="client-1",
        tenant_id="tenant-1",
        **kwargs,
    )


class TestProviderSelection:
    def test_unsupported_provider(self):
        with pytest.raises(UnsupportedProviderError):
            get_service_factory(mc("capv"), MagicMock())
        with pytest.raises(UnsupportedProviderError):
            get_cluster_getter(mc("capv"), MagicMock(), MagicMock())

    def test_aws_and_azure(self):
        assert isinstance(get_service_factory(mc("capa"), MagicMock()), AWSServiceFactory)
        assert isinstance(get_service_factory(mc("capz"), MagicMock()), AzureServiceFactory)


class TestAWSServiceFactory:
    @patch("object_storage_operator.services.aws.factory.boto3")
    def test_assumes_role_per_service(self, mock_boto3):
        sts = MagicMock()
        sts.assume_role.return_value = {
            "Credentials": {"AccessKeyId": "AKIA", "SecretAccessKey": "secret", "SessionToken": "token"}
        }
        mock_boto3.client.return_value = sts

        factory = AWSServiceFactory()
        storage = factory.new_object_storage_service(aws_cluster())
        access = factory.new_access_role_service(aws_cluster())

        assert isinstance(storage, S3ObjectStorageService)
        assert isinstance(access, IAMAccessRoleService)
        assert sts.assume_role.call_count == 2
        assert sts.assume_role.call_args.kwargs["RoleArn"] == "arn:aws:iam::123456789012:role/capa"
        session_kwargs = mock_boto3.session.Session.call_args.kwargs
        assert session_kwargs["aws_session_token"] == "token"
        assert session_kwargs["region_name"] == "eu-west-1"

    @patch("object_storage_operator.services.aws.factory.boto3")
    def test_assume_role_failure(self, mock_boto3):
        sts = MagicMock()
        sts.assume_role.side_effect = ClientError({"Error": {"Code": "AccessDenied"}}, "AssumeRole")
        mock_boto3.client.return_value = sts

        with pytest.raises(ClusterResolutionError):
            AWSServiceFactory().new_object_storage_service(aws_cluster())

    def test_rejects_azure_cluster(self):
        with pytest.raises(ClusterResolutionError):
            AWSServiceFactory().new_object_storage_service(azure_cluster("UserAssignedMSI"))


class TestAzureCredentials:
    @patch("object_storage_operator.services.azure.factory.ManagedIdentityCredential")
    def test_user_assigned_msi(self, mock_credential):
        get_credential(azure_cluster("UserAssignedMSI"))

        mock_credential.assert_called_once_with(client_id="client-1")

    @patch("object_storage_operator.services.azure.factory.ClientSecretCredential")
    def test_service_principal(self, mock_credential):
        get_credential(azure_cluster("ManualServicePrincipal", client_secret="s3cr3t"))

        mock_credential.assert_called_once_with(
            tenant_id="tenant-1", client_id="client-1", client_secret="s3cr3t"
        )

    @patch("object_storage_operator.services.azure.factory.WorkloadIdentityCredential")
    def test_workload_identity(self, mock_credential):
        get_credential(azure_cluster("WorkloadIdentity"))

        mock_credential.assert_called_once_with(tenant_id="tenant-1", client_id="client-1")

    def test_unsupported_identity(self):
        with pytest.raises(ClusterResolutionError):
            get_credential(azure_cluster("ServicePrincipalCertificate"))

    def test_access_role_service(self):
        factory = AzureServiceFactory(MagicMock())

        assert isinstance(factory.new_access_role_service(azure_cluster("UserAssignedMSI")), AzureAccessRoleService)
