"""IAM and S3 policy documents."""

from __future__ import annotations

import json
from typing import Any

POLICY_VERSION = "2012-10-17"


def _bucket_resources(partition: str, bucket_name: str) -> list[str]:
    return [
        f"arn:{partition}:s3:::{bucket_name}",
        f"arn:{partition}:s3:::{bucket_name}/*",
    ]


def render_bucket_policy(bucket_name: str, partition: str = "aws") -> str:
    """Render the bucket policy denying any request not made over TLS.

    Args:
        bucket_name: Name of the bucket
        partition: AWS partition of the bucket ARN

    Returns:
        Policy document as a JSON string
    """
    policy: dict[str, Any] = {
        "Version": POLICY_VERSION,
        "Statement": [
            {
                "Sid": "EnforceSSLOnly",
                "Effect": "Deny",
                "Principal": "*",
                "Action": "s3:*",
                "Resource": _bucket_resources(partition, bucket_name),
                "Condition": {"Bool": {"aws:SecureTransport": "false"}},
            }
        ],
    }
    return json.dumps(policy)


def render_role_policy(
    bucket_name: str,
    extra_bucket_names: list[str] | None = None,
    partition: str = "aws",
) -> str:
    """Render the inline role policy granting object access to the given buckets.

    Args:
        bucket_name: Name of the bucket the role is bound to
        extra_bucket_names: Additional buckets the role may access
        partition: AWS partition of the bucket ARNs

    Returns:
        Policy document as a JSON string
    """
    resources: list[str] = []
    for name in [bucket_name, *(extra_bucket_names or [])]:
        for resource in _bucket_resources(partition, name):
            if resource not in resources:
                resources.append(resource)

    policy: dict[str, Any] = {
        "Version": POLICY_VERSION,
        "Statement": [
            {
                "Effect": "Allow",
                "Action": [
                    "s3:ListBucket",
                    "s3:PutObject",
                    "s3:GetObject",
                    "s3:DeleteObject",
                ],
                "Resource": resources,
            },
            {
                "Effect": "Allow",
                "Action": [
                    "s3:GetAccessPoint",
                    "s3:GetAccountPublicAccessBlock",
                    "s3:ListAccessPoints",
                ],
                "Resource": "*",
            },
        ],
    }
    return json.dumps(policy)


def render_trust_policy(
    account_id: str,
    oidc_domain: str,
    service_account_name: str,
    service_account_namespace: str,
    partition: str = "aws",
) -> str:
    """Render the trust policy letting one service account assume the role via OIDC.

    Args:
        account_id: AWS account that owns the OIDC provider
        oidc_domain: Issuer host (and path) of the OIDC provider
        service_account_name: Name of the trusted service account
        service_account_namespace: Namespace of the trusted service account
        partition: AWS partition of the provider ARN

    Returns:
        Policy document as a JSON string
    """
    policy: dict[str, Any] = {
        "Version": POLICY_VERSION,
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {
                    "Federated": f"arn:{partition}:iam::{account_id}:oidc-provider/{oidc_domain}",
                },
                "Action": "sts:AssumeRoleWithWebIdentity",
                "Condition": {
                    "StringEquals": {
                        f"{oidc_domain}:sub": (
                            f"system:serviceaccount:{service_account_namespace}:{service_account_name}"
                        ),
                    }
                },
            }
        ],
    }
    return json.dumps(policy)
