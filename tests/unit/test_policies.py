"""Tests for policy document rendering."""

from __future__ import annotations

import json

from object_storage_operator.services.aws.policies import (
    render_bucket_policy,
    render_role_policy,
    render_trust_policy,
)


class TestRolePolicy:
    """Test the inline role policy."""

    def test_single_bucket(self) -> None:
        policy = json.loads(render_role_policy("b1"))

        assert policy["Version"] == "2012-10-17"
        assert policy["Statement"][0]["Action"] == [
            "s3:ListBucket",
            "s3:PutObject",
            "s3:GetObject",
            "s3:DeleteObject",
        ]
        assert policy["Statement"][0]["Resource"] == ["arn:aws:s3:::b1", "arn:aws:s3:::b1/*"]

    def test_extra_buckets_and_nothing_else(self) -> None:
        policy = json.loads(render_role_policy("b1", ["b2"]))

        resources = policy["Statement"][0]["Resource"]
        assert sorted({r.split(":::")[1].split("/")[0] for r in resources}) == ["b1", "b2"]
        assert len(resources) == 4

    def test_account_level_introspection_is_read_only(self) -> None:
        policy = json.loads(render_role_policy("b1"))

        assert policy["Statement"][1] == {
            "Effect": "Allow",
            "Action": ["s3:GetAccessPoint", "s3:GetAccountPublicAccessBlock", "s3:ListAccessPoints"],
            "Resource": "*",
        }

    def test_china_partition(self) -> None:
        policy = json.loads(render_role_policy("b1", partition="aws-cn"))

        assert policy["Statement"][0]["Resource"][0] == "arn:aws-cn:s3:::b1"


class TestTrustPolicy:
    def test_binds_service_account_subject(self) -> None:
        policy = json.loads(render_trust_policy("123456789012", "irsa.glippy.example.io", "loki", "loki-ns"))

        statement = policy["Statement"][0]
        assert statement["Action"] == "sts:AssumeRoleWithWebIdentity"
        assert statement["Principal"] == {
            "Federated": "arn:aws:iam::123456789012:oidc-provider/irsa.glippy.example.io"
        }
        assert statement["Condition"] == {
            "StringEquals": {"irsa.glippy.example.io:sub": "system:serviceaccount:loki-ns:loki"}
        }


class TestBucketPolicy:
    def test_denies_plaintext_transport(self) -> None:
        policy = json.loads(render_bucket_policy("my-bucket"))

        assert policy["Statement"] == [
            {
                "Sid": "EnforceSSLOnly",
                "Effect": "Deny",
                "Principal": "*",
                "Action": "s3:*",
                "Resource": ["arn:aws:s3:::my-bucket", "arn:aws:s3:::my-bucket/*"],
                "Condition": {"Bool": {"aws:SecureTransport": "false"}},
            }
        ]
