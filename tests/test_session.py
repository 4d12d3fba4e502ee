# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Tests for vendor sessions."""

from __future__ import annotations

import base64
from unittest.mock import MagicMock, patch

import boto3
import pytest
from pydantic import SecretStr

from spawner.config import SpawnerConfig
from spawner.credentials import AwsCredential, AzureCredential
from spawner.errors import ClusterUnreachable, CredentialNotFound, InvalidCredential, VendorError
from spawner.session import AwsSession, AzureSession


def static_session() -> boto3.Session:
    return boto3.Session(aws_access_key_id="AKIDEXAMPLE", aws_secret_access_key="secret", region_name="us-east-1")


class TestAwsSessionOpen:
    """Test account resolution."""

    def test_default_account_uses_host_identity(self, config: SpawnerConfig) -> None:
        """The default account should not touch the credential store."""
        store = MagicMock()
        with patch("spawner.session.boto3.Session") as session_cls:
            session = AwsSession.open(config, "us-west-2", "", store)

        session_cls.assert_called_once_with(region_name="us-west-2", profile_name=None)
        store.read.assert_not_called()
        assert session.region == "us-west-2"

    def test_named_default_account(self, config: SpawnerConfig) -> None:
        """The configured default account name should also use the host identity."""
        store = MagicMock()
        with patch("spawner.session.boto3.Session"):
            AwsSession.open(config, "us-west-2", config.default_account, store)

        store.read.assert_not_called()

    def test_stored_account(self, config: SpawnerConfig) -> None:
        """Other accounts should use their stored AWS keys."""
        store = MagicMock()
        store.read.return_value = AwsCredential(
            access_key_id="AKIA", secret_access_key=SecretStr("s"), session_token=SecretStr("t")
        )
        with patch("spawner.session.boto3.Session") as session_cls:
            AwsSession.open(config, "eu-west-1", "acme", store)

        store.read.assert_called_once_with(config.secret_host_region, "acme", "aws")
        session_cls.assert_called_once_with(
            aws_access_key_id="AKIA",
            aws_secret_access_key="s",
            aws_session_token="t",
            region_name="eu-west-1",
        )

    def test_stored_account_of_wrong_kind(self, config: SpawnerConfig) -> None:
        """Non-AWS stored credentials should be rejected."""
        store = MagicMock()
        store.read.return_value = AzureCredential(
            subscription_id="s", tenant_id="t", client_id="c", client_secret=SecretStr("x"), resource_group="rg"
        )

        with pytest.raises(InvalidCredential):
            AwsSession.open(config, "eu-west-1", "acme", store)

    def test_missing_account(self, config: SpawnerConfig, store) -> None:
        """An account with nothing stored should raise CredentialNotFound."""
        with pytest.raises(CredentialNotFound):
            AwsSession.open(config, "eu-west-1", "acme", store)


class TestEksAccess:
    """Test tokens and kube access for EKS clusters."""

    def test_token_is_presigned_sts_url(self, config: SpawnerConfig) -> None:
        """The token should wrap a presigned GetCallerIdentity URL bound to the cluster."""
        session = AwsSession(static_session(), "us-east-1", config)

        token = session.eks_token("prod")

        assert token.startswith("k8s-aws-v1.")
        encoded = token.removeprefix("k8s-aws-v1.")
        assert "=" not in encoded
        url = base64.urlsafe_b64decode(encoded + "=" * (-len(encoded) % 4)).decode()
        assert url.startswith("https://sts.us-east-1.amazonaws.com/")
        assert "Action=GetCallerIdentity" in url
        assert "x-k8s-aws-id" in url
        assert "X-Amz-Expires=60" in url

    def test_token_without_credentials(self, config: SpawnerConfig) -> None:
        """A session with no credentials to sign with should raise VendorError."""
        boto_session = static_session()
        session = AwsSession(boto_session, "us-east-1", config)

        with patch.object(boto_session, "get_credentials", return_value=None), \
                pytest.raises(VendorError) as exc_info:
            session.eks_token("prod")
        assert exc_info.value.operation == "sign token for cluster 'prod'"

    def test_kube_config(self, config: SpawnerConfig) -> None:
        """An active cluster should give endpoint, CA, and a token."""
        session = AwsSession(static_session(), "us-east-1", config)
        cluster = {"name": "prod", "endpoint": "https://prod", "certificateAuthority": {"data": "Q0E="}}

        kube_cfg = session.kube_config(cluster)

        assert kube_cfg.endpoint == "https://prod"
        assert kube_cfg.ca_data == "Q0E="
        assert kube_cfg.token.startswith("k8s-aws-v1.")

    def test_cluster_without_endpoint(self, config: SpawnerConfig) -> None:
        """A cluster still creating should be unreachable."""
        session = AwsSession(static_session(), "us-east-1", config)

        with pytest.raises(ClusterUnreachable) as exc_info:
            session.kube_config({"name": "prod", "status": "CREATING"})
        assert exc_info.value.cluster_name == "prod"

    def test_clients_are_cached(self, config: SpawnerConfig) -> None:
        """Each client should be built once per session."""
        session = AwsSession(static_session(), "us-east-1", config)

        assert session.eks_client() is session.eks_client()
        assert session.eks_client().meta.region_name == "us-east-1"


class TestAzureSessionOpen:
    """Test Azure account resolution."""

    def test_stored_account(self, config: SpawnerConfig) -> None:
        """The stored service principal should build the management client."""
        store = MagicMock()
        store.read.return_value = AzureCredential(
            subscription_id="sub", tenant_id="t", client_id="c", client_secret=SecretStr("x"), resource_group="rg"
        )
        with patch("spawner.session.ContainerServiceClient") as client_cls, \
                patch("spawner.session.ClientSecretCredential") as cred_cls:
            session = AzureSession.open(config, "eastus", "acme", store)

        store.read.assert_called_once_with(config.secret_host_region, "acme", "azure")
        cred_cls.assert_called_once_with(tenant_id="t", client_id="c", client_secret="x")
        client_cls.assert_called_once_with(cred_cls.return_value, "sub")
        assert session.resource_group == "rg"
        assert session.container_client() is client_cls.return_value

    def test_stored_account_of_wrong_kind(self, config: SpawnerConfig) -> None:
        """AWS credentials should be rejected for Azure."""
        store = MagicMock()
        store.read.return_value = AwsCredential(access_key_id="AKIA", secret_access_key=SecretStr("s"))

        with pytest.raises(InvalidCredential):
            AzureSession.open(config, "eastus", "acme", store)
